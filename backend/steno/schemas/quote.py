"""
Steno Backend — Quote Schema
=============================

What:  The Pydantic model for a stored quote and its wire/storage encoding.
Why:   One model serves as the request body, the response item and the value
       stored in Redis, so all three always agree on field names and order.
How:   Fields are declared in serialization order. `model_dump_json` emits
       compact JSON with every key present, which makes the encoding
       deterministic: equal quotes serialize to identical bytes.

Wire format:
    {"id":"…","author_id":"…","str":"…","date":"…","stenographer_id":"…"}

    The quote text travels under the key "str"; in Python it is `text`.
    Optional fields are stored as "" when absent, never null.

Structural equality:
    Redis removes list entries by value, so DELETE only removes an entry whose
    serialized form is byte-identical to the body it was sent. Sending back an
    object exactly as GET returned it always matches.
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, ValidationError, field_validator

from steno.exceptions import BadRequestError


def iso8601_now() -> str:
    """Current UTC time as RFC 3339 with second precision, e.g. 2024-01-15T12:00:00Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class Quote(BaseModel):
    """
    A single quote attributed to a user within a guild.

    Fields:
        id:              Opaque unique id (UUID4 string when generated here)
        author_id:       Who said it; the POST handler defaults it to the path user
        text:            The quote itself, never empty ("str" on the wire)
        date:            RFC 3339 UTC timestamp, ingestion time when omitted
        stenographer_id: Who recorded it (optional)
    """

    id: str = Field(default="", description="Unique quote identifier")
    author_id: str = Field(default="", description="Discord id of the quoted user")
    text: str = Field(alias="str", description="The quoted text")
    date: str = Field(default="", description="When the quote was recorded (RFC 3339, UTC)")
    stenographer_id: str = Field(default="", description="Discord id of the recorder")

    # Only the wire name "str" is accepted; a body sending "text" has no quote
    model_config = {"extra": "ignore"}

    @field_validator("id", "author_id", "date", "stenographer_id", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v

    @field_validator("text")
    @classmethod
    def validate_text(cls, v: str) -> str:
        if not v:
            raise ValueError("no quote string provided")
        return v

    @classmethod
    def from_request_body(cls, raw: bytes) -> "Quote":
        """
        Parse a client-supplied JSON body into a complete Quote.

        Fills in a fresh `id` and the current `date` when the client left
        them out. `author_id` is left alone; defaulting it needs the path
        parameters, which only the handler has.

        Raises:
            BadRequestError: body is not JSON, not an object, or has no text
        """
        try:
            quote = cls.model_validate_json(raw)
        except ValidationError as e:
            reasons = "; ".join(err["msg"] for err in e.errors())
            raise BadRequestError(
                message=f"invalid request, {reasons}",
                field="body",
            ) from e

        if not quote.date:
            quote.date = iso8601_now()
        if not quote.id:
            quote.id = str(uuid.uuid4())
        return quote

    @classmethod
    def from_stored(cls, raw: bytes) -> "Quote":
        """Decode a Redis list element. Raises pydantic.ValidationError on bad data."""
        return cls.model_validate_json(raw)

    def serialize(self) -> bytes:
        """Canonical storage encoding; equal quotes give identical bytes."""
        return self.model_dump_json(by_alias=True).encode("utf-8")

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)

    def __str__(self) -> str:
        return self.text
