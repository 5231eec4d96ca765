"""
Steno Backend — Discord API Schemas
====================================

What:  The subset of Discord's Guild object returned by GET /users/@me/guilds.
Why:   The credential verifier only needs guild ids; everything else Discord
       sends is ignored so API additions never break parsing.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter


class GuildSummary(BaseModel):
    """Partial guild as listed for the current user/bot."""

    id: str = Field(description="Guild snowflake id")
    name: str = Field(default="", description="Guild name")
    icon: Optional[str] = Field(default=None, description="Icon hash")
    owner: bool = Field(default=False, description="Whether the caller owns the guild")
    permissions: Optional[str] = Field(default=None, description="Caller's permission bit set")

    model_config = {"extra": "ignore"}


# Validates the whole response body (a JSON array) in one call
GuildList = TypeAdapter(List[GuildSummary])
