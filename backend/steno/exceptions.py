"""
Steno Backend — Custom Exception Hierarchy
===========================================

What:  Defines application-specific exceptions for each failure the API reports.
Why:   Every error is resolved to a status code and a client-safe message at
       the point it is detected. The gate pipeline turns a raised StenoError
       into a Stop result; global handlers in main.py cover anything raised
       outside a gated route.
How:   Each exception class carries a message, a status code, a machine-readable
       error code and an optional context dict (logged, never returned).

Exception Hierarchy:
    StenoError (base)                → 500
    ├── BadRequestError              → 400 Bad Request (malformed input, bad credential header)
    ├── ForbiddenError               → 403 Forbidden (credential lacks access to guild)
    ├── NotFoundError                → 404 Not Found (no quotes for the query)
    ├── StoreError                   → 500 Internal Server Error (Redis failure)
    └── IdentityProviderError        → 500 Internal Server Error (Discord unreachable/bad reply)

Security Note:
    `message` ends up in the response body. Never put backend error text or
    anything about another partition's contents into it; use `context`.
"""

from typing import Any, Dict, Optional


class StenoError(Exception):
    """
    Base exception for all Steno application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500
    error_code: str = "internal_server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(StenoError):
    """
    Raised when client input cannot be processed.

    When:    Missing/invalid JSON body, empty quote text, missing Authorization
             header, wrong credential scheme, bad query parameters.
    HTTP:    400 Bad Request
    """

    status_code = 400
    error_code = "bad_request"

    def __init__(
        self,
        message: str = "invalid request",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class ForbiddenError(StenoError):
    """
    Raised when a well-formed credential does not grant access to the guild.

    HTTP:    403 Forbidden
    """

    status_code = 403
    error_code = "forbidden"

    def __init__(
        self,
        message: str = "discord token does not have access to that guild",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(StenoError):
    """
    Raised when a partition is absent or empty, or a query matched nothing.

    HTTP:    404 Not Found

    Empty results and missing partitions are deliberately not distinguished.
    """

    status_code = 404
    error_code = "not_found"

    def __init__(
        self,
        guild_id: Optional[str] = None,
        user_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = "no quotes found"
        if guild_id is not None and user_id is not None:
            message = f"no quotes for guild {guild_id} user {user_id}"
        ctx = context or {}
        if guild_id is not None:
            ctx["guild_id"] = guild_id
        if user_id is not None:
            ctx["user_id"] = user_id
        super().__init__(message=message, context=ctx)


class StoreError(StenoError):
    """
    Raised when the Redis backend fails.

    HTTP:    500 Internal Server Error

    The message returned to the client is always generic. The Redis error
    is carried in `context` for the server log.
    """

    def __init__(
        self,
        message: str = "quote store unavailable, please try again later",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class IdentityProviderError(StenoError):
    """
    Raised when the guild lookup against Discord cannot be completed.

    When:    Transport error, timeout, HTTP status >= 400, unparseable reply.
    HTTP:    500 Internal Server Error

    Callers can tell this apart from a true denial (403) by status code only;
    the cause lives in the log.
    """

    def __init__(
        self,
        message: str = "discord request failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
