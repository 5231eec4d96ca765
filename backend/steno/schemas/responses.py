"""
Steno Backend — Response Envelopes
===================================

What:  Shared response models that are not quotes: errors and health.
Why:   Clients need one error structure to parse regardless of which gate or
       handler failed.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for every non-2xx response.

    Example:
        {
            "error": "forbidden",
            "message": "steno: discord token does not have access to that guild",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check body: overall status plus Redis connectivity."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    store: str = Field(description="Redis connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
