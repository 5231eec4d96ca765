"""
Steno Backend — Application Configuration
==========================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by the app factory and the services it builds.
When:  Loaded once at module import time.

The backend address, password and database index are injectable here so the
store is never hardcoded to one Redis instance. Tests bypass all of this by
handing the app factory their own store and verifier.
"""

from typing import Optional, Tuple

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have defaults suitable for local development against a
    Redis on localhost. Attributes are grouped by concern.
    """

    # ── Redis ─────────────────────────────────────────────────────────────
    # Format: host:port (the legacy STENO_REDIS_ADDR variable is also accepted)
    redis_addr: str = Field(
        default="localhost:6379",
        validation_alias=AliasChoices("STENO_REDIS_ADDR", "REDIS_ADDR"),
        description="Redis address as host:port",
    )
    redis_password: str = Field(default="")
    redis_db: int = Field(default=0, ge=0, le=15)

    @property
    def redis_host_port(self) -> Tuple[str, int]:
        """Splits redis_addr into (host, port); port defaults to 6379."""
        host, _, port = self.redis_addr.rpartition(":")
        if not host:
            return port or "localhost", 6379
        return host, int(port)

    # ── Discord (identity provider) ───────────────────────────────────────
    discord_api_base: str = Field(default="https://discord.com/api/v8")

    # Seconds before the guild lookup is abandoned and the request fails with 500
    discord_timeout: float = Field(default=10.0, gt=0, le=120)

    # Only credentials of this scheme are forwarded to Discord
    auth_scheme: str = Field(default="Bot")

    # Seconds a successful (credential, guild) check is remembered.
    # 0 disables the cache: every request is verified against Discord.
    auth_cache_ttl: int = Field(default=0, ge=0, le=3600)

    # ── Snapshot ──────────────────────────────────────────────────────────
    # What: JSON dump of every partition, loaded at startup and written at shutdown
    snapshot_path: Optional[str] = Field(default=None)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8080, ge=1024, le=65535)

    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "populate_by_name": True,
    }


# Singleton instance — imported throughout the application
settings = Settings()
