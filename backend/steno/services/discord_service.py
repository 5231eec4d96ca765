"""
Steno Backend — Discord Credential Verifier
============================================

What:  Decides whether a presented Discord credential may access a guild.
Why:   Quotes are guild-scoped. A caller may only read or write a guild's
       quotes if Discord lists that guild for the caller's credential.
How:   Validates the Authorization header shape, then asks Discord for the
       guilds of that credential and looks for the requested guild id.
Who:   Called by the `authenticate` gate for every quote request.

Protocol:
    1. No Authorization header                → BadRequestError (400)
    2. Scheme is not the configured one (Bot) → BadRequestError (400)
    3. GET {discord_api_base}/users/@me/guilds, Authorization forwarded as-is
    4. Transport error / timeout / status >= 400 / bad JSON
                                              → IdentityProviderError (500)
    5. Requested guild not in the list        → ForbiddenError (403)

Blocking call per request:
    Every request costs one Discord round trip. There is no retry: a failed
    lookup fails the request. The call is bounded by `discord_timeout`.
    An optional positive-result cache (auth_cache_ttl > 0) can skip the round
    trip for a recently verified (credential, guild) pair. It is off by
    default, so a revoked credential is noticed on the very next request.
"""

import hashlib
import logging
import time
from typing import Dict, List, Optional, Tuple

import httpx
from pydantic import ValidationError

from steno.config import Settings, settings as default_settings
from steno.exceptions import BadRequestError, ForbiddenError, IdentityProviderError
from steno.schemas.discord import GuildList, GuildSummary

logger = logging.getLogger(__name__)

GUILDS_ENDPOINT = "/users/@me/guilds"

# Expired grants are swept once the cache reaches this size
MAX_CACHED_GRANTS = 1024


class CredentialVerifier:
    """
    Verifies guild access for a Discord credential.

    Args:
        client:    Shared httpx.AsyncClient. Tests pass one with a MockTransport.
        api_base:  Discord API root, e.g. https://discord.com/api/v8
        scheme:    Required credential scheme token ("Bot")
        timeout:   Seconds for the whole outbound request
        cache_ttl: Seconds to remember a successful check; 0 disables caching
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_base: str = "https://discord.com/api/v8",
        scheme: str = "Bot",
        timeout: float = 10.0,
        cache_ttl: int = 0,
    ):
        self.client = client or httpx.AsyncClient()
        self.api_base = api_base.rstrip("/")
        self.scheme = scheme
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        # (sha256(credential), guild_id) → expiry (monotonic seconds)
        self._granted: Dict[Tuple[str, str], float] = {}

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "CredentialVerifier":
        config = config or default_settings
        return cls(
            api_base=config.discord_api_base,
            scheme=config.auth_scheme,
            timeout=config.discord_timeout,
            cache_ttl=config.auth_cache_ttl,
        )

    def check_header(self, authorization: Optional[str]) -> str:
        """
        Validate the Authorization header shape and return it unchanged.

        Raises:
            BadRequestError: header missing or wrong scheme
        """
        if not authorization:
            raise BadRequestError(message="invalid request, No Authorization", field="Authorization")

        token_type = authorization.split(" ")[0]
        if token_type != self.scheme:
            raise BadRequestError(message="invalid request, Bad token", field="Authorization")

        return authorization

    async def list_guilds(self, authorization: str) -> List[GuildSummary]:
        """
        Fetch the guilds visible to `authorization` from Discord.

        Raises:
            IdentityProviderError: the lookup could not be completed
        """
        url = f"{self.api_base}{GUILDS_ENDPOINT}"
        start_time = time.perf_counter()

        try:
            response = await self.client.get(
                url,
                headers={"Authorization": authorization},
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            logger.error("Discord request timed out after %.1fs: %s", self.timeout, str(e))
            raise IdentityProviderError(
                message="discord request timed out",
                context={"error_type": type(e).__name__},
            ) from e
        except httpx.HTTPError as e:
            logger.error("Discord request failed: %s", str(e))
            raise IdentityProviderError(context={"error_type": type(e).__name__}) from e

        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.status_code >= 400:
            logger.error(
                "Discord request failed: resp %d after %.0fms",
                response.status_code,
                duration_ms,
            )
            raise IdentityProviderError(
                message=f"discord request failed, resp {response.status_code}",
                context={"status": response.status_code},
            )

        try:
            guilds = GuildList.validate_json(response.content)
        except ValidationError as e:
            logger.error("Discord request parse failed: %d errors", e.error_count())
            raise IdentityProviderError(
                message="discord request parsing failed",
                context={"error_count": e.error_count()},
            ) from e

        logger.debug("Discord listed %d guilds in %.0fms", len(guilds), duration_ms)
        return guilds

    async def verify(self, guild_id: str, authorization: Optional[str]) -> None:
        """
        Succeed silently iff `authorization` grants access to `guild_id`.

        Raises:
            BadRequestError:       header missing or wrong scheme
            IdentityProviderError: Discord lookup failed
            ForbiddenError:        guild not listed for this credential
        """
        authorization = self.check_header(authorization)

        cache_key = (hashlib.sha256(authorization.encode("utf-8")).hexdigest(), guild_id)
        if self._cache_hit(cache_key):
            return

        guilds = await self.list_guilds(authorization)
        if not any(guild.id == guild_id for guild in guilds):
            raise ForbiddenError(context={"guild_id": guild_id})

        if self.cache_ttl > 0:
            if len(self._granted) >= MAX_CACHED_GRANTS:
                self._prune_expired()
            self._granted[cache_key] = time.monotonic() + self.cache_ttl

    def _cache_hit(self, cache_key: Tuple[str, str]) -> bool:
        if self.cache_ttl <= 0:
            return False
        expiry = self._granted.get(cache_key)
        if expiry is None:
            return False
        if expiry <= time.monotonic():
            del self._granted[cache_key]
            return False
        return True

    def _prune_expired(self) -> None:
        now = time.monotonic()
        expired = [key for key, expiry in self._granted.items() if expiry <= now]
        for key in expired:
            del self._granted[key]
        if expired:
            logger.debug("Pruned %d expired guild grants", len(expired))

    async def close(self) -> None:
        await self.client.aclose()
