"""
Steno Backend — Redis Quote Store
==================================

What:  QuoteStore implementation over Redis lists.
Why:   A Redis list per (guild, user) gives append and remove-by-value as
       single atomic commands, which is all the quote API needs.
How:   One list per partition at key "{guild_id}:{user_id}:quotes". Each
       element is the canonical JSON encoding of one Quote.

Command mapping:
    push       → RPUSH key value
    remove     → LREM key 0 value          (all occurrences, byte equality)
    get_all    → LRANGE key 0 -1
    dump       → SCAN MATCH *:quotes + LRANGE per key
    load       → DEL key + RPUSH per quote

Concurrency:
    A single redis.asyncio client is created at startup and shared by every
    request. Its connection pool hands each concurrent command its own
    connection, so no locking happens here. Two concurrent pushes to the same
    partition land in whichever order Redis receives them.

Why Redis lists are a compromise:
    Search and random sampling pull the whole partition over the wire, and
    LREM scans the list. Fine for dozens or hundreds of quotes per user. A
    relational store with an index on (guild, user) would be the next step
    if partitions grow.
"""

import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from steno.config import Settings, settings as default_settings
from steno.exceptions import NotFoundError, StoreError
from steno.schemas.quote import Quote
from steno.services.store_base import QuoteStore

logger = logging.getLogger(__name__)

KEY_SUFFIX = "quotes"


def quotes_key(guild_id: str, user_id: str) -> str:
    """Storage key of the (guild, user) partition."""
    return f"{guild_id}:{user_id}:{KEY_SUFFIX}"


def quotes_from_db(key: str, raw_quotes: List[bytes]) -> List[Quote]:
    """
    Decode list elements, skipping any that are not valid quotes.

    A corrupt element should not make the whole partition unreadable, so it
    is logged and dropped from the result (it stays in Redis).
    """
    out: List[Quote] = []
    for raw in raw_quotes:
        try:
            out.append(Quote.from_stored(raw))
        except ValidationError as e:
            logger.warning("Skipping undecodable quote in %s: %s", key, e.error_count())
    return out


class RedisQuoteStore(QuoteStore):
    """
    Quote storage backed by one Redis list per partition.

    Args:
        client: A redis.asyncio.Redis (or compatible) client. Responses must
                not be decoded; elements are handled as bytes.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "RedisQuoteStore":
        """
        Build a store from the address, password and db index in settings.

        Why no connection here: redis.asyncio connects lazily on the first
        command, so the app factory can run outside an event loop.
        """
        config = config or default_settings
        host, port = config.redis_host_port
        client = redis.Redis(
            host=host,
            port=port,
            password=config.redis_password or None,
            db=config.redis_db,
        )
        logger.info("RedisQuoteStore configured for %s:%d db=%d", host, port, config.redis_db)
        return cls(client)

    @contextmanager
    def _backend_errors(self, operation: str, key: str = "") -> Iterator[None]:
        # Redis error text stays in the log; the client sees StoreError's generic message
        try:
            yield
        except RedisError as e:
            logger.error("Redis %s failed for %s: %s", operation, key or "-", str(e))
            raise StoreError(
                context={"operation": operation, "key": key, "error_type": type(e).__name__},
            ) from e

    async def push(self, guild_id: str, user_id: str, quote: Quote) -> None:
        key = quotes_key(guild_id, user_id)
        with self._backend_errors("push", key):
            length = await self.client.rpush(key, quote.serialize())
        logger.debug("Pushed quote %s to %s (length=%d)", quote.id, key, length)

    async def remove(self, guild_id: str, user_id: str, quote: Quote) -> int:
        key = quotes_key(guild_id, user_id)
        with self._backend_errors("remove", key):
            removed = await self.client.lrem(key, 0, quote.serialize())
        logger.debug("Removed %d entries matching quote %s from %s", removed, quote.id, key)
        return removed

    async def get_all(self, guild_id: str, user_id: str) -> List[Quote]:
        key = quotes_key(guild_id, user_id)
        with self._backend_errors("get_all", key):
            raw_quotes = await self.client.lrange(key, 0, -1)

        # A partition holding only undecodable entries counts as empty
        quotes = quotes_from_db(key, raw_quotes)
        if not quotes:
            raise NotFoundError(guild_id=guild_id, user_id=user_id)

        return quotes

    async def dump(self) -> Dict[str, List[Quote]]:
        out: Dict[str, List[Quote]] = {}
        with self._backend_errors("dump"):
            async for raw_key in self.client.scan_iter(match=f"*:{KEY_SUFFIX}"):
                key = raw_key.decode("utf-8") if isinstance(raw_key, bytes) else raw_key
                out[key] = quotes_from_db(key, await self.client.lrange(key, 0, -1))
        return out

    async def load(self, data: Dict[str, List[Quote]]) -> None:
        for key, quotes in data.items():
            with self._backend_errors("load", key):
                await self.client.delete(key)
            for quote in quotes:
                try:
                    await self.client.rpush(key, quote.serialize())
                except RedisError as e:
                    logger.error("Error importing quote %s into %s: %s", quote.id, key, str(e))
        logger.info("Loaded %d partitions into Redis", len(data))

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning("Redis ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        await self.client.aclose()
