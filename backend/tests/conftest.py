"""
Steno Backend — Test Configuration (conftest.py)
=================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (in-memory Redis, mocked Discord,
       API client).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── fake_redis:       fakeredis async client on a private FakeServer
    ├── store:            RedisQuoteStore over fake_redis
    ├── discord_calls:    list of requests the mocked Discord received
    ├── allowed_guilds:   guild ids the mocked Discord lists (default ["g1"])
    ├── make_verifier:    builds a CredentialVerifier over any MockTransport handler
    ├── verifier:         CredentialVerifier answering with allowed_guilds
    └── test_client:      HTTPX AsyncClient talking to create_app(store, verifier)
"""

import os

# Override settings for testing BEFORE any steno imports
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("SNAPSHOT_PATH", None)

from typing import Callable, List

from fakeredis import FakeServer
from fakeredis import aioredis as fake_aioredis
import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from steno.services.discord_service import CredentialVerifier
from steno.services.redis_store import RedisQuoteStore

DISCORD_BASE = "https://discord.test/api/v8"
BOT_AUTH = "Bot test-token"


def guild_list_handler(guild_ids: List[str], calls: List[httpx.Request], status: int = 200):
    """MockTransport handler answering GET /users/@me/guilds with `guild_ids`."""

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(
            status,
            json=[{"id": guild_id, "name": f"guild {guild_id}"} for guild_id in guild_ids],
        )

    return handler


@pytest_asyncio.fixture
async def fake_redis():
    """
    Provides an in-memory async Redis.

    Why a private FakeServer: fakeredis clients with default arguments can
    share one server; each test gets its own so partitions never leak.
    """
    client = fake_aioredis.FakeRedis(server=FakeServer())
    yield client
    await client.aclose()


@pytest.fixture
def store(fake_redis):
    return RedisQuoteStore(fake_redis)


@pytest.fixture
def discord_calls() -> List[httpx.Request]:
    return []


@pytest.fixture
def allowed_guilds() -> List[str]:
    return ["g1"]


@pytest.fixture
def make_verifier() -> Callable[..., CredentialVerifier]:
    """
    Builds a CredentialVerifier whose outbound calls go to `handler`.

    Usage:
        verifier = make_verifier(lambda request: httpx.Response(500))
    """

    def _make(handler, **kwargs) -> CredentialVerifier:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return CredentialVerifier(client=client, api_base=DISCORD_BASE, **kwargs)

    return _make


@pytest.fixture
def verifier(make_verifier, allowed_guilds, discord_calls) -> CredentialVerifier:
    return make_verifier(guild_list_handler(allowed_guilds, discord_calls))


@pytest_asyncio.fixture
async def test_client(store, verifier):
    """
    Provides an async HTTP test client for endpoint testing.

    What:    HTTPX AsyncClient configured to talk to a fresh app.
    How:     Uses ASGITransport to route requests directly to the app; the
             app is built with the fake store and mocked verifier.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from steno.main import create_app

    app = create_app(store=store, verifier=verifier)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    await verifier.close()


@pytest.fixture
def bot_auth() -> str:
    return BOT_AUTH


@pytest.fixture
def guild_handler():
    """The guild_list_handler factory, for tests that need their own Discord reply."""
    return guild_list_handler
