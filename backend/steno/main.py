"""
Steno Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes dependency wiring, middleware, route mounting and lifecycle.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn steno.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  RequestID                                   │
    │                                                          │
    │  Gated routes (Route pipeline):                          │
    │  ┌─────────────┐ ┌──────────────┐ ┌───────────────────┐  │
    │  │ log_request │→│ authenticate │→│ get/add/remove    │  │
    │  └─────────────┘ └──────────────┘ └───────────────────┘  │
    │                                                          │
    │  Open routes:  GET /health                               │
    │                                                          │
    │  app.state.store     → QuoteStore (Redis)                │
    │  app.state.verifier  → CredentialVerifier (Discord)      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Restore snapshot into the store (if SNAPSHOT_PATH is set)

    Shutdown:
    1. Write snapshot (if SNAPSHOT_PATH is set)
    2. Close the Discord HTTP client and the Redis connection pool
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from steno import __version__
from steno.config import settings
from steno.exceptions import StenoError
from steno.middleware.request_id import RequestIDMiddleware, request_id_var
from steno.routes import health, quotes
from steno.schemas.responses import ErrorResponse
from steno.services.discord_service import CredentialVerifier
from steno.services.redis_store import RedisQuoteStore
from steno.services.snapshot import load_snapshot, write_snapshot
from steno.services.store_base import QuoteStore

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s

    Gate failures, store errors and the access log all go through here, so
    operators can tell a Discord outage (500 from handler/authenticate) from
    a Redis outage (500 from a quote handler).
    """
    log_format = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: startup and shutdown procedures.

    The store and verifier already exist on app.state (the factory made
    them); this only restores/saves data and releases connections.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Steno Backend %s starting up...", __version__)

    store: QuoteStore = app.state.store
    verifier: CredentialVerifier = app.state.verifier

    if settings.snapshot_path:
        await load_snapshot(store, settings.snapshot_path)

    logger.info(
        "Discord guild check: %s (timeout=%.1fs, cache_ttl=%ds)",
        settings.discord_api_base,
        settings.discord_timeout,
        settings.auth_cache_ttl,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Steno Backend shutting down...")

    try:
        if settings.snapshot_path:
            await write_snapshot(store, settings.snapshot_path)
    finally:
        await verifier.close()
        await store.close()

    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for errors raised outside a gated route.

    Gated routes turn StenoError into a Stop result themselves. These
    handlers give everything else the same envelope.

    Security: Exception handlers NEVER expose internal details in the response.
    Details are logged server-side.
    """

    @app.exception_handler(StenoError)
    async def handle_steno_error(request: Request, exc: StenoError):
        rid = request_id_var.get("")
        level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
        logger.log(level, "[%s] %s: %s | Context: %s", rid, exc.error_code, exc.message, exc.context)
        body = ErrorResponse(error=exc.error_code, message=f"steno: {exc.message}", request_id=rid)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: generic 500, stack trace logged server-side only."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        body = ErrorResponse(
            error="internal_server_error",
            message="steno: an unexpected error occurred",
            request_id=rid,
        )
        return JSONResponse(status_code=500, content=body.model_dump())


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    store: Optional[QuoteStore] = None,
    verifier: Optional[CredentialVerifier] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store:    Quote store to serve from. Defaults to a Redis store built
                  from settings (connects lazily).
        verifier: Credential verifier. Defaults to one built from settings.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Steno API",
        description="Guild-scoped quote storage behind Discord credential checks.",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Shared services ───────────────────────────────────────────────────
    app.state.store = store or RedisQuoteStore.from_settings(settings)
    app.state.verifier = verifier or CredentialVerifier.from_settings(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(quotes.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `steno.main:app` to be importable
app = create_app()
