"""
Steno Backend — Health Check Route
===================================

What:  Health check endpoint for monitoring and container probes.
Why:   The service is useless without Redis; probes should see that.
How:   Pings the quote store and reports its connectivity with uptime.

Not gated: no credential is needed and no guild data is returned.

Status levels:
    - healthy:   Redis reachable (HTTP 200)
    - unhealthy: Redis unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from steno import __version__
from steno.schemas.responses import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> JSONResponse:
    """Report Redis connectivity and uptime."""
    store_ok = await request.app.state.store.ping()
    if not store_ok:
        logger.warning("Health check: quote store unreachable")

    body = HealthResponse(
        status="healthy" if store_ok else "unhealthy",
        version=__version__,
        store="connected" if store_ok else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(status_code=200 if store_ok else 503, content=body.model_dump())
