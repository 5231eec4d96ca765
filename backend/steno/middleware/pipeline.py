"""
Steno Backend — Gate Pipeline
==============================

What:  Composes an ordered list of checks ("gates") into one request handler.
Why:   Every quote route runs the same prefix (log, authenticate) before its
       own handler. Building routes from a shared prefix keeps that prefix in
       one place and makes the order explicit at registration time.
How:   A Route is an immutable tuple of async checks. Each check receives the
       RequestContext and returns Continue or Stop(status, error). The first
       Stop ends the chain and becomes the response; otherwise the response
       the terminal check stored on the context is returned.

Execution model:
    route = Route().log().gate(authenticate)
    app.add_api_route(path, route.clone().finish(get_quotes), methods=["GET"])

    request → log_request → authenticate → get_quotes → response
                                │
                                └─ Stop(403, ForbiddenError) → error response,
                                   get_quotes never runs

    This is a short-circuiting AND over side-effecting predicates, ordered by
    registration. A check may also raise StenoError instead of returning Stop;
    the pipeline converts it. Any other exception propagates to the app's
    global exception handler.

Why not Starlette middleware:
    Middleware applies to every path. Gates are chosen per route, and a route
    can be extended without affecting others that share its prefix.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence, Tuple, Union

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from steno.exceptions import StenoError
from steno.middleware.request_id import request_id_var
from steno.schemas.responses import ErrorResponse
from steno.services.discord_service import CredentialVerifier
from steno.services.store_base import QuoteStore

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("steno.access")


# ══════════════════════════════════════════════════════════════════════════
# Check Results
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Continue:
    """The check passed; run the next one."""


@dataclass(frozen=True)
class Stop:
    """
    The check failed; abort the chain.

    Attributes:
        status_code: HTTP status of the error response
        error:       The reason, kept so tests and logs can inspect it
    """
    status_code: int
    error: StenoError

    @classmethod
    def from_error(cls, error: StenoError) -> "Stop":
        return cls(status_code=error.status_code, error=error)


CONTINUE = Continue()

GateResult = Union[Continue, Stop]


# ══════════════════════════════════════════════════════════════════════════
# Request Context
# ══════════════════════════════════════════════════════════════════════════

@dataclass
class RequestContext:
    """
    Everything a check needs for one request.

    The store and verifier come from application state (set by the app
    factory), not from module globals, so tests can hand in substitutes.
    The terminal check writes its result to `response`.
    """
    request: Request
    store: QuoteStore
    verifier: CredentialVerifier
    response: Optional[Response] = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            request=request,
            store=request.app.state.store,
            verifier=request.app.state.verifier,
        )

    @property
    def guild_id(self) -> str:
        return self.request.path_params.get("guild_id", "")

    @property
    def user_id(self) -> str:
        return self.request.path_params.get("user_id", "")


Check = Callable[[RequestContext], Awaitable[GateResult]]
Handler = Callable[[Request], Awaitable[Response]]


def _check_name(check: Check) -> str:
    return getattr(check, "__qualname__", None) or repr(check)


def stop_response(check: Check, result: Stop) -> Response:
    """Log a stopped chain and build its error response."""
    rid = request_id_var.get("")
    level = logging.ERROR if result.status_code >= 500 else logging.WARNING
    logger.log(
        level,
        "[%s] handler/%s stopped with %d: %s | Context: %s",
        rid,
        _check_name(check),
        result.status_code,
        result.error.message,
        result.error.context,
    )
    body = ErrorResponse(
        error=result.error.error_code,
        message=f"steno: {result.error.message}",
        request_id=rid,
    )
    return JSONResponse(status_code=result.status_code, content=body.model_dump())


# ══════════════════════════════════════════════════════════════════════════
# Observe-only gate
# ══════════════════════════════════════════════════════════════════════════

async def log_request(ctx: RequestContext) -> GateResult:
    """Access log line for every gated request. Never stops the chain."""
    request = ctx.request
    client = f"{request.client.host}:{request.client.port}" if request.client else "unknown"
    access_logger.info(
        "[%s] %s %s --- %s %s",
        request_id_var.get(""),
        request.headers.get("user-agent", ""),
        client,
        request.method,
        request.url,
    )
    return CONTINUE


# ══════════════════════════════════════════════════════════════════════════
# Route
# ══════════════════════════════════════════════════════════════════════════

class Route:
    """
    An ordered, immutable sequence of checks.

    gate() and log() return new Routes, so one prefix can be reused as the
    head of several independently finished routes:

        base = Route().log().gate(authenticate)
        get_handler = base.clone().finish(get_quotes)
        post_handler = base.clone().finish(add_quote)
    """

    def __init__(self, checks: Sequence[Check] = ()):
        self._checks: Tuple[Check, ...] = tuple(checks)

    @property
    def checks(self) -> Tuple[Check, ...]:
        return self._checks

    def __len__(self) -> int:
        return len(self._checks)

    def gate(self, check: Check) -> "Route":
        """New route with `check` appended."""
        return Route(self._checks + (check,))

    def clone(self) -> "Route":
        return Route(self._checks)

    def log(self) -> "Route":
        """New route with the access-log gate appended."""
        return self.gate(log_request)

    def finish(self, terminal: Check) -> Handler:
        """Append the terminal check and build the request handler."""
        return self.gate(terminal).handle(name=_check_name(terminal))

    def handle(self, name: str = "gated_route") -> Handler:
        """Build a request handler running this route's checks in order."""
        checks = self._checks

        async def handler(request: Request) -> Response:
            ctx = RequestContext.from_request(request)
            for check in checks:
                try:
                    result = await check(ctx)
                except StenoError as e:
                    result = Stop.from_error(e)
                if isinstance(result, Stop):
                    return stop_response(check, result)
            return ctx.response if ctx.response is not None else Response(status_code=200)

        handler.__name__ = name
        handler.__qualname__ = name
        return handler
