"""
Steno Backend — Gate Pipeline Unit Tests
=========================================

What:  Tests for Route composition and short-circuit execution.
Why:   Every quote route depends on the chain stopping at the first failed
       gate and on shared prefixes staying untouched when extended.
How:   Handlers are called directly with a hand-built Starlette Request; no
       app or HTTP client is involved.
"""

import json
from types import SimpleNamespace

import pytest
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from steno.exceptions import ForbiddenError, NotFoundError
from steno.middleware.pipeline import (
    CONTINUE,
    Continue,
    RequestContext,
    Route,
    Stop,
    log_request,
)


def make_request(guild_id: str = "g1", user_id: str = "u1", store=None, verifier=None) -> Request:
    state = SimpleNamespace(store=store, verifier=verifier)
    scope = {
        "type": "http",
        "method": "GET",
        "scheme": "http",
        "server": ("test", 80),
        "client": ("127.0.0.1", 50000),
        "path": f"/quotes/{guild_id}/{user_id}",
        "query_string": b"",
        "headers": [(b"user-agent", b"pytest")],
        "path_params": {"guild_id": guild_id, "user_id": user_id},
        "app": SimpleNamespace(state=state),
    }
    return Request(scope)


class Recorder:
    """Builds checks that record their name when run."""

    def __init__(self):
        self.calls = []

    def passing(self, name):
        async def check(ctx):
            self.calls.append(name)
            return CONTINUE
        check.__qualname__ = name
        return check

    def stopping(self, name, error):
        async def check(ctx):
            self.calls.append(name)
            return Stop.from_error(error)
        check.__qualname__ = name
        return check


class TestShortCircuit:

    def setup_method(self):
        self.recorder = Recorder()

    @pytest.mark.asyncio
    async def test_stop_skips_later_checks(self):
        """A → B(stop 403) → C: A and B run once, C never runs."""
        a = self.recorder.passing("a")
        b = self.recorder.stopping("b", ForbiddenError())
        c = self.recorder.passing("c")
        handler = Route().gate(a).gate(b).finish(c)

        response = await handler(make_request())

        assert self.recorder.calls == ["a", "b"]
        assert response.status_code == 403
        body = json.loads(response.body)
        assert body["error"] == "forbidden"
        assert body["message"].startswith("steno: ")

    @pytest.mark.asyncio
    async def test_all_continue_returns_terminal_response(self):
        expected = JSONResponse(content=["done"])

        async def terminal(ctx):
            self.recorder.calls.append("terminal")
            ctx.response = expected
            return CONTINUE

        handler = Route().gate(self.recorder.passing("a")).gate(self.recorder.passing("b")).finish(terminal)
        response = await handler(make_request())

        assert response is expected
        assert self.recorder.calls == ["a", "b", "terminal"]

    @pytest.mark.asyncio
    async def test_raised_steno_error_becomes_stop(self):
        async def terminal(ctx):
            raise NotFoundError(guild_id=ctx.guild_id, user_id=ctx.user_id)

        response = await Route().finish(terminal)(make_request())

        assert response.status_code == 404
        assert json.loads(response.body)["message"] == "steno: no quotes for guild g1 user u1"

    @pytest.mark.asyncio
    async def test_no_response_set_is_empty_200(self):
        response = await Route().finish(self.recorder.passing("noop"))(make_request())

        assert response.status_code == 200
        assert response.body == b""

    @pytest.mark.asyncio
    async def test_unexpected_exception_propagates(self):
        async def broken(ctx):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await Route().finish(broken)(make_request())


class TestComposition:

    def setup_method(self):
        self.recorder = Recorder()

    def test_gate_returns_new_route(self):
        base = Route().gate(self.recorder.passing("a"))
        extended = base.gate(self.recorder.passing("b"))

        assert len(base) == 1
        assert len(extended) == 2

    def test_clone_is_independent(self):
        base = Route().gate(self.recorder.passing("a"))
        first = base.clone().gate(self.recorder.passing("x"))
        second = base.clone().gate(self.recorder.passing("y"))

        assert len(base) == 1
        assert first.checks[0] is second.checks[0]
        assert first.checks[1] is not second.checks[1]

    def test_log_appends_log_request(self):
        assert Route().log().checks == (log_request,)

    def test_handler_named_after_terminal(self):
        handler = Route().finish(self.recorder.passing("get_quotes"))
        assert handler.__name__ == "get_quotes"

    @pytest.mark.asyncio
    async def test_shared_prefix_runs_per_route(self):
        base = Route().gate(self.recorder.passing("prefix"))
        one = base.clone().finish(self.recorder.passing("one"))
        two = base.clone().finish(self.recorder.passing("two"))

        await one(make_request())
        await two(make_request())

        assert self.recorder.calls == ["prefix", "one", "prefix", "two"]


class TestRequestContext:

    def test_reads_services_and_path(self):
        store, verifier = object(), object()
        ctx = RequestContext.from_request(make_request("g9", "u9", store=store, verifier=verifier))

        assert ctx.store is store
        assert ctx.verifier is verifier
        assert ctx.guild_id == "g9"
        assert ctx.user_id == "u9"
        assert ctx.response is None

    @pytest.mark.asyncio
    async def test_log_request_never_stops(self):
        ctx = RequestContext.from_request(make_request())
        assert isinstance(await log_request(ctx), Continue)

    def test_stop_from_error_uses_error_status(self):
        stop = Stop.from_error(ForbiddenError())
        assert stop.status_code == 403
        assert isinstance(stop.error, ForbiddenError)

    def test_plain_response_passthrough(self):
        ctx = RequestContext.from_request(make_request())
        ctx.response = Response(status_code=204)
        assert ctx.response.status_code == 204
