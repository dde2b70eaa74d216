"""Tests for the pipeline driver."""

import asyncio

import orjson
import pytest
from asgi_correlation_id import correlation_id

from app.core.errors import PipelineError
from app.middlewares.base import BaseMiddleware, Pipeline
from app.models.core import HttpRequest, HttpResponse
from app.models.results import FORWARD, ErrorKind, Failed, Finalized


class Recorder(BaseMiddleware):
    """Forwards and records its name."""

    def __init__(self, name: str, calls: list[str]) -> None:
        self.name = name
        self.calls = calls

    async def before(self, request, response):
        self.calls.append(self.name)
        return FORWARD

    def after(self, request, response):
        self.calls.append(f"after:{self.name}")


class Finisher(BaseMiddleware):
    name = "finisher"

    async def before(self, request, response):
        response.finalize(200, b"done", "text/plain")
        return Finalized(response)


class Failer(BaseMiddleware):
    name = "failer"

    async def before(self, request, response):
        response.status_code = 401
        return Failed(ErrorKind.AUTHENTICATION, "Authentication Failed")


class Raiser(BaseMiddleware):
    name = "raiser"

    async def before(self, request, response):
        raise RuntimeError("boom")


class Sleeper(BaseMiddleware):
    name = "sleeper"

    async def before(self, request, response):
        await asyncio.sleep(5)
        return FORWARD


class CorrelationProbe(BaseMiddleware):
    name = "probe"

    def __init__(self) -> None:
        self.seen: list[str | None] = []

    async def before(self, request, response):
        self.seen.append(correlation_id.get())
        return FORWARD


def test_subclass_without_hooks_is_rejected() -> None:
    with pytest.raises(TypeError, match="must implement at least one of before/after"):

        class Empty(BaseMiddleware):
            pass


def test_name_defaults_to_class_name() -> None:
    class AfterOnly(BaseMiddleware):
        def after(self, request, response):
            return None

    assert AfterOnly.name == "AfterOnly"
    assert AfterOnly.has_after() and not AfterOnly.has_before()


def test_duplicate_registration_is_rejected() -> None:
    pipeline = Pipeline().register(Finisher())
    with pytest.raises(PipelineError, match="already registered"):
        pipeline.register(Finisher())


def test_register_chains_and_keeps_order() -> None:
    calls: list[str] = []
    pipeline = Pipeline().register(Recorder("a", calls)).register(Recorder("b", calls))
    assert pipeline.stages == ["a", "b"]


async def test_stages_run_in_order_and_after_hooks_reverse() -> None:
    calls: list[str] = []
    pipeline = Pipeline().register(Recorder("a", calls)).register(Recorder("b", calls)).register(Finisher())

    response = await pipeline.handle(HttpRequest("GET", "/"))

    assert response.body == b"done"
    assert calls == ["a", "b", "after:b", "after:a"]


async def test_finalized_stops_propagation() -> None:
    calls: list[str] = []
    pipeline = Pipeline().register(Finisher()).register(Recorder("late", calls))

    await pipeline.handle(HttpRequest("GET", "/"))

    assert calls == ["after:late"]


async def test_failure_skips_remaining_stages_and_reports() -> None:
    calls: list[str] = []
    pipeline = Pipeline().register(Failer()).register(Recorder("late", calls))

    response = await pipeline.handle(HttpRequest("GET", "/"))

    assert response.status_code == 401
    assert orjson.loads(response.body) == {"title": "Not Authorized", "message": "Authentication Failed"}
    assert "late" not in calls


async def test_exception_becomes_server_error() -> None:
    response = await Pipeline().register(Raiser()).handle(HttpRequest("GET", "/"))

    assert response.status_code == 500
    assert orjson.loads(response.body) == {"title": "Server Error", "message": "boom"}


async def test_falling_off_the_end_is_not_found() -> None:
    calls: list[str] = []
    response = await Pipeline().register(Recorder("only", calls)).handle(HttpRequest("GET", "/x"))

    assert response.status_code == 404
    assert orjson.loads(response.body) == {"title": "Not Found", "message": "Route Not Found"}


async def test_foreign_response_is_rejected() -> None:
    class Foreign(BaseMiddleware):
        name = "foreign"

        async def before(self, request, response):
            return Finalized(HttpResponse().finalize(200, b"x"))

    response = await Pipeline().register(Foreign()).handle(HttpRequest("GET", "/"))
    assert response.status_code == 500


async def test_failure_after_finalize_keeps_response() -> None:
    class LateFailer(BaseMiddleware):
        name = "late_failer"

        async def before(self, request, response):
            response.finalize(200, b"sent", "text/plain")
            return Failed(ErrorKind.UNCLASSIFIED, "too late")

    response = await Pipeline().register(LateFailer()).handle(HttpRequest("GET", "/"))

    assert response.status_code == 200
    assert response.body == b"sent"


async def test_timeout_reports_server_error() -> None:
    response = await Pipeline(timeout=0.05).register(Sleeper()).handle(HttpRequest("GET", "/"))

    assert response.status_code == 503
    assert orjson.loads(response.body) == {"title": "Server Error", "message": "Request Timed Out"}


async def test_correlation_id_from_header_and_reset() -> None:
    probe = CorrelationProbe()
    pipeline = Pipeline().register(probe).register(Finisher())

    await pipeline.handle(HttpRequest("GET", "/", headers={"X-Request-ID": "req-1"}))
    await pipeline.handle(HttpRequest("GET", "/"))

    assert probe.seen[0] == "req-1"
    assert probe.seen[1] and probe.seen[1] != "req-1"
    assert correlation_id.get() is None


async def test_after_hook_errors_do_not_break_response() -> None:
    class BadAfter(BaseMiddleware):
        name = "bad_after"

        def after(self, request, response):
            raise ValueError("after failed")

    response = await Pipeline().register(BadAfter()).register(Finisher()).handle(HttpRequest("GET", "/"))
    assert response.body == b"done"
