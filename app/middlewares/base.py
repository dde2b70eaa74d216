"""Stage base class and the pipeline driver that runs stages in order."""

import asyncio
from uuid import uuid4

from asgi_correlation_id import correlation_id

from app.core.errors import PipelineError, report_error
from app.core.logger import LogIcon, logger
from app.models.core import HttpRequest, HttpResponse
from app.models.results import FORWARD, ErrorKind, Failed, Finalized, Forward, StageResult

NOT_FOUND_MESSAGE = "Route Not Found"
TIMEOUT_MESSAGE = "Request Timed Out"


class BaseMiddleware:
    """Base class for pipeline stages with before/after hooks.

    `before` runs in registration order while the request is flowing and
    returns Forward, Finalized or Failed. `after` runs in reverse order once
    the response is finalized and must not change it.
    """

    name: str

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        if not cls.has_before() and not cls.has_after():
            raise TypeError(f"{cls.__name__} must implement at least one of before/after")
        if "name" not in cls.__dict__:
            cls.name = cls.__name__

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        """Called while the request is flowing."""
        return FORWARD

    def after(self, request: HttpRequest, response: HttpResponse) -> None:
        """Called after the response is finalized."""

    @classmethod
    def has_before(cls) -> bool:
        return cls.before is not BaseMiddleware.before

    @classmethod
    def has_after(cls) -> bool:
        return cls.after is not BaseMiddleware.after


class Pipeline:
    """Runs registered stages over every request; each stage is registered once."""

    def __init__(self, timeout: float | None = None) -> None:
        self._stages: list[BaseMiddleware] = []
        self._timeout = timeout

    @property
    def stages(self) -> list[str]:
        return [stage.name for stage in self._stages]

    def register(self, middleware: BaseMiddleware) -> "Pipeline":
        """Register a stage. Returns self for chaining."""
        if middleware.name in self.stages:
            raise PipelineError(f"Stage already registered: {middleware.name}")
        self._stages.append(middleware)
        logger.info(f"Registered stage: {middleware.name}", icon=LogIcon.ADAPTER)
        return self

    async def handle(self, request: HttpRequest) -> HttpResponse:
        """Run one request through the pipeline and return the finalized response."""
        token = correlation_id.set(request.headers.get("x-request-id") or uuid4().hex)
        response = HttpResponse()
        try:
            result = await self._run_with_timeout(request, response)
            if isinstance(result, Failed) and not response.finalized:
                report_error(response, result)
            self._run_after(request, response)
            return response
        finally:
            correlation_id.reset(token)

    async def _run_with_timeout(self, request: HttpRequest, response: HttpResponse) -> Finalized | Failed:
        if self._timeout is None:
            return await self._traverse(request, response)
        try:
            return await asyncio.wait_for(self._traverse(request, response), timeout=self._timeout)
        except TimeoutError:
            if response.finalized:
                return Finalized(response)
            logger.warning("Request timed out", icon=LogIcon.TIMEOUT, timeout=self._timeout, path=request.path)
            return Failed(ErrorKind.TIMEOUT, TIMEOUT_MESSAGE)

    async def _traverse(self, request: HttpRequest, response: HttpResponse) -> Finalized | Failed:
        for stage in self._stages:
            if not stage.has_before():
                continue
            try:
                result = await stage.before(request, response)
            except Exception as ex:
                logger.error("Stage raised", icon=LogIcon.ERROR, stage=stage.name, error=repr(ex))
                if response.finalized:
                    return Finalized(response)
                return Failed(ErrorKind.UNCLASSIFIED, str(ex))

            match result:
                case Forward():
                    continue
                case Finalized() if result.response is not response or not response.finalized:
                    return Failed(ErrorKind.UNCLASSIFIED, f"{stage.name} returned an unfinished response")
                case Finalized() | Failed():
                    return result
                case _:
                    return Failed(ErrorKind.UNCLASSIFIED, f"{stage.name} returned {result!r}")

        return Failed(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)

    def _run_after(self, request: HttpRequest, response: HttpResponse) -> None:
        for stage in reversed(self._stages):
            if not stage.has_after():
                continue
            try:
                stage.after(request, response)
            except Exception as ex:
                logger.error("After hook raised", icon=LogIcon.ERROR, stage=stage.name, error=repr(ex))
