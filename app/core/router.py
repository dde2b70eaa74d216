"""Route table, sub-routers and the dispatch stage."""

import inspect
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

import orjson
from pydantic import BaseModel

from app.core.logger import LogIcon, logger
from app.middlewares.base import BaseMiddleware
from app.models.core import HttpRequest, HttpResponse
from app.models.results import FORWARD, Failed, Finalized, Forward, StageResult

Handler = Callable[..., Awaitable[Any]]
ErrorHandler = Callable[[HttpRequest, HttpResponse, Failed], StageResult]

HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")


def join_paths(prefix: str, path: str) -> str:
    """Join a mount prefix and a route path into one normalized path."""
    joined = "/".join(part.strip("/") for part in (prefix, path) if part.strip("/"))
    return "/" + joined


def compile_pattern(path: str) -> re.Pattern[str]:
    """Compile `/users/:id` style paths; trailing slash optional, case-insensitive."""
    parts = _PARAM.split(path.rstrip("/") or "/")
    regex = "".join(
        f"(?P<{part}>[^/]+)" if index % 2 else re.escape(part)
        for index, part in enumerate(parts)
    )
    return re.compile(f"^{regex.rstrip('/')}/?$", re.IGNORECASE)


def render_result(result: Any) -> tuple[int, bytes, str | None]:
    """Convert a handler result to status, body and content type."""
    match result:
        case HttpResponse():
            return result.status_code, result.body, result.headers.get("content-type")
        case BaseModel():
            return 200, result.model_dump_json().encode(), "application/json"
        case dict() | list():
            return 200, orjson.dumps(result), "application/json"
        case None:
            return 200, b"", None
        case bytes():
            return 200, result, "application/octet-stream"
        case _:
            return 200, str(result).encode(), "text/html; charset=utf-8"


def build_handler_kwargs(sig: inspect.Signature, request: HttpRequest) -> dict[str, Any]:
    """Pick what the handler declared: request, body, file or route params."""
    available: dict[str, Any] = {"request": request, "body": request.body, "file": request.file, **request.params}
    return {name: available[name] for name in sig.parameters if name in available}


@dataclass
class Route:
    """One entry of the route table."""

    method: str
    path: str
    handler: Handler
    stages: list[BaseMiddleware] = field(default_factory=list)
    on_error: ErrorHandler | None = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.pattern = compile_pattern(self.path)
        self.signature = inspect.signature(self.handler)

    def match(self, path: str) -> dict[str, str] | None:
        if found := self.pattern.match(path):
            return {name: unquote(value) for name, value in found.groupdict().items()}
        return None

    async def run(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        """Run route-local stages, then the handler."""
        for stage in self.stages:
            result = await stage.before(request, response)
            match result:
                case Forward():
                    continue
                case Failed() if self.on_error is not None:
                    return self.on_error(request, response, result)
                case _:
                    return result

        outcome = await self.handler(**build_handler_kwargs(self.signature, request))
        status_code, body, content_type = render_result(outcome)
        if request.method != "HEAD":
            response.finalize(status_code, body, content_type)
        else:
            response.finalize(status_code, b"", content_type)
            response.headers["content-length"] = str(len(body))
        return Finalized(response)


class Router:
    """Route table mounted under a prefix."""

    def __init__(self, prefix: str = "/") -> None:
        self.prefix = join_paths(prefix, "")
        self._prefix_pattern = re.compile(
            "^" + re.escape(self.prefix.rstrip("/")) + "(/|$)", re.IGNORECASE
        )
        self.routes: list[Route] = []

    def add_route(
        self,
        method: str,
        path: str,
        handler: Handler,
        stages: list[BaseMiddleware] | None = None,
        on_error: ErrorHandler | None = None,
    ) -> Route:
        route = Route(method, join_paths(self.prefix, path), handler, list(stages or []), on_error)
        self.routes.append(route)
        logger.info(f"Route registered: {route.method} {route.path}", icon=LogIcon.ROUTE)
        return route

    def route(self, method: str, path: str, **kwargs) -> Callable[[Handler], Handler]:
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler, **kwargs)
            return handler

        return decorator

    def get(self, path: str, **kwargs) -> Callable[[Handler], Handler]:
        return self.route("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Callable[[Handler], Handler]:
        return self.route("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Callable[[Handler], Handler]:
        return self.route("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Callable[[Handler], Handler]:
        return self.route("DELETE", path, **kwargs)

    def mounts(self, path: str) -> bool:
        return self.prefix == "/" or self._prefix_pattern.match(path) is not None

    def resolve(self, method: str, path: str) -> tuple[Route, dict[str, str]] | None:
        """First route whose method and path both match; HEAD also matches GET routes."""
        method = method.upper()
        accepted = (method, "GET") if method == "HEAD" else (method,)
        for route in self.routes:
            if route.method not in accepted:
                continue
            if (params := route.match(path)) is not None:
                return route, params
        return None


class RouterMiddleware(BaseMiddleware):
    """Dispatches to the first mounted router with a matching route."""

    name = "router"

    def __init__(self, routers: list[Router] | None = None) -> None:
        self.routers: list[Router] = list(routers or [])

    def include_router(self, router: Router) -> "RouterMiddleware":
        self.routers.append(router)
        return self

    def resolve(self, method: str, path: str) -> tuple[Route, dict[str, str]] | None:
        for router in self.routers:
            if router.mounts(path) and (found := router.resolve(method, path)):
                return found
        return None

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        found = self.resolve(request.method, request.path)
        if found is None:
            return FORWARD

        route, request.params = found
        return await route.run(request, response)
