"""Binding between Robyn and the transport-independent pipeline."""

from urllib.parse import urlencode

from robyn import Request, Response, Robyn

from app.core.logger import LogIcon, logger
from app.middlewares.base import Pipeline
from app.models.core import HttpRequest, HttpResponse

# Every request is routed to the pipeline, which owns matching and 404s.
CATCH_ALL_ENDPOINTS = ("/", "/*path")
ROBYN_METHODS = ("get", "post", "put", "delete", "patch", "head", "options")

FORWARDED_HEADERS = (
    "accept",
    "authorization",
    "content-length",
    "content-type",
    "user-agent",
    "x-request-id",
)


def to_http_request(request: Request) -> HttpRequest:
    """Copy what the pipeline needs out of a Robyn request."""
    headers = {name: value for name in FORWARDED_HEADERS if (value := request.headers.get(name))}

    body = request.body
    raw_body = body.encode("utf-8") if isinstance(body, str) else bytes(body or b"")

    return HttpRequest(
        method=str(request.method),
        path=request.url.path,
        query=urlencode(request.query_params.to_dict(), doseq=True),
        headers=headers,
        raw_body=raw_body,
    )


def to_robyn_response(response: HttpResponse) -> Response:
    return Response(status_code=response.status_code, headers=dict(response.headers), description=response.body)


def bind_pipeline(app: Robyn, pipeline: Pipeline) -> None:
    """Register catch-all handlers for every method that delegate to the pipeline."""

    async def dispatch(request: Request) -> Response:
        return to_robyn_response(await pipeline.handle(to_http_request(request)))

    for method in ROBYN_METHODS:
        register = getattr(app, method)
        for endpoint in CATCH_ALL_ENDPOINTS:
            register(endpoint)(dispatch)
    logger.info("Pipeline bound to server", icon=LogIcon.ADAPTER, methods=len(ROBYN_METHODS))
