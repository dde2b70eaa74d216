"""Diagnostic log line per completed request."""

import time

from app.core.logger import LogIcon, logger
from app.middlewares.base import BaseMiddleware
from app.models.core import HttpRequest, HttpResponse


class HttpLogMiddleware(BaseMiddleware):
    """Logs method, URL, status, response time and length once the response is done."""

    name = "http_log"

    def after(self, request: HttpRequest, response: HttpResponse) -> None:
        logger.info(
            f"{request.method} {request.url} {response.status_code}",
            icon=LogIcon.NETWORK,
            response_time_ms=round((time.perf_counter() - request.received_at) * 1000, 3),
            content_length=response.headers.get("content-length", "-"),
        )
