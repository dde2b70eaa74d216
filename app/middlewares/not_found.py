"""Catch-all stage for requests nothing else handled."""

from app.core.logger import LogIcon, logger
from app.middlewares.base import NOT_FOUND_MESSAGE, BaseMiddleware
from app.models.core import HttpRequest, HttpResponse
from app.models.results import ErrorKind, Failed, StageResult


class NotFoundMiddleware(BaseMiddleware):
    name = "not_found"

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        logger.info("No route matched", icon=LogIcon.NOT_FOUND, method=request.method, path=request.path)
        response.status_code = ErrorKind.NOT_FOUND.status_code
        return Failed(ErrorKind.NOT_FOUND, NOT_FOUND_MESSAGE)
