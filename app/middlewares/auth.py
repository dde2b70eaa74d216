"""Authentication stage with a pluggable authorization check."""

from collections.abc import Callable

from app.core.logger import LogIcon, logger
from app.middlewares.base import BaseMiddleware
from app.models.core import HttpRequest, HttpResponse
from app.models.results import FORWARD, ErrorKind, Failed, StageResult

Authorizer = Callable[[HttpRequest], bool]

AUTH_FAILED_MESSAGE = "Authentication Failed"


def allow_all(request: HttpRequest) -> bool:
    return True


class AuthMiddleware(BaseMiddleware):
    """Forwards authorized requests, fails the rest with 401 and no body."""

    name = "auth"

    def __init__(self, authorize: Authorizer = allow_all) -> None:
        self.authorize = authorize

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        if self.authorize(request):
            logger.info("Authentication Successful", icon=LogIcon.AUTH)
            return FORWARD

        response.status_code = ErrorKind.AUTHENTICATION.status_code
        return Failed(ErrorKind.AUTHENTICATION, AUTH_FAILED_MESSAGE)
