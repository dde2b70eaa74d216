"""File upload endpoint."""

from app.core.logger import LogIcon, logger
from app.core.router import Router
from app.core.settings import Settings
from app.middlewares.upload import SingleFileUploadMiddleware
from app.models.core import HttpRequest, HttpResponse, UploadedFile
from app.models.results import ErrorKind, Failed, Finalized, StageResult


def upload_error_handler(request: HttpRequest, response: HttpResponse, failure: Failed) -> StageResult:
    """Answer decode failures of the upload with 400 and the message as text."""
    if failure.kind is not ErrorKind.UPLOAD_DECODE:
        return failure
    logger.warning("Upload rejected", icon=LogIcon.UPLOAD, message=failure.message)
    response.finalize(400, failure.message.encode(), "text/html; charset=utf-8")
    return Finalized(response)


async def upload_file(file: UploadedFile | None, body: dict) -> UploadedFile | None:
    logger.info("Upload received", icon=LogIcon.UPLOAD, file=file.filename if file else None, fields=body)
    return file


def create_router(settings: Settings) -> Router:
    """Upload router bound to the configured field name and directory."""
    router = Router(prefix="/")
    router.add_route(
        "POST",
        "/upload",
        upload_file,
        stages=[SingleFileUploadMiddleware(settings.UPLOAD_FIELD, settings.UPLOAD_DIR)],
        on_error=upload_error_handler,
    )
    return router
