"""Exceptions and the global error reporter."""

from app.core.logger import LogIcon, logger
from app.models.core import HttpResponse
from app.models.responses import ErrorResponse
from app.models.results import Failed

ERROR_TITLES: dict[int, str] = {
    401: "Not Authorized",
    404: "Not Found",
}
DEFAULT_ERROR_TITLE = "Server Error"


class PipelineError(Exception):
    """Raised when the pipeline is wired incorrectly."""


class MultipartDecodeError(ValueError):
    """Raised when a multipart/form-data body cannot be decoded."""


def error_title(status_code: int) -> str:
    return ERROR_TITLES.get(status_code, DEFAULT_ERROR_TITLE)


def report_error(response: HttpResponse, failure: Failed) -> HttpResponse:
    """Finalize the response for a failed request as JSON `{title, message}`.

    An error status already set on the response by the failing stage wins,
    otherwise the status carried by the failure is used.
    """
    status_code = response.status_code if response.status_code >= 400 else failure.status
    body = ErrorResponse(title=error_title(status_code), message=failure.message)

    log = logger.warning if status_code < 500 else logger.error
    log("Request failed", icon=LogIcon.ERROR, kind=failure.kind.value, status=status_code, message=failure.message)

    return response.finalize(status_code, body.model_dump_json().encode(), "application/json")
