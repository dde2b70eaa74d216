"""Explicit outcomes a pipeline stage can return."""

from dataclasses import dataclass
from enum import StrEnum

from app.models.core import HttpResponse


class ErrorKind(StrEnum):
    """Classification of failures raised by pipeline stages."""

    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    UPLOAD_DECODE = "upload_decode"
    TIMEOUT = "timeout"
    UNCLASSIFIED = "unclassified"

    @property
    def status_code(self) -> int:
        return _KIND_STATUS[self]


_KIND_STATUS: dict[ErrorKind, int] = {
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPLOAD_DECODE: 400,
    ErrorKind.TIMEOUT: 503,
    ErrorKind.UNCLASSIFIED: 500,
}


@dataclass(frozen=True, slots=True)
class Forward:
    """Hand control to the next stage."""


@dataclass(frozen=True, slots=True)
class Finalized:
    """The stage wrote the response; stop propagation."""

    response: HttpResponse


@dataclass(frozen=True, slots=True)
class Failed:
    """The stage failed; skip to the error reporter."""

    kind: ErrorKind
    message: str
    status_code: int | None = None

    @property
    def status(self) -> int:
        return self.status_code or self.kind.status_code


StageResult = Forward | Finalized | Failed

FORWARD = Forward()
