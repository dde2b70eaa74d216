"""Core models for request/response handling."""

import time
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class BodyType(StrEnum):
    """Body content type classification for request parsing."""

    JSON = "json"
    FORM = "form"
    MULTIPART = "multipart"
    RAW = "raw"

    @classmethod
    def from_content_type(cls, content_type: str | None) -> "BodyType":
        mime = (content_type or "").split(";", 1)[0].strip().lower()
        match mime:
            case "application/json":
                return cls.JSON
            case "application/x-www-form-urlencoded":
                return cls.FORM
            case "multipart/form-data":
                return cls.MULTIPART
            case _:
                return cls.RAW


class UploadedFile(BaseModel):
    """Descriptor of a file stored by the upload stage."""

    fieldname: str
    originalname: str
    encoding: str = "7bit"
    mimetype: str
    destination: str
    filename: str
    path: str
    size: int


class HttpRequest:
    """Per-request input of the pipeline, owned by a single traversal."""

    __slots__ = ("method", "path", "query", "headers", "raw_body", "params", "body", "file", "received_at")

    def __init__(
        self,
        method: str = "GET",
        path: str = "/",
        query: str = "",
        headers: Mapping[str, str] | None = None,
        raw_body: bytes = b"",
    ) -> None:
        self.method = method.upper()
        self.path = path or "/"
        self.query = query
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.raw_body = raw_body
        self.params: dict[str, str] = {}
        self.body: dict[str, Any] = {}
        self.file: UploadedFile | None = None
        self.received_at = time.perf_counter()

    @property
    def url(self) -> str:
        return f"{self.path}?{self.query}" if self.query else self.path

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def __repr__(self) -> str:
        return f"HttpRequest({self.method} {self.url})"


class HttpResponse:
    """Per-request output of the pipeline; finalized exactly once."""

    __slots__ = ("status_code", "headers", "body", "_finalized")

    def __init__(self, status_code: int = 200, headers: dict[str, str] | None = None, body: bytes = b"") -> None:
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.body = body
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    def finalize(self, status_code: int, body: bytes, content_type: str | None = None) -> "HttpResponse":
        """Write status and body and close the response to further writes."""
        if self._finalized:
            raise RuntimeError("Response already finalized")
        self.status_code = status_code
        self.body = body
        if content_type:
            self.headers["content-type"] = content_type
        self.headers["content-length"] = str(len(body))
        self._finalized = True
        return self

    def __repr__(self) -> str:
        return f"HttpResponse({self.status_code}, {len(self.body)} bytes)"
