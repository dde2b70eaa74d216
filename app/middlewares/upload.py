"""Single-file multipart upload stage."""

import asyncio
import re
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.errors import MultipartDecodeError
from app.core.logger import LogIcon, logger
from app.middlewares.base import BaseMiddleware
from app.models.core import BodyType, HttpRequest, HttpResponse, UploadedFile
from app.models.results import FORWARD, ErrorKind, Failed, StageResult

UNEXPECTED_FIELD_MESSAGE = "Unexpected field"
BOUNDARY_NOT_FOUND_MESSAGE = "Multipart: Boundary not found"
UNEXPECTED_END_MESSAGE = "Unexpected end of form"
MALFORMED_HEADER_MESSAGE = "Malformed part header"


@dataclass(frozen=True, slots=True)
class Part:
    """One decoded form-data part."""

    name: str
    data: bytes
    filename: str | None = None
    content_type: str = "text/plain"

    @property
    def is_file(self) -> bool:
        return self.filename is not None


def parse_boundary(content_type: str | None) -> bytes:
    mime, options = parse_options_header(content_type or "")
    if mime.lower() != b"multipart/form-data" or not options.get(b"boundary"):
        raise MultipartDecodeError(BOUNDARY_NOT_FOUND_MESSAGE)
    return options[b"boundary"]


def strip_transport_padding(body: bytes, boundary: bytes) -> bytes:
    """Drop whitespace between a delimiter and its line break (RFC 2046 transport padding)."""
    delimiter = re.compile(rb"(?:^|(?<=\r\n))(--" + re.escape(boundary) + rb"(?:--)?)[ \t]+(?=\r\n|$)")
    return delimiter.sub(rb"\1", body)


class FormDataReader:
    """Collects form-data parts from python-multipart parser callbacks."""

    def __init__(self, boundary: bytes) -> None:
        self.parts: list[Part] = []
        self.complete = False
        self._headers: dict[bytes, bytes] = {}
        self._header_field = b""
        self._header_value = b""
        self._data = bytearray()
        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_end": self._on_end,
            },
        )

    def feed(self, body: bytes) -> list[Part]:
        try:
            self._parser.write(body)
            self._parser.finalize()
        except MultipartParseError as ex:
            raise MultipartDecodeError(MALFORMED_HEADER_MESSAGE) from ex
        if not self.complete:
            raise MultipartDecodeError(UNEXPECTED_END_MESSAGE)
        return self.parts

    def _on_part_begin(self) -> None:
        self._headers = {}
        self._data = bytearray()

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        self._data += data[start:end]

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers[self._header_field.strip().lower()] = self._header_value.strip()
        self._header_field = b""
        self._header_value = b""

    def _on_part_end(self) -> None:
        disposition, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        if disposition.lower() != b"form-data" or b"name" not in options:
            raise MultipartDecodeError(MALFORMED_HEADER_MESSAGE)

        filename = options.get(b"filename")
        default_type = b"application/octet-stream" if filename is not None else b"text/plain"
        self.parts.append(
            Part(
                name=options[b"name"].decode("utf-8", errors="replace"),
                data=bytes(self._data),
                filename=filename.decode("utf-8", errors="replace") if filename is not None else None,
                content_type=self._headers.get(b"content-type", default_type).decode("latin-1"),
            )
        )

    def _on_end(self) -> None:
        self.complete = True


def read_form_data(body: bytes, content_type: str | None) -> list[Part]:
    """Decode a full multipart body; raise MultipartDecodeError if it is malformed."""
    boundary = parse_boundary(content_type)
    return FormDataReader(boundary).feed(strip_transport_padding(body, boundary))


def split_single_file(parts: list[Part], field: str) -> tuple[dict[str, str], Part | None]:
    """Separate text fields from the one file allowed under `field`."""
    fields: dict[str, str] = {}
    upload: Part | None = None
    for part in parts:
        if not part.is_file:
            fields[part.name] = part.data.decode("utf-8", errors="replace")
            continue
        if part.name != field or upload is not None:
            raise MultipartDecodeError(UNEXPECTED_FIELD_MESSAGE)
        upload = part
    return fields, upload


def store_upload(part: Part, destination: Path) -> UploadedFile:
    """Write the part under a fresh unique name inside `destination`."""
    destination.mkdir(parents=True, exist_ok=True)
    filename = uuid4().hex
    path = destination / filename
    with path.open("xb") as file_handle:
        file_handle.write(part.data)

    return UploadedFile(
        fieldname=part.name,
        originalname=part.filename or "",
        mimetype=part.content_type,
        destination=f"{destination.as_posix().rstrip('/')}/",
        filename=filename,
        path=str(path),
        size=len(part.data),
    )


class SingleFileUploadMiddleware(BaseMiddleware):
    """Stores the file sent under `field` and exposes it as `request.file`.

    Non-multipart requests pass through untouched; the file is optional.
    """

    name = "single_file_upload"

    def __init__(self, field: str, destination: Path) -> None:
        self.field = field
        self.destination = Path(destination)

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        if BodyType.from_content_type(request.content_type) is not BodyType.MULTIPART:
            return FORWARD

        try:
            fields, upload = split_single_file(read_form_data(request.raw_body, request.content_type), self.field)
        except MultipartDecodeError as ex:
            return Failed(ErrorKind.UPLOAD_DECODE, str(ex))

        request.body = fields
        if upload is not None:
            request.file = await asyncio.to_thread(store_upload, upload, self.destination)
            logger.info("File stored", icon=LogIcon.UPLOAD, filename=request.file.filename, size=request.file.size)
        return FORWARD
