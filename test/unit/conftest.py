"""Test fixtures for robyn-crud-pipeline unit tests."""

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from app.core.settings import Settings
from app.main import create_pipeline
from app.middlewares.access_log import AccessLogWriter
from app.middlewares.base import Pipeline
from app.models.core import HttpRequest

BOUNDARY = "----pipelineboundary"


# -----------------------------------------------------------------------------
# Mock classes for Robyn Request
# -----------------------------------------------------------------------------


@dataclass
class MockHeaders:
    """Mock Headers object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._data.get(key, default)


@dataclass
class MockQueryParams:
    """Mock QueryParams object for Robyn Request."""

    _data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return self._data


@dataclass
class MockUrl:
    path: str = "/"


@dataclass
class MockRequest:
    """Mock Request object for Robyn."""

    method: str = "GET"
    url: MockUrl = field(default_factory=MockUrl)
    headers: MockHeaders = field(default_factory=MockHeaders)
    query_params: MockQueryParams = field(default_factory=MockQueryParams)
    body: str | bytes = ""


# -----------------------------------------------------------------------------
# Settings & pipeline fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def app_settings(tmp_path) -> Settings:
    """Settings pointing every path into a temporary directory."""
    return Settings(
        _env_file=None,
        LOG_FILE=tmp_path / "server_logs.txt",
        PUBLIC_DIR=tmp_path / "public",
        UPLOAD_DIR=tmp_path / "public" / "uploads",
    )


@pytest.fixture
async def writer(app_settings: Settings) -> AccessLogWriter:
    access_writer = AccessLogWriter(app_settings.LOG_FILE)
    yield access_writer
    await access_writer.drain()


@pytest.fixture
def pipeline(app_settings: Settings, writer: AccessLogWriter) -> Pipeline:
    return create_pipeline(app_settings, writer=writer)


@pytest.fixture
def make_request() -> Callable[..., HttpRequest]:
    """Factory fixture to create pipeline requests."""

    def _make(
        method: str = "GET",
        path: str = "/",
        body: bytes = b"",
        content_type: str | None = None,
        headers: dict | None = None,
    ) -> HttpRequest:
        all_headers = dict(headers or {})
        if content_type:
            all_headers["content-type"] = content_type
        return HttpRequest(method=method, path=path, headers=all_headers, raw_body=body)

    return _make


@pytest.fixture
def multipart() -> Callable[..., tuple[bytes, str]]:
    """Factory fixture building a multipart/form-data body and its content type."""

    def _build(fields: dict[str, str] | None = None, files: list[tuple[str, str, str, bytes]] | None = None) -> tuple[bytes, str]:
        chunks: list[bytes] = []
        for name, value in (fields or {}).items():
            chunks.append(
                f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n'.encode()
                + value.encode()
                + b"\r\n"
            )
        for name, filename, content_type, data in files or []:
            chunks.append(
                (
                    f"--{BOUNDARY}\r\n"
                    f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
                    f"Content-Type: {content_type}\r\n\r\n"
                ).encode()
                + data
                + b"\r\n"
            )
        chunks.append(f"--{BOUNDARY}--\r\n".encode())
        return b"".join(chunks), f"multipart/form-data; boundary={BOUNDARY}"

    return _build
