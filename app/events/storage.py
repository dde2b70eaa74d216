"""Lifespan events for the filesystem resources the pipeline writes to."""

from pathlib import Path

from app.core.lifespan import BaseEvent
from app.core.settings import Settings
from app.middlewares.access_log import AccessLogWriter


class StorageEvent(BaseEvent[dict[str, Path]]):
    """Creates the public and upload directories."""

    name = "storage"

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def startup(self) -> dict[str, Path]:
        paths = {"public": self._settings.PUBLIC_DIR, "uploads": self._settings.UPLOAD_DIR}
        for path in paths.values():
            path.mkdir(parents=True, exist_ok=True)
        return paths


class AccessLogEvent(BaseEvent[AccessLogWriter]):
    """Exposes the access log writer and flushes pending lines on shutdown."""

    name = "access_log"

    def __init__(self, writer: AccessLogWriter) -> None:
        self._writer = writer

    async def startup(self) -> AccessLogWriter:
        self._writer.path.parent.mkdir(parents=True, exist_ok=True)
        return self._writer

    async def shutdown(self, instance: AccessLogWriter) -> None:
        await instance.drain()
