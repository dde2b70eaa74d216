"""Access log stage appending one line per request to a plain-text file."""

import asyncio
import threading
from datetime import datetime
from pathlib import Path

from app.core.logger import LogIcon, logger
from app.middlewares.base import BaseMiddleware
from app.models.core import HttpRequest, HttpResponse
from app.models.results import FORWARD, StageResult


def format_access_line(request: HttpRequest, now: datetime | None = None) -> str:
    """Build a complete, newline-terminated access log line."""
    timestamp = (now or datetime.now().astimezone()).isoformat(timespec="seconds")
    return f"{timestamp} ---Request:[{request.method}] [{request.url}]\n"


class AccessLogWriter:
    """Append-only writer shared by every request of the process.

    Appends are fire-and-forget from the caller's side and run in a worker
    thread. Each line is written with a single `write` under a lock so lines
    from concurrent requests never interleave.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._pending: set[asyncio.Task] = set()

    def _append(self, line: str) -> None:
        with self._lock, self.path.open("a", encoding="utf-8") as file_handle:
            file_handle.write(line)

    async def _write(self, line: str) -> None:
        try:
            await asyncio.to_thread(self._append, line)
        except OSError as ex:
            logger.error("Error writing to log file", icon=LogIcon.ERROR, path=str(self.path), error=str(ex))

    def submit(self, line: str) -> None:
        """Schedule an append without waiting for it."""
        task = asyncio.get_running_loop().create_task(self._write(line))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every scheduled append to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


class AccessLogMiddleware(BaseMiddleware):
    """Logs method and URL of every request to the access log file."""

    name = "access_log"

    def __init__(self, writer: AccessLogWriter) -> None:
        self.writer = writer

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        self.writer.submit(format_access_line(request))
        return FORWARD
