"""Static file stage serving a directory under a URL prefix."""

import asyncio
import mimetypes
from pathlib import Path
from urllib.parse import unquote

from app.core.logger import LogIcon, logger
from app.middlewares.base import BaseMiddleware
from app.models.core import HttpRequest, HttpResponse
from app.models.results import FORWARD, Finalized, StageResult

INDEX_FILE = "index.html"


def resolve_static_path(root: Path, relative: str) -> Path | None:
    """Map a URL remainder to a file inside `root`, or None if there is none."""
    base = root.resolve()
    candidate = (base / unquote(relative).lstrip("/")).resolve()
    if not candidate.is_relative_to(base):
        return None
    if candidate.is_dir():
        candidate = candidate / INDEX_FILE
    return candidate if candidate.is_file() else None


class StaticFilesMiddleware(BaseMiddleware):
    """Serves files for GET/HEAD under `prefix`; misses forward unchanged."""

    name = "static"

    def __init__(self, prefix: str, directory: Path) -> None:
        self.prefix = "/" + prefix.strip("/") + "/"
        self.directory = Path(directory)

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        if request.method not in ("GET", "HEAD") or not request.path.startswith(self.prefix):
            return FORWARD

        path = await asyncio.to_thread(resolve_static_path, self.directory, request.path[len(self.prefix):])
        if path is None:
            return FORWARD

        content = await asyncio.to_thread(path.read_bytes)
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        logger.info("Serving static file", icon=LogIcon.FILE, file=path.name, size=len(content))

        response.finalize(200, b"" if request.method == "HEAD" else content, content_type)
        if request.method == "HEAD":
            response.headers["content-length"] = str(len(content))
        return Finalized(response)
