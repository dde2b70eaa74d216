"""Body parsing stage for JSON and URL-encoded form bodies."""

from typing import Any
from urllib.parse import parse_qs

import orjson

from app.middlewares.base import BaseMiddleware
from app.models.core import BodyType, HttpRequest, HttpResponse
from app.models.results import FORWARD, ErrorKind, Failed, StageResult


def parse_form(raw: bytes) -> dict[str, Any]:
    """Decode an urlencoded body; repeated keys become lists."""
    parsed = parse_qs(raw.decode("utf-8", errors="replace"), keep_blank_values=True)
    return {key: values[0] if len(values) == 1 else values for key, values in parsed.items()}


def parse_request_body(request: HttpRequest) -> Failed | None:
    """Fill `request.body` from the raw body according to its content type."""
    if not request.raw_body:
        return None

    match BodyType.from_content_type(request.content_type):
        case BodyType.JSON:
            try:
                request.body = orjson.loads(request.raw_body)
            except orjson.JSONDecodeError as ex:
                return Failed(ErrorKind.UNCLASSIFIED, str(ex))
        case BodyType.FORM:
            request.body = parse_form(request.raw_body)
        case BodyType.MULTIPART | BodyType.RAW:
            pass
    return None


class BodyParserMiddleware(BaseMiddleware):
    """Decodes JSON and form bodies before routing; other bodies pass untouched."""

    name = "body_parser"

    async def before(self, request: HttpRequest, response: HttpResponse) -> StageResult:
        return parse_request_body(request) or FORWARD
