"""Tests for the Robyn binding."""

from unittest.mock import MagicMock

from conftest import MockHeaders, MockQueryParams, MockRequest, MockUrl

from app.core.server import CATCH_ALL_ENDPOINTS, ROBYN_METHODS, bind_pipeline, to_http_request, to_robyn_response
from app.models.core import HttpResponse


class TestToHttpRequest:
    def test_copies_method_path_query_and_headers(self) -> None:
        request = MockRequest(
            method="PUT",
            url=MockUrl(path="/api/users/7"),
            headers=MockHeaders({"content-type": "application/json", "x-request-id": "abc"}),
            query_params=MockQueryParams({"q": ["1", "2"]}),
            body='{"a": 1}',
        )

        converted = to_http_request(request)

        assert converted.method == "PUT"
        assert converted.path == "/api/users/7"
        assert converted.query == "q=1&q=2"
        assert converted.url == "/api/users/7?q=1&q=2"
        assert converted.content_type == "application/json"
        assert converted.headers["x-request-id"] == "abc"
        assert converted.raw_body == b'{"a": 1}'

    def test_binary_body_kept(self) -> None:
        converted = to_http_request(MockRequest(method="POST", body=b"\x00\x01"))
        assert converted.raw_body == b"\x00\x01"
        assert converted.headers == {}


def test_to_robyn_response_status() -> None:
    response = HttpResponse().finalize(404, b'{"title":"Not Found"}', "application/json")
    assert to_robyn_response(response).status_code == 404


def test_bind_pipeline_registers_catch_all_for_every_method() -> None:
    app = MagicMock()
    bind_pipeline(app, MagicMock())

    for method in ROBYN_METHODS:
        registered = [call.args[0] for call in getattr(app, method).call_args_list]
        assert registered == list(CATCH_ALL_ENDPOINTS)
