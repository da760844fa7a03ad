import json

import pytest

from x_cli.core.classifier import classify_response, decode_body, retry_after_seconds
from x_cli.core.errors import (
    DEFAULT_RETRY_AFTER_SECONDS,
    ApiError,
    AuthFailed,
    HttpError,
    ProtocolError,
    RateLimited,
)
from x_cli.models.api_models import TweetResponse

NOW = 1_700_000_000.0


def test_rate_limit_uses_reset_header():
    with pytest.raises(RateLimited) as exc:
        classify_response(429, {"x-rate-limit-reset": str(int(NOW) + 30)}, "", now=NOW)
    assert abs(exc.value.retry_after_seconds - 30) <= 1
    assert exc.value.details() == {"retry_after_seconds": exc.value.retry_after_seconds}


def test_rate_limit_header_is_case_insensitive():
    assert retry_after_seconds({"X-Rate-Limit-Reset": str(int(NOW) + 12)}, now=NOW) == 12


@pytest.mark.parametrize("headers", [{}, {"x-rate-limit-reset": "garbage"}, {"x-rate-limit-reset": str(int(NOW) - 5)}])
def test_rate_limit_defaults(headers):
    with pytest.raises(RateLimited) as exc:
        classify_response(429, headers, "", now=NOW)
    assert exc.value.retry_after_seconds == DEFAULT_RETRY_AFTER_SECONDS


@pytest.mark.parametrize("status", [401, 403])
def test_auth_failures(status):
    with pytest.raises(AuthFailed) as exc:
        classify_response(status, {}, '{"title": "Unauthorized"}')
    assert "x-cli auth" in exc.value.message
    assert exc.value.status == status


def test_other_status_is_http_error_with_body():
    with pytest.raises(HttpError) as exc:
        classify_response(500, {}, "upstream exploded")
    assert exc.value.status == 500
    assert exc.value.message == "API request failed (500): upstream exploded"


def test_empty_success_body_is_empty_object():
    assert classify_response(204, {}, "") == {}
    assert classify_response(200, {}, "  \n") == {}


def test_success_returns_parsed_body():
    body = {"data": {"id": "1", "text": "hi"}}
    assert classify_response(201, {}, json.dumps(body)) == body


def test_errors_array_on_success_becomes_api_error():
    text = json.dumps({"errors": [
        {"message": "You are not allowed to create a Tweet with duplicate content."},
        {"detail": "Second problem"},
        {"code": 187},
    ]})
    with pytest.raises(ApiError) as exc:
        classify_response(200, {}, text)
    assert exc.value.message == (
        "You are not allowed to create a Tweet with duplicate content.; Second problem; Error code: 187"
    )


def test_empty_errors_array_is_not_an_error():
    assert classify_response(200, {}, '{"data": {"id": "1"}, "errors": []}') == {"data": {"id": "1"}, "errors": []}


@pytest.mark.parametrize("text", ["not json", "[1, 2]", '"string"'])
def test_undecodable_success_body_is_protocol_error(text):
    with pytest.raises(ProtocolError):
        classify_response(200, {}, text)


def test_decode_body_names_the_bad_fields():
    with pytest.raises(ProtocolError) as exc:
        decode_body(TweetResponse, {"data": {"text": "no id"}}, "create tweet")
    assert exc.value.message == "Unexpected create tweet response shape (data.id)"
    assert decode_body(TweetResponse, {"data": {"id": "1"}}, "create tweet").data.id == "1"
