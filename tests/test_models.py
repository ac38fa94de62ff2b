"""Tests for the response envelope and the error taxonomy."""

import json

import httpx
import pytest

from reqchain.exceptions import (
    HookError,
    HTTPError,
    ReqchainError,
    TimeoutError,
    TransportError,
)
from reqchain.models import Response, extract_charset, is_json_content_type


def _httpx_response(status=200, **kwargs) -> httpx.Response:
    return httpx.Response(
        status, request=httpx.Request("GET", "https://example.org/a"), **kwargs
    )


def test_from_httpx_decodes_json():
    response = Response.from_httpx(
        _httpx_response(200, json={"id": 1}), parse_json=json.loads
    )

    assert response.status == 200
    assert response.ok is True
    assert response.status_text == "OK"
    assert response.url == "https://example.org/a"
    assert response.type == "application/json"
    assert response.charset == "utf-8"
    assert response.body == {"id": 1}
    assert response.get("Content-Type") == "application/json"
    assert response.raw is not None


def test_from_httpx_keeps_text_for_non_json():
    response = Response.from_httpx(
        _httpx_response(
            404, text="missing", headers={"content-type": "text/plain; charset=latin-1"}
        ),
        parse_json=json.loads,
    )

    assert response.ok is False
    assert response.status_code == 404
    assert response.body == "missing"
    assert response.type == "text/plain"
    assert response.charset == "latin-1"


def test_from_httpx_empty_json_body_is_text():
    response = Response.from_httpx(
        _httpx_response(204, headers={"content-type": "application/json"}),
        parse_json=json.loads,
    )
    assert response.body == ""


def test_from_httpx_without_request_has_empty_url():
    response = Response.from_httpx(httpx.Response(200, text="hi"))
    assert response.url == ""
    assert response.body == "hi"


@pytest.mark.parametrize(
    ("content_type", "expected"),
    [
        ("application/json", True),
        ("application/json; charset=utf-8", True),
        ("application/vnd.api+json", True),
        ("text/html", False),
        ("", False),
    ],
)
def test_is_json_content_type(content_type, expected):
    assert is_json_content_type(content_type) is expected


def test_extract_charset():
    assert extract_charset("text/html; charset=iso-8859-1") == "iso-8859-1"
    assert extract_charset("text/html") == "utf-8"


def test_http_error_carries_response():
    response = Response(
        status=503, ok=False, status_text="Service Unavailable", url="https://x/y"
    )
    error = HTTPError(response)

    assert error.status == 503
    assert error.response is response
    assert str(error) == (
        "Request failed with status 503: Service Unavailable "
        "(Status: 503, URL: https://x/y)"
    )


def test_error_taxonomy():
    request = httpx.Request("GET", "https://example.org/ping")
    timeout = TimeoutError(request=request)
    transport = TransportError("refused", request=request)
    hook = HookError("broken", hook_type="after_response")

    for error in (timeout, transport, hook):
        assert isinstance(error, ReqchainError)
    assert str(timeout) == "Request timed out (URL: https://example.org/ping)"
    assert str(hook) == "broken"
    assert hook.hook_type == "after_response"
    assert not isinstance(timeout, HTTPError)
