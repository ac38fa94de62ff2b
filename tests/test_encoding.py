"""Tests for request body encoding."""

import json

import httpx

from reqchain.encoding import JSON_CONTENT_TYPE, encode_body
from reqchain.types import Attachment


def test_no_body_no_payload():
    encoded = encode_body(None, {"accept": "application/json"})
    assert encoded.content is None
    assert encoded.files is None
    assert encoded.headers == {"accept": "application/json"}


def test_structured_body_defaults_to_json():
    encoded = encode_body({"name": "widget", "qty": 2}, {})
    assert encoded.headers["content-type"] == JSON_CONTENT_TYPE
    assert json.loads(encoded.content) == {"name": "widget", "qty": 2}


def test_list_body_is_json():
    encoded = encode_body([1, 2, 3], {})
    assert encoded.content == "[1, 2, 3]"
    assert encoded.headers["content-type"] == JSON_CONTENT_TYPE


def test_explicit_content_type_is_kept():
    encoded = encode_body({"a": 1}, {"content-type": "application/vnd.api+json"})
    assert encoded.headers["content-type"] == "application/vnd.api+json"
    assert encoded.content == '{"a": 1}'


def test_custom_stringifier_is_used():
    encoded = encode_body({"b": 1, "a": 2}, {}, stringify_json=lambda v: "custom")
    assert encoded.content == "custom"


def test_form_urlencoded_body():
    headers = {"content-type": "application/x-www-form-urlencoded"}
    encoded = encode_body({"q": "hello world", "page": 2}, headers)
    assert encoded.content == "q=hello+world&page=2"
    assert encoded.headers["content-type"] == "application/x-www-form-urlencoded"


def test_scalar_bodies_are_stringified():
    assert encode_body("plain", {}).content == "plain"
    assert encode_body(42, {}).content == "42"
    assert encode_body(b"\x00\x01", {}).content == b"\x00\x01"
    assert "content-type" not in encode_body("plain", {}).headers


def test_input_headers_are_not_mutated():
    headers = {"content-type": "text/plain"}
    encode_body(None, headers, form_fields={"a": "b"})
    encode_body({"a": 1}, {})
    assert headers == {"content-type": "text/plain"}


def test_multipart_drops_content_type_and_orders_parts():
    attachments = (
        Attachment(name="report", file=b"binary-data", filename="report.bin"),
        Attachment(name="notes", file="some text"),
    )
    encoded = encode_body(
        {"ignored": True},
        {"content-type": "application/json", "x-trace": "1"},
        attachments=attachments,
        form_fields={"title": "Quarterly", "author": "ops"},
    )

    assert encoded.is_multipart
    assert encoded.content is None
    assert encoded.headers == {"x-trace": "1"}
    assert [name for name, _ in encoded.files] == ["title", "author", "report", "notes"]

    request = httpx.Request(
        "POST", "https://example.org/upload", files=list(encoded.files)
    )
    body = request.read().decode()
    assert request.headers["content-type"].startswith("multipart/form-data; boundary=")
    assert body.index('name="title"') < body.index('name="author"')
    assert body.index('name="author"') < body.index('name="report"')
    assert body.index('name="report"') < body.index('name="notes"')
    assert 'filename="report.bin"' in body
    assert "binary-data" in body
    assert "Quarterly" in body
    assert "some text" in body


def test_form_fields_alone_produce_multipart():
    encoded = encode_body(None, {}, form_fields={"a": "1"})
    request = httpx.Request("POST", "https://example.org", files=list(encoded.files))
    request.read()
    assert request.headers["content-type"].startswith("multipart/form-data")
