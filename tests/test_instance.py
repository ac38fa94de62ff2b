"""Tests for the instance factory."""

import importlib

import httpx
import pytest

import reqchain
from reqchain.builder import Request
from reqchain.config import ClientSettings
from reqchain.instance import Client, InstanceOptions, create_instance, resolve_url
from reqchain.retry import RetryPolicy
from reqchain.types import Hooks, TimeoutOptions


@pytest.mark.parametrize(
    ("base_url", "url", "expected"),
    [
        (None, "/users", "/users"),
        ("https://api.example.org", "/users", "https://api.example.org/users"),
        ("https://api.example.org/", "users", "https://api.example.org/users"),
        ("https://api.example.org/v1", "/users", "https://api.example.org/v1/users"),
        ("https://api.example.org", "https://other.org/x", "https://other.org/x"),
    ],
)
def test_resolve_url(base_url, url, expected):
    assert resolve_url(base_url, url) == expected


def test_instance_requests_inherit_defaults(settings):
    api = create_instance(
        base_url="https://api.example.org",
        headers={"X-Api-Key": "k"},
        timeout=5,
        retry=RetryPolicy(limit=1),
        settings=settings,
    )
    request = api.get("/users/2")
    spec = request.build()

    assert isinstance(request, Request)
    assert spec.method == "GET"
    assert spec.url == "https://api.example.org/users/2"
    assert spec.headers == {"x-api-key": "k"}
    assert spec.timeout == TimeoutOptions(request=5)
    assert spec.retry.limit == 1


def test_verb_helpers(settings):
    api = create_instance(settings=settings)
    methods = [
        api.get("/").method,
        api.post("/").method,
        api.put("/").method,
        api.patch("/").method,
        api.delete("/").method,
        api.del_("/").method,
        api.head("/").method,
        api.options("/").method,
        api("trace", "/").method,
    ]
    assert methods == [
        "GET", "POST", "PUT", "PATCH", "DELETE", "DELETE", "HEAD", "OPTIONS", "TRACE",
    ]


def test_settings_fill_unset_options():
    settings = ClientSettings(
        _env_file=None,
        timeout=7,
        retry_limit=2,
        throw_http_errors=False,
        credentials="include",
        redirect="error",
    )
    spec = create_instance(settings=settings).get("https://x/y").build()

    assert spec.timeout.effective == 7
    assert spec.retry.limit == 2
    assert spec.throw_http_errors is False
    assert spec.credentials == "include"
    assert spec.redirect == "error"

    explicit = create_instance(retry=0, throw_http_errors=True, settings=settings)
    spec = explicit.get("https://x/y").build()
    assert spec.retry.limit == 0
    assert spec.throw_http_errors is True


def test_extend_merges_defaults(settings):
    hook = lambda ctx: None  # noqa: E731
    api = create_instance(
        {"base_url": "https://api.example.org", "headers": {"a": "1"}},
        hooks=Hooks(before_request=(hook,)),
        settings=settings,
    )
    admin = api.extend(prefix_url="https://admin.example.org", headers={"b": "2"})

    assert isinstance(admin, Client)
    assert admin.defaults.base_url == "https://admin.example.org"
    assert admin.defaults.headers == {"a": "1", "b": "2"}
    assert admin.defaults.hooks.before_request == (hook,)
    assert api.defaults.headers == {"a": "1"}
    assert api.defaults.base_url == "https://api.example.org"


def test_merged_returns_new_options():
    options = InstanceOptions(base_url="https://x")
    merged = options.merged(timeout=TimeoutOptions(response=3))
    assert merged.base_url == "https://x"
    assert merged.timeout == TimeoutOptions(response=3)
    assert options.timeout is None


@pytest.mark.asyncio
async def test_instance_executes_through_shared_client(mock_client, settings):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": 9})

    async with mock_client(handler) as client:
        api = create_instance(
            base_url="https://api.example.org",
            headers={"X-Api-Key": "k"},
            http_client=client,
            settings=settings,
        )
        response = await api.post("/items").send({"name": "widget"})
        assert not client.is_closed

    assert response.status == 201
    assert response.body == {"id": 9}
    assert str(seen[0].url) == "https://api.example.org/items"
    assert seen[0].headers["x-api-key"] == "k"
    assert seen[0].headers["content-type"] == "application/json"


def test_package_level_shortcuts():
    assert isinstance(reqchain.request, Client)
    assert importlib.import_module("reqchain.builder") is reqchain.builder
    assert reqchain.builder.Request is Request
    assert reqchain.create is create_instance
    assert reqchain.get("https://example.org").method == "GET"
    assert reqchain.post("https://example.org").method == "POST"
