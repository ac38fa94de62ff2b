"""Chainable request builder.

A :class:`Request` accumulates configuration through chainable setters and
is executed by awaiting it::

    response = await (
        Request("POST", "https://example.org/items")
        .set("X-Trace", "1")
        .send({"name": "widget"})
        .retry(2)
        .timeout(5)
    )

Every await freezes the current state into a :class:`RequestSpec` and runs
it through a fresh :class:`RequestExecutor`, so a builder can be reused
without sharing mutable state between executions.
"""

import asyncio
import json
from collections.abc import Callable, Coroutine, Generator, Mapping
from typing import Any, Self
from urllib.parse import parse_qsl

import httpx

from .auth import AuthStrategy, BasicAuth, BearerTokenAuth
from .cancellation import CancellationToken
from .client import RequestExecutor
from .config import ClientSettings, CredentialsMode, RedirectMode
from .log_config import logger
from .models import Response
from .retry import RetryPolicy
from .types import Attachment, HookName, Hooks, RequestSpec, TimeoutOptions

CONTENT_TYPES: dict[str, str] = {
    "json": "application/json",
    "form": "application/x-www-form-urlencoded",
    "html": "text/html",
    "text": "text/plain",
    "xml": "application/xml",
}

ACCEPT_TYPES: dict[str, str] = {
    "json": "application/json",
    "html": "text/html",
    "text": "text/plain",
    "xml": "application/xml",
}

EndCallback = Callable[[BaseException | None, Response | None], Any]


def _string_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


async def _raise(error: Exception) -> Response:
    raise error


class Request:
    """Fluent builder and awaitable handle for one HTTP request.

    Attributes:
        method: Upper-cased HTTP method.
        url: Target URL, already resolved against any base URL.
    """

    def __init__(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | TimeoutOptions | None = None,
        retry: int | RetryPolicy | None = None,
        hooks: Hooks | None = None,
        throw_http_errors: bool = True,
        parse_json: Callable[[str], Any] | None = None,
        stringify_json: Callable[[Any], str] | None = None,
        signal: CancellationToken | None = None,
        credentials: CredentialsMode = "same-origin",
        redirect: RedirectMode = "follow",
        http_client: httpx.AsyncClient | None = None,
        auth: AuthStrategy | None = None,
        settings: ClientSettings | None = None,
    ):
        self.method = method.upper()
        self.url = url
        self._headers: dict[str, str] = {
            k.lower(): _string_value(v) for k, v in (headers or {}).items()
        }
        self._query: dict[str, str] = {}
        self._body: Any = None
        self._attachments: list[Attachment] = []
        self._form_fields: dict[str, str] = {}
        self._timeout = TimeoutOptions.coerce(timeout)
        self._retry = RetryPolicy.coerce(retry)
        self._hooks = hooks or Hooks()
        self._throw_http_errors = throw_http_errors
        self._parse_json = parse_json or json.loads
        self._stringify_json = stringify_json or json.dumps
        self._signal = signal
        self._credentials: CredentialsMode = credentials
        self._redirect: RedirectMode = redirect
        self._http_client = http_client
        self._auth = auth
        self._settings = settings
        self._in_flight: set[RequestExecutor] = set()

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.url}>"

    # --- Chaining methods ---

    def set(self, field: str | Mapping[str, Any], value: Any = None) -> Self:
        """Set one header, or several from a mapping.

        Names are lower-cased and values stringified like query values.
        """
        if isinstance(field, Mapping):
            for key, val in field.items():
                self._headers[key.lower()] = _string_value(val)
        elif value is not None:
            self._headers[field.lower()] = _string_value(value)
        return self

    def query(self, params: Mapping[str, Any] | str) -> Self:
        """Add query parameters from a mapping or a query string.

        ``None`` values are skipped; other values are stringified.
        """
        if isinstance(params, str):
            for key, value in parse_qsl(params.lstrip("?"), keep_blank_values=True):
                self._query[key] = value
        else:
            for key, value in params.items():
                if value is not None:
                    self._query[key] = _string_value(value)
        return self

    def send(self, data: Any) -> Self:
        """Set the body. Mappings are merged into an existing mapping body."""
        if isinstance(self._body, Mapping) and isinstance(data, Mapping):
            self._body = {**self._body, **data}
        else:
            self._body = data

        if isinstance(data, Mapping | list | tuple) and "content-type" not in self._headers:
            self._headers["content-type"] = "application/json"
        return self

    def type(self, content_type: str) -> Self:
        """Set the content type; accepts short names like ``json`` or ``form``."""
        self._headers["content-type"] = CONTENT_TYPES.get(content_type, content_type)
        return self

    def accept(self, accept_type: str) -> Self:
        self._headers["accept"] = ACCEPT_TYPES.get(accept_type, accept_type)
        return self

    def timeout(self, seconds: float | TimeoutOptions) -> Self:
        self._timeout = TimeoutOptions.coerce(seconds)
        return self

    def retry(self, policy: int | RetryPolicy) -> Self:
        self._retry = RetryPolicy.coerce(policy)
        return self

    def auth(
        self, user: str, password: str | None = None, *, type: str | None = None
    ) -> Self:
        """Authenticate with a bearer token (no password) or basic credentials."""
        auth_type = type or ("bearer" if password is None else "basic")
        if auth_type == "bearer":
            self._auth = BearerTokenAuth(user)
        else:
            self._auth = BasicAuth(user, password)
        return self

    def use_auth(self, strategy: AuthStrategy | None) -> Self:
        self._auth = strategy
        return self

    def with_credentials(self, enabled: bool = True) -> Self:
        self._credentials = "include" if enabled else "same-origin"
        return self

    def redirects(self, count: int | bool) -> Self:
        """``False`` or ``0`` disables following redirects."""
        self._redirect = "manual" if count is False or count == 0 else "follow"
        return self

    def attach(self, name: str, file: bytes | str, filename: str | None = None) -> Self:
        self._attachments.append(Attachment(name=name, file=file, filename=filename))
        return self

    def field(self, name: str | Mapping[str, Any], value: Any = None) -> Self:
        if isinstance(name, Mapping):
            for key, val in name.items():
                self._form_fields[key] = _string_value(val)
        elif value is not None:
            self._form_fields[name] = _string_value(value)
        return self

    def signal(self, token: CancellationToken | None) -> Self:
        self._signal = token
        return self

    def hook(self, name: HookName, fn: Callable[..., Any]) -> Self:
        """Register a hook on ``before_request``, ``after_response``,
        ``before_retry`` or ``before_error``."""
        self._hooks = self._hooks.with_hook(name, fn)
        return self

    # --- Execution control ---

    def abort(self) -> Self:
        """Cancel the executions currently in flight; they raise TimeoutError.

        Executions started afterwards are unaffected. With nothing in flight
        this is a no-op.
        """
        if not self._in_flight:
            logger.debug(f"abort() on {self!r} with no request in flight")
        for executor in list(self._in_flight):
            executor.abort()
        return self

    def build(self) -> RequestSpec:
        """Freeze the current configuration into a RequestSpec."""
        return RequestSpec(
            method=self.method,
            url=self.url,
            headers=dict(self._headers),
            params=dict(self._query),
            body=self._body,
            attachments=tuple(self._attachments),
            form_fields=dict(self._form_fields),
            timeout=self._timeout,
            retry=self._retry,
            hooks=self._hooks,
            throw_http_errors=self._throw_http_errors,
            parse_json=self._parse_json,
            stringify_json=self._stringify_json,
            credentials=self._credentials,
            redirect=self._redirect,
            signal=self._signal,
            http_client=self._http_client,
            auth=self._auth,
        )

    def _execute(self) -> Coroutine[Any, Any, Response]:
        """Register a fresh executor and return the coroutine that runs it.

        The executor is registered before the coroutine is scheduled, so an
        ``abort()`` issued right after scheduling still reaches it.
        """
        executor = RequestExecutor(self.build(), settings=self._settings)
        self._in_flight.add(executor)
        return self._run(executor)

    async def _run(self, executor: RequestExecutor) -> Response:
        try:
            return await executor.execute()
        finally:
            self._in_flight.discard(executor)

    def __await__(self) -> Generator[Any, None, Response]:
        return self._execute().__await__()

    def end(self, callback: EndCallback | None = None) -> "asyncio.Task[None]":
        """Run the request in the background and report through ``callback``.

        ``callback(error, response)`` is called exactly once: with
        ``(None, response)`` on success or ``(error, None)`` on failure. The
        returned task never raises for a failed request.

        Must be called from a running event loop.
        """
        try:
            execution = self._execute()
        except Exception as e:
            execution = _raise(e)

        async def _settle() -> None:
            try:
                response = await execution
            except Exception as e:
                if callback is not None:
                    callback(e, None)
                else:
                    logger.debug(f"{self!r} failed with no callback attached: {e}")
                return
            if callback is not None:
                callback(None, response)

        return asyncio.ensure_future(_settle())

    # --- Response shortcuts ---

    async def json(self) -> Any:
        """Execute and return the decoded body."""
        return (await self._execute()).body

    async def text(self) -> str:
        return (await self._execute()).text

    async def content(self) -> bytes:
        """Execute and return the raw response bytes."""
        response = await self._execute()
        if response.raw is None:
            return response.text.encode(response.charset)
        return response.raw.content
