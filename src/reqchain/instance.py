"""Instance factory: request builders that share defaults and a base URL.

Example:
```python
api = create_instance(base_url="https://api.example.org", headers={"X-Api-Key": "k"})
response = await api.get("/users/2")
admin = api.extend(headers={"X-Role": "admin"})
```
"""

from collections.abc import Callable, Mapping
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .auth import AuthStrategy
from .config import ClientSettings, CredentialsMode, RedirectMode, get_settings
from .log_config import logger
from .builder import Request
from .retry import RetryPolicy
from .types import Hooks, TimeoutOptions


class InstanceOptions(BaseModel):
    """Defaults applied to every request created by a :class:`Client`.

    ``None`` means "not set here": the value falls back to the settings.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float | TimeoutOptions | None = None
    retry: int | RetryPolicy | None = None
    hooks: Hooks | None = None
    throw_http_errors: bool | None = None
    parse_json: Callable[[str], Any] | None = None
    stringify_json: Callable[[Any], str] | None = None
    credentials: CredentialsMode | None = None
    redirect: RedirectMode | None = None
    http_client: httpx.AsyncClient | None = None
    auth: AuthStrategy | None = None

    def merged(self, **overrides: Any) -> "InstanceOptions":
        """Return options with ``overrides`` applied; headers are merged."""
        if "prefix_url" in overrides:
            prefix_url = overrides.pop("prefix_url")
            overrides.setdefault("base_url", prefix_url)
        headers = {**self.headers, **(overrides.pop("headers", None) or {})}
        current = {
            name: getattr(self, name)
            for name in type(self).model_fields
            if name != "headers"
        }
        return InstanceOptions(**{**current, **overrides}, headers=headers)


def resolve_url(base_url: str | None, url: str) -> str:
    """Join ``url`` to ``base_url`` unless ``url`` is absolute."""
    if not base_url or url.startswith(("http://", "https://")):
        return url
    base = base_url[:-1] if base_url.endswith("/") else base_url
    path = url if url.startswith("/") else f"/{url}"
    return f"{base}{path}"


class Client:
    """Creates :class:`Request` builders with shared defaults.

    Calling the client directly creates a request for any method; the
    verb helpers cover the common ones.

    Attributes:
        defaults: The options every request starts from.
    """

    def __init__(
        self,
        options: InstanceOptions | None = None,
        *,
        settings: ClientSettings | None = None,
    ):
        self.defaults = options or InstanceOptions()
        self._settings = settings or get_settings()
        logger.debug(
            f"Client created (base_url={self.defaults.base_url!r}, "
            f"{len(self.defaults.headers)} default header(s))"
        )

    def __call__(self, method: str, url: str) -> Request:
        return self._create_request(method, url)

    def _create_request(self, method: str, url: str) -> Request:
        options = self.defaults
        settings = self._settings
        return Request(
            method,
            resolve_url(options.base_url, url),
            headers=options.headers,
            timeout=options.timeout if options.timeout is not None else settings.timeout,
            retry=options.retry if options.retry is not None else settings.retry_limit,
            hooks=options.hooks,
            throw_http_errors=(
                options.throw_http_errors
                if options.throw_http_errors is not None
                else settings.throw_http_errors
            ),
            parse_json=options.parse_json,
            stringify_json=options.stringify_json,
            credentials=options.credentials or settings.credentials,
            redirect=options.redirect or settings.redirect,
            http_client=options.http_client,
            auth=options.auth,
            settings=settings,
        )

    def get(self, url: str) -> Request:
        return self._create_request("GET", url)

    def post(self, url: str) -> Request:
        return self._create_request("POST", url)

    def put(self, url: str) -> Request:
        return self._create_request("PUT", url)

    def patch(self, url: str) -> Request:
        return self._create_request("PATCH", url)

    def delete(self, url: str) -> Request:
        return self._create_request("DELETE", url)

    del_ = delete

    def head(self, url: str) -> Request:
        return self._create_request("HEAD", url)

    def options(self, url: str) -> Request:
        return self._create_request("OPTIONS", url)

    def create(self, **options: Any) -> "Client":
        """Return a new client whose defaults are ours updated with ``options``."""
        return Client(self.defaults.merged(**options), settings=self._settings)

    extend = create


def create_instance(
    options: InstanceOptions | Mapping[str, Any] | None = None,
    *,
    settings: ClientSettings | None = None,
    **kwargs: Any,
) -> Client:
    """Create a :class:`Client`.

    Args:
        options: Defaults as an InstanceOptions or a plain mapping.
        settings: Settings for values left unset; loaded from the environment
            when omitted.
        **kwargs: Individual options, applied on top of ``options``.
            ``prefix_url`` is accepted as an alias of ``base_url``.

    Returns:
        Client: The new client.
    """
    base = options if isinstance(options, InstanceOptions) else InstanceOptions()
    overrides = dict(options) if isinstance(options, Mapping) else {}
    overrides.update(kwargs)
    return Client(base.merged(**overrides), settings=settings)
