# reqchain/types.py
"""Core type definitions and data structures for reqchain.

This module defines the immutable request description consumed by the
execution engine, its building blocks (timeouts, attachments, hooks) and the
type aliases for the four hook extension points.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict, Field

from .auth import AuthStrategy
from .cancellation import CancellationToken
from .config import CredentialsMode, RedirectMode
from .exceptions import ConfigurationError, HTTPError
from .models import Response
from .retry import RetryPolicy

HookName = Literal["before_request", "after_response", "before_retry", "before_error"]

HOOK_NAMES: tuple[str, ...] = (
    "before_request",
    "after_response",
    "before_retry",
    "before_error",
)


class TimeoutOptions(BaseModel):
    """Per-attempt timeouts in seconds.

    ``request`` takes precedence; ``response`` is the fallback. A missing or
    zero value means the attempt runs without a timer.
    """

    model_config = ConfigDict(frozen=True)

    request: float | None = None
    response: float | None = None

    @classmethod
    def coerce(cls, value: "float | TimeoutOptions | None") -> "TimeoutOptions":
        if value is None:
            return cls()
        if isinstance(value, TimeoutOptions):
            return value
        return cls(request=value)

    @property
    def effective(self) -> float | None:
        return self.request or self.response or None


class Attachment(BaseModel):
    """A file part of a multipart body."""

    model_config = ConfigDict(frozen=True)

    name: str
    file: bytes | str
    filename: str | None = None


class RequestContext(BaseModel):
    """Mutable view of a request handed to before-request hooks.

    One context is created per logical request, so changes a hook makes
    (e.g. injecting a header) are visible to every later attempt.
    """

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)


BeforeRequestHook = Callable[[RequestContext], Awaitable[Any] | Any]
"""Type alias for a before-request hook.

Called before every attempt with the mutable :class:`RequestContext`. The
return value is ignored; hooks modify the context in place or perform side
effects such as logging.
"""

AfterResponseHook = Callable[[Response], Awaitable[Response | None] | Response | None]
"""Type alias for an after-response hook.

Called with the parsed :class:`Response` of every attempt that produced one.
Returning a response replaces the working response for the following hooks
and for the final result; returning ``None`` keeps it.
"""

BeforeRetryHook = Callable[[Exception, int], Awaitable[Any] | Any]
"""Type alias for a before-retry hook.

Args:
    error (Exception): The failure that triggered the retry.
    attempt (int): The 1-based ordinal of the upcoming retry.
Return:
    None: Hooks are observational.
"""

BeforeErrorHook = Callable[
    [HTTPError], Awaitable[BaseException | None] | BaseException | None
]
"""Type alias for a before-error hook.

Called with the terminal :class:`~reqchain.exceptions.HTTPError` right before
it is raised. Returning an exception replaces the one that is raised.
"""


class Hooks(BaseModel):
    """The four ordered hook lists of a request."""

    model_config = ConfigDict(frozen=True)

    before_request: tuple[BeforeRequestHook, ...] = ()
    after_response: tuple[AfterResponseHook, ...] = ()
    before_retry: tuple[BeforeRetryHook, ...] = ()
    before_error: tuple[BeforeErrorHook, ...] = ()

    def merge(self, other: "Hooks | None") -> "Hooks":
        """Return new hooks with ``other``'s hooks appended after ours."""
        if other is None:
            return self
        return Hooks(
            **{name: getattr(self, name) + getattr(other, name) for name in HOOK_NAMES}
        )

    def with_hook(self, name: str, fn: Callable[..., Any]) -> "Hooks":
        if name not in HOOK_NAMES:
            raise ConfigurationError(
                f"Unknown hook '{name}'. Expected one of: {', '.join(HOOK_NAMES)}"
            )
        return self.model_copy(update={name: getattr(self, name) + (fn,)})

    def count(self) -> int:
        return sum(len(getattr(self, name)) for name in HOOK_NAMES)


class RequestSpec(BaseModel):
    """Finalized, immutable description of one logical request.

    Built by :class:`reqchain.builder.Request` and consumed once by
    :class:`reqchain.client.RequestExecutor`.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    attachments: tuple[Attachment, ...] = ()
    form_fields: dict[str, str] = Field(default_factory=dict)
    timeout: TimeoutOptions = Field(default_factory=TimeoutOptions)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    hooks: Hooks = Field(default_factory=Hooks)
    throw_http_errors: bool = True
    parse_json: Callable[[str], Any] = json.loads
    stringify_json: Callable[[Any], str] = json.dumps
    credentials: CredentialsMode = "same-origin"
    redirect: RedirectMode = "follow"
    signal: CancellationToken | None = None
    http_client: httpx.AsyncClient | None = None
    auth: AuthStrategy | None = None
