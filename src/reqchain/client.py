"""Request execution engine for reqchain.

This module provides the RequestExecutor class, which turns a finalized
RequestSpec into one or more network attempts. It encodes the body once,
runs each attempt under its own cancellation scope, drives the hook pipeline
around every attempt and delegates the retry/backoff state machine to
tenacity.
"""

import asyncio
import ssl
from collections.abc import Mapping
from urllib.parse import urlencode

import certifi
import httpx
import tenacity
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt

from .cancellation import CancellationScope, CancellationToken
from .config import ClientSettings, get_settings
from .encoding import EncodedBody, encode_body
from .exceptions import AuthError, HTTPError, TimeoutError, TransportError
from .hooks import HookPipeline
from .log_config import logger
from .models import Response
from .retry import is_retryable
from .types import RequestContext, RequestSpec


async def _backoff_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


def build_url(url: str, params: Mapping[str, str] | None) -> str:
    """Append encoded query parameters, respecting an existing ``?``."""
    if not params:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def create_default_http_client(settings: ClientSettings) -> httpx.AsyncClient:
    """Create the httpx.AsyncClient used when a request brings no transport.

    Timeouts are left to the cancellation scope of each attempt, so the
    client itself is created without one.

    Args:
        settings: Settings providing the user agent and TLS verification flag.

    Returns:
        httpx.AsyncClient: A new client owned by the caller.
    """
    verify_ssl: ssl.SSLContext | bool = False
    if settings.verify_ssl:
        try:
            verify_ssl = ssl.create_default_context(cafile=certifi.where())
            logger.debug("Using certifi SSL context.")
        except Exception:
            verify_ssl = True
            logger.warning(
                "certifi not found or failed to load. Using default SSL verification."
            )

    return httpx.AsyncClient(
        timeout=None,
        verify=verify_ssl,
        headers={"User-Agent": settings.user_agent},
    )


class RequestExecutor:
    """Executes one logical request described by a RequestSpec.

    The executor owns all per-request mutable state: the attempt counter,
    the request context handed to hooks and, through one CancellationScope
    per attempt, the timeout timer. Nothing is shared between executors.

    Example:
    ```python
    spec = RequestSpec(method="GET", url="https://example.org/items", retry=RetryPolicy(limit=2))
    response = await RequestExecutor(spec).execute()
    ```

    Attributes:
        _spec: The immutable request description.
        _settings: Settings used for the default HTTP client.
        _hooks: Hook pipeline built from the RequestSpec hooks.
        _abort_token: Token fired by ``abort()``; linked into every attempt.
        _attempts: Number of attempts started so far.
    """

    def __init__(
        self,
        spec: RequestSpec,
        *,
        settings: ClientSettings | None = None,
    ):
        self._spec = spec
        self._settings = settings or get_settings()
        self._hooks = HookPipeline(spec.hooks)
        self._abort_token = CancellationToken()
        self._attempts = 0

    @property
    def spec(self) -> RequestSpec:
        return self._spec

    @property
    def attempts(self) -> int:
        return self._attempts

    def abort(self, reason: str = "aborted") -> None:
        """Cancel the request; it settles with a TimeoutError.

        Safe to call at any time. An in-flight attempt or backoff wait is
        interrupted; calling it before ``execute()`` makes the first attempt
        fail immediately.
        """
        if self._abort_token.cancel(reason):
            logger.debug(f"Abort requested for {self._spec.method} {self._spec.url}")

    async def execute(self) -> Response:
        """Run the attempt/retry loop and return the terminal response.

        Returns:
            Response: The (possibly hook-replaced) response of the first
                successful attempt.

        Raises:
            HTTPError: Non-2xx response with throwing enabled, after retries
                and before-error hooks. A before-error hook may replace it.
            TimeoutError: An attempt timed out, or the request was cancelled
                during an attempt or a backoff wait.
            TransportError: The network exchange failed on the last attempt.
            HookError: A hook raised.
            AuthError: The auth strategy failed before the first attempt.
        """
        spec = self._spec
        payload = encode_body(
            spec.body,
            spec.headers,
            spec.attachments,
            spec.form_fields,
            spec.stringify_json,
        )
        context = RequestContext(
            method=spec.method,
            url=spec.url,
            headers=payload.headers,
            params=dict(spec.params),
        )
        # Authenticate before the retry loop, fail fast on auth issues
        await self._authenticate(context)

        retry_strategy = AsyncRetrying(
            stop=stop_after_attempt(spec.retry.limit + 1),  # +1 for initial attempt
            wait=self._retry_wait,
            retry=retry_if_exception(self._should_retry_request),
            before_sleep=self._before_retry_sleep,
            sleep=self._backoff,
            reraise=True,
        )

        owns_client = spec.http_client is None
        http_client = spec.http_client or create_default_http_client(self._settings)
        try:
            return await retry_strategy(
                self._execute_single_request, http_client, context, payload
            )
        except HTTPError as e:
            logger.error(
                f"{spec.method} {spec.url} failed with status {e.status} "
                f"after {self._attempts} attempt(s)"
            )
            error = await self._hooks.before_error(e)
            if error is e:
                raise
            raise error from e
        except Exception as e:
            logger.error(
                f"{spec.method} {spec.url} failed after {self._attempts} attempt(s): "
                f"{type(e).__name__}: {e}"
            )
            raise
        finally:
            if owns_client:
                await http_client.aclose()

    async def _authenticate(self, context: RequestContext) -> None:
        """Apply the auth strategy once and copy the headers it set into the context."""
        if self._spec.auth is None:
            return
        request = httpx.Request(context.method, context.url, headers=context.headers)
        before = dict(request.headers)
        try:
            await self._spec.auth.async_authenticate(request)
        except AuthError as e:
            logger.error(f"Authentication failed before request: {e}")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during pre-request authentication: {e}")
            raise AuthError(f"Unexpected authentication error: {e}") from e

        for key, value in request.headers.items():
            if before.get(key) != value:
                context.headers[key.lower()] = value

    def _build_request(
        self,
        http_client: httpx.AsyncClient,
        context: RequestContext,
        payload: EncodedBody,
    ) -> httpx.Request:
        return http_client.build_request(
            context.method,
            build_url(context.url, context.params),
            headers=context.headers,
            content=payload.content,
            files=list(payload.files) if payload.files is not None else None,
            extensions={
                "credentials": self._spec.credentials,
                "redirect": self._spec.redirect,
            },
        )

    async def _send(
        self, http_client: httpx.AsyncClient, request: httpx.Request
    ) -> httpx.Response:
        redirect = self._spec.redirect
        response = await http_client.send(request, follow_redirects=redirect == "follow")
        if redirect == "error" and response.is_redirect:
            await response.aclose()
            raise TransportError(
                f"Redirect to {response.headers.get('location')} is not allowed",
                request=request,
            )
        return response

    async def _execute_single_request(
        self,
        http_client: httpx.AsyncClient,
        context: RequestContext,
        payload: EncodedBody,
    ) -> Response:
        """Execute a single attempt: hooks, network exchange, parsing, classification.

        Args:
            http_client: The transport to send through.
            context: The shared, hook-mutable request context.
            payload: The body encoded once for the whole logical request.

        Returns:
            Response: The (possibly hook-replaced) response.

        Raises:
            HTTPError: Non-2xx response with throwing enabled.
            TimeoutError: The attempt's cancellation scope fired, or httpx timed out.
            TransportError: The network exchange failed.
            HookError: A before-request or after-response hook raised.
        """
        spec = self._spec
        self._attempts += 1
        async with CancellationScope(
            spec.timeout.effective, signals=(spec.signal, self._abort_token)
        ) as scope:
            await self._hooks.before_request(context)

            request = self._build_request(http_client, context, payload)
            logger.debug(
                f"Sending request (attempt {self._attempts}): {request.method} {request.url}"
            )
            logger.trace(f"Request Headers: {request.headers}")

            try:
                http_response = await scope.guard(
                    self._send(http_client, request), request=request
                )
            except httpx.TimeoutException as e:
                logger.error(f"Request timed out: {request.url}")
                raise TimeoutError(request=request) from e
            except httpx.RequestError as e:
                logger.error(f"Transport error for {request.url}: {e}")
                raise TransportError(
                    f"Transport error for {request.url}: {e}", request=request
                ) from e

            logger.debug(
                f"Received response: {http_response.status_code} for {request.url}"
            )
            logger.trace(f"Response Headers: {http_response.headers}")

            response = Response.from_httpx(http_response, spec.parse_json)
            response = await self._hooks.after_response(response)

            if spec.throw_http_errors and not http_response.is_success:
                raise HTTPError(response)
            return response

    def _retry_wait(self, retry_state: tenacity.RetryCallState) -> float:
        return float(self._spec.retry.delay(retry_state.attempt_number))

    async def _backoff(self, seconds: float) -> None:
        """Sleep between attempts, settling at once if the request is cancelled.

        Raises:
            TimeoutError: ``abort()`` was called or the external signal fired
                before the delay elapsed.
        """
        async with CancellationScope(
            signals=(self._spec.signal, self._abort_token)
        ) as scope:
            try:
                await scope.guard(_backoff_sleep(seconds))
            except TimeoutError:
                logger.info(
                    f"{self._spec.method} {self._spec.url} cancelled during "
                    f"backoff: {scope.token.reason}"
                )
                raise

    def _should_retry_request(self, exc: BaseException) -> bool:
        """Predicate for tenacity: is this failure eligible for another attempt?

        The attempt budget is checked by the stop condition, so a retryable
        failure on the last attempt still ends the loop. Retries are logged in
        ``_before_retry_sleep`` once they are actually scheduled.
        """
        return is_retryable(exc, self._spec.method, self._spec.retry)

    async def _before_retry_sleep(self, retry_state: tenacity.RetryCallState) -> None:
        """Log the scheduled retry and run the before-retry hooks."""
        if not retry_state.outcome:
            return

        exc = retry_state.outcome.exception()
        sleep_time = (
            getattr(retry_state.next_action, "sleep", 0)
            if retry_state.next_action
            else 0
        )
        logger.info(
            f"Retrying {self._spec.method} {self._spec.url} in {sleep_time:.2f} seconds "
            f"after {retry_state.attempt_number} attempt(s) due to: "
            f"{type(exc).__name__} - {exc}"
        )
        await self._hooks.before_retry(exc, retry_state.attempt_number)
