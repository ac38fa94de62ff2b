"""Cooperative cancellation primitives for request attempts.

A :class:`CancellationToken` is a single-fire signal that callers can share
with a request to cancel it from the outside. A :class:`CancellationScope`
owns the cancellation state of exactly one attempt: it merges any external
tokens with its own timeout timer and explicit ``abort()`` calls, and races
the in-flight exchange against them.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, Self, TypeVar

from .exceptions import TimeoutError
from .log_config import logger

T = TypeVar("T")

CancelCallback = Callable[[str | None], Any]


class CancellationToken:
    """An idempotent, single-fire cancellation signal.

    The first call to :meth:`cancel` wins: it records the reason, runs the
    registered callbacks in registration order and wakes every waiter.
    Subsequent calls are no-ops.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None
        self._callbacks: list[CancelCallback] = []
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> bool:
        """Fire the token.

        Args:
            reason: Optional human-readable cause, kept for diagnostics.

        Returns:
            bool: True if this call fired the token, False if it had already fired.
        """
        if self._cancelled:
            return False
        self._cancelled = True
        self._reason = reason
        self._event.set()
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback(reason)
        return True

    def add_callback(self, callback: CancelCallback) -> None:
        """Register ``callback(reason)``; runs immediately if already fired."""
        if self._cancelled:
            callback(self._reason)
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: CancelCallback) -> None:
        with contextlib.suppress(ValueError):
            self._callbacks.remove(callback)

    async def wait(self) -> str | None:
        """Suspend until the token fires and return the cancellation reason."""
        await self._event.wait()
        return self._reason

    def __repr__(self) -> str:
        state = f"cancelled, reason={self._reason!r}" if self._cancelled else "active"
        return f"<CancellationToken {state}>"


class CancellationScope:
    """Per-attempt cancellation source.

    Entering the scope allocates a fresh internal token, links it to every
    external token and starts the timeout timer. Leaving the scope, on any
    path, cancels the timer and unlinks the external tokens so nothing leaks
    into the next attempt.

    Example:
    ```python
    async with CancellationScope(timeout=5.0, signals=[user_token]) as scope:
        response = await scope.guard(client.send(request))
    ```

    Attributes:
        token: The internal token for this attempt.
    """

    def __init__(
        self,
        timeout: float | None = None,
        *,
        signals: Iterable[CancellationToken | None] = (),
    ):
        self.token = CancellationToken()
        self._timeout = timeout
        self._signals = [signal for signal in signals if signal is not None]
        self._timer: asyncio.TimerHandle | None = None

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def abort(self, reason: str | None = "aborted") -> bool:
        """Cancel the attempt owned by this scope. Idempotent."""
        fired = self.token.cancel(reason)
        if fired:
            logger.debug(f"Cancellation scope fired: {reason}")
        return fired

    def _on_external_cancel(self, reason: str | None) -> None:
        self.abort(reason or "external signal")

    def _on_timeout(self) -> None:
        self.abort(f"timeout after {self._timeout}s")

    async def __aenter__(self) -> Self:
        for signal in self._signals:
            signal.add_callback(self._on_external_cancel)
        if self._timeout and not self.token.cancelled:
            loop = asyncio.get_running_loop()
            self._timer = loop.call_later(self._timeout, self._on_timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Release the timer and detach from external tokens."""
        if self._timer is not None:
            self._timer.cancel()
        for signal in self._signals:
            signal.remove_callback(self._on_external_cancel)

    async def guard(
        self, awaitable: Awaitable[T], *, request: Any = None
    ) -> T:
        """Race ``awaitable`` against this scope's token.

        Args:
            awaitable: The in-flight operation, typically the network exchange.
            request: Optional httpx.Request attached to the raised error.

        Returns:
            The result of ``awaitable`` if it settles first.

        Raises:
            TimeoutError: If the token fires before ``awaitable`` settles. The
                operation is cancelled and awaited before raising.
        """
        task = asyncio.ensure_future(awaitable)
        if self.token.cancelled:
            await _discard(task)
            raise TimeoutError(request=request)

        waiter = asyncio.ensure_future(self.token.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        await _discard(task)
        logger.debug(f"In-flight exchange cancelled: {self.token.reason}")
        raise TimeoutError(request=request)


async def _discard(task: "asyncio.Future[Any]") -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
