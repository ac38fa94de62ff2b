"""Retry policy: which failures are retried and how long to wait in between.

Everything here is pure: the execution loop in :mod:`reqchain.client` feeds
these functions into tenacity, which owns the attempt bookkeeping.
"""

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import HookError, HTTPError, TimeoutError

DEFAULT_RETRY_METHODS: frozenset[str] = frozenset(
    ["GET", "HEAD", "OPTIONS", "PUT", "DELETE"]
)
"""Idempotent methods retried by default."""

DEFAULT_RETRY_STATUS_CODES: frozenset[int] = frozenset(
    [408, 413, 429, 500, 502, 503, 504]
)
"""Default set of HTTP status codes considered retryable."""

MAX_RETRY_DELAY = 30.0


def default_retry_delay(attempt: int) -> float:
    """Exponential backoff: 1s, 2s, 4s, ... capped at 30 seconds.

    Args:
        attempt: 1-based ordinal of the retry about to happen.

    Returns:
        float: Seconds to wait before that retry.
    """
    return min(1.0 * 2 ** (attempt - 1), MAX_RETRY_DELAY)


class RetryPolicy(BaseModel):
    """Retry configuration for one logical request.

    Attributes:
        limit: Maximum number of extra attempts after the first one.
        methods: HTTP methods that may be retried.
        status_codes: Status codes for which an ``HTTPError`` is retried.
        delay: Maps the 1-based retry ordinal to a wait in seconds.
    """

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=0, ge=0)
    methods: frozenset[str] = DEFAULT_RETRY_METHODS
    status_codes: frozenset[int] = DEFAULT_RETRY_STATUS_CODES
    delay: Callable[[int], float] = default_retry_delay

    @classmethod
    def coerce(cls, value: "int | RetryPolicy | None") -> "RetryPolicy":
        """Accept a bare retry count as shorthand for ``RetryPolicy(limit=n)``."""
        if value is None:
            return cls()
        if isinstance(value, RetryPolicy):
            return value
        return cls(limit=value)

    def allows_method(self, method: str) -> bool:
        return method.upper() in {m.upper() for m in self.methods}


def is_retryable(error: BaseException, method: str, policy: RetryPolicy) -> bool:
    """Decide whether a failed attempt may be retried.

    The attempt budget is not checked here; tenacity's stop condition owns it.

    Args:
        error: The exception raised by the attempt.
        method: The request method.
        policy: The retry policy of the request.

    Returns:
        bool: True if the failure is eligible for another attempt.
    """
    if not isinstance(error, Exception):
        # Task cancellation and interpreter exits are never retried
        return False
    if not policy.allows_method(method):
        return False
    if isinstance(error, TimeoutError | HookError):
        return False
    if isinstance(error, HTTPError):
        return error.status in policy.status_codes
    return True
