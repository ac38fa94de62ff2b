"""Custom exception classes for the reqchain library."""

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from .models import Response


class ReqchainError(Exception):
    """Base exception class for all reqchain errors."""

    def __init__(
        self,
        message: str,
        *,
        response: "Response | None" = None,
        request: httpx.Request | None = None,
    ):
        """Initializes the base exception.

        Args:
            message: The error message.
            response: Optional response envelope associated with the error.
            request: Optional httpx.Request object associated with the error.
        """
        super().__init__(message)
        self.message = message
        self.response = response
        self.request = request

    def __str__(self) -> str:
        if self.response is not None:
            # Prefer response info if available
            url_info = self.response.url or "N/A"
            return f"{self.message} (Status: {self.response.status}, URL: {url_info})"
        if isinstance(self.request, httpx.Request):
            return f"{self.message} (URL: {self.request.url})"
        return self.message


class HTTPError(ReqchainError):
    """Raised for a non-2xx response when throwing on HTTP errors is enabled.

    Attributes:
        response: The (possibly hook-replaced) response envelope.
        status: The HTTP status code of the response.
    """

    response: "Response"

    def __init__(self, response: "Response"):
        super().__init__(
            f"Request failed with status {response.status}: {response.status_text}",
            response=response,
        )
        self.status: int = response.status


class TimeoutError(ReqchainError):
    """Represents a request timeout error.

    Raised when the cancellation signal of an attempt fires before a response
    is produced, whether the cause is the timeout timer, an external
    cancellation token or an explicit ``abort()``.
    """

    def __init__(
        self,
        message: str = "Request timed out",
        *,
        request: httpx.Request | None = None,
    ):
        super().__init__(message, request=request, response=None)


class TransportError(ReqchainError):
    """Represents a failure of the underlying network exchange.

    Connection refused, DNS resolution failures, protocol errors and
    disallowed redirects all end up here.
    """

    def __init__(self, message: str, *, request: httpx.Request | None = None):
        super().__init__(message, request=request, response=None)


class HookError(ReqchainError):
    """Raised when a user-supplied hook fails. Never retried.

    Attributes:
        hook_type: The extension point the failing hook was registered on.
    """

    def __init__(self, message: str, *, hook_type: str):
        super().__init__(message)
        self.hook_type = hook_type


class ConfigurationError(ReqchainError):
    """Represents an error in the library's configuration."""

    def __init__(self, message: str):
        super().__init__(message, response=None)


class AuthError(ReqchainError):
    """Raised when an authentication strategy fails to authenticate a request."""
