import base64
from typing import Protocol, runtime_checkable

import httpx

from .exceptions import ConfigurationError
from .log_config import logger


@runtime_checkable
class AuthStrategy(Protocol):
    """Protocol defining the interface for authentication strategies.

    Concrete implementations add authentication information (usually an
    ``Authorization`` header) to an outgoing request. The execution engine
    applies the strategy once per logical request, before the first attempt.
    """

    async def async_authenticate(self, request: httpx.Request) -> None:
        """
        Asynchronously modifies the request to add authentication information.

        Args:
            request: The httpx.Request object to modify.

        Raises:
            AuthError: If authentication fails.
        """
        ...


class NoAuth:
    """Implements the AuthStrategy protocol for requests requiring no authentication."""

    async def async_authenticate(self, request: httpx.Request) -> None:
        """Does nothing as no authentication is needed."""
        logger.trace("Using NoAuth strategy, no authentication applied.")


class BearerTokenAuth:
    """Implements AuthStrategy using a static Bearer token.

    Attributes:
        _token: The bearer token.
    """

    def __init__(self, token: str | None):
        """Initializes BearerTokenAuth with the provided token.

        Args:
            token: The token to send as ``Authorization: Bearer <token>``.

        Raises:
            ConfigurationError: If the token is None or empty.
        """
        if not token:
            raise ConfigurationError("BearerTokenAuth requires a non-empty 'token'.")
        self._token: str = token

    async def async_authenticate(self, request: httpx.Request) -> None:
        """Adds the 'Authorization: Bearer <token>' header to the request."""
        logger.trace("Authenticating request using BearerTokenAuth.")
        request.headers["Authorization"] = f"Bearer {self._token}"


class BasicAuth:
    """Implements AuthStrategy using HTTP Basic credentials.

    An empty password is allowed and encoded as ``user:``.
    """

    def __init__(self, username: str, password: str | None = None):
        if not username:
            raise ConfigurationError("BasicAuth requires a non-empty 'username'.")
        self._username = username
        self._password = password or ""

    @property
    def header_value(self) -> str:
        credentials = f"{self._username}:{self._password}".encode()
        return f"Basic {base64.b64encode(credentials).decode('ascii')}"

    async def async_authenticate(self, request: httpx.Request) -> None:
        """Adds the 'Authorization: Basic <credentials>' header to the request."""
        logger.trace("Authenticating request using BasicAuth.")
        request.headers["Authorization"] = self.header_value
