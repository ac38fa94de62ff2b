# reqchain/config.py
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .version import __version__

CredentialsMode = Literal["omit", "same-origin", "include"]
RedirectMode = Literal["follow", "error", "manual"]


class ClientSettings(BaseSettings):
    """
    Manages user-configurable defaults for reqchain clients, loaded from
    environment variables (prefixed ``REQCHAIN_``) or a .env file.

    Values set here are only defaults: anything passed explicitly to
    ``create_instance()`` or to a ``Request`` builder method wins.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="REQCHAIN_",
        extra="ignore",  # Ignore extra fields found in environment
        case_sensitive=False,
    )

    # --- Request Behavior Settings ---
    timeout: float | None = Field(
        default=None,
        description="Default per-attempt timeout in seconds (None disables the timer)",
    )
    retry_limit: int = Field(
        default=0, ge=0, description="Default number of retries after the first attempt"
    )
    throw_http_errors: bool = Field(
        default=True, description="Raise HTTPError for non-2xx responses"
    )
    credentials: CredentialsMode = Field(
        default="same-origin", description="Credentials mode passed to the transport"
    )
    redirect: RedirectMode = Field(
        default="follow", description="Redirect mode passed to the transport"
    )

    # --- Transport Settings ---
    user_agent: str = Field(
        default=f"reqchain/{__version__}",
        description="User-Agent header for the default HTTP client",
    )
    verify_ssl: bool = Field(
        default=True, description="Verify TLS certificates in the default HTTP client"
    )


@lru_cache
def get_settings() -> ClientSettings:
    """
    Provides access to the reqchain settings.

    Settings are loaded from environment variables or a .env file.
    The instance is cached; call ``get_settings.cache_clear()`` after
    changing the environment.

    Returns:
        ClientSettings: The settings instance.
    """
    return ClientSettings()
