"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app and the helper scripts share
a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

import os

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


DEFAULT_SCOPES = (
    "r:devices:* x:devices:* r:devices:$ x:devices:$ w:installedapps r:installedapps"
)


class SmartThingsSettings(BaseSettings):
    """Configuration required for interacting with the SmartThings APIs."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_id: str = Field(..., validation_alias="SMARTTHINGS_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="SMARTTHINGS_CLIENT_SECRET")
    redirect_uri: str = Field(
        "http://localhost:5000/callback",
        validation_alias=AliasChoices("SMARTTHINGS_REDIRECT_URI", "REDIRECT_URI"),
    )
    scopes: str = Field(DEFAULT_SCOPES, validation_alias="SMARTTHINGS_SCOPES")
    authorize_url: str = Field(
        "https://api.smartthings.com/oauth/authorize",
        validation_alias="SMARTTHINGS_AUTHORIZE_URL",
    )
    token_url: str = Field(
        "https://auth-global.api.smartthings.com/oauth/token",
        validation_alias="SMARTTHINGS_TOKEN_URL",
    )
    api_base_url: str = Field(
        "https://api.smartthings.com/v1",
        validation_alias="SMARTTHINGS_API_BASE_URL",
    )
    token_auth_method: Literal["basic", "body"] = Field(
        "basic",
        validation_alias="SMARTTHINGS_TOKEN_AUTH_METHOD",
        description=(
            "How client credentials are sent to the token endpoint: an HTTP "
            "Basic header or client_secret in the form body."
        ),
    )
    http_timeout_seconds: float = Field(10.0, validation_alias="SMARTTHINGS_HTTP_TIMEOUT")

    @field_validator("scopes", mode="before")
    @classmethod
    def _normalize_scopes(cls, value: str | list[str] | tuple[str, ...]) -> str:
        """Support providing scopes as a comma- or space-separated string."""
        if isinstance(value, (list, tuple)):
            parts = list(value)
        else:
            parts = value.replace(",", " ").split()
        return " ".join(scope.strip() for scope in parts if scope.strip())

    @field_validator("token_auth_method", mode="before")
    @classmethod
    def _lower_auth_method(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value


class TokenStorageSettings(BaseSettings):
    """Where the credential record lives and when it is considered stale."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    token_file_path: str = Field("tokens.json", validation_alias="TOKEN_FILE_PATH")
    refresh_buffer_seconds: int = Field(
        300,
        validation_alias="TOKEN_REFRESH_BUFFER_SECONDS",
        description="Refresh the access token this many seconds before it expires.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(5000, validation_alias="PORT")
    smartthings: SmartThingsSettings = Field(default_factory=SmartThingsSettings)
    storage: TokenStorageSettings = Field(default_factory=TokenStorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "DEFAULT_SCOPES",
    "SmartThingsSettings",
    "TokenStorageSettings",
    "get_settings",
]
