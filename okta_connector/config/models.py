"""Configuration models for the Okta connector."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

AUTH_SCHEME = "SSWS"


def _apply_scheme(raw_token: str) -> SecretStr:
    """Prefix a raw API token with the SSWS scheme tag."""
    token = raw_token.strip()
    if not token:
        raise ValueError("API token cannot be empty")
    if token.startswith(f"{AUTH_SCHEME} "):
        raise ValueError(
            f"API token already carries the '{AUTH_SCHEME} ' scheme; pass the raw token"
        )
    return SecretStr(f"{AUTH_SCHEME} {token}")


class ConnectionConfig(BaseModel):
    """Okta tenant connection configuration.

    Immutable. The API token is only kept in its transmitted form
    (``SSWS <token>``); use :meth:`with_api_token` to switch tokens.
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(
        ...,
        description="Okta tenant host name (e.g. 'yourorg.okta.com')",
        min_length=1,
    )
    api_version: str = Field(
        "v1",
        description="Okta API version",
        min_length=1,
    )
    api_token: SecretStr = Field(
        ...,
        description="Okta API token, stored as the Authorization header value",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Per-call timeout for Okta API requests in seconds",
        gt=0,
    )
    rate_limit_per_minute: Optional[int] = Field(
        600,
        description="Client-side request throttle (None disables it)",
        ge=1,
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Strip scheme and trailing slash from the host."""
        v = v.strip().replace("https://", "").replace("http://", "").rstrip("/")
        if not v:
            raise ValueError("Host cannot be empty")
        if "/" in v:
            raise ValueError("Host must not contain a path")
        return v

    @field_validator("api_token", mode="before")
    @classmethod
    def validate_api_token(cls, v: object) -> SecretStr:
        """Store the token with the SSWS scheme applied exactly once.

        A ``SecretStr`` that already carries the scheme is the stored form
        (e.g. from ``model_dump()``) and is kept as-is.
        """
        if isinstance(v, SecretStr):
            v = v.get_secret_value()
            if v.startswith(f"{AUTH_SCHEME} ") and v[len(AUTH_SCHEME) + 1:].strip():
                return SecretStr(v)
        if not isinstance(v, str):
            raise ValueError("API token must be a string")
        return _apply_scheme(v)

    @property
    def authorization_header(self) -> str:
        """Value for the ``Authorization`` header."""
        return self.api_token.get_secret_value()

    @property
    def base_url(self) -> str:
        return f"https://{self.host}/api/{self.api_version}"

    def with_api_token(self, raw_token: str) -> "ConnectionConfig":
        """Return a copy of this configuration using a different raw token."""
        return self.model_copy(update={"api_token": _apply_scheme(raw_token)})


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format (json or text)")

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(sorted(valid_levels))}")
        return v.upper()

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        if v.lower() not in {"json", "text"}:
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class ConnectorSettings(BaseModel):
    """Top-level settings: Okta connection plus logging."""

    okta: ConnectionConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "ConnectorSettings":
        """Create settings from environment variables (and a ``.env`` file).

        Raises:
            ValueError: If required environment variables are missing.
        """
        load_dotenv()

        host = os.getenv("OKTA_HOST")
        api_token = os.getenv("OKTA_API_TOKEN")
        if not host:
            raise ValueError("OKTA_HOST environment variable is required")
        if not api_token:
            raise ValueError("OKTA_API_TOKEN environment variable is required")

        rate_limit = os.getenv("OKTA_RATE_LIMIT_PER_MINUTE", "600")

        return cls(
            okta=ConnectionConfig(
                host=host,
                api_version=os.getenv("OKTA_API_VERSION", "v1"),
                api_token=api_token,
                timeout_seconds=float(os.getenv("OKTA_TIMEOUT_SECONDS", "30")),
                rate_limit_per_minute=int(rate_limit) if rate_limit.lower() != "none" else None,
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "text"),
            ),
        )
