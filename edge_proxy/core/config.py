"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (edge deployments inject env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Order is preserved because the first CORS origin doubles as the fallback.

    Examples:
        >>> parse_csv("a, b,,c ")
        ['a', 'b', 'c']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class UpstreamSettings(BaseSettings):
    """Anthropic Messages API configuration.

    The key is read from ``ANTHROPIC_API_KEY`` and never leaves the server.
    """

    api_key: str | None = Field(
        None,
        description="Server-side Anthropic API key attached to every forwarded request",
    )
    base_url: str = Field(
        "https://api.anthropic.com",
        description="Base URL of the Anthropic API",
    )
    api_version: str = Field(
        "2023-06-01",
        description="Value sent in the anthropic-version header",
    )
    timeout_seconds: float = Field(
        60.0,
        description="Upstream request timeout in seconds",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="ANTHROPIC_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Proxy policy: CORS, request clamping and rate limiting."""

    cors_allowed_origins: str = Field(
        "https://contaleacarlitos.vercel.app,https://heycarlitos.app,http://localhost:3000",
        description="Comma-separated allowed origins; the first one is the fallback",
    )
    allowed_models: str = Field(
        "claude-sonnet-4-6,claude-haiku-4-5-20251001",
        description="Comma-separated models clients may request",
    )
    default_model: str = Field(
        "claude-sonnet-4-6",
        description="Model substituted when the client asks for one not allowed",
    )
    max_tokens_cap: int = Field(
        1500,
        description="Largest max_tokens accepted from clients",
        ge=1,
    )
    default_max_tokens: int = Field(
        1000,
        description="max_tokens used when the client value is missing or over the cap",
        ge=1,
    )
    client_ip_header: str = Field(
        "X-Forwarded-For",
        description="Header carrying the client IP (first comma-separated value wins)",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-IP rate limiting",
    )
    rate_limit_requests: int = Field(
        20,
        description="Maximum number of requests allowed per window (per client IP)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        3600,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def cors_origins(self) -> list[str]:
        return parse_csv(self.cors_allowed_origins)

    @property
    def models(self) -> list[str]:
        return parse_csv(self.allowed_models)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file at this size (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_upstream_settings() -> "UpstreamSettings":
    return UpstreamSettings()


def _build_app_settings() -> "AppSettings":
    return AppSettings()


def _build_log_settings() -> "LogSettings":
    return LogSettings()


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    upstream: UpstreamSettings = Field(default_factory=_build_upstream_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
