"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

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

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Nested BaseSettings don't inherit env_file, so populate os.environ up front
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class LLMSettings(BaseSettings):
    """Completion provider configuration for the generative responder."""

    provider: str = Field(
        "openai",
        description="LLM provider name (only openai is wired today)",
    )
    model: str = Field(
        "gpt-3.5-turbo",
        description="Chat completion model used to draft replies",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider (required in generative mode)",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint for OpenAI-compatible servers",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )
    temperature: float = Field(
        0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for reply drafts",
    )
    max_tokens: int = Field(
        500,
        ge=1,
        description="Token budget for the completion",
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    responder_mode: Literal["canned", "generative"] = Field(
        "canned",
        description="Which backend drafts replies: keyword canned text or the LLM",
    )
    canned_delay_ms: int = Field(
        1500,
        ge=0,
        description="Artificial delay before canned responses are returned",
    )
    canned_catalog_path: str | None = Field(
        None,
        description="Optional JSON file replacing the built-in canned catalog",
    )
    api_prefix: str = Field(
        "/api",
        description="Prefix the generate router is mounted under",
    )
    serve_ui: bool = Field(
        True,
        description="Serve the single-page client at GET /",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-client rate limiting on the generate endpoint",
    )
    rate_limit_requests: int = Field(
        3,
        description="Maximum number of requests allowed per trailing window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        900,
        description="Trailing window size in seconds",
        ge=1,
    )
    rate_limit_max_keys: int = Field(
        10000,
        description="Maximum number of client keys tracked before LRU eviction",
        ge=1,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    cors_allow_origins: str = Field(
        "*",
        description="Comma-separated origins allowed to call the API",
    )
    cors_allow_methods: str = Field(
        "GET,OPTIONS,POST",
        description="Comma-separated methods allowed in pre-flight responses",
    )
    cors_allow_headers: str = Field(
        "Content-Type,X-Request-ID",
        description="Comma-separated request headers allowed in pre-flight responses",
    )
    cors_allow_credentials: bool = Field(
        True,
        description="Send Access-Control-Allow-Credentials on CORS responses",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.cors_allow_origins)

    @property
    def cors_methods(self) -> list[str]:
        return _split_csv(self.cors_allow_methods)

    @property
    def cors_headers(self) -> list[str]:
        return _split_csv(self.cors_allow_headers)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="json for machine-readable records, plain for local runs",
    )
    output: Literal["stdout", "file"] = Field("stdout", description="Log destination")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        ge=0,
        description="Rotate the log file at this size (0 disables rotation)",
    )
    backup_count: int = Field(5, ge=0, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to accept and echo the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


def _build_llm_settings() -> LLMSettings:
    return LLMSettings()  # type: ignore[call-arg]


def _build_app_settings() -> AppSettings:
    return AppSettings()  # type: ignore[call-arg]


def _build_log_settings() -> LogSettings:
    return LogSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
settings = Settings()
