"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

# Select the .env file for the current environment
_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_llm_settings() -> "LLMSettings":
    """Build LLM settings from environment.

    Pydantic Settings (v2) can populate values from environment variables.
    However, static type checkers often treat required fields as required
    constructor arguments, which is not how BaseSettings is intended to be used.
    """

    return LLMSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    """Build app settings from environment.

    See _build_llm_settings() for rationale about the type ignore.
    """

    return AppSettings()  # type: ignore[call-arg]


def _build_supabase_settings() -> "SupabaseSettings":
    return SupabaseSettings()  # type: ignore[call-arg]


def _build_email_settings() -> "EmailSettings":
    return EmailSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class LLMSettings(BaseSettings):
    """LLM provider configuration.

    Both supported providers speak the OpenAI chat completions protocol.
    Validation of provider-specific requirements happens in the factory.
    """

    provider: str = Field(
        ...,
        description="LLM provider name (openai or groq)",
    )
    model: str = Field(
        ...,
        description="Model name (e.g., llama-3.1-8b-instant, gpt-4o-mini)",
    )
    api_key: str | None = Field(
        None,
        description="API key for the provider",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint (defaults to the provider's public endpoint)",
    )
    timeout_seconds: float = Field(
        45.0,
        description="Request timeout in seconds",
    )
    temperature: float = Field(
        1.0,
        description="Sampling temperature used for plan generation",
        ge=0.0,
        le=2.0,
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
    default_monthly_limit: int = Field(
        10,
        description="Monthly plan quota assigned to new profiles",
        ge=1,
    )
    max_feedback_chars: int = Field(
        2000,
        description="Maximum feedback text length in characters",
        ge=1,
    )
    max_template_name_chars: int = Field(
        255,
        description="Maximum template name length in characters",
        ge=1,
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-user rate limiting on plan generation",
    )
    rate_limit_requests: int = Field(
        5,
        description="Maximum number of requests allowed per window (per user)",
        ge=1,
    )
    rate_limit_window_ms: int = Field(
        60_000,
        description="Rate limit window size in milliseconds",
        ge=1,
    )
    rate_limit_max_keys: int | None = Field(
        10_000,
        description="Maximum number of tracked users before LRU eviction (None for unbounded)",
        ge=1,
    )
    rate_limit_sweep_grace_ms: int = Field(
        60_000,
        description="How long an expired window is kept before the sweep drops it",
        ge=0,
    )
    rate_limit_sweep_interval_ms: int = Field(
        60_000,
        description="Minimum delay between two opportunistic sweeps",
        ge=0,
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class SupabaseSettings(BaseSettings):
    """Supabase project used for authentication and persistence."""

    url: str = Field(
        ...,
        description="Supabase project URL (e.g., https://xyz.supabase.co)",
    )
    anon_key: str = Field(
        ...,
        description="Supabase anon (public) key sent as the apikey header",
    )
    timeout_seconds: float = Field(
        10.0,
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class EmailSettings(BaseSettings):
    """Resend configuration for feedback notifications.

    Notifications are skipped unless both an API key and at least one
    recipient are configured.
    """

    resend_api_key: str | None = Field(
        None,
        validation_alias="RESEND_API_KEY",
        description="Resend API key",
    )
    resend_from: str = Field(
        "BizPlan AI <onboarding@resend.dev>",
        validation_alias="RESEND_FROM",
        description="Sender address for notifications",
    )
    resend_base_url: str = Field(
        "https://api.resend.com",
        validation_alias="RESEND_BASE_URL",
        description="Resend API base URL",
    )
    feedback_to_emails: str | None = Field(
        None,
        validation_alias=AliasChoices(
            "FEEDBACK_TO_EMAILS",
            "FEEDBACK_TO_EMAIL",
            "FEEDBACK_NOTIFICATION_EMAIL",
        ),
        description="Comma-separated list of feedback recipients",
    )
    timeout_seconds: float = Field(
        10.0,
        validation_alias="RESEND_TIMEOUT_SECONDS",
        description="Request timeout in seconds",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if required settings are missing.

    Environments:
    - development: Local development (DEBUG=true)
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    supabase: SupabaseSettings = Field(default_factory=_build_supabase_settings)
    email: EmailSettings = Field(default_factory=_build_email_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
