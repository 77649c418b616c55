"""Configuration management for lorewright.

Centralized configuration using pydantic-settings, supporting environment
variables, .env files and runtime overrides. API keys are held as SecretStr.

Example:
    >>> from lorewright.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.pipeline.max_attempts
    3

Environment Variables:
    LOREWRIGHT_OPENROUTER_API_KEY: API key for the repair backend
    LOREWRIGHT_MODEL: Model identifier used for repairs
    LOREWRIGHT_PIPELINE_MAX_ATTEMPTS: Default attempt limit per orchestration
    LOREWRIGHT_PIPELINE_SYSTEM_ID: Game system filled in when a record declares none
    LOREWRIGHT_DIAGNOSTICS_INCLUDE_INVALID_JSON: Record raw invalid payloads
    LOREWRIGHT_DIAGNOSTICS_INCLUDE_ERRORS: Record formatted validation errors
    LOREWRIGHT_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lorewright.core.constants import (
    DEFAULT_MAX_ATTEMPTS,
    MAX_MAX_ATTEMPTS,
    MIN_MAX_ATTEMPTS,
)
from lorewright.core.exceptions import ConfigurationError


class AIProviderSettings(BaseSettings):
    """Configuration for the OpenAI-compatible repair backend.

    Attributes:
        openrouter_api_key: API key sent to the provider.
        base_url: Provider endpoint.
        model: Model identifier used for repair requests.
        temperature: Sampling temperature.
        top_p: Nucleus sampling parameter.
        seed: Optional deterministic sampling seed.
        max_retries: Transport-level retry attempts inside the backend.
        timeout_seconds: API request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOREWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openrouter_api_key: SecretStr | None = Field(
        default=None,
        description="OpenRouter API key",
    )
    base_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="OpenAI-compatible API endpoint",
    )
    model: str = Field(
        default="openai/gpt-4.1-mini",
        description="Model used for repair requests",
    )
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    top_p: float = Field(default=1.0, gt=0.0, le=1.0)
    seed: int | None = Field(default=None, description="Optional sampling seed")
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Transport retry attempts inside the backend adapter",
    )
    timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        le=300,
        description="API request timeout",
    )


class PipelineSettings(BaseSettings):
    """Configuration for the validate-normalize-repair pipeline.

    Attributes:
        max_attempts: Default attempt limit for an orchestration.
        system_id: Game system filled in during normalization when a record
            declares none (or an unrecognized one).
    """

    model_config = SettingsConfigDict(
        env_prefix="LOREWRIGHT_PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        ge=MIN_MAX_ATTEMPTS,
        le=MAX_MAX_ATTEMPTS,
        description="Default normalize+validate attempts per orchestration",
    )
    system_id: Literal["pf2e", "sf2e"] = Field(
        default="pf2e",
        description="Default game system identifier",
    )


class DiagnosticsSettings(BaseSettings):
    """Configuration for the failure diagnostics sink.

    The two include toggles are independent and both off by default, so
    raw user content and error text are only recorded when opted into.

    Attributes:
        enabled: Report exhausted orchestrations to the sink at all.
        include_invalid_json: Include the last invalid payload.
        include_errors: Include the formatted error list.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOREWRIGHT_DIAGNOSTICS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=True)
    include_invalid_json: bool = Field(default=False)
    include_errors: bool = Field(default=False)

    @model_validator(mode="after")
    def validate_toggles(self) -> "DiagnosticsSettings":
        """Reject payload/error toggles on a disabled sink.

        Raises:
            ConfigurationError: If an include toggle is set while disabled.
        """
        if not self.enabled and (self.include_invalid_json or self.include_errors):
            raise ConfigurationError(
                "Diagnostics include toggles require diagnostics to be enabled",
                config_key="enabled",
            )
        return self


class Settings(BaseSettings):
    """Main application settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode (console logging).
        log_level: Application logging level.
        ai: Repair backend settings.
        pipeline: Orchestration settings.
        diagnostics: Diagnostics sink settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOREWRIGHT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="lorewright")
    debug: bool = Field(default=False)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    ai: AIProviderSettings = Field(default_factory=AIProviderSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    diagnostics: DiagnosticsSettings = Field(default_factory=DiagnosticsSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The application Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load application settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "AIProviderSettings",
    "PipelineSettings",
    "DiagnosticsSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
