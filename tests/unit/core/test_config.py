"""Tests for configuration management."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from lorewright.core.config import (
    AIProviderSettings,
    DiagnosticsSettings,
    PipelineSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from lorewright.core.exceptions import ConfigurationError


class TestAIProviderSettings:
    """Tests for AIProviderSettings configuration."""

    def test_defaults(self) -> None:
        """Test default provider configuration."""
        settings = AIProviderSettings()

        assert settings.openrouter_api_key is None
        assert settings.base_url == "https://openrouter.ai/api/v1"
        assert settings.model == "openai/gpt-4.1-mini"
        assert settings.temperature == 0.0
        assert settings.max_retries == 3

    def test_api_key_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test API key loading from environment variables."""
        monkeypatch.setenv("LOREWRIGHT_OPENROUTER_API_KEY", "test-key-123")

        settings = AIProviderSettings()

        assert settings.openrouter_api_key is not None
        assert settings.openrouter_api_key.get_secret_value() == "test-key-123"

    def test_api_key_is_masked(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that the API key does not leak through repr."""
        monkeypatch.setenv("LOREWRIGHT_OPENROUTER_API_KEY", "super-secret")

        settings = AIProviderSettings()

        assert "super-secret" not in repr(settings)

    def test_temperature_bounds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test temperature validation bounds."""
        monkeypatch.setenv("LOREWRIGHT_TEMPERATURE", "3.5")

        with pytest.raises(ValidationError):
            AIProviderSettings()


class TestPipelineSettings:
    """Tests for PipelineSettings configuration."""

    def test_defaults(self) -> None:
        """Test default pipeline configuration."""
        settings = PipelineSettings()

        assert settings.max_attempts == 3
        assert settings.system_id == "pf2e"

    def test_max_attempts_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the attempt limit can be overridden."""
        monkeypatch.setenv("LOREWRIGHT_PIPELINE_MAX_ATTEMPTS", "5")

        assert PipelineSettings().max_attempts == 5

    @pytest.mark.parametrize("value", ["0", "11"])
    def test_max_attempts_bounds(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        """Test the attempt limit is kept within 1..10."""
        monkeypatch.setenv("LOREWRIGHT_PIPELINE_MAX_ATTEMPTS", value)

        with pytest.raises(ValidationError):
            PipelineSettings()


class TestDiagnosticsSettings:
    """Tests for DiagnosticsSettings configuration."""

    def test_defaults_record_nothing_sensitive(self) -> None:
        """Test both include toggles are off by default."""
        settings = DiagnosticsSettings()

        assert settings.enabled is True
        assert settings.include_invalid_json is False
        assert settings.include_errors is False

    def test_toggles_independent(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test each include toggle can be set on its own."""
        monkeypatch.setenv("LOREWRIGHT_DIAGNOSTICS_INCLUDE_ERRORS", "true")

        settings = DiagnosticsSettings()

        assert settings.include_errors is True
        assert settings.include_invalid_json is False

    def test_toggle_on_disabled_sink_rejected(self) -> None:
        """Test include toggles require diagnostics to be enabled."""
        with pytest.raises(ConfigurationError) as exc_info:
            DiagnosticsSettings(enabled=False, include_invalid_json=True)

        assert exc_info.value.details["config_key"] == "enabled"


class TestSettings:
    """Tests for main Settings configuration."""

    def test_default_values(self) -> None:
        """Test default settings values."""
        settings = Settings()

        assert settings.app_name == "lorewright"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert settings.is_production is True

    def test_debug_mode(self, mock_env_vars: dict[str, str]) -> None:
        """Test debug mode setting."""
        settings = Settings()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.is_production is False

    def test_nested_sections_loaded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test nested sections read their own prefixes."""
        monkeypatch.setenv("LOREWRIGHT_MODEL", "anthropic/claude-sonnet-4")
        monkeypatch.setenv("LOREWRIGHT_PIPELINE_MAX_ATTEMPTS", "2")

        settings = Settings()

        assert settings.ai.model == "anthropic/claude-sonnet-4"
        assert settings.pipeline.max_attempts == 2


class TestGetSettings:
    """Tests for get_settings singleton function."""

    def test_returns_settings_instance(self) -> None:
        """Test that get_settings returns a Settings instance."""
        assert isinstance(get_settings(), Settings)

    def test_caching(self) -> None:
        """Test that settings are cached."""
        assert get_settings() is get_settings()

    def test_cache_clear(self) -> None:
        """Test that cache can be cleared."""
        settings1 = get_settings()
        clear_settings_cache()
        settings2 = get_settings()

        assert settings1 is not settings2

    def test_invalid_configuration_wrapped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that invalid values surface as ConfigurationError."""
        monkeypatch.setenv("LOREWRIGHT_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            get_settings()

    def test_diagnostics_error_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a diagnostics toggle error is raised as-is."""
        monkeypatch.setenv("LOREWRIGHT_DIAGNOSTICS_ENABLED", "false")
        monkeypatch.setenv("LOREWRIGHT_DIAGNOSTICS_INCLUDE_ERRORS", "true")

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert exc_info.value.details["config_key"] == "enabled"
