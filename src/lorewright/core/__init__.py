"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        LorewrightError: Base exception for all lorewright errors.
        ConfigurationError: Configuration-related errors.
        SchemaError: Unknown or unregistered entity kinds.
        MigrationError: Schema version migration failures.
        RepairExhaustedError: Every repair attempt failed validation.
        AIControlError: Repair backend failures.

    Configuration:
        Settings: Main application settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up application logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
"""

from __future__ import annotations

from lorewright.core.config import (
    AIProviderSettings,
    DiagnosticsSettings,
    PipelineSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from lorewright.core.exceptions import (
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIResponseError,
    BackwardMigrationError,
    ConfigurationError,
    LorewrightError,
    MigrationError,
    MigrationGapError,
    RepairExhaustedError,
    SchemaError,
)
from lorewright.core.logging import (
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)


__all__ = [
    # Configuration
    "AIProviderSettings",
    "DiagnosticsSettings",
    "PipelineSettings",
    "Settings",
    "clear_settings_cache",
    "get_settings",
    # Exceptions
    "AIConnectionError",
    "AIControlError",
    "AIRateLimitError",
    "AIResponseError",
    "BackwardMigrationError",
    "ConfigurationError",
    "LorewrightError",
    "MigrationError",
    "MigrationGapError",
    "RepairExhaustedError",
    "SchemaError",
    # Logging
    "bind_context",
    "clear_context",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
]
