"""Custom exception hierarchy for lorewright.

All exceptions inherit from LorewrightError, enabling unified error handling
at the application boundary while preserving domain-specific context.

Structural invalidity of a candidate record is NOT an exception: validators
return a ValidationResult and the repair orchestrator retries locally. The
exceptions below are the terminal outcomes that surface to callers.

Example:
    >>> from lorewright.core.exceptions import MigrationGapError
    >>> raise MigrationGapError("No step", kind="action", from_version=2)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from lorewright.pipeline.diagnostics import AttemptDiagnostic
    from lorewright.pipeline.orchestrator import RepairHandle


class LorewrightError(Exception):
    """Base exception for all lorewright errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigurationError(LorewrightError):
    """Raised when application configuration is invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


# =============================================================================
# Schema & Migration Exceptions
# =============================================================================


class SchemaError(LorewrightError):
    """Raised when an entity kind has no registered schema."""

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if kind:
            combined_details["kind"] = kind
        super().__init__(message, details=combined_details)


class MigrationError(LorewrightError):
    """Base exception for schema version migration failures.

    Migration failures are terminal: no partially migrated record is
    ever returned.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        from_version: int | None = None,
        to_version: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize migration error with version context.

        Args:
            message: Human-readable error description.
            kind: Entity kind being migrated.
            from_version: Version the migration started from.
            to_version: Version the migration was heading to.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if kind:
            combined_details["kind"] = kind
        if from_version is not None:
            combined_details["from_version"] = from_version
        if to_version is not None:
            combined_details["to_version"] = to_version
        self.kind = kind
        self.from_version = from_version
        self.to_version = to_version
        super().__init__(message, details=combined_details)


class MigrationGapError(MigrationError):
    """Raised when no step is registered for a required version transition."""


class BackwardMigrationError(MigrationError):
    """Raised when a migration to an older schema version is requested."""


# =============================================================================
# Repair Pipeline Exceptions
# =============================================================================


class RepairExhaustedError(LorewrightError):
    """Raised when every repair attempt produced an invalid record.

    Carries the full per-attempt diagnostics and a resumable repair handle
    so a caller can offer a retry without rebuilding the original request.

    Attributes:
        kind: Entity kind that failed validation.
        diagnostics: Ordered per-attempt diagnostics.
        original_payload: Deep copy of the payload the orchestration began with.
        last_payload: Last normalized snapshot that failed validation.
        repair_handle: Bound handle that re-runs the orchestration.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        diagnostics: list[AttemptDiagnostic],
        original_payload: Any,
        last_payload: Any,
        repair_handle: RepairHandle,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        combined_details["kind"] = kind
        combined_details["attempts"] = len(diagnostics)
        self.kind = kind
        self.diagnostics = diagnostics
        self.original_payload = original_payload
        self.last_payload = last_payload
        self.repair_handle = repair_handle
        super().__init__(message, details=combined_details)

    async def repair(self, **overrides: Any) -> dict[str, Any]:
        """Re-run the orchestration through the attached repair handle.

        Args:
            **overrides: Optional ``payload``, ``max_attempts``, ``backend``
                or ``prompt_builder`` replacing the captured values.

        Returns:
            The conformant record produced by the resumed orchestration.

        Raises:
            RepairExhaustedError: If the resumed orchestration is exhausted too.
        """
        return await self.repair_handle.invoke(**overrides)


# =============================================================================
# AI Control Exceptions
# =============================================================================


class AIControlError(LorewrightError):
    """Base exception for repair backend errors.

    The orchestrator never wraps or retries these; they propagate to the
    caller unchanged.
    """

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AI control error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AIConnectionError(AIControlError):
    """Raised when connection to the AI service fails."""


class AIResponseError(AIControlError):
    """Raised when an AI response cannot be turned into a candidate record."""


class AIRateLimitError(AIControlError):
    """Raised when AI API rate limits are exceeded."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        super().__init__(message, model=model, provider=provider, details=combined_details)


__all__ = [
    "LorewrightError",
    "ConfigurationError",
    "SchemaError",
    "MigrationError",
    "MigrationGapError",
    "BackwardMigrationError",
    "RepairExhaustedError",
    "AIControlError",
    "AIConnectionError",
    "AIResponseError",
    "AIRateLimitError",
]
