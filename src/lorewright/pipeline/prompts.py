"""Repair prompts handed to the repair backend."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from lorewright.models.enums import EntityKind
from lorewright.pipeline.diagnostics import AttemptDiagnostic
from lorewright.schemas.registry import ValidationIssue


# =============================================================================
# Prompt Templates
# =============================================================================


REPAIR_HEADER = "Repair the following {kind} JSON so that it matches the {schema_name} schema."

ERRORS_SECTION = "Validation errors:\n{errors}"

NO_ERRORS_SECTION = "Validation failed without detailed errors."

CURRENT_JSON_LABEL = "Current JSON:"

SERIALIZER_SYSTEM_PROMPT = (
    "You are a JSON serializer. Always provide valid JSON for the {schema_name} "
    "tool that satisfies the supplied schema."
)


# =============================================================================
# Prompt Context
# =============================================================================


@dataclass(frozen=True)
class PromptContext:
    """Everything a prompt builder may draw on for one repair request.

    Attributes:
        kind: Entity kind being repaired.
        attempt: Attempt number that just failed (1-based).
        max_attempts: Attempt limit of the orchestration.
        errors: Errors of the failed attempt.
        payload: Candidate that entered the failed attempt.
        normalized: Normalized candidate that failed validation.
        diagnostics: All failed attempts so far, oldest first.
    """

    kind: EntityKind
    attempt: int
    max_attempts: int
    errors: tuple[ValidationIssue, ...]
    payload: Any = field(repr=False)
    normalized: Any = field(repr=False)
    diagnostics: tuple[AttemptDiagnostic, ...] = ()

    @property
    def attempts_remaining(self) -> int:
        return self.max_attempts - self.attempt


PromptBuilder = Callable[[PromptContext], str]


def build_repair_prompt(context: PromptContext) -> str:
    """Build the default repair prompt.

    Sections are separated by blank lines: a header naming the kind, the
    error list (one ``- path: message`` line each), then the indented
    normalized JSON.

    Example:
        >>> print(build_repair_prompt(context))  # doctest: +SKIP
        Repair the following action JSON so that it matches the Action schema.

        Validation errors:
        - description: Field required

        Current JSON:

        {
          "schema_version": 3,
          ...
    """
    header = REPAIR_HEADER.format(kind=context.kind.value, schema_name=context.kind.schema_name)
    formatted = "\n".join(f"- {issue.format()}" for issue in context.errors)
    diagnostics = ERRORS_SECTION.format(errors=formatted) if formatted else NO_ERRORS_SECTION
    body = json.dumps(context.normalized, indent=2, ensure_ascii=False, default=str)
    return "\n\n".join([header, diagnostics, CURRENT_JSON_LABEL, body])


__all__ = [
    "REPAIR_HEADER",
    "ERRORS_SECTION",
    "NO_ERRORS_SECTION",
    "CURRENT_JSON_LABEL",
    "SERIALIZER_SYSTEM_PROMPT",
    "PromptContext",
    "PromptBuilder",
    "build_repair_prompt",
]
