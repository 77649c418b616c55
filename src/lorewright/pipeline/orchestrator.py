"""Validation and repair orchestration.

``ensure_valid`` drives a candidate through normalize then validate, and on
failure asks a repair backend for a new candidate, up to a bounded number
of attempts:

    attempt 1: normalize(payload) -> validate -> ok? return
               record diagnostic; no backend or last attempt? stop
               prompt = builder(context); payload = await backend(prompt)
    attempt 2: normalize(payload) -> validate -> ...

The backend call is the only suspension point. Its failures are neither
retried nor recorded; they propagate to the caller unchanged. When every
attempt fails, ``RepairExhaustedError`` is raised with the per-attempt
diagnostics and a ``RepairHandle`` that can resume the orchestration later.

Example:
    >>> record = await ensure_valid("action", payload, backend=backend)  # doctest: +SKIP
"""

from __future__ import annotations

import copy
import inspect
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from lorewright.core.config import Settings, get_settings
from lorewright.core.constants import MIN_MAX_ATTEMPTS
from lorewright.core.exceptions import RepairExhaustedError
from lorewright.core.logging import get_logger
from lorewright.models.enums import EntityKind
from lorewright.pipeline.diagnostics import (
    AttemptDiagnostic,
    DiagnosticsSink,
    build_failure_report,
    report_failure,
)
from lorewright.pipeline.normalizer import Normalizer
from lorewright.pipeline.prompts import PromptBuilder, PromptContext, build_repair_prompt
from lorewright.pipeline.traits import TraitAllowlist
from lorewright.schemas.registry import SchemaDescriptor, SchemaRegistry, get_registry


logger = get_logger(__name__)

_KEEP: Any = object()


# =============================================================================
# Repair Backend
# =============================================================================


@runtime_checkable
class RepairBackend(Protocol):
    """Anything that can turn a repair prompt into a new candidate."""

    async def generate(self, prompt: str, schema: SchemaDescriptor) -> Any:
        ...


BackendCallable = Callable[[str, SchemaDescriptor], Awaitable[Any]]
BackendLike = RepairBackend | BackendCallable


async def call_backend(backend: BackendLike, prompt: str, schema: SchemaDescriptor) -> Any:
    """Invoke a backend object or a plain async callable."""
    generate = getattr(backend, "generate", None)
    if generate is not None and callable(generate):
        result = generate(prompt, schema)
    elif callable(backend):
        result = backend(prompt, schema)
    else:
        raise TypeError(f"Unsupported repair backend: {type(backend).__name__}")
    if inspect.isawaitable(result):
        result = await result
    return result


def _descriptor(
    schema: SchemaDescriptor | Mapping[str, Any] | None,
    registry: SchemaRegistry,
    kind: EntityKind,
) -> SchemaDescriptor:
    if schema is None:
        return registry.schema_descriptor(kind)
    if isinstance(schema, SchemaDescriptor):
        return schema
    return SchemaDescriptor(
        name=str(schema.get("name", kind.schema_name)),
        schema=dict(schema.get("schema", {})),
        description=str(schema.get("description", "")),
    )


# =============================================================================
# Repair Handle
# =============================================================================


@dataclass(frozen=True)
class RepairHandle:
    """Resumable orchestration state captured on exhaustion.

    The handle is a plain value: it holds the last normalized candidate, the
    diagnostics that led to it and the collaborators of the original call.
    ``invoke`` starts a fresh orchestration from that snapshot (or from an
    override) with its own attempt budget and diagnostics.

    Attributes:
        kind: Entity kind being repaired.
        last_payload: Last normalized candidate that failed validation.
        last_diagnostics: Diagnostics of the exhausted orchestration.
        max_attempts: Attempt limit reused when not overridden.
        backend: Repair backend reused when not overridden.
        prompt_builder: Prompt builder reused when not overridden.
        settings: Settings the original call ran under.
    """

    kind: EntityKind
    last_payload: Any = field(repr=False)
    last_diagnostics: tuple[AttemptDiagnostic, ...] = field(default=(), repr=False)
    max_attempts: int = MIN_MAX_ATTEMPTS
    backend: BackendLike | None = None
    prompt_builder: PromptBuilder | None = None
    schema: SchemaDescriptor | None = field(default=None, repr=False)
    traits: TraitAllowlist | None = field(default=None, repr=False)
    sink: DiagnosticsSink | None = field(default=None, repr=False)
    registry: SchemaRegistry | None = field(default=None, repr=False)
    settings: Settings | None = field(default=None, repr=False)

    async def invoke(
        self,
        payload: Any = _KEEP,
        max_attempts: int | None = None,
        backend: BackendLike | None = _KEEP,
        prompt_builder: PromptBuilder | None = _KEEP,
    ) -> dict[str, Any]:
        """Re-run the orchestration.

        Args:
            payload: Candidate to start from; defaults to ``last_payload``.
            max_attempts: Attempt limit; defaults to the captured limit.
            backend: Repair backend; defaults to the captured backend.
            prompt_builder: Prompt builder; defaults to the captured one.

        Returns:
            The conformant record.

        Raises:
            RepairExhaustedError: If the resumed orchestration is exhausted.
        """
        return await ensure_valid(
            self.kind,
            copy.deepcopy(self.last_payload) if payload is _KEEP else payload,
            max_attempts=self.max_attempts if max_attempts is None else max_attempts,
            backend=self.backend if backend is _KEEP else backend,
            prompt_builder=self.prompt_builder if prompt_builder is _KEEP else prompt_builder,
            schema=self.schema,
            traits=self.traits,
            sink=self.sink,
            registry=self.registry,
            settings=self.settings,
        )


# =============================================================================
# Orchestration
# =============================================================================


async def ensure_valid(
    kind: str | EntityKind,
    payload: Any,
    *,
    max_attempts: int | None = None,
    backend: BackendLike | None = None,
    prompt_builder: PromptBuilder | None = None,
    schema: SchemaDescriptor | Mapping[str, Any] | None = None,
    traits: TraitAllowlist | None = None,
    sink: DiagnosticsSink | None = None,
    registry: SchemaRegistry | None = None,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Produce a conformant record of ``kind`` from ``payload``.

    Args:
        kind: Entity kind tag.
        payload: Candidate record in any shape.
        max_attempts: Attempt limit; defaults to the configured limit and is
            never lower than 1.
        backend: Repair backend. Without one, exactly one attempt is made.
        prompt_builder: Custom prompt builder; defaults to
            ``build_repair_prompt``.
        schema: Schema descriptor sent to the backend; defaults to the
            registry's descriptor for the kind.
        traits: Trait allowlist applied during normalization.
        sink: Receiver of the failure report on exhaustion.
        registry: Schema registry; defaults to the built-in one.
        settings: Settings supplying the default attempt limit, the default
            game system and the diagnostics toggles; defaults to
            ``get_settings()``.

    Returns:
        The conformant record, with declared defaults filled in.

    Raises:
        SchemaError: If the kind is unknown.
        RepairExhaustedError: If every attempt failed validation.
        Exception: Whatever the backend raises, unchanged.
    """
    registry = registry or get_registry()
    resolved = registry.resolve(kind)
    settings = settings or get_settings()
    limit = settings.pipeline.max_attempts if max_attempts is None else max_attempts
    limit = max(MIN_MAX_ATTEMPTS, limit)
    descriptor = _descriptor(schema, registry, resolved)
    normalizer = Normalizer(
        registry=registry,
        traits=traits,
        system_id=settings.pipeline.system_id,
    )
    validator = registry.validator_of(resolved)
    build_prompt = prompt_builder or build_repair_prompt

    original_payload = copy.deepcopy(payload)
    attempt_payload = copy.deepcopy(payload)
    last_normalized: dict[str, Any] = {}
    diagnostics: list[AttemptDiagnostic] = []

    for attempt in range(1, limit + 1):
        normalized = normalizer.normalize(resolved, attempt_payload)
        candidate = copy.deepcopy(normalized)
        result = validator(candidate)
        if result.valid:
            logger.info("Record validated", kind=resolved.value, attempt=attempt)
            return candidate

        diagnostic = AttemptDiagnostic(
            attempt=attempt,
            errors=result.errors,
            payload=copy.deepcopy(attempt_payload),
            normalized=copy.deepcopy(normalized),
        )
        diagnostics.append(diagnostic)
        last_normalized = normalized
        logger.info(
            "Validation attempt failed",
            kind=resolved.value,
            attempt=attempt,
            max_attempts=limit,
            error_count=len(result.errors),
        )

        if backend is None or attempt == limit:
            break

        context = PromptContext(
            kind=resolved,
            attempt=attempt,
            max_attempts=limit,
            errors=result.errors,
            payload=copy.deepcopy(attempt_payload),
            normalized=copy.deepcopy(normalized),
            diagnostics=tuple(diagnostics),
        )
        prompt = build_prompt(context)
        logger.debug("Requesting repair", kind=resolved.value, attempt=attempt)
        attempt_payload = await call_backend(backend, prompt, descriptor)

    if sink is not None and settings.diagnostics.enabled:
        report = build_failure_report(
            resolved.value,
            diagnostics,
            last_normalized,
            include_invalid_json=settings.diagnostics.include_invalid_json,
            include_errors=settings.diagnostics.include_errors,
        )
        report_failure(sink, report)

    handle = RepairHandle(
        kind=resolved,
        last_payload=copy.deepcopy(last_normalized),
        last_diagnostics=tuple(diagnostics),
        max_attempts=limit,
        backend=backend,
        prompt_builder=prompt_builder,
        schema=descriptor,
        traits=traits,
        sink=sink,
        registry=registry,
        settings=settings,
    )
    logger.warning("Repair attempts exhausted", kind=resolved.value, attempts=len(diagnostics))
    raise RepairExhaustedError(
        f"Failed to validate {resolved.value} payload after {len(diagnostics)} attempt(s)",
        kind=resolved.value,
        diagnostics=diagnostics,
        original_payload=original_payload,
        last_payload=copy.deepcopy(last_normalized),
        repair_handle=handle,
    )


__all__ = [
    "RepairBackend",
    "BackendCallable",
    "BackendLike",
    "call_backend",
    "RepairHandle",
    "ensure_valid",
]
