"""Validate, normalize and repair pipeline.

Exports:
    Normalization:
        Normalizer / normalize: Deterministic coercion of loose payloads.
        TraitAllowlist / StaticTraitAllowlist: Optional trait filtering.

    Migration:
        migrate / detect_version: Schema version upgrades.
        MigrationRegistry: Step table keyed by kind and version.

    Orchestration:
        ensure_valid: Bounded normalize, validate and repair loop.
        RepairHandle: Resumable state of an exhausted orchestration.
        PromptContext / build_repair_prompt: Repair prompt construction.
        AttemptDiagnostic / FailureReport: Diagnostics of failed attempts.

    Facade:
        ContentPipeline / BatchResult: Configured ingestion entry point.
"""

from __future__ import annotations

from lorewright.pipeline.diagnostics import (
    AttemptDiagnostic,
    DiagnosticsSink,
    FailureReport,
    LoggingDiagnosticsSink,
    MemoryDiagnosticsSink,
    build_failure_report,
)
from lorewright.pipeline.migrations import (
    MIGRATIONS,
    MigrationRegistry,
    detect_version,
    migrate,
)
from lorewright.pipeline.normalizer import Normalizer, normalize
from lorewright.pipeline.orchestrator import (
    BackendLike,
    RepairBackend,
    RepairHandle,
    ensure_valid,
)
from lorewright.pipeline.prompts import PromptBuilder, PromptContext, build_repair_prompt
from lorewright.pipeline.service import BatchResult, ContentPipeline
from lorewright.pipeline.traits import (
    NO_TRAIT_FILTER,
    StaticTraitAllowlist,
    TraitAllowlist,
    TraitProvider,
    clean_traits,
)


__all__ = [
    # Normalization
    "Normalizer",
    "normalize",
    "TraitAllowlist",
    "StaticTraitAllowlist",
    "TraitProvider",
    "NO_TRAIT_FILTER",
    "clean_traits",
    # Migration
    "MIGRATIONS",
    "MigrationRegistry",
    "migrate",
    "detect_version",
    # Orchestration
    "ensure_valid",
    "RepairBackend",
    "BackendLike",
    "RepairHandle",
    "PromptBuilder",
    "PromptContext",
    "build_repair_prompt",
    "AttemptDiagnostic",
    "FailureReport",
    "DiagnosticsSink",
    "LoggingDiagnosticsSink",
    "MemoryDiagnosticsSink",
    "build_failure_report",
    # Facade
    "ContentPipeline",
    "BatchResult",
]
