"""Content pipeline facade.

``ContentPipeline`` bundles the collaborators of the pipeline (schema
registry, trait allowlist, repair backend, diagnostics sink) so callers
configure them once and then ingest records by kind:

    raw record -> upgrade (migrate if older) -> ensure_valid -> record

Example:
    >>> pipeline = ContentPipeline(backend=OpenRouterRepairBackend.from_settings())  # doctest: +SKIP
    >>> record = await pipeline.ingest("actor", raw)  # doctest: +SKIP
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from lorewright.core.config import Settings, get_settings
from lorewright.core.constants import LATEST_SCHEMA_VERSION
from lorewright.core.exceptions import RepairExhaustedError
from lorewright.core.logging import get_logger
from lorewright.models.enums import EntityKind
from lorewright.pipeline.diagnostics import DiagnosticsSink
from lorewright.pipeline.migrations import MIGRATIONS, MigrationRegistry, detect_version
from lorewright.pipeline.normalizer import Normalizer
from lorewright.pipeline.orchestrator import BackendLike, ensure_valid
from lorewright.pipeline.prompts import PromptBuilder
from lorewright.pipeline.traits import TraitAllowlist
from lorewright.schemas.registry import SchemaRegistry, ValidationResult, get_registry


logger = get_logger(__name__)


@dataclass
class BatchResult:
    """Outcome of ingesting several records of one kind.

    Attributes:
        records: Conformant records, in input order.
        failures: ``(index, error)`` pairs for exhausted inputs.
    """

    records: list[dict[str, Any]] = field(default_factory=list)
    failures: list[tuple[int, RepairExhaustedError]] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.records)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


class ContentPipeline:
    """Configured entry point for normalizing, validating and ingesting records."""

    def __init__(
        self,
        *,
        registry: SchemaRegistry | None = None,
        traits: TraitAllowlist | None = None,
        backend: BackendLike | None = None,
        sink: DiagnosticsSink | None = None,
        prompt_builder: PromptBuilder | None = None,
        migrations: MigrationRegistry | None = None,
        max_attempts: int | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            registry: Schema registry; defaults to the built-in schemas.
            traits: Trait allowlist applied to every normalization.
            backend: Repair backend used by ``ingest``.
            sink: Receiver of failure reports.
            prompt_builder: Custom repair prompt builder.
            migrations: Migration table; defaults to the built-in steps.
            max_attempts: Attempt limit; defaults to the configured limit.
            settings: Settings supplying the attempt limit, the default game
                system and the diagnostics toggles.
        """
        self.settings = settings or get_settings()
        self.registry = registry or get_registry()
        self.traits = traits
        self.backend = backend
        self.sink = sink
        self.prompt_builder = prompt_builder
        self.migrations = migrations or MIGRATIONS
        self.max_attempts = max_attempts or self.settings.pipeline.max_attempts
        self._normalizer = Normalizer(
            registry=self.registry,
            traits=traits,
            system_id=self.settings.pipeline.system_id,
        )

    def normalize(self, kind: str | EntityKind, payload: Any) -> dict[str, Any]:
        """Normalize without validating."""
        return self._normalizer.normalize(kind, payload)

    def validate(self, kind: str | EntityKind, payload: Any) -> ValidationResult:
        """Validate a candidate as-is; defaults are filled in on success."""
        return self.registry.validate(kind, payload)

    def upgrade(self, kind: str | EntityKind, payload: Any) -> Any:
        """Migrate a record written under an older schema version.

        Payloads already at the latest version (or without a readable
        version) are returned unchanged.

        Raises:
            BackwardMigrationError: If the payload claims a newer version.
            MigrationGapError: If a migration step is missing.
        """
        version = detect_version(payload)
        if version == LATEST_SCHEMA_VERSION:
            return payload
        logger.info(
            "Upgrading record",
            kind=str(kind),
            from_version=version,
            to_version=LATEST_SCHEMA_VERSION,
        )
        return self.migrations.migrate(kind, version, LATEST_SCHEMA_VERSION, payload)

    async def ingest(self, kind: str | EntityKind, payload: Any, **overrides: Any) -> dict[str, Any]:
        """Upgrade, then normalize, validate and repair a record.

        Args:
            kind: Entity kind tag.
            payload: Raw record.
            **overrides: Keyword arguments of ``ensure_valid`` replacing the
                pipeline's configured collaborators for this call.

        Raises:
            RepairExhaustedError: If every attempt failed validation.
            MigrationError: If the record cannot be upgraded.
        """
        resolved = self.registry.resolve(kind)
        options: dict[str, Any] = {
            "max_attempts": self.max_attempts,
            "backend": self.backend,
            "prompt_builder": self.prompt_builder,
            "traits": self.traits,
            "sink": self.sink,
            "registry": self.registry,
            "settings": self.settings,
        }
        options.update(overrides)
        return await ensure_valid(resolved, self.upgrade(resolved, payload), **options)

    async def ingest_many(self, kind: str | EntityKind, payloads: Iterable[Any]) -> BatchResult:
        """Ingest records one after another.

        Exhausted records are collected as failures and the batch goes on;
        any other error (a backend transport failure, a migration error)
        aborts the batch.
        """
        result = BatchResult()
        for index, payload in enumerate(payloads):
            try:
                result.records.append(await self.ingest(kind, payload))
            except RepairExhaustedError as exc:
                result.failures.append((index, exc))
        logger.info(
            "Batch ingested",
            kind=str(kind),
            succeeded=result.succeeded,
            failed=result.failed,
        )
        return result


__all__ = [
    "BatchResult",
    "ContentPipeline",
]
