"""lorewright - schema-validated game content records.

Turns loosely structured content (hand-entered records, legacy exports,
generative model output) into records that conform to a versioned schema,
repairing what cannot be coerced through an external repair backend.

PIPELINE:
- Migration upgrades records written under older schema versions
- Normalization coerces loose payloads without guessing
- Validation checks the declared schema of each entity kind
- Repair asks a backend for a new candidate, a bounded number of times

Example:
    >>> from lorewright import ContentPipeline
    >>> from lorewright.backends import OpenRouterRepairBackend
    >>>
    >>> pipeline = ContentPipeline(backend=OpenRouterRepairBackend.from_settings())
    >>> record = await pipeline.ingest("action", {"name": "Swipe", "actionType": "2"})

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 record schemas and enumerations.
    schemas: Schema registry and compiled validators.
    pipeline: Normalizer, migrations and the repair orchestrator.
    backends: Repair backend adapters.
"""

from __future__ import annotations

# Core
from lorewright.core.config import Settings, get_settings
from lorewright.core.exceptions import LorewrightError, RepairExhaustedError
from lorewright.core.logging import configure_logging, get_logger

# Models
from lorewright.models.enums import EntityKind

# Pipeline
from lorewright.pipeline import (
    BatchResult,
    ContentPipeline,
    RepairHandle,
    StaticTraitAllowlist,
    TraitAllowlist,
    detect_version,
    ensure_valid,
    migrate,
    normalize,
)

# Schemas
from lorewright.schemas import SchemaRegistry, get_registry, schema_of, validator_of


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "LorewrightError",
    "RepairExhaustedError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "EntityKind",
    # Schemas
    "SchemaRegistry",
    "get_registry",
    "schema_of",
    "validator_of",
    # Pipeline
    "normalize",
    "migrate",
    "detect_version",
    "ensure_valid",
    "RepairHandle",
    "TraitAllowlist",
    "StaticTraitAllowlist",
    "ContentPipeline",
    "BatchResult",
]
