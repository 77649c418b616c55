"""Schema registry: declared record shapes and compiled validators.

Exports:
    SchemaRegistry: Per-kind schemas, property sets and validators.
    Validator: Compiled validator for one kind.
    ValidationResult / ValidationIssue: Structural validation outcome.
    SchemaDescriptor: Schema payload handed to a repair backend.
    get_registry: Process-wide registry of the built-in schemas.
"""

from __future__ import annotations

from lorewright.schemas.registry import (
    ROOT_PATH,
    SchemaDescriptor,
    SchemaRegistry,
    ValidationIssue,
    ValidationResult,
    Validator,
    apply_defaults,
    get_registry,
    property_set,
    schema_descriptor,
    schema_of,
    validator_of,
)


__all__ = [
    "ROOT_PATH",
    "SchemaDescriptor",
    "SchemaRegistry",
    "ValidationIssue",
    "ValidationResult",
    "Validator",
    "apply_defaults",
    "get_registry",
    "property_set",
    "schema_descriptor",
    "schema_of",
    "validator_of",
]
