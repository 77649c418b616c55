"""Schema registry: one declared shape and one compiled validator per kind.

The registry is built once (at startup or on first use) from the pydantic
record models and is read-only afterwards. Validators are pure apart from
one documented side effect: on success, declared defaults for omitted
optional fields are written back into the validated mapping.

Example:
    >>> from lorewright.schemas import get_registry
    >>> registry = get_registry()
    >>> result = registry.validate("action", {"slug": "x"})
    >>> result.valid
    False
    >>> result.errors[0].keyword
    'missing'
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from lorewright.core.exceptions import SchemaError
from lorewright.core.logging import get_logger
from lorewright.models.enums import EntityKind
from lorewright.models.records import (
    ActionRecord,
    ActorRecord,
    CatalogEntryRecord,
    ItemRecord,
    RecordModel,
)


logger = get_logger(__name__)

ROOT_PATH = "(root)"

DEFAULT_MODELS: Mapping[EntityKind, type[RecordModel]] = {
    EntityKind.ACTION: ActionRecord,
    EntityKind.ITEM: ItemRecord,
    EntityKind.ACTOR: ActorRecord,
    EntityKind.CATALOG_ENTRY: CatalogEntryRecord,
}


# =============================================================================
# Validation Results
# =============================================================================


@dataclass(frozen=True)
class ValidationIssue:
    """A single structural error.

    Attributes:
        path: Dotted location of the offending value, or ``(root)``.
        message: Human-readable description.
        keyword: Machine-readable error kind (``missing``, ``enum``, ...).
    """

    path: str
    message: str
    keyword: str

    @classmethod
    def from_pydantic(cls, error: Mapping[str, Any]) -> ValidationIssue:
        """Build an issue from one entry of ``pydantic.ValidationError.errors()``."""
        loc = [str(part) for part in error.get("loc", ())]
        return cls(
            path=".".join(loc) if loc else ROOT_PATH,
            message=str(error.get("msg", "is invalid")),
            keyword=str(error.get("type", "invalid")),
        )

    def format(self) -> str:
        """Render as ``path: message``."""
        return f"{self.path}: {self.message}"

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message, "keyword": self.keyword}


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating one candidate."""

    valid: bool
    errors: tuple[ValidationIssue, ...] = ()

    def __bool__(self) -> bool:
        return self.valid

    def formatted_errors(self) -> list[str]:
        return [issue.format() for issue in self.errors]


@dataclass(frozen=True)
class SchemaDescriptor:
    """What a repair backend receives alongside its prompt.

    Attributes:
        name: Schema title (``Action``, ``Actor``, ...).
        schema: JSON schema of the kind.
        description: Short description for tool/function declarations.
    """

    name: str
    schema: dict[str, Any] = field(repr=False)
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "schema": self.schema, "description": self.description}


# =============================================================================
# Validator
# =============================================================================


def apply_defaults(target: Any, validated: Any) -> None:
    """Copy values present in ``validated`` but absent from ``target``.

    Recurses into nested mappings and into lists of mappings of equal
    length. Keys already present in ``target`` are never overwritten, so
    explicit nulls stay null.
    """
    if isinstance(target, dict) and isinstance(validated, dict):
        for key, value in validated.items():
            if key not in target:
                target[key] = copy.deepcopy(value)
            else:
                apply_defaults(target[key], value)
    elif isinstance(target, list) and isinstance(validated, list):
        if len(target) == len(validated):
            for target_item, validated_item in zip(target, validated):
                apply_defaults(target_item, validated_item)


class Validator:
    """Compiled structural validator for one entity kind.

    The candidate is checked in its JSON encoding, so enum fields accept
    their canonical strings while strict typing still rejects loose values
    such as ``"3"`` for an integer.
    """

    def __init__(self, kind: EntityKind, model: type[RecordModel]) -> None:
        self.kind = kind
        self.model = model

    def __call__(self, candidate: Any) -> ValidationResult:
        try:
            encoded = json.dumps(candidate, allow_nan=False)
        except (TypeError, ValueError) as exc:
            return ValidationResult(
                valid=False,
                errors=(
                    ValidationIssue(
                        path=ROOT_PATH,
                        message=f"must be JSON-serializable ({exc})",
                        keyword="json_type",
                    ),
                ),
            )

        try:
            record = self.model.model_validate_json(encoded)
        except PydanticValidationError as exc:
            errors = tuple(
                ValidationIssue.from_pydantic(error)
                for error in exc.errors(include_url=False)
            )
            return ValidationResult(valid=False, errors=errors)

        if isinstance(candidate, dict):
            apply_defaults(candidate, record.model_dump(mode="json", by_alias=True))
        return ValidationResult(valid=True)

    def __repr__(self) -> str:
        return f"Validator(kind={self.kind.value!r}, model={self.model.__name__})"


# =============================================================================
# Registry
# =============================================================================


class SchemaRegistry:
    """Per-kind declared shapes and compiled validators.

    Attributes:
        kinds: Entity kinds with a registered schema.
    """

    def __init__(self, models: Mapping[EntityKind, type[RecordModel]] | None = None) -> None:
        """Compile validators and JSON schemas for every registered kind.

        Args:
            models: Record model per kind; defaults to the built-in schemas.
        """
        source = dict(models or DEFAULT_MODELS)
        self._models: dict[EntityKind, type[RecordModel]] = {}
        self._validators: dict[EntityKind, Validator] = {}
        self._schemas: dict[EntityKind, dict[str, Any]] = {}
        self._properties: dict[EntityKind, frozenset[str]] = {}

        for kind, model in source.items():
            kind = EntityKind.parse(kind)
            self._models[kind] = model
            self._validators[kind] = Validator(kind, model)
            self._schemas[kind] = model.model_json_schema(by_alias=True)
            self._properties[kind] = frozenset(
                info.alias or name for name, info in model.model_fields.items()
            )

        logger.debug("Schema registry compiled", kinds=[k.value for k in self._models])

    @property
    def kinds(self) -> tuple[EntityKind, ...]:
        return tuple(self._models)

    def resolve(self, kind: str | EntityKind) -> EntityKind:
        """Resolve a kind tag to a registered EntityKind.

        Raises:
            SchemaError: If the kind is unknown or not registered.
        """
        try:
            resolved = EntityKind.parse(kind)
        except ValueError as exc:
            raise SchemaError(f"Unknown entity kind: {kind!r}", kind=str(kind)) from exc
        if resolved not in self._models:
            raise SchemaError(f"No schema registered for {resolved.value}", kind=resolved.value)
        return resolved

    def model_of(self, kind: str | EntityKind) -> type[RecordModel]:
        return self._models[self.resolve(kind)]

    def schema_of(self, kind: str | EntityKind) -> dict[str, Any]:
        """Get the declared shape of a kind as a JSON schema (a fresh copy)."""
        return copy.deepcopy(self._schemas[self.resolve(kind)])

    def property_set(self, kind: str | EntityKind) -> frozenset[str]:
        """Get the top-level wire keys declared for a kind."""
        return self._properties[self.resolve(kind)]

    def validator_of(self, kind: str | EntityKind) -> Validator:
        return self._validators[self.resolve(kind)]

    def validate(self, kind: str | EntityKind, candidate: Any) -> ValidationResult:
        return self.validator_of(kind)(candidate)

    def schema_descriptor(self, kind: str | EntityKind) -> SchemaDescriptor:
        """Build the descriptor handed to a repair backend."""
        resolved = self.resolve(kind)
        return SchemaDescriptor(
            name=resolved.schema_name,
            schema=self.schema_of(resolved),
            description=f"Schema for {resolved.value} entries",
        )


@lru_cache(maxsize=1)
def get_registry() -> SchemaRegistry:
    """Get the process-wide registry of built-in schemas."""
    return SchemaRegistry()


def schema_of(kind: str | EntityKind) -> dict[str, Any]:
    """Shorthand for ``get_registry().schema_of(kind)``."""
    return get_registry().schema_of(kind)


def validator_of(kind: str | EntityKind) -> Validator:
    """Shorthand for ``get_registry().validator_of(kind)``."""
    return get_registry().validator_of(kind)


def property_set(kind: str | EntityKind) -> frozenset[str]:
    """Shorthand for ``get_registry().property_set(kind)``."""
    return get_registry().property_set(kind)


def schema_descriptor(kind: str | EntityKind) -> SchemaDescriptor:
    """Shorthand for ``get_registry().schema_descriptor(kind)``."""
    return get_registry().schema_descriptor(kind)


__all__ = [
    "ROOT_PATH",
    "DEFAULT_MODELS",
    "ValidationIssue",
    "ValidationResult",
    "SchemaDescriptor",
    "Validator",
    "SchemaRegistry",
    "apply_defaults",
    "get_registry",
    "schema_of",
    "validator_of",
    "property_set",
    "schema_descriptor",
]
