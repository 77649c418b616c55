"""Deterministic normalizer for candidate records.

Turns an arbitrary, loosely-typed payload (generative output, a legacy
export, a host document) into the most conformant candidate reachable
without guessing. The normalizer never validates and never raises on
malformed input: anything it cannot coerce confidently is removed so the
validator can report it and the repair loop can ask for a fix.

Pipeline, applied to a deep copy of the payload:
    1. Non-mapping payloads are treated as empty records.
    2. Keys the kind does not declare are stripped.
    3. ``schema_version`` is forced to the latest version.
    4. ``systemId``, ``slug`` and ``name`` are cleaned. A missing or
       unrecognized ``systemId`` takes the normalizer's default system,
       when one is configured.
    5. A kind-specific strategy coerces the remaining fields.

Example:
    >>> normalize("action", {"actionType": "One Action", "traits": ["attack ", " "]})
    {'actionType': 'one-action', 'traits': ['attack'], 'schema_version': 3, 'type': 'action'}
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from typing import Any

from lorewright.core.constants import LATEST_SCHEMA_VERSION
from lorewright.core.logging import get_logger
from lorewright.models.enums import EntityKind
from lorewright.pipeline.actor import coerce_actor
from lorewright.pipeline.coercion import (
    assign_enum,
    assign_integer,
    assign_nullable_string,
    assign_optional_string,
    assign_string,
    coerce_number,
    unwrap_value,
)
from lorewright.pipeline.lookups import (
    ACTION_TYPE_LOOKUP,
    ENTITY_TYPE_LOOKUP,
    ITEM_TYPE_LOOKUP,
    RARITY_LOOKUP,
    SYSTEM_ID_LOOKUP,
)
from lorewright.pipeline.traits import TraitAllowlist, clean_traits
from lorewright.schemas.registry import SchemaRegistry, get_registry


logger = get_logger(__name__)

Strategy = Callable[[dict[str, Any], TraitAllowlist | None], None]

_COIN_VALUES_IN_GP = {"pp": 10, "gp": 1, "sp": 0.1, "cp": 0.01}


# =============================================================================
# Shared Steps
# =============================================================================


def _assign_traits(value: dict[str, Any], traits: TraitAllowlist | None) -> None:
    if "traits" not in value:
        return
    cleaned = clean_traits(value["traits"], traits)
    if cleaned:
        value["traits"] = cleaned
    else:
        del value["traits"]


def _coerce_price(raw: Any) -> int | float | None:
    """Read a price as a plain number or as a coin purse like ``{"gp": 3, "sp": 5}``."""
    raw = unwrap_value(raw)
    if isinstance(raw, Mapping):
        coins = {coin: coerce_number(raw.get(coin)) for coin in _COIN_VALUES_IN_GP}
        if not any(amount is not None for amount in coins.values()):
            return None
        total = sum((coins[coin] or 0) * rate for coin, rate in _COIN_VALUES_IN_GP.items())
        return coerce_number(round(total, 2))
    return coerce_number(raw)


def _assign_common(value: dict[str, Any], system_id: str | None = None) -> None:
    value["schema_version"] = LATEST_SCHEMA_VERSION
    assign_enum(value, "systemId", SYSTEM_ID_LOOKUP)
    if system_id is not None and "systemId" not in value:
        value["systemId"] = system_id
    assign_string(value, "slug")
    assign_string(value, "name")


# =============================================================================
# Kind Strategies
# =============================================================================


def coerce_action(value: dict[str, Any], traits: TraitAllowlist | None = None) -> None:
    """Normalize an action record in place."""
    value["type"] = "action"
    assign_enum(value, "actionType", ACTION_TYPE_LOOKUP)
    _assign_traits(value, traits)
    assign_optional_string(value, "requirements", allow_empty=True)
    assign_string(value, "description")
    assign_optional_string(value, "img", allow_empty=True)
    assign_enum(value, "rarity", RARITY_LOOKUP)
    assign_optional_string(value, "source", allow_empty=True)


def coerce_item(value: dict[str, Any], traits: TraitAllowlist | None = None) -> None:
    """Normalize an item record in place."""
    value["type"] = "item"
    assign_enum(value, "itemType", ITEM_TYPE_LOOKUP)
    assign_enum(value, "rarity", RARITY_LOOKUP)
    if "level" in value:
        value["level"] = unwrap_value(value["level"])
    assign_integer(value, "level")
    if "price" in value:
        price = _coerce_price(value["price"])
        if price is None:
            del value["price"]
        else:
            value["price"] = price
    _assign_traits(value, traits)
    assign_optional_string(value, "description", allow_empty=True)
    assign_optional_string(value, "img", allow_empty=True)
    assign_optional_string(value, "source", allow_empty=True)


def coerce_catalog_entry(value: dict[str, Any], traits: TraitAllowlist | None = None) -> None:
    """Normalize a catalog index entry in place."""
    if "id" in value and isinstance(value["id"], int) and not isinstance(value["id"], bool):
        value["id"] = str(value["id"])
    assign_string(value, "id")
    assign_enum(value, "entityType", ENTITY_TYPE_LOOKUP)
    assign_optional_string(value, "img", allow_empty=True)
    assign_integer(value, "sort")
    assign_nullable_string(value, "folder")


STRATEGIES: Mapping[EntityKind, Strategy] = {
    EntityKind.ACTION: coerce_action,
    EntityKind.ITEM: coerce_item,
    EntityKind.ACTOR: coerce_actor,
    EntityKind.CATALOG_ENTRY: coerce_catalog_entry,
}


# =============================================================================
# Normalizer
# =============================================================================


class Normalizer:
    """Kind-dispatching normalizer bound to a registry and a trait allowlist.

    Attributes:
        registry: Source of each kind's declared top-level keys.
        traits: Allowlist applied to every trait array, or None.
        system_id: Game system filled in when a record has none, or None
            to leave the schema default to the validator.
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        traits: TraitAllowlist | None = None,
        strategies: Mapping[EntityKind, Strategy] | None = None,
        system_id: str | None = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.traits = traits
        self.system_id = SYSTEM_ID_LOOKUP.resolve(system_id) if system_id is not None else None
        self._strategies = dict(strategies or STRATEGIES)

    def __call__(self, kind: str | EntityKind, payload: Any) -> dict[str, Any]:
        return self.normalize(kind, payload)

    def normalize(self, kind: str | EntityKind, payload: Any) -> dict[str, Any]:
        """Normalize a payload into a candidate record of ``kind``.

        Args:
            kind: Entity kind tag.
            payload: Anything; non-mappings are treated as empty records.

        Returns:
            A new dict. The payload is never mutated.

        Raises:
            SchemaError: If the kind has no registered schema.
        """
        resolved = self.registry.resolve(kind)
        allowed = self.registry.property_set(resolved)

        value: dict[str, Any] = {}
        if isinstance(payload, Mapping):
            value = {
                key: copy.deepcopy(entry)
                for key, entry in payload.items()
                if key in allowed
            }
            stripped = len(payload) - len(value)
            if stripped:
                logger.debug("Stripped undeclared keys", kind=resolved.value, count=stripped)
        else:
            logger.debug(
                "Non-mapping payload treated as empty",
                kind=resolved.value,
                payload_type=type(payload).__name__,
            )

        _assign_common(value, self.system_id)
        self._strategies[resolved](value, self.traits)
        return value


def normalize(
    kind: str | EntityKind,
    payload: Any,
    *,
    traits: TraitAllowlist | None = None,
    registry: SchemaRegistry | None = None,
    system_id: str | None = None,
) -> dict[str, Any]:
    """Normalize a payload with a throwaway Normalizer.

    See ``Normalizer.normalize``.
    """
    return Normalizer(registry=registry, traits=traits, system_id=system_id).normalize(kind, payload)


__all__ = [
    "Strategy",
    "STRATEGIES",
    "Normalizer",
    "normalize",
    "coerce_action",
    "coerce_item",
    "coerce_catalog_entry",
    "coerce_actor",
]
