"""Pydantic V2 record schemas and enumerations for lorewright.

Submodules:
    enums: Enumerated vocabularies (EntityKind, Rarity, ActorSize, ...).
    records: Declarative record models, one per entity kind.
"""

from __future__ import annotations

from lorewright.models.enums import (
    ActionExecution,
    ActorActionCost,
    ActorCategory,
    ActorSize,
    EntityKind,
    ItemCategory,
    Rarity,
    RecordType,
    SpellcastingCategory,
    StrikeType,
    SystemId,
    normalize_enum_key,
)
from lorewright.models.records import (
    AbilityScores,
    ActionRecord,
    ActorAction,
    ActorRecord,
    Attributes,
    CatalogEntryRecord,
    HitPoints,
    InventoryEntry,
    ItemRecord,
    RecordModel,
    SpellcastingEntry,
    Strike,
    StrikeDamage,
)


__all__ = [
    # Enumerations
    "ActionExecution",
    "ActorActionCost",
    "ActorCategory",
    "ActorSize",
    "EntityKind",
    "ItemCategory",
    "Rarity",
    "RecordType",
    "SpellcastingCategory",
    "StrikeType",
    "SystemId",
    "normalize_enum_key",
    # Records
    "AbilityScores",
    "ActionRecord",
    "ActorAction",
    "ActorRecord",
    "Attributes",
    "CatalogEntryRecord",
    "HitPoints",
    "InventoryEntry",
    "ItemRecord",
    "RecordModel",
    "SpellcastingEntry",
    "Strike",
    "StrikeDamage",
]
