"""Enumeration types for lorewright records.

Every enumerated field of a canonical record holds one of these values:
lowercase, hyphen-separated tokens. The normalizer resolves loose spellings
("One Action", "Medium", "PF2E") onto them through alias tables.
"""

from __future__ import annotations

import re
from enum import StrEnum


_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_enum_key(value: str) -> str:
    """Fold a loose spelling into an enum lookup key.

    Lowercases, collapses every run of non-alphanumerics into a single
    hyphen and trims leading/trailing hyphens.

    Example:
        >>> normalize_enum_key("  One Action ")
        'one-action'
        >>> normalize_enum_key("Two_Actions!")
        'two-actions'
    """
    return _NON_ALNUM.sub("-", value.strip().lower()).strip("-")


class EntityKind(StrEnum):
    """The closed set of record kinds the pipeline understands."""

    ACTION = "action"
    ITEM = "item"
    ACTOR = "actor"
    CATALOG_ENTRY = "catalog-entry"

    @property
    def schema_name(self) -> str:
        """Get the schema title used in descriptors (e.g. 'CatalogEntry')."""
        return "".join(part.capitalize() for part in self.value.split("-"))

    @classmethod
    def parse(cls, value: str | EntityKind) -> EntityKind:
        """Resolve a kind tag, accepting legacy spellings like 'packEntry'.

        Raises:
            ValueError: If the value names no known kind.
        """
        if isinstance(value, cls):
            return value
        key = normalize_enum_key(str(value))
        for member in cls:
            if key == member.value or key == member.value.replace("-", ""):
                return member
        if key in _KIND_ALIASES:
            return cls(_KIND_ALIASES[key])
        raise ValueError(f"Unknown entity kind: {value!r}")


class RecordType(StrEnum):
    """Kinds a catalog entry may point at (and the ``type`` tag of records)."""

    ACTION = "action"
    ITEM = "item"
    ACTOR = "actor"


class SystemId(StrEnum):
    """Supported game systems."""

    PF2E = "pf2e"
    SF2E = "sf2e"


class ActionExecution(StrEnum):
    """Action costs for standalone actions."""

    ONE_ACTION = "one-action"
    TWO_ACTIONS = "two-actions"
    THREE_ACTIONS = "three-actions"
    FREE = "free"
    REACTION = "reaction"


class ActorActionCost(StrEnum):
    """Action costs for actor abilities, which may also be passive."""

    ONE_ACTION = "one-action"
    TWO_ACTIONS = "two-actions"
    THREE_ACTIONS = "three-actions"
    FREE = "free"
    REACTION = "reaction"
    PASSIVE = "passive"


class ItemCategory(StrEnum):
    """Item categories."""

    ARMOR = "armor"
    WEAPON = "weapon"
    EQUIPMENT = "equipment"
    CONSUMABLE = "consumable"
    FEAT = "feat"
    SPELL = "spell"
    WAND = "wand"
    STAFF = "staff"
    OTHER = "other"


class ActorCategory(StrEnum):
    """Actor categories."""

    CHARACTER = "character"
    NPC = "npc"
    HAZARD = "hazard"
    VEHICLE = "vehicle"
    FAMILIAR = "familiar"


class ActorSize(StrEnum):
    """Creature sizes, using the short sheet tokens."""

    TINY = "tiny"
    SMALL = "sm"
    MEDIUM = "med"
    LARGE = "lg"
    HUGE = "huge"
    GARGANTUAN = "grg"

    @property
    def display_name(self) -> str:
        """Get the full size name (e.g. 'Medium' for MEDIUM)."""
        return self.name.capitalize()


class Rarity(StrEnum):
    """Content rarity."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    UNIQUE = "unique"


class StrikeType(StrEnum):
    """Strike delivery."""

    MELEE = "melee"
    RANGED = "ranged"


class SpellcastingCategory(StrEnum):
    """How a spellcasting entry casts its spells."""

    PREPARED = "prepared"
    SPONTANEOUS = "spontaneous"
    INNATE = "innate"
    FOCUS = "focus"
    RITUAL = "ritual"


_KIND_ALIASES = {
    "pack-entry": "catalog-entry",
    "packentry": "catalog-entry",
    "catalog": "catalog-entry",
    "creature": "actor",
    "npc": "actor",
}


__all__ = [
    "normalize_enum_key",
    "EntityKind",
    "RecordType",
    "SystemId",
    "ActionExecution",
    "ActorActionCost",
    "ItemCategory",
    "ActorCategory",
    "ActorSize",
    "Rarity",
    "StrikeType",
    "SpellcastingCategory",
]
