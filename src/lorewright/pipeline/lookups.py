"""Alias tables mapping loose spellings onto canonical enum tokens.

Keys are folded with ``normalize_enum_key`` before lookup, so "One Action",
"one_action" and "ONE-ACTION" all hit the same entry.
"""

from __future__ import annotations

from lorewright.models.enums import (
    ActionExecution,
    ActorActionCost,
    ActorCategory,
    ActorSize,
    ItemCategory,
    Rarity,
    RecordType,
    SpellcastingCategory,
    StrikeType,
    SystemId,
)
from lorewright.pipeline.coercion import EnumLookup


_ACTION_COUNT_ALIASES = {
    "one": "one-action",
    "1": "one-action",
    "single-action": "one-action",
    "two": "two-actions",
    "2": "two-actions",
    "two-action": "two-actions",
    "three": "three-actions",
    "3": "three-actions",
    "three-action": "three-actions",
    "free-action": "free",
}

_ITEM_ALIASES = {
    "shield": "armor",
    "gear": "equipment",
    "potion": "consumable",
    "scroll": "consumable",
}


SYSTEM_ID_LOOKUP = EnumLookup(
    SystemId,
    {"pathfinder": "pf2e", "pathfinder-2e": "pf2e", "starfinder": "sf2e", "starfinder-2e": "sf2e"},
)

RARITY_LOOKUP = EnumLookup(Rarity)

ACTION_TYPE_LOOKUP = EnumLookup(ActionExecution, _ACTION_COUNT_ALIASES)

ITEM_TYPE_LOOKUP = EnumLookup(ItemCategory, _ITEM_ALIASES)

ENTITY_TYPE_LOOKUP = EnumLookup(RecordType, {"npc": "actor", "creature": "actor", "equipment": "item"})

ACTOR_TYPE_LOOKUP = EnumLookup(
    ActorCategory,
    {
        "creature": "npc",
        "monster": "npc",
        "pc": "character",
        "player": "character",
        "player-character": "character",
        "companion": "familiar",
    },
)

SIZE_LOOKUP = EnumLookup(
    ActorSize,
    {
        "small": "sm",
        "s": "sm",
        "medium": "med",
        "m": "med",
        "large": "lg",
        "l": "lg",
        "gargantuan": "grg",
        "gar": "grg",
    },
)

ACTION_COST_LOOKUP = EnumLookup(
    ActorActionCost,
    {**_ACTION_COUNT_ALIASES, "0": "free", "none": "passive", "auto": "passive"},
)

STRIKE_TYPE_LOOKUP = EnumLookup(StrikeType, {"ranged-strike": "ranged", "melee-strike": "melee"})

CASTING_TYPE_LOOKUP = EnumLookup(
    SpellcastingCategory,
    {
        "prepared-spells": "prepared",
        "spontaneous-spells": "spontaneous",
        "innate-spells": "innate",
        "focus-spells": "focus",
        "rituals": "ritual",
    },
)

INVENTORY_TYPE_LOOKUP = EnumLookup(ItemCategory, _ITEM_ALIASES)


__all__ = [
    "SYSTEM_ID_LOOKUP",
    "RARITY_LOOKUP",
    "ACTION_TYPE_LOOKUP",
    "ITEM_TYPE_LOOKUP",
    "ENTITY_TYPE_LOOKUP",
    "ACTOR_TYPE_LOOKUP",
    "SIZE_LOOKUP",
    "ACTION_COST_LOOKUP",
    "STRIKE_TYPE_LOOKUP",
    "CASTING_TYPE_LOOKUP",
    "INVENTORY_TYPE_LOOKUP",
]
