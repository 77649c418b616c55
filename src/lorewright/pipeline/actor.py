"""Deep reconstruction of actor records.

Generative output and host documents describe the same stat block in many
shapes: a skill list may arrive as ``[{"slug": ..., "modifier": ...}]``, as
``{"Athletics": "+7"}`` or as ``["Athletics +7"]``; a hit point block may be
``42``, ``{"value": 42}`` or ``{"value": 42, "max": 42, "temp": 0}``. Each
builder below accepts those shapes and emits the single canonical one.

Rules shared by every builder:
    - A structurally required block that is absent is synthesized with the
      minimal defaults from ``lorewright.core.constants``.
    - A value that is present but cannot be coerced is omitted, leaving the
      validator to report it.
    - List entries that cannot reach a minimally valid shape (no name, a
      strike without damage, ...) are dropped without raising.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from typing import Any

from lorewright.core.constants import (
    ABILITY_KEYS,
    DEFAULT_ABILITY_MODIFIER,
    DEFAULT_ARMOR_CLASS,
    DEFAULT_HP,
    DEFAULT_PERCEPTION,
    DEFAULT_SAVE,
    DEFAULT_SPEED,
    SAVE_KEYS,
)
from lorewright.models.enums import normalize_enum_key
from lorewright.pipeline.coercion import (
    assign_enum,
    assign_nullable_string,
    assign_optional_string,
    assign_string_list,
    coerce_integer,
    coerce_signed_integer,
    coerce_string,
    coerce_string_list,
    dedupe_casefold,
    iter_entries,
    pick,
    unwrap_value,
)
from lorewright.pipeline.lookups import (
    ACTION_COST_LOOKUP,
    ACTOR_TYPE_LOOKUP,
    CASTING_TYPE_LOOKUP,
    INVENTORY_TYPE_LOOKUP,
    RARITY_LOOKUP,
    SIZE_LOOKUP,
    STRIKE_TYPE_LOOKUP,
)
from lorewright.pipeline.traits import TraitAllowlist, clean_traits


# =============================================================================
# Aliases
# =============================================================================


ABILITY_ALIASES: dict[str, tuple[str, ...]] = {
    "str": ("str", "strength"),
    "dex": ("dex", "dexterity"),
    "con": ("con", "constitution"),
    "int": ("int", "intelligence"),
    "wis": ("wis", "wisdom"),
    "cha": ("cha", "charisma"),
}

SAVE_ALIASES: dict[str, tuple[str, ...]] = {
    "fortitude": ("fortitude", "fort"),
    "reflex": ("reflex", "ref"),
    "will": ("will",),
}

_SKILL_TEXT = re.compile(r"^(?P<name>.*?[^\s+\-−])\s*(?P<mod>[+\-−]?\d+)$")
_DAMAGE_TEXT = re.compile(r"^(?P<formula>[\dd+\-*/()\s]+?)\s+(?P<type>[a-z][a-z\s\-]*)$", re.IGNORECASE)
_CANTRIP_KEYS = frozenset({"cantrip", "cantrips", "0"})


# =============================================================================
# Small helpers
# =============================================================================


def _modifier(value: Any) -> int | None:
    """Read a signed modifier out of a scalar or a ``{"value"|"mod": x}`` block."""
    value = unwrap_value(value)
    if isinstance(value, Mapping):
        value = pick(value, "value", "mod", "modifier", "bonus")
    return coerce_signed_integer(value)


def _clean_list(value: Any) -> list[str]:
    return dedupe_casefold(coerce_string_list(unwrap_value(value)) or [])


def _set_optional_list(target: dict[str, Any], key: str, values: list[str]) -> None:
    if values:
        target[key] = values


def _nullable_text(target: dict[str, Any], key: str, value: Any) -> None:
    text = coerce_string(value)
    if text is not None:
        target[key] = text


def _build_list(
    raw: Any,
    builder: Callable[[Any], dict[str, Any] | None],
    *,
    key_field: str = "name",
) -> list[dict[str, Any]]:
    """Rebuild every entry of a list-or-mapping and drop the ones that fail."""
    built: list[dict[str, Any]] = []
    for entry in iter_entries(raw, key_field=key_field):
        result = builder(entry)
        if result is not None:
            built.append(result)
    return built


# =============================================================================
# Attributes
# =============================================================================


def build_hit_points(raw: Any) -> dict[str, Any]:
    """Rebuild the hit point block.

    A missing block becomes ``{"value": 1, "max": 1, "temp": 0}``. When only
    one of value/max is given the other mirrors it.
    """
    raw = unwrap_value(raw)
    if raw is None:
        return {"value": DEFAULT_HP, "max": DEFAULT_HP, "temp": 0}
    if not isinstance(raw, Mapping):
        raw = {"value": raw}

    value = coerce_integer(unwrap_value(pick(raw, "value", "current")))
    maximum = coerce_integer(unwrap_value(pick(raw, "max", "maximum")))
    if value is None:
        value = maximum
    if maximum is None:
        maximum = value

    block: dict[str, Any] = {}
    if value is not None:
        block["value"] = value
    if maximum is not None:
        block["max"] = maximum
    block["temp"] = coerce_integer(unwrap_value(raw.get("temp"))) or 0
    _nullable_text(block, "details", raw.get("details"))
    return block


def _build_valued(raw: Any, default: int) -> dict[str, Any]:
    """Rebuild a ``{value, details}`` block such as armor class or a save."""
    raw = unwrap_value(raw)
    if raw is None:
        return {"value": default}
    if not isinstance(raw, Mapping):
        raw = {"value": raw}
    block: dict[str, Any] = {}
    value = _modifier(pick(raw, "value", "mod", "modifier", "bonus"))
    if value is not None:
        block["value"] = value
    _nullable_text(block, "details", raw.get("details"))
    return block


def build_armor_class(raw: Any) -> dict[str, Any]:
    return _build_valued(raw, DEFAULT_ARMOR_CLASS)


def build_perception(raw: Any) -> dict[str, Any]:
    block = _build_valued(raw, DEFAULT_PERCEPTION)
    raw = unwrap_value(raw)
    if isinstance(raw, Mapping):
        _set_optional_list(block, "senses", _clean_list(raw.get("senses")))
    return block


def _build_other_speed(entry: Any) -> dict[str, Any] | None:
    if not isinstance(entry, Mapping):
        return None
    speed_type = coerce_string(pick(entry, "type", "name", "label"))
    value = coerce_integer(unwrap_value(entry.get("value")))
    if speed_type is None or value is None:
        return None
    built: dict[str, Any] = {"type": speed_type.lower(), "value": value}
    _nullable_text(built, "details", entry.get("details"))
    return built


def build_speed(raw: Any) -> dict[str, Any]:
    """Rebuild the speed block; other movement types become ``other`` entries."""
    raw = unwrap_value(raw)
    if raw is None:
        return {"value": DEFAULT_SPEED}
    if not isinstance(raw, Mapping):
        raw = {"value": raw}
    block: dict[str, Any] = {}
    value = coerce_integer(unwrap_value(pick(raw, "value", "land", "walk")))
    if value is not None:
        block["value"] = value
    _nullable_text(block, "details", raw.get("details"))
    if "other" in raw:
        block["other"] = _build_list(raw.get("other"), _build_other_speed, key_field="type")
    return block


def build_saves(raw: Any) -> dict[str, Any]:
    """Rebuild fortitude/reflex/will; a missing save defaults to +0."""
    raw = unwrap_value(raw)
    if not isinstance(raw, Mapping):
        raw = {}
    saves: dict[str, Any] = {}
    for key in SAVE_KEYS:
        source = pick(raw, *SAVE_ALIASES[key])
        saves[key] = _build_valued(source, DEFAULT_SAVE)
    return saves


def _build_immunity(entry: Any) -> dict[str, Any] | None:
    if isinstance(entry, str):
        entry = {"type": entry}
    if not isinstance(entry, Mapping):
        return None
    immunity_type = coerce_string(pick(entry, "type", "name", "label"))
    if immunity_type is None:
        return None
    built: dict[str, Any] = {"type": immunity_type}
    _set_optional_list(built, "exceptions", _clean_list(entry.get("exceptions")))
    _nullable_text(built, "details", entry.get("details"))
    return built


def _build_weakness(entry: Any) -> dict[str, Any] | None:
    if not isinstance(entry, Mapping):
        return None
    weakness_type = coerce_string(pick(entry, "type", "name", "label"))
    value = coerce_integer(unwrap_value(entry.get("value")))
    if weakness_type is None or value is None:
        return None
    built: dict[str, Any] = {"type": weakness_type, "value": value}
    _set_optional_list(built, "exceptions", _clean_list(entry.get("exceptions")))
    _nullable_text(built, "details", entry.get("details"))
    return built


def _build_resistance(entry: Any) -> dict[str, Any] | None:
    built = _build_weakness(entry)
    if built is None:
        return None
    _set_optional_list(built, "doubleVs", _clean_list(pick(entry, "doubleVs", "double_vs")))
    return built


def build_attributes(raw: Any) -> dict[str, Any]:
    """Rebuild the whole attribute block; it is never absent afterwards."""
    raw = unwrap_value(raw)
    if not isinstance(raw, Mapping):
        raw = {}
    attributes: dict[str, Any] = {
        "hp": build_hit_points(raw.get("hp")),
        "ac": build_armor_class(raw.get("ac")),
        "perception": build_perception(raw.get("perception")),
        "speed": build_speed(raw.get("speed")),
        "saves": build_saves(raw.get("saves")),
    }
    if "immunities" in raw:
        attributes["immunities"] = _build_list(raw["immunities"], _build_immunity, key_field="type")
    if "weaknesses" in raw:
        attributes["weaknesses"] = _build_list(raw["weaknesses"], _build_weakness, key_field="type")
    if "resistances" in raw:
        attributes["resistances"] = _build_list(raw["resistances"], _build_resistance, key_field="type")
    return attributes


# =============================================================================
# Abilities & Skills
# =============================================================================


def build_abilities(raw: Any) -> dict[str, Any]:
    """Rebuild the six ability modifiers from a mapping or a list of entries.

    Missing abilities default to +0; abilities present with an unparseable
    value are omitted.
    """
    raw = unwrap_value(raw)
    if isinstance(raw, (list, tuple)):
        merged: dict[str, Any] = {}
        for entry in raw:
            if isinstance(entry, Mapping):
                key = coerce_string(pick(entry, "key", "slug", "name", "ability"))
                if key is not None:
                    merged[key.lower()] = entry
        raw = merged
    if not isinstance(raw, Mapping):
        raw = {}
    folded = {str(key).lower(): value for key, value in raw.items()}

    abilities: dict[str, Any] = {}
    for key in ABILITY_KEYS:
        present = [alias for alias in ABILITY_ALIASES[key] if folded.get(alias) is not None]
        if not present:
            abilities[key] = DEFAULT_ABILITY_MODIFIER
            continue
        value = _modifier(folded[present[0]])
        if value is not None:
            abilities[key] = value
    return abilities


def _build_skill(entry: Any) -> dict[str, Any] | None:
    if isinstance(entry, str):
        match = _SKILL_TEXT.match(entry.strip())
        if match is None:
            return None
        entry = {"slug": match.group("name"), "modifier": match.group("mod")}
    if not isinstance(entry, Mapping):
        return None
    label = coerce_string(pick(entry, "slug", "name", "label"))
    if label is None:
        return None
    slug = normalize_enum_key(label)
    modifier = _modifier(pick(entry, "modifier", "mod", "value", "bonus", "totalModifier"))
    if not slug or modifier is None:
        return None
    built: dict[str, Any] = {"slug": slug, "modifier": modifier}
    _nullable_text(built, "details", entry.get("details"))
    return built


def build_skills(raw: Any) -> list[dict[str, Any]]:
    return _build_list(raw, _build_skill, key_field="slug")


# =============================================================================
# Strikes
# =============================================================================


def _build_damage(entry: Any) -> dict[str, Any] | None:
    if isinstance(entry, str):
        text = entry.strip()
        match = _DAMAGE_TEXT.match(text)
        if match is not None:
            entry = {"formula": match.group("formula"), "damageType": match.group("type")}
        else:
            entry = {"formula": text}
    if not isinstance(entry, Mapping):
        return None
    formula = coerce_string(pick(entry, "formula", "damage", "roll", "dice"))
    if formula is None:
        return None
    built: dict[str, Any] = {"formula": formula.replace(" ", "")}
    damage_type = coerce_string(pick(entry, "damageType", "damage_type", "type"))
    if damage_type is not None:
        built["damageType"] = damage_type.lower()
    _nullable_text(built, "notes", entry.get("notes"))
    return built


def make_strike_builder(traits: TraitAllowlist | None) -> Callable[[Any], dict[str, Any] | None]:
    """Bind the trait allowlist into a strike entry builder."""

    def build_strike(entry: Any) -> dict[str, Any] | None:
        if not isinstance(entry, Mapping):
            return None
        name = coerce_string(pick(entry, "name", "label"))
        if name is None:
            return None
        raw_damage = pick(entry, "damage", "damageRolls", "damage_rolls")
        if isinstance(raw_damage, str) or (isinstance(raw_damage, Mapping) and "formula" in raw_damage):
            raw_damage = [raw_damage]
        damage = _build_list(raw_damage, _build_damage, key_field="id")
        if not damage:
            return None

        strike: dict[str, Any] = {"name": name}
        strike_type = STRIKE_TYPE_LOOKUP.resolve(pick(entry, "type", "strikeType", "category"))
        if strike_type is not None:
            strike["type"] = strike_type
        attack_bonus = _modifier(pick(entry, "attackBonus", "attack_bonus", "attack", "bonus", "toHit"))
        if attack_bonus is not None:
            strike["attackBonus"] = attack_bonus
        _set_optional_list(strike, "traits", clean_traits(entry.get("traits"), traits))
        strike["damage"] = damage
        _set_optional_list(strike, "effects", _clean_list(pick(entry, "effects", "attackEffects")))
        _nullable_text(strike, "description", entry.get("description"))
        return strike

    return build_strike


def build_strikes(raw: Any, traits: TraitAllowlist | None = None) -> list[dict[str, Any]]:
    return _build_list(raw, make_strike_builder(traits))


# =============================================================================
# Actions
# =============================================================================


def make_action_builder(traits: TraitAllowlist | None) -> Callable[[Any], dict[str, Any] | None]:
    """Bind the trait allowlist into an actor action builder."""

    def build_action(entry: Any) -> dict[str, Any] | None:
        if not isinstance(entry, Mapping):
            return None
        name = coerce_string(pick(entry, "name", "label"))
        if name is None:
            return None
        action: dict[str, Any] = {"name": name}
        cost = ACTION_COST_LOOKUP.resolve(
            unwrap_value(pick(entry, "actionCost", "action_cost", "actions", "cost", "actionType"))
        )
        if cost is not None:
            action["actionCost"] = cost
        description = coerce_string(pick(entry, "description", "text", "effect"))
        if description is not None:
            action["description"] = description
        _set_optional_list(action, "traits", clean_traits(entry.get("traits"), traits))
        for key in ("requirements", "trigger", "frequency"):
            _nullable_text(action, key, entry.get(key))
        return action

    return build_action


def build_actions(raw: Any, traits: TraitAllowlist | None = None) -> list[dict[str, Any]]:
    return _build_list(raw, make_action_builder(traits))


# =============================================================================
# Spellcasting
# =============================================================================


def _spell_level(key: Any) -> int | None:
    if isinstance(key, str) and normalize_enum_key(key) in _CANTRIP_KEYS:
        return 0
    if isinstance(key, str):
        key = re.sub(r"(?i)^(rank|level)\s*|(st|nd|rd|th)$", "", key.strip())
    return coerce_integer(key)


def _build_spell(entry: Any, level: int | None = None) -> dict[str, Any] | None:
    if isinstance(entry, str):
        entry = {"name": entry}
    if not isinstance(entry, Mapping):
        return None
    name = coerce_string(entry.get("name"))
    spell_level = coerce_integer(unwrap_value(pick(entry, "level", "rank")))
    if spell_level is None:
        spell_level = level
    if name is None or spell_level is None:
        return None
    spell: dict[str, Any] = {"level": spell_level, "name": name}
    _nullable_text(spell, "description", entry.get("description"))
    _nullable_text(spell, "tradition", entry.get("tradition"))
    return spell


def build_spells(raw: Any) -> list[dict[str, Any]]:
    """Rebuild a spell list, including ``{"3": ["fireball"], "cantrips": [...]}``."""
    raw = unwrap_value(raw)
    if isinstance(raw, Mapping) and raw and all(isinstance(v, (list, tuple)) for v in raw.values()):
        spells: list[dict[str, Any]] = []
        for key, entries in raw.items():
            level = _spell_level(key)
            for entry in entries:
                spell = _build_spell(entry, level)
                if spell is not None:
                    spells.append(spell)
        return spells
    return _build_list(raw, _build_spell)


def _build_spellcasting_entry(entry: Any) -> dict[str, Any] | None:
    if not isinstance(entry, Mapping):
        return None
    name = coerce_string(pick(entry, "name", "label"))
    casting_type = CASTING_TYPE_LOOKUP.resolve(
        unwrap_value(pick(entry, "castingType", "casting_type", "prepared", "type"))
    )
    if name is None or casting_type is None:
        return None
    built: dict[str, Any] = {"name": name}
    tradition = coerce_string(unwrap_value(entry.get("tradition")))
    if tradition is not None:
        built["tradition"] = tradition.lower()
    built["castingType"] = casting_type
    attack_bonus = _modifier(pick(entry, "attackBonus", "attack_bonus", "spellAttack", "attack"))
    if attack_bonus is not None:
        built["attackBonus"] = attack_bonus
    save_dc = coerce_integer(unwrap_value(pick(entry, "saveDC", "save_dc", "dc", "spellDC")))
    if save_dc is not None:
        built["saveDC"] = save_dc
    _nullable_text(built, "notes", entry.get("notes"))
    built["spells"] = build_spells(entry.get("spells"))
    return built


def build_spellcasting(raw: Any) -> list[dict[str, Any]]:
    return _build_list(raw, _build_spellcasting_entry)


# =============================================================================
# Inventory
# =============================================================================


def _build_inventory_entry(entry: Any) -> dict[str, Any] | None:
    if isinstance(entry, str):
        entry = {"name": entry}
    if not isinstance(entry, Mapping):
        return None
    name = coerce_string(entry.get("name"))
    if name is None:
        return None
    built: dict[str, Any] = {"name": name}
    item_type = INVENTORY_TYPE_LOOKUP.resolve(pick(entry, "itemType", "item_type", "type"))
    if item_type is not None:
        built["itemType"] = item_type
    quantity = coerce_integer(unwrap_value(pick(entry, "quantity", "qty")))
    if quantity is not None:
        built["quantity"] = quantity
    level = coerce_integer(unwrap_value(entry.get("level")))
    if level is not None:
        built["level"] = level
    slug = coerce_string(entry.get("slug"))
    if slug is not None:
        built["slug"] = slug
    _nullable_text(built, "description", entry.get("description"))
    _nullable_text(built, "img", entry.get("img"))
    return built


def build_inventory(raw: Any) -> list[dict[str, Any]]:
    return _build_list(raw, _build_inventory_entry)


# =============================================================================
# Actor
# =============================================================================


def coerce_actor(value: dict[str, Any], traits: TraitAllowlist | None = None) -> None:
    """Normalize an actor record in place."""
    value["type"] = "actor"
    assign_enum(value, "actorType", ACTOR_TYPE_LOOKUP)
    if "rarity" in value:
        value["rarity"] = unwrap_value(value["rarity"])
    assign_enum(value, "rarity", RARITY_LOOKUP)
    if "size" in value:
        value["size"] = unwrap_value(value["size"])
    assign_enum(value, "size", SIZE_LOOKUP)

    if "level" in value:
        level = coerce_integer(unwrap_value(value["level"]))
        if level is None:
            del value["level"]
        else:
            value["level"] = level

    if "traits" in value:
        cleaned = clean_traits(value["traits"], traits)
        if cleaned:
            value["traits"] = cleaned
        else:
            del value["traits"]
    if "languages" in value:
        value["languages"] = unwrap_value(value["languages"])
    assign_string_list(value, "languages", dedupe=True)

    assign_nullable_string(value, "alignment")
    assign_nullable_string(value, "description")
    assign_nullable_string(value, "recallKnowledge")
    assign_optional_string(value, "img", allow_empty=True)
    assign_optional_string(value, "source", allow_empty=True)

    value["attributes"] = build_attributes(value.get("attributes"))
    value["abilities"] = build_abilities(value.get("abilities"))
    if "skills" in value:
        value["skills"] = build_skills(value["skills"])
    if "strikes" in value:
        value["strikes"] = build_strikes(value["strikes"], traits)
    if "actions" in value:
        value["actions"] = build_actions(value["actions"], traits)
    for key, builder in (("spellcasting", build_spellcasting), ("inventory", build_inventory)):
        if key not in value:
            continue
        if value[key] is None:
            del value[key]
        else:
            value[key] = builder(value[key])


__all__ = [
    "build_hit_points",
    "build_armor_class",
    "build_perception",
    "build_speed",
    "build_saves",
    "build_attributes",
    "build_abilities",
    "build_skills",
    "build_strikes",
    "build_actions",
    "build_spells",
    "build_spellcasting",
    "build_inventory",
    "coerce_actor",
]
