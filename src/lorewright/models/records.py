"""Declarative record schemas for lorewright.

Each entity kind's shape is a pydantic V2 model: required and optional
fields, enumerations, nested object/array shapes and defaults are all
declared here and nowhere else. The schema registry compiles these into
per-kind validators and JSON schemas.

Wire names are camelCase (``actionType``, ``attackBonus``); models use
snake_case attributes with camelCase aliases. ``schema_version`` keeps its
snake_case wire name.

All models share the same configuration:
    - extra="forbid": unknown keys are structural errors.
    - strict=True: no silent coercion of "3" into 3; the normalizer owns
      coercion, the schema only checks.
    - use_enum_values=True: dumps carry plain enum strings.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lorewright.core.constants import DEFAULT_INVENTORY_QUANTITY, LATEST_SCHEMA_VERSION
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


# =============================================================================
# Shared Types
# =============================================================================


NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeInt = Annotated[int, Field(ge=0)]
SchemaVersion = Literal[3]


class RecordModel(BaseModel):
    """Base configuration for every record and sub-record schema."""

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=False,
    )


class BaseRecord(RecordModel):
    """Fields carried by every top-level record."""

    schema_version: SchemaVersion = Field(
        default=LATEST_SCHEMA_VERSION,
        alias="schema_version",
        description="Schema version; always the latest after normalization",
    )
    system_id: SystemId = Field(default=SystemId.PF2E, description="Game system")
    slug: NonEmptyStr = Field(description="Slug (uniqueness not enforced)")
    name: NonEmptyStr = Field(description="Display name")


# =============================================================================
# Action
# =============================================================================


class ActionRecord(BaseRecord):
    """A standalone action."""

    model_config = ConfigDict(title="Action")

    type: Literal["action"] = Field(alias="type")
    action_type: ActionExecution
    traits: list[NonEmptyStr] | None = Field(default_factory=list)
    requirements: str | None = ""
    description: NonEmptyStr
    img: str | None = None
    rarity: Rarity | None = Rarity.COMMON
    source: str | None = ""


# =============================================================================
# Item
# =============================================================================


class ItemRecord(BaseRecord):
    """An item: equipment, consumables, feats, spells and the like."""

    model_config = ConfigDict(title="Item")

    type: Literal["item"] = Field(alias="type")
    item_type: ItemCategory
    rarity: Rarity
    level: NonNegativeInt
    price: Annotated[float, Field(ge=0)] | None = 0
    traits: list[NonEmptyStr] | None = Field(default_factory=list)
    description: str | None = ""
    img: str | None = None
    source: str | None = ""


# =============================================================================
# Actor Sub-Records
# =============================================================================


class HitPoints(RecordModel):
    value: NonNegativeInt
    max: NonNegativeInt
    temp: int | None = 0
    details: str | None = None


class ArmorClass(RecordModel):
    value: int
    details: str | None = None


class Perception(RecordModel):
    value: int
    details: str | None = None
    senses: list[NonEmptyStr] | None = Field(default_factory=list)


class OtherSpeed(RecordModel):
    type: NonEmptyStr = Field(alias="type")
    value: NonNegativeInt
    details: str | None = None


class Speed(RecordModel):
    value: NonNegativeInt
    details: str | None = None
    other: list[OtherSpeed] | None = Field(default_factory=list)


class SavingThrow(RecordModel):
    value: int
    details: str | None = None


class SavingThrows(RecordModel):
    fortitude: SavingThrow
    reflex: SavingThrow
    will: SavingThrow


class Immunity(RecordModel):
    type: NonEmptyStr = Field(alias="type")
    exceptions: list[NonEmptyStr] | None = Field(default_factory=list)
    details: str | None = None


class Weakness(RecordModel):
    type: NonEmptyStr = Field(alias="type")
    value: NonNegativeInt
    exceptions: list[NonEmptyStr] | None = Field(default_factory=list)
    details: str | None = None


class Resistance(RecordModel):
    type: NonEmptyStr = Field(alias="type")
    value: NonNegativeInt
    exceptions: list[NonEmptyStr] | None = Field(default_factory=list)
    double_vs: list[NonEmptyStr] | None = Field(default_factory=list)
    details: str | None = None


class Attributes(RecordModel):
    """Defences and movement: the structurally required actor block."""

    hp: HitPoints
    ac: ArmorClass
    perception: Perception
    speed: Speed
    saves: SavingThrows
    immunities: list[Immunity] | None = Field(default_factory=list)
    weaknesses: list[Weakness] | None = Field(default_factory=list)
    resistances: list[Resistance] | None = Field(default_factory=list)


class AbilityScores(RecordModel):
    """The six fixed ability modifiers.

    Attribute names avoid shadowing builtins; wire keys are the usual
    three-letter abbreviations.
    """

    strength: int = Field(alias="str")
    dexterity: int = Field(alias="dex")
    constitution: int = Field(alias="con")
    intelligence: int = Field(alias="int")
    wisdom: int = Field(alias="wis")
    charisma: int = Field(alias="cha")


class Skill(RecordModel):
    slug: NonEmptyStr
    modifier: int
    details: str | None = None


class StrikeDamage(RecordModel):
    formula: NonEmptyStr
    damage_type: str | None = None
    notes: str | None = None


class Strike(RecordModel):
    """An attack; a strike always owns at least one damage component."""

    name: NonEmptyStr
    type: StrikeType = Field(alias="type")
    attack_bonus: int
    traits: list[NonEmptyStr] | None = Field(default_factory=list)
    damage: list[StrikeDamage] = Field(min_length=1)
    effects: list[NonEmptyStr] | None = Field(default_factory=list)
    description: str | None = None


class ActorAction(RecordModel):
    name: NonEmptyStr
    action_cost: ActorActionCost
    description: NonEmptyStr
    traits: list[NonEmptyStr] | None = Field(default_factory=list)
    requirements: str | None = None
    trigger: str | None = None
    frequency: str | None = None


class Spell(RecordModel):
    level: NonNegativeInt
    name: NonEmptyStr
    description: str | None = None
    tradition: str | None = None


class SpellcastingEntry(RecordModel):
    name: NonEmptyStr
    tradition: NonEmptyStr
    casting_type: SpellcastingCategory
    attack_bonus: int | None = None
    save_dc: int | None = Field(default=None, alias="saveDC")
    notes: str | None = None
    spells: list[Spell]


class InventoryEntry(RecordModel):
    name: NonEmptyStr
    item_type: ItemCategory | None = ItemCategory.EQUIPMENT
    quantity: Annotated[int, Field(ge=1)] = DEFAULT_INVENTORY_QUANTITY
    level: NonNegativeInt | None = 0
    slug: str | None = None
    description: str | None = None
    img: str | None = None


# =============================================================================
# Actor
# =============================================================================


class ActorRecord(BaseRecord):
    """A creature, character, hazard, vehicle or familiar stat block."""

    model_config = ConfigDict(title="Actor")

    type: Literal["actor"] = Field(alias="type")
    actor_type: ActorCategory
    rarity: Rarity
    level: NonNegativeInt
    size: ActorSize
    traits: list[NonEmptyStr] = Field(default_factory=list)
    alignment: str | None = None
    languages: list[NonEmptyStr] = Field(default_factory=list)
    attributes: Attributes
    abilities: AbilityScores
    skills: list[Skill] = Field(default_factory=list)
    strikes: list[Strike] = Field(default_factory=list)
    actions: list[ActorAction] = Field(default_factory=list)
    spellcasting: list[SpellcastingEntry] | None = Field(default_factory=list)
    inventory: list[InventoryEntry] | None = Field(default_factory=list)
    description: str | None = None
    recall_knowledge: str | None = None
    img: str | None = None
    source: str = ""


# =============================================================================
# Catalog Entry
# =============================================================================


class CatalogEntryRecord(RecordModel):
    """An index entry pointing at a record inside a content catalog."""

    model_config = ConfigDict(title="CatalogEntry")

    schema_version: SchemaVersion = Field(
        default=LATEST_SCHEMA_VERSION,
        alias="schema_version",
    )
    system_id: SystemId = SystemId.PF2E
    id: NonEmptyStr
    entity_type: RecordType
    name: NonEmptyStr
    slug: NonEmptyStr
    img: str | None = None
    sort: int | None = 0
    folder: str | None = None


__all__ = [
    "RecordModel",
    "BaseRecord",
    "ActionRecord",
    "ItemRecord",
    "HitPoints",
    "ArmorClass",
    "Perception",
    "OtherSpeed",
    "Speed",
    "SavingThrow",
    "SavingThrows",
    "Immunity",
    "Weakness",
    "Resistance",
    "Attributes",
    "AbilityScores",
    "Skill",
    "StrikeDamage",
    "Strike",
    "ActorAction",
    "Spell",
    "SpellcastingEntry",
    "InventoryEntry",
    "ActorRecord",
    "CatalogEntryRecord",
]
