"""Tests for actor reconstruction."""

from __future__ import annotations

from typing import Any

from lorewright.pipeline.actor import (
    build_abilities,
    build_attributes,
    build_hit_points,
    build_inventory,
    build_saves,
    build_skills,
    build_speed,
    build_spellcasting,
    build_spells,
    build_strikes,
)
from lorewright.pipeline.normalizer import normalize
from lorewright.pipeline.traits import StaticTraitAllowlist
from lorewright.schemas import validator_of


def _minimal_actor(**extra: Any) -> dict[str, Any]:
    return {
        "slug": "goblin-warrior",
        "name": "Goblin Warrior",
        "actorType": "Creature",
        "rarity": "Common",
        "level": "-1",
        "size": "Small",
        **extra,
    }


class TestActorDefaults:
    """Tests for synthesized actor blocks."""

    def test_missing_attributes(self) -> None:
        """Test an actor without attributes gets minimal defaults and validates."""
        payload = _minimal_actor(level=1)

        result = normalize("actor", payload)

        assert result["attributes"]["hp"] == {"value": 1, "max": 1, "temp": 0}
        assert result["attributes"]["ac"]["value"] == 10
        assert result["attributes"]["perception"]["value"] == 0
        assert result["attributes"]["speed"]["value"] == 25
        assert result["abilities"] == {"str": 0, "dex": 0, "con": 0, "int": 0, "wis": 0, "cha": 0}
        assert validator_of("actor")(result).valid

    def test_enum_aliases(self) -> None:
        """Test actor enums resolve from loose spellings."""
        result = normalize("actor", _minimal_actor(size={"value": "Medium"}, actorType="PC"))

        assert result["size"] == "med"
        assert result["actorType"] == "character"
        assert result["rarity"] == "common"

    def test_negative_level_kept_for_validator(self) -> None:
        """Test a parsed but out-of-range level is left for the validator."""
        result = normalize("actor", _minimal_actor())

        assert result["level"] == -1
        errors = validator_of("actor")(result).errors
        assert [issue.path for issue in errors] == ["level"]

    def test_languages_deduped(self) -> None:
        """Test languages are cleaned case-insensitively."""
        result = normalize("actor", _minimal_actor(languages="Common, common, Goblin"))

        assert result["languages"] == ["Common", "Goblin"]

    def test_null_spellcasting_removed(self) -> None:
        """Test null optional arrays fall back to their defaults."""
        result = normalize("actor", _minimal_actor(spellcasting=None, inventory=None))

        assert "spellcasting" not in result
        assert "inventory" not in result


class TestAttributes:
    """Tests for attribute block builders."""

    def test_hit_points_scalar(self) -> None:
        """Test a bare number becomes value and max."""
        assert build_hit_points(42) == {"value": 42, "max": 42, "temp": 0}

    def test_hit_points_mirror(self) -> None:
        """Test max mirrors value and vice versa."""
        assert build_hit_points({"max": "30"})["value"] == 30
        assert build_hit_points({"value": {"value": 12}})["max"] == 12

    def test_hit_points_unparseable(self) -> None:
        """Test an unparseable hit point value is omitted."""
        block = build_hit_points({"value": "lots"})

        assert "value" not in block
        assert "max" not in block

    def test_saves_aliases_and_defaults(self) -> None:
        """Test save aliases and the +0 default."""
        saves = build_saves({"fort": "+9", "ref": {"value": 6}})

        assert saves == {
            "fortitude": {"value": 9},
            "reflex": {"value": 6},
            "will": {"value": 0},
        }

    def test_speed_other_from_mapping(self) -> None:
        """Test keyed movement types become other entries."""
        speed = build_speed({"land": 25, "other": {"Fly": 40, "swim": {"value": "20"}}})

        assert speed["value"] == 25
        assert speed["other"] == [{"type": "fly", "value": 40}, {"type": "swim", "value": 20}]

    def test_resistances(self) -> None:
        """Test resistance entries keep double-versus lists."""
        attributes = build_attributes(
            {"resistances": [{"type": "physical", "value": 5, "double_vs": ["adamantine"]}, {"type": "fire"}]}
        )

        assert attributes["resistances"] == [
            {"type": "physical", "value": 5, "doubleVs": ["adamantine"]},
        ]

    def test_immunities_from_strings(self) -> None:
        """Test immunities may be plain strings."""
        attributes = build_attributes({"immunities": ["fire", "poison"]})

        assert attributes["immunities"] == [{"type": "fire"}, {"type": "poison"}]


class TestAbilitiesAndSkills:
    """Tests for ability and skill builders."""

    def test_abilities_full_names(self) -> None:
        """Test long ability names and signed strings."""
        abilities = build_abilities({"Strength": "+4", "dex": {"mod": 2}})

        assert abilities["str"] == 4
        assert abilities["dex"] == 2
        assert abilities["con"] == 0

    def test_abilities_from_list(self) -> None:
        """Test abilities given as a list of entries."""
        abilities = build_abilities([{"key": "STR", "mod": 3}, {"name": "wis", "value": -1}])

        assert abilities["str"] == 3
        assert abilities["wis"] == -1

    def test_unparseable_ability_omitted(self) -> None:
        """Test a present but unparseable ability is left for the validator."""
        assert "cha" not in build_abilities({"cha": "charming"})

    def test_skills_from_strings(self) -> None:
        """Test ``Name +N`` strings."""
        assert build_skills(["Athletics +7", "Lore (Underworld) +5", "nonsense"]) == [
            {"slug": "athletics", "modifier": 7},
            {"slug": "lore-underworld", "modifier": 5},
        ]

    def test_skills_from_mapping(self) -> None:
        """Test keyed skill maps."""
        assert build_skills({"Stealth": "+6", "Deception": {"mod": 4}}) == [
            {"slug": "stealth", "modifier": 6},
            {"slug": "deception", "modifier": 4},
        ]


class TestStrikes:
    """Tests for strike reconstruction."""

    def test_damage_string(self) -> None:
        """Test a damage string is split into formula and type."""
        strikes = build_strikes(
            [{"name": "Dogslicer", "type": "Melee", "attackBonus": "+7", "damage": "1d6 + 2 Slashing"}]
        )

        assert strikes == [
            {
                "name": "Dogslicer",
                "type": "melee",
                "attackBonus": 7,
                "damage": [{"formula": "1d6+2", "damageType": "slashing"}],
            }
        ]

    def test_strike_without_damage_dropped(self) -> None:
        """Test strikes that cannot carry damage are dropped."""
        strikes = build_strikes(
            [
                {"name": "Fist", "type": "melee", "attackBonus": 3},
                {"type": "melee", "damage": "1d4"},
                {"name": "Bite", "type": "melee", "attackBonus": 5, "damage": {"formula": "1d8"}},
            ]
        )

        assert [strike["name"] for strike in strikes] == ["Bite"]

    def test_strike_traits_filtered(self) -> None:
        """Test strike traits go through the allowlist."""
        strikes = build_strikes(
            [{"name": "Bow", "type": "ranged", "attackBonus": 5, "damage": "1d8", "traits": ["Deadly", "bogus"]}],
            StaticTraitAllowlist({"deadly"}),
        )

        assert strikes[0]["traits"] == ["deadly"]

    def test_actor_with_dropped_strike_validates(self) -> None:
        """Test dropping a malformed strike leaves a valid actor."""
        payload = _minimal_actor(level=1, strikes=[{"name": "Fist"}])

        result = normalize("actor", payload)

        assert result["strikes"] == []
        assert validator_of("actor")(result).valid


class TestSpellcasting:
    """Tests for spellcasting reconstruction."""

    def test_spells_keyed_by_level(self) -> None:
        """Test spells grouped by rank."""
        spells = build_spells({"cantrips": ["Shield"], "3rd": ["Fireball"], "Rank 2": [{"name": "Blur"}]})

        assert spells == [
            {"level": 0, "name": "Shield"},
            {"level": 3, "name": "Fireball"},
            {"level": 2, "name": "Blur"},
        ]

    def test_spell_without_level_dropped(self) -> None:
        """Test spells without a level are dropped."""
        assert build_spells([{"name": "Mystery"}, {"name": "Heal", "level": 1}]) == [
            {"level": 1, "name": "Heal"},
        ]

    def test_entry_requires_casting_type(self) -> None:
        """Test entries without a resolvable casting type are dropped."""
        entries = build_spellcasting(
            [
                {"name": "Arcane Prepared Spells", "tradition": "Arcane", "castingType": "Prepared", "dc": 20},
                {"name": "Odd Magic", "castingType": "whenever"},
            ]
        )

        assert entries == [
            {
                "name": "Arcane Prepared Spells",
                "tradition": "arcane",
                "castingType": "prepared",
                "saveDC": 20,
                "spells": [],
            }
        ]


class TestInventory:
    """Tests for inventory reconstruction."""

    def test_inventory_entries(self) -> None:
        """Test plain names and aliased item types."""
        inventory = build_inventory(["Rope", {"name": "Healing Potion", "type": "potion", "qty": "2"}, {}])

        assert inventory == [
            {"name": "Rope"},
            {"name": "Healing Potion", "itemType": "consumable", "quantity": 2},
        ]
