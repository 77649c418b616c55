"""Tests for the kind-dispatching normalizer."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from lorewright.core.exceptions import SchemaError
from lorewright.pipeline.normalizer import Normalizer, normalize
from lorewright.pipeline.traits import StaticTraitAllowlist
from lorewright.schemas import validator_of


class TestNormalizeCommon:
    """Tests for steps shared by every kind."""

    def test_action_scenario(self) -> None:
        """Test a loose action normalizes into a valid record."""
        payload = {
            "slug": "strike",
            "name": "Strike",
            "actionType": "One Action",
            "traits": ["attack ", " "],
            "description": "x",
        }

        result = normalize("action", payload)

        assert result["actionType"] == "one-action"
        assert result["traits"] == ["attack"]
        assert validator_of("action")(result).valid

    def test_action_scenario_without_identity(self) -> None:
        """Test a loose action without slug or name is reported missing both."""
        payload = {"actionType": "One Action", "traits": ["attack ", " "], "description": "x"}

        result = normalize("action", payload)
        validation = validator_of("action")(copy.deepcopy(result))

        assert result == {
            "actionType": "one-action",
            "traits": ["attack"],
            "description": "x",
            "schema_version": 3,
            "type": "action",
        }
        assert not validation.valid
        assert sorted((issue.path, issue.keyword) for issue in validation.errors) == [
            ("name", "missing"),
            ("slug", "missing"),
        ]

    def test_input_not_mutated(self) -> None:
        """Test the payload is deep-copied."""
        payload = {"slug": " strike ", "traits": ["Attack"]}
        snapshot = copy.deepcopy(payload)

        normalize("action", payload)

        assert payload == snapshot

    def test_unknown_keys_stripped(self) -> None:
        """Test undeclared top-level keys are removed."""
        result = normalize("action", {"slug": "x", "homebrew": True, "flags": {}})

        assert "homebrew" not in result
        assert "flags" not in result

    def test_schema_version_forced(self) -> None:
        """Test the version is always stamped to the latest."""
        assert normalize("item", {"schema_version": 1})["schema_version"] == 3
        assert normalize("item", {})["schema_version"] == 3

    def test_system_id_resolved(self) -> None:
        """Test the system identifier is matched loosely."""
        assert normalize("action", {"systemId": "PF2E"})["systemId"] == "pf2e"
        assert normalize("action", {"systemId": "Starfinder"})["systemId"] == "sf2e"
        assert "systemId" not in normalize("action", {"systemId": "dnd5e"})

    def test_default_system_fills_missing(self) -> None:
        """Test a configured default system is used when none is declared."""
        normalizer = Normalizer(system_id="sf2e")

        assert normalizer.normalize("action", {})["systemId"] == "sf2e"
        assert normalizer.normalize("catalog-entry", {"systemId": "dnd5e"})["systemId"] == "sf2e"
        assert normalizer.normalize("item", {"systemId": "PF2E"})["systemId"] == "pf2e"

    def test_default_system_alias_resolved(self) -> None:
        """Test the default system itself accepts loose spellings."""
        assert normalize("actor", {}, system_id="Starfinder")["systemId"] == "sf2e"

    def test_slug_and_name_trimmed(self) -> None:
        """Test identity strings are trimmed and blanks removed."""
        result = normalize("action", {"slug": "  strike ", "name": "   "})

        assert result["slug"] == "strike"
        assert "name" not in result

    @pytest.mark.parametrize("payload", [None, "text", 42, ["a", "b"]])
    def test_non_mapping_payload(self, payload: Any) -> None:
        """Test non-mapping payloads are treated as empty records."""
        result = normalize("action", payload)

        assert result == {"schema_version": 3, "type": "action"}

    def test_unknown_kind(self) -> None:
        """Test an unknown kind raises SchemaError."""
        with pytest.raises(SchemaError):
            normalize("spell", {})

    def test_normalizer_callable(self) -> None:
        """Test a Normalizer instance can be called directly."""
        normalizer = Normalizer()

        assert normalizer("item", {}) == normalizer.normalize("item", {})


class TestNormalizeAction:
    """Tests for action coercion."""

    def test_optional_strings(self) -> None:
        """Test blank and null optional strings."""
        result = normalize(
            "action",
            {"img": "  ", "requirements": None, "source": " Core Rulebook ", "description": "  "},
        )

        assert result["img"] == ""
        assert "requirements" not in result
        assert result["source"] == "Core Rulebook"
        assert "description" not in result

    def test_requirements_default_after_validation(self) -> None:
        """Test a null requirement falls back to the schema default."""
        result = normalize(
            "action",
            {
                "slug": "grab",
                "name": "Grab",
                "actionType": "1",
                "description": "Grab a foe.",
                "requirements": None,
            },
        )

        assert validator_of("action")(result).valid
        assert result["requirements"] == ""

    def test_unresolvable_rarity_removed(self) -> None:
        """Test enum values outside the vocabulary are removed."""
        assert "rarity" not in normalize("action", {"rarity": "legendary"})

    def test_trait_allowlist(self) -> None:
        """Test traits pass through the allowlist."""
        normalizer = Normalizer(traits=StaticTraitAllowlist({"attack"}))

        result = normalizer.normalize("action", {"traits": "Attack, homebrew"})

        assert result["traits"] == ["attack"]

    def test_empty_traits_removed(self) -> None:
        """Test an empty trait array falls back to the default."""
        assert "traits" not in normalize("action", {"traits": [" ", ""]})


class TestNormalizeItem:
    """Tests for item coercion."""

    def test_item_fields(self) -> None:
        """Test enum, level and price coercion."""
        result = normalize(
            "item",
            {
                "slug": "buckler",
                "name": "Buckler",
                "itemType": "Shield",
                "rarity": "Common",
                "level": {"value": "1"},
                "price": "1.5",
            },
        )

        assert result["itemType"] == "armor"
        assert result["rarity"] == "common"
        assert result["level"] == 1
        assert result["price"] == 1.5
        assert validator_of("item")(result).valid

    def test_coin_purse_price(self) -> None:
        """Test coin purses are converted to gold pieces."""
        assert normalize("item", {"price": {"gp": 3, "sp": 5}})["price"] == 3.5
        assert normalize("item", {"price": {"value": {"pp": 2, "cp": 10}}})["price"] == 20.1

    def test_bad_price_removed(self) -> None:
        """Test unparseable prices are removed."""
        assert "price" not in normalize("item", {"price": "cheap"})
        assert "price" not in normalize("item", {"price": {"bananas": 2}})

    def test_fractional_level_removed(self) -> None:
        """Test non-integral levels are removed rather than kept as text."""
        assert "level" not in normalize("item", {"level": 2.5})
        assert "level" not in normalize("item", {"level": "two"})


class TestNormalizeCatalogEntry:
    """Tests for catalog entry coercion."""

    def test_catalog_entry(self) -> None:
        """Test identifiers, enum and folder handling."""
        result = normalize(
            "catalog-entry",
            {
                "id": 1234,
                "entityType": "NPC",
                "name": "Cave Troll",
                "slug": "cave-troll",
                "sort": "100",
                "folder": "  ",
            },
        )

        assert result["id"] == "1234"
        assert result["entityType"] == "actor"
        assert result["sort"] == 100
        assert result["folder"] is None
        assert "type" not in result
        assert validator_of("catalog-entry")(result).valid


class TestIdempotence:
    """Tests that conformant records survive normalization unchanged."""

    @pytest.mark.parametrize(
        ("kind", "fixture_name"),
        [
            ("action", "action_record"),
            ("item", "item_record"),
            ("actor", "actor_record"),
            ("catalog-entry", "catalog_entry_record"),
        ],
    )
    def test_conformant_records_unchanged(
        self,
        kind: str,
        fixture_name: str,
        request: pytest.FixtureRequest,
    ) -> None:
        """Test a conformant record comes back equal once defaults are filled."""
        record = request.getfixturevalue(fixture_name)

        once = normalize(kind, record)
        twice = normalize(kind, once)

        assert twice == once
        assert validator_of(kind)(once).valid
        assert once == record
