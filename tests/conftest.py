"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the lorewright test suite.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path

    from lorewright.schemas.registry import SchemaDescriptor


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[None, None, None]:
    """Reset the settings cache and isolate tests from a local .env file."""
    from lorewright.core.config import clear_settings_cache

    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "LOREWRIGHT_OPENROUTER_API_KEY": "test-openrouter-key",
        "LOREWRIGHT_DEBUG": "true",
        "LOREWRIGHT_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def action_record() -> dict[str, Any]:
    """Provide a conformant action record."""
    return {
        "schema_version": 3,
        "systemId": "pf2e",
        "type": "action",
        "slug": "tail-swipe",
        "name": "Tail Swipe",
        "actionType": "two-actions",
        "traits": ["attack", "flourish"],
        "requirements": "",
        "description": "The dragon sweeps its tail in a wide arc.",
        "img": None,
        "rarity": "common",
        "source": "",
    }


@pytest.fixture
def item_record() -> dict[str, Any]:
    """Provide a conformant item record."""
    return {
        "schema_version": 3,
        "systemId": "pf2e",
        "type": "item",
        "slug": "wand-of-sparks",
        "name": "Wand of Sparks",
        "itemType": "wand",
        "rarity": "uncommon",
        "level": 3,
        "price": 60,
        "traits": ["magical", "wand"],
        "description": "Crackles when held.",
        "img": None,
        "source": "",
    }


@pytest.fixture
def actor_record() -> dict[str, Any]:
    """Provide a conformant actor record."""
    return {
        "schema_version": 3,
        "systemId": "pf2e",
        "type": "actor",
        "slug": "cave-troll",
        "name": "Cave Troll",
        "actorType": "npc",
        "rarity": "common",
        "level": 5,
        "size": "lg",
        "traits": ["giant", "troll"],
        "alignment": None,
        "languages": ["Jotun"],
        "attributes": {
            "hp": {"value": 95, "max": 95, "temp": 0, "details": None},
            "ac": {"value": 20, "details": None},
            "perception": {"value": 11, "details": None, "senses": ["darkvision"]},
            "speed": {"value": 30, "details": None, "other": []},
            "saves": {
                "fortitude": {"value": 17, "details": None},
                "reflex": {"value": 10, "details": None},
                "will": {"value": 9, "details": None},
            },
            "immunities": [],
            "weaknesses": [{"type": "fire", "value": 10, "exceptions": [], "details": None}],
            "resistances": [],
        },
        "abilities": {"str": 5, "dex": 2, "con": 6, "int": -2, "wis": 0, "cha": -2},
        "skills": [{"slug": "athletics", "modifier": 14, "details": None}],
        "strikes": [
            {
                "name": "Jaws",
                "type": "melee",
                "attackBonus": 16,
                "traits": ["reach-10-feet"],
                "damage": [{"formula": "2d10+8", "damageType": "piercing", "notes": None}],
                "effects": [],
                "description": None,
            }
        ],
        "actions": [
            {
                "name": "Regeneration",
                "actionCost": "passive",
                "description": "The troll regains 20 HP at the start of its turn.",
                "traits": [],
                "requirements": None,
                "trigger": None,
                "frequency": None,
            }
        ],
        "spellcasting": [],
        "inventory": [],
        "description": None,
        "recallKnowledge": None,
        "img": None,
        "source": "",
    }


@pytest.fixture
def catalog_entry_record() -> dict[str, Any]:
    """Provide a conformant catalog entry."""
    return {
        "schema_version": 3,
        "systemId": "pf2e",
        "id": "a1b2c3d4",
        "entityType": "actor",
        "name": "Cave Troll",
        "slug": "cave-troll",
        "img": None,
        "sort": 0,
        "folder": None,
    }


# =============================================================================
# Repair Backend Fixtures
# =============================================================================


class ScriptedBackend:
    """Repair backend returning queued responses in order.

    The last response repeats once the queue is down to one entry.
    Exceptions in the queue are raised instead of returned.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[tuple[str, SchemaDescriptor]] = []

    async def generate(self, prompt: str, schema: SchemaDescriptor) -> Any:
        self.calls.append((prompt, schema))
        if not self.responses:
            raise AssertionError("No scripted response available")
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return copy.deepcopy(response)


@pytest.fixture
def scripted_backend() -> type[ScriptedBackend]:
    """Provide the scripted backend class for building stub backends."""
    return ScriptedBackend
