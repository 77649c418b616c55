"""Integration tests for the ingest flow.

Raw records go through upgrade, normalization, validation and repair
through the OpenRouter backend adapter (over a stubbed client).
"""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from tenacity import wait_none

from lorewright.backends.openrouter import OpenRouterRepairBackend
from lorewright.core.exceptions import RepairExhaustedError
from lorewright.pipeline import ContentPipeline, MemoryDiagnosticsSink, StaticTraitAllowlist
from lorewright.schemas import validator_of


def _completion(candidate: dict[str, Any]) -> SimpleNamespace:
    message = SimpleNamespace(content=json.dumps(candidate), tool_calls=None)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=None)


def _backend(*candidates: dict[str, Any]) -> tuple[OpenRouterRepairBackend, MagicMock]:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=[_completion(c) for c in candidates])
    backend = OpenRouterRepairBackend(client, model="test/model", retry_wait=wait_none())
    return backend, client


HOST_ACTOR: dict[str, Any] = {
    "schema_version": 2,
    "systemId": "Pathfinder",
    "type": "npc",
    "slug": "ogre-warrior",
    "name": " Ogre Warrior ",
    "actorType": "Creature",
    "rarity": {"value": "common"},
    "level": {"value": "3"},
    "size": {"value": "Large"},
    "traits": "Giant, Humanoid, giant",
    "languages": ["Jotun", "jotun"],
    "attributes": {
        "hp": {"value": 50},
        "ac": 17,
        "perception": {"value": "+5", "senses": "darkvision"},
        "speed": {"value": 25},
        "saves": {"fort": 13, "ref": 6, "will": 8},
        "weaknesses": [{"type": "cold iron", "value": 5}],
    },
    "abilities": {"str": "+5", "dex": "-1", "con": "+4", "int": "-2", "wis": "+0", "cha": "-2"},
    "skills": {"Athletics": "+12", "Intimidation": "+7"},
    "strikes": [
        {"name": "Ogre Hook", "type": "melee", "attackBonus": "+10", "damage": "1d10 + 7 piercing"},
        {"name": "Javelin", "type": "ranged"},
    ],
    "actions": [{"name": "Ferocity", "actionCost": "reaction", "description": "Stays standing."}],
    "spellcasting": None,
    "flags": {"core": {}},
}


class TestIngestFlow:
    """End-to-end ingestion scenarios."""

    @pytest.mark.asyncio
    async def test_host_actor_without_repair(self) -> None:
        """A messy host actor becomes a canonical record without a backend."""
        pipeline = ContentPipeline(traits=StaticTraitAllowlist({"giant", "humanoid"}))

        record = await pipeline.ingest("actor", HOST_ACTOR)

        assert record["schema_version"] == 3
        assert record["systemId"] == "pf2e"
        assert record["type"] == "actor"
        assert record["name"] == "Ogre Warrior"
        assert record["size"] == "lg"
        assert record["level"] == 3
        assert record["traits"] == ["giant", "humanoid"]
        assert record["languages"] == ["Jotun"]
        assert record["source"] == ""
        assert record["attributes"]["hp"] == {"value": 50, "max": 50, "temp": 0, "details": None}
        assert record["attributes"]["saves"]["fortitude"]["value"] == 13
        assert record["abilities"]["str"] == 5
        assert [skill["slug"] for skill in record["skills"]] == ["athletics", "intimidation"]
        assert [strike["name"] for strike in record["strikes"]] == ["Ogre Hook"]
        assert record["strikes"][0]["damage"][0]["formula"] == "1d10+7"
        assert record["spellcasting"] == []
        assert "flags" not in record
        assert validator_of("actor")(record).valid

    @pytest.mark.asyncio
    async def test_repair_through_backend(self, item_record: dict[str, Any]) -> None:
        """An invalid item is repaired by the backend on the second attempt."""
        backend, client = _backend(item_record)
        pipeline = ContentPipeline(backend=backend)

        record = await pipeline.ingest(
            "item",
            {"schema_version": 1, "slug": "wand-of-sparks", "name": "Wand of Sparks", "itemType": "Wand"},
        )

        assert record["rarity"] == "uncommon"
        assert record["level"] == 3
        request = client.chat.completions.create.await_args.kwargs
        prompt = request["messages"][-1]["content"]
        assert "Validation errors:" in prompt
        assert "- rarity: Field required" in prompt
        assert request["response_format"]["json_schema"]["name"] == "Item"

    @pytest.mark.asyncio
    async def test_exhaustion_then_manual_repair(self) -> None:
        """An exhausted record is reported and can be repaired later."""
        broken = {"slug": "mystery", "name": "Mystery", "actionType": "sometimes"}
        backend, _ = _backend(broken, broken)
        sink = MemoryDiagnosticsSink()
        pipeline = ContentPipeline(backend=backend, sink=sink, max_attempts=3)

        with pytest.raises(RepairExhaustedError) as exc_info:
            await pipeline.ingest("action", broken)

        error = exc_info.value
        assert len(error.diagnostics) == 3
        assert sink.entries[0].report.attempts == 3

        fixed = dict(error.last_payload, actionType="free", description="It happens.")
        record = await error.repair(payload=fixed, backend=None)

        assert record["actionType"] == "free"
        assert validator_of("action")(record).valid

    @pytest.mark.asyncio
    async def test_batch_from_export_file(self, tmp_path: Path, action_record: dict[str, Any]) -> None:
        """A JSON export with mixed records is ingested as a batch."""
        export = tmp_path / "actions.json"
        legacy = {k: v for k, v in action_record.items() if k != "source"}
        legacy["schema_version"] = 1
        export.write_text(json.dumps([action_record, legacy, {"name": "Nameless"}]), encoding="utf-8")

        payloads = json.loads(export.read_text(encoding="utf-8"))
        result = await ContentPipeline().ingest_many("action", payloads)

        assert result.succeeded == 2
        assert [index for index, _ in result.failures] == [2]
        assert all(validator_of("action")(record).valid for record in result.records)
