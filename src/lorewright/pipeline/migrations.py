"""Schema version migrations.

Records written under an older schema version are upgraded one version at
a time by pure steps registered per ``(kind, from_version)``. The step
table is built at import time and read-only afterwards.

Example:
    >>> migrate("action", 1, 3, {"schema_version": 1, "name": "Strike"})
    {'schema_version': 3, 'name': 'Strike', 'source': ''}
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

from lorewright.core.constants import FIRST_SCHEMA_VERSION, LATEST_SCHEMA_VERSION
from lorewright.core.exceptions import BackwardMigrationError, MigrationGapError
from lorewright.core.logging import get_logger
from lorewright.models.enums import EntityKind
from lorewright.pipeline.coercion import coerce_integer


logger = get_logger(__name__)

MigrationStep = Callable[[dict[str, Any]], dict[str, Any]]
"""Pure transform from version N to N+1. Receives its own copy of the record."""


def _clone(data: Any) -> dict[str, Any]:
    if not isinstance(data, Mapping):
        return {}
    return copy.deepcopy(dict(data))


# =============================================================================
# Steps
# =============================================================================


def _stamp_version(version: int) -> MigrationStep:
    def step(data: dict[str, Any]) -> dict[str, Any]:
        data["schema_version"] = version
        return data

    step.__name__ = f"stamp_v{version}"
    return step


def with_source_default(data: dict[str, Any]) -> dict[str, Any]:
    """v1 -> v2: records gained a ``source`` string."""
    data["schema_version"] = 2
    if not isinstance(data.get("source"), str):
        data["source"] = ""
    return data


# =============================================================================
# Registry
# =============================================================================


class MigrationRegistry:
    """Read-only table of migration steps keyed by kind and source version."""

    def __init__(self, steps: Mapping[EntityKind, Mapping[int, MigrationStep]]) -> None:
        self._steps = MappingProxyType(
            {EntityKind.parse(kind): MappingProxyType(dict(table)) for kind, table in steps.items()}
        )

    def step_for(self, kind: EntityKind, version: int) -> MigrationStep | None:
        table = self._steps.get(kind)
        if table is None:
            return None
        return table.get(version)

    def versions_for(self, kind: str | EntityKind) -> tuple[int, ...]:
        """Get the source versions that have a registered step."""
        return tuple(sorted(self._steps.get(EntityKind.parse(kind), {})))

    def migrate(
        self,
        kind: str | EntityKind,
        from_version: int,
        to_version: int,
        data: Any,
    ) -> dict[str, Any]:
        """Upgrade ``data`` from ``from_version`` to ``to_version``.

        Args:
            kind: Entity kind of the record.
            from_version: Version the record was written under.
            to_version: Target version.
            data: Record to upgrade; non-mappings are treated as empty.

        Returns:
            A new dict whose ``schema_version`` equals ``to_version``. Equal
            versions return a deep copy unchanged.

        Raises:
            BackwardMigrationError: If ``from_version > to_version``.
            MigrationGapError: If a step in the chain is not registered.
        """
        resolved = EntityKind.parse(kind)
        if from_version == to_version:
            return _clone(data)
        if from_version > to_version:
            raise BackwardMigrationError(
                f"Cannot migrate {resolved.value} schema backwards "
                f"from v{from_version} to v{to_version}",
                kind=resolved.value,
                from_version=from_version,
                to_version=to_version,
            )

        working = _clone(data)
        for version in range(from_version, to_version):
            step = self.step_for(resolved, version)
            if step is None:
                raise MigrationGapError(
                    f"No migration registered for {resolved.value} schema "
                    f"v{version} -> v{version + 1}",
                    kind=resolved.value,
                    from_version=version,
                    to_version=version + 1,
                )
            working = step(copy.deepcopy(working))

        working["schema_version"] = to_version
        logger.debug(
            "Record migrated",
            kind=resolved.value,
            from_version=from_version,
            to_version=to_version,
        )
        return working


MIGRATIONS = MigrationRegistry(
    {
        EntityKind.ACTION: {1: with_source_default, 2: _stamp_version(3)},
        EntityKind.ITEM: {1: with_source_default, 2: _stamp_version(3)},
        EntityKind.ACTOR: {1: with_source_default, 2: _stamp_version(3)},
        EntityKind.CATALOG_ENTRY: {1: _stamp_version(2), 2: _stamp_version(3)},
    }
)


def migrate(
    kind: str | EntityKind,
    from_version: int,
    to_version: int,
    data: Any,
) -> dict[str, Any]:
    """Upgrade a record with the built-in migration table."""
    return MIGRATIONS.migrate(kind, from_version, to_version, data)


def detect_version(data: Any) -> int:
    """Read the schema version a record claims.

    Records without a readable integer version are assumed to be current.

    Example:
        >>> detect_version({"schema_version": "1"})
        1
        >>> detect_version({})
        3
    """
    if not isinstance(data, Mapping):
        return LATEST_SCHEMA_VERSION
    version = coerce_integer(data.get("schema_version"))
    if version is None or version < FIRST_SCHEMA_VERSION:
        return LATEST_SCHEMA_VERSION
    return version


__all__ = [
    "MigrationStep",
    "MigrationRegistry",
    "MIGRATIONS",
    "migrate",
    "detect_version",
    "with_source_default",
]
