"""Pipeline-wide constants for lorewright.

Schema versioning, attempt limits and the minimal defaults synthesized for
structurally required actor sub-records.
"""

from __future__ import annotations

# =============================================================================
# Schema Versioning
# =============================================================================

LATEST_SCHEMA_VERSION = 3
"""Current schema version; every normalized record carries exactly this."""

FIRST_SCHEMA_VERSION = 1
"""Oldest schema version the migration engine knows how to upgrade."""

# =============================================================================
# Repair Orchestration
# =============================================================================

DEFAULT_MAX_ATTEMPTS = 3
"""Default number of normalize+validate attempts per orchestration."""

MIN_MAX_ATTEMPTS = 1
"""Lower bound applied to any caller-supplied attempt limit."""

MAX_MAX_ATTEMPTS = 10
"""Upper bound accepted from configuration."""

DIAGNOSTICS_LOG_LIMIT = 50
"""Number of failure reports kept by the in-memory diagnostics sink."""

# =============================================================================
# Actor Defaults (synthesized when the sub-record is missing)
# =============================================================================

DEFAULT_HP = 1
"""Hit point value and maximum for an actor without an hp block."""

DEFAULT_ARMOR_CLASS = 10
"""Armor class for an actor without an ac block."""

DEFAULT_PERCEPTION = 0
"""Perception modifier for an actor without a perception block."""

DEFAULT_SPEED = 25
"""Land speed in feet for an actor without a speed block."""

DEFAULT_SAVE = 0
"""Modifier for a missing fortitude, reflex or will save."""

DEFAULT_ABILITY_MODIFIER = 0
"""Modifier for a missing ability score."""

DEFAULT_INVENTORY_QUANTITY = 1
"""Quantity for inventory entries that do not state one."""

# =============================================================================
# Enumerated Keys
# =============================================================================

ABILITY_KEYS = ("str", "dex", "con", "int", "wis", "cha")
"""The six fixed ability score keys, in sheet order."""

SAVE_KEYS = ("fortitude", "reflex", "will")
"""The three saving throw keys."""


__all__ = [
    "LATEST_SCHEMA_VERSION",
    "FIRST_SCHEMA_VERSION",
    "DEFAULT_MAX_ATTEMPTS",
    "MIN_MAX_ATTEMPTS",
    "MAX_MAX_ATTEMPTS",
    "DIAGNOSTICS_LOG_LIMIT",
    "DEFAULT_HP",
    "DEFAULT_ARMOR_CLASS",
    "DEFAULT_PERCEPTION",
    "DEFAULT_SPEED",
    "DEFAULT_SAVE",
    "DEFAULT_ABILITY_MODIFIER",
    "DEFAULT_INVENTORY_QUANTITY",
    "ABILITY_KEYS",
    "SAVE_KEYS",
]
