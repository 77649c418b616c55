"""Primitive coercions used by the normalizer.

Each coercer takes an arbitrary value and returns either a clean value or
``None`` meaning "could not coerce confidently". Callers decide whether
``None`` removes the key, drops the entry or falls back to a default; the
coercers themselves never guess.

The ``assign_*`` helpers apply a coercer to one key of a mutable record in
place, using the same remove-on-failure policy everywhere.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from typing import Any

from lorewright.models.enums import normalize_enum_key


_LIST_SEPARATORS = re.compile(r"[,;\n]")
_MISSING = object()


# =============================================================================
# Scalars
# =============================================================================


def coerce_string(value: Any) -> str | None:
    """Trim a string; non-strings and blank strings give None."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def coerce_number(value: Any) -> int | float | None:
    """Accept finite numbers and clean numeric strings.

    Booleans are not numbers. Integral floats collapse to ints so that
    ``3.0`` and ``"3"`` both yield ``3``.

    Example:
        >>> coerce_number(" 4.5 ")
        4.5
        >>> coerce_number("3")
        3
        >>> coerce_number("3 gp") is None
        True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed or "_" in trimmed:
            return None
        try:
            parsed = float(trimmed)
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def coerce_integer(value: Any) -> int | None:
    """Like coerce_number, but non-integral values give None."""
    number = coerce_number(value)
    if isinstance(number, int):
        return number
    return None


def coerce_signed_integer(value: Any) -> int | None:
    """Parse modifiers written as ``+7`` or ``-1`` as well as plain numbers."""
    if isinstance(value, str):
        value = value.strip().replace("−", "-")
    return coerce_integer(value)


# =============================================================================
# Arrays
# =============================================================================


def coerce_string_list(value: Any) -> list[str] | None:
    """Coerce a list of strings, or a comma/semicolon/newline separated string.

    Non-string list entries and blank entries are dropped. Returns None when
    the value is neither a list nor a string.
    """
    if isinstance(value, (list, tuple)):
        return [entry.strip() for entry in value if isinstance(entry, str) and entry.strip()]
    if isinstance(value, str):
        return [part.strip() for part in _LIST_SEPARATORS.split(value) if part.strip()]
    return None


def dedupe_casefold(values: Iterable[str]) -> list[str]:
    """Drop case-insensitive duplicates, preserving first-seen order.

    Example:
        >>> dedupe_casefold(["Fire", "fire", "Cold"])
        ['Fire', 'Cold']
    """
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        key = value.casefold()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def unwrap_value(value: Any) -> Any:
    """Peel ``{"value": x}`` wrappers, as produced by host documents."""
    while isinstance(value, Mapping) and set(value) == {"value"}:
        value = value["value"]
    return value


def iter_entries(value: Any, *, key_field: str = "name") -> list[Any]:
    """Flatten a list, or a keyed mapping of entries, into a list.

    A mapping such as ``{"Jaws": {...}, "Claw": {...}}`` becomes a list of
    entries with ``key_field`` filled from the mapping key when the entry
    does not carry it. A mapping of scalars (``{"Jaws": "+7"}``) becomes
    ``[{key_field: "Jaws", "value": "+7"}]``.
    """
    value = unwrap_value(value)
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, Mapping):
        entries: list[Any] = []
        for key, entry in value.items():
            if isinstance(entry, Mapping):
                merged = dict(entry)
                merged.setdefault(key_field, key)
                entries.append(merged)
            else:
                entries.append({key_field: key, "value": entry})
        return entries
    return []


# =============================================================================
# Enumerations
# =============================================================================


class EnumLookup:
    """Case and punctuation insensitive resolver onto canonical enum tokens.

    Example:
        >>> lookup = EnumLookup(["one-action", "free"], {"1": "one-action"})
        >>> lookup.resolve("One Action")
        'one-action'
        >>> lookup.resolve(1)
        'one-action'
    """

    def __init__(self, values: Iterable[str], aliases: Mapping[str, str] | None = None) -> None:
        self._table: dict[str, str] = {}
        for value in values:
            self._table[normalize_enum_key(str(value))] = str(value)
        for alias, target in (aliases or {}).items():
            self._table[normalize_enum_key(alias)] = str(target)

    def resolve(self, value: Any) -> str | None:
        if value is None or isinstance(value, bool):
            return None
        if not isinstance(value, (str, int, float)):
            return None
        return self._table.get(normalize_enum_key(str(value)))

    def __contains__(self, value: object) -> bool:
        return self.resolve(value) is not None


# =============================================================================
# In-place assignment helpers
# =============================================================================


def assign_string(target: dict[str, Any], key: str) -> None:
    """Trim ``target[key]``; remove it when blank, null or not a string."""
    if key not in target:
        return
    coerced = coerce_string(target[key])
    if coerced is None:
        del target[key]
    else:
        target[key] = coerced


def assign_optional_string(target: dict[str, Any], key: str, *, allow_empty: bool = False) -> None:
    """Trim an optional string field.

    Null removes the key (the schema default applies). Blank strings are
    removed unless ``allow_empty``. Non-string values are left for the
    validator to report.
    """
    if key not in target:
        return
    value = target[key]
    if value is None:
        del target[key]
        return
    if not isinstance(value, str):
        return
    trimmed = value.strip()
    if not trimmed and not allow_empty:
        del target[key]
        return
    target[key] = trimmed


def assign_nullable_string(target: dict[str, Any], key: str) -> None:
    """Trim a nullable string field; blanks become null, non-strings are removed."""
    if key not in target:
        return
    value = target[key]
    if value is None:
        return
    if not isinstance(value, str):
        del target[key]
        return
    target[key] = value.strip() or None


def assign_enum(target: dict[str, Any], key: str, lookup: EnumLookup) -> None:
    """Resolve an enum field onto its canonical token; anything else is removed."""
    if key not in target:
        return
    resolved = lookup.resolve(target[key])
    if resolved is None:
        del target[key]
    else:
        target[key] = resolved


def assign_integer(target: dict[str, Any], key: str) -> None:
    """Coerce an integer field; unparseable or non-integral values are removed."""
    if key not in target:
        return
    coerced = coerce_integer(target[key])
    if coerced is None:
        del target[key]
    else:
        target[key] = coerced


def assign_number(target: dict[str, Any], key: str) -> None:
    """Coerce a numeric field; unparseable values are removed."""
    if key not in target:
        return
    coerced = coerce_number(target[key])
    if coerced is None:
        del target[key]
    else:
        target[key] = coerced


def assign_string_list(target: dict[str, Any], key: str, *, dedupe: bool = False) -> None:
    """Coerce a string array; empty or uncoercible arrays are removed."""
    if key not in target:
        return
    coerced = coerce_string_list(target[key])
    if coerced and dedupe:
        coerced = dedupe_casefold(coerced)
    if coerced:
        target[key] = coerced
    else:
        del target[key]


def pick(source: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-null value among several spellings."""
    for key in keys:
        value = source.get(key, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


__all__ = [
    "coerce_string",
    "coerce_number",
    "coerce_integer",
    "coerce_signed_integer",
    "coerce_string_list",
    "dedupe_casefold",
    "unwrap_value",
    "iter_entries",
    "EnumLookup",
    "assign_string",
    "assign_optional_string",
    "assign_nullable_string",
    "assign_enum",
    "assign_integer",
    "assign_number",
    "assign_string_list",
    "pick",
]
