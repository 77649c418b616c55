"""Trait allowlist capability.

The normalizer filters trait arrays against an optional set of known trait
slugs supplied by the host (for example the active game system's trait
dictionaries). The capability is an explicit object handed to the
normalizer rather than module state:

- lazily populated on first use by calling its provider;
- explicitly resettable (e.g. after the host reloads its data);
- a provider returning None means "accept any trait", an empty set means
  "accept no trait", a populated set means "drop traits not in the set".

The cached set is only ever replaced wholesale, never mutated, so reads
from concurrent orchestrations need no lock.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from lorewright.core.logging import get_logger
from lorewright.models.enums import normalize_enum_key
from lorewright.pipeline.coercion import coerce_string_list, dedupe_casefold, unwrap_value


logger = get_logger(__name__)

TraitProvider = Callable[[], Iterable[str] | None]

_UNSET: Any = object()


class TraitAllowlist:
    """Lazily cached set of recognized trait slugs.

    Example:
        >>> allowlist = TraitAllowlist(lambda: {"attack", "fire"})
        >>> allowlist.filter(["Attack", "bogus", "fire"])
        ['Attack', 'fire']
        >>> allowlist.reset()  # next filter() calls the provider again
    """

    def __init__(self, provider: TraitProvider | None = None) -> None:
        """Initialize the allowlist.

        Args:
            provider: Zero-argument callable returning trait slugs or None.
                Without a provider the allowlist never filters.
        """
        self._provider = provider
        self._cached: frozenset[str] | None = _UNSET

    def get(self) -> frozenset[str] | None:
        """Return the cached slug set, loading it on first use."""
        cached = self._cached
        if cached is _UNSET:
            cached = self._load()
            self._cached = cached
        return cached

    def _load(self) -> frozenset[str] | None:
        if self._provider is None:
            return None
        slugs = self._provider()
        if slugs is None:
            logger.debug("Trait allowlist unavailable, accepting all traits")
            return None
        loaded = frozenset(normalize_enum_key(str(slug)) for slug in slugs)
        logger.debug("Trait allowlist loaded", size=len(loaded))
        return loaded

    def reset(self) -> None:
        """Forget the cached set; the provider is called again on next use."""
        self._cached = _UNSET

    @property
    def is_loaded(self) -> bool:
        return self._cached is not _UNSET

    def accepts(self, trait: str) -> bool:
        allowed = self.get()
        if allowed is None:
            return True
        return normalize_enum_key(trait) in allowed

    def filter(self, traits: Iterable[str]) -> list[str]:
        """Keep the traits the allowlist accepts, in their original order."""
        allowed = self.get()
        if allowed is None:
            return list(traits)
        return [trait for trait in traits if normalize_enum_key(trait) in allowed]


class StaticTraitAllowlist(TraitAllowlist):
    """Allowlist over a fixed set of slugs."""

    def __init__(self, slugs: Iterable[str]) -> None:
        frozen = frozenset(slugs)
        super().__init__(lambda: frozen)


NO_TRAIT_FILTER = TraitAllowlist()
"""Shared allowlist that accepts every trait."""


def clean_traits(value: Any, allowlist: TraitAllowlist | None = None) -> list[str]:
    """Turn a loose trait value into a list of lowercase trait slugs.

    Accepts a list or a separated string, drops blanks, filters through the
    allowlist when one is given and removes duplicates.

    Example:
        >>> clean_traits("Attack, fire ; ATTACK")
        ['attack', 'fire']
    """
    traits = [trait.lower() for trait in coerce_string_list(unwrap_value(value)) or []]
    if allowlist is not None:
        traits = allowlist.filter(traits)
    return dedupe_casefold(traits)


__all__ = [
    "TraitProvider",
    "TraitAllowlist",
    "StaticTraitAllowlist",
    "NO_TRAIT_FILTER",
    "clean_traits",
]
