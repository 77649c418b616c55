"""Repair backend adapters.

Exports:
    OpenRouterRepairBackend: Repair backend for OpenAI-compatible chat APIs.
    extract_candidate: Pull the JSON candidate out of a chat completion.
"""

from __future__ import annotations

from lorewright.backends.openrouter import PROVIDER, OpenRouterRepairBackend, extract_candidate


__all__ = [
    "PROVIDER",
    "OpenRouterRepairBackend",
    "extract_candidate",
]
