"""Effect registry - decorator-based, explicit imports.

Each effect module is imported and registered explicitly so the set of
script-visible effect names is fixed and easy to audit.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseEffect

# Global registry: effect name -> BaseEffect instance
EFFECT_REGISTRY: dict[str, BaseEffect] = {}


def register_effect(cls):
    """Class decorator that instantiates a BaseEffect subclass and registers it."""
    instance = cls()
    EFFECT_REGISTRY[instance.name] = instance
    return cls


def get_effect(name: str):
    """Look up a registered effect by name. Returns None if not found."""
    return EFFECT_REGISTRY.get(name)


def effect_names() -> list[str]:
    return sorted(EFFECT_REGISTRY)


# ── Explicit registration ─────────────────────────────────────

from .echo import EchoEffect
from .binaural import BinauralEffect
from .pan import PanEffect

register_effect(EchoEffect)
register_effect(BinauralEffect)
register_effect(PanEffect)
