"""Base class for all effects in the effect engine.

Each effect declares its name, its named presets and its default
parameters, then implements apply(). Effects are pure: they never modify
the input buffer and always return a new one.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..buffer import AudioBuffer
from ..types import EffectOptions


class BaseEffect(ABC):
    """Abstract base for a buffer-to-buffer effect."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Effect name used in scripts (e.g. 'echo')."""

    @property
    def presets(self) -> Dict[str, EffectOptions]:
        """Named option bundles usable as a merge base."""
        return {}

    def preset(self, preset_name: Optional[str]) -> Optional[EffectOptions]:
        """Look up a preset by name. Unknown or missing names give None."""
        if not preset_name:
            return None
        return self.presets.get(preset_name)

    @abstractmethod
    def apply(self, buffer: AudioBuffer, options: EffectOptions) -> AudioBuffer:
        """Run the effect. Unset options fall back to the effect's defaults."""
