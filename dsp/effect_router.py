"""Effect dispatch: resolves presets/options and routes to registered effects.

Unknown effect names are not errors. The router logs them and hands the
input buffer back untouched so a typo in a script never aborts a render.
"""

from __future__ import annotations

import logging
from typing import Optional

from .buffer import AudioBuffer
from .effects import EFFECT_REGISTRY, get_effect
from .types import EffectOptions

log = logging.getLogger("effects")


def get_preset(effect_name: str, preset_name: Optional[str]) -> Optional[EffectOptions]:
    """Preset options for an effect, or None if either name is unknown."""
    effect = get_effect(effect_name)
    if effect is None:
        return None
    return effect.preset(preset_name)


def resolve_options(
    effect_name: str,
    preset_name: Optional[str] = None,
    options_json: Optional[str] = None,
) -> EffectOptions:
    """Preset (base) merged with explicit JSON options (override)."""
    base = EffectOptions()
    if preset_name:
        preset = get_preset(effect_name, preset_name)
        if preset is None:
            log.warning("Unknown preset %r for effect %r", preset_name, effect_name)
        else:
            base = preset
    return base.merge(EffectOptions.from_json(options_json))


def apply_effect(name: str, buffer: AudioBuffer, options: Optional[EffectOptions] = None) -> AudioBuffer:
    """Run a named effect. Unknown names pass the buffer through unchanged."""
    effect = get_effect(name)
    if effect is None:
        available = ", ".join(sorted(EFFECT_REGISTRY))
        log.warning("Unknown effect %r (available: %s), passing audio through", name, available)
        return buffer

    options = options or EffectOptions()
    result = effect.apply(buffer, options)
    log.debug("Effect '%s' %s: %d -> %d samples, %d -> %d ch", name,
              options.model_dump(exclude_none=True), buffer.length, result.length,
              buffer.num_channels, result.num_channels)
    return result
