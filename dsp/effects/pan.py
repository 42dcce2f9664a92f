"""Constant-power stereo panning."""

import math
from typing import Tuple

import numpy as np

from ..buffer import AudioBuffer
from ..types import EffectOptions
from .base import BaseEffect

PRESETS = {
    "left": EffectOptions(pan=-1.0),
    "right": EffectOptions(pan=1.0),
}


def pan_gains(pan: float) -> Tuple[float, float]:
    """(left, right) gains for pan in [-1, 1]; left**2 + right**2 == 1."""
    pan = min(max(pan, -1.0), 1.0)
    angle = (pan + 1.0) * math.pi / 4.0
    return math.cos(angle), math.sin(angle)


def apply_pan(buffer: AudioBuffer, options: EffectOptions) -> AudioBuffer:
    """Fold to mono, then place the mono signal in the stereo field. Always stereo out."""
    left_gain, right_gain = pan_gains(options.pan if options.pan is not None else 0.0)

    if buffer.num_channels == 1:
        mono = buffer.channel(0).astype(np.float64)
    else:
        # Only the first two channels take part in the fold-down
        mono = (buffer.channel(0).astype(np.float64) + buffer.channel(1)) * 0.5

    left = np.clip(mono * left_gain, -1.0, 1.0)
    right = np.clip(mono * right_gain, -1.0, 1.0)
    return AudioBuffer.from_stereo(left, right, buffer.sample_rate)


class PanEffect(BaseEffect):
    @property
    def name(self) -> str:
        return "pan"

    @property
    def presets(self):
        return PRESETS

    def apply(self, buffer: AudioBuffer, options: EffectOptions) -> AudioBuffer:
        return apply_pan(buffer, options)
