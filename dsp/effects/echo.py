"""Echo: decaying delayed copies appended after the dry signal."""

import numpy as np

from ..buffer import AudioBuffer
from ..types import EffectOptions
from .base import BaseEffect

DEFAULT_DELAY = 0.25
DEFAULT_DECAY = 0.6
DEFAULT_REPEATS = 3

PRESETS = {
    "light": EffectOptions(delay=0.1, decay=0.3, repeats=2),
    "medium": EffectOptions(delay=0.2, decay=0.5, repeats=3),
    "heavy": EffectOptions(delay=0.2, decay=0.6, repeats=4),
}


def delay_in_samples(delay: float, sample_rate: int) -> int:
    return max(0, int(round(delay * sample_rate)))


def apply_echo(buffer: AudioBuffer, options: EffectOptions) -> AudioBuffer:
    """Add `repeats` copies spaced `delay` seconds apart, repeat r scaled by decay**r.

    The output grows by repeats * delay so the last echo is never cut off.
    """
    delay = options.delay if options.delay is not None else DEFAULT_DELAY
    decay = options.decay if options.decay is not None else DEFAULT_DECAY
    repeats = options.repeats if options.repeats is not None else DEFAULT_REPEATS
    repeats = max(0, int(repeats))

    step = delay_in_samples(delay, buffer.sample_rate)
    length = buffer.length
    out = np.zeros((buffer.num_channels, length + step * repeats), dtype=np.float32)
    out[:, :length] = buffer.samples

    for r in range(1, repeats + 1):
        offset = r * step
        out[:, offset:offset + length] += buffer.samples * np.float32(decay ** r)

    np.clip(out, -1.0, 1.0, out=out)
    return AudioBuffer(out, buffer.sample_rate)


class EchoEffect(BaseEffect):
    @property
    def name(self) -> str:
        return "echo"

    @property
    def presets(self):
        return PRESETS

    def apply(self, buffer: AudioBuffer, options: EffectOptions) -> AudioBuffer:
        return apply_echo(buffer, options)
