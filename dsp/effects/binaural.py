"""Binaural beats: a slightly detuned sine pair mixed under the program audio.

The left ear hears hz - offset/2 and the right ear hz + offset/2; the brain
perceives the difference (`offset`) as a beat. Mono input is widened to
stereo so the two tones can be separated.
"""

import math

import numpy as np

from ..buffer import AudioBuffer
from ..types import EffectOptions
from .base import BaseEffect

DEFAULT_HZ = 200.0
DEFAULT_OFFSET = 4.0
DEFAULT_AMPLITUDE = 0.08
DEFAULT_FADE_MS = 10.0

TWO_PI = 2.0 * math.pi

# Carrier 400 Hz, offset picks the brainwave band
PRESETS = {
    "delta": EffectOptions(hz=400.0, offset=2.0),   # deep sleep
    "theta": EffectOptions(hz=400.0, offset=6.0),   # meditation
    "alpha": EffectOptions(hz=400.0, offset=10.0),  # relaxation
    "beta": EffectOptions(hz=400.0, offset=20.0),   # focus
    "gamma": EffectOptions(hz=400.0, offset=40.0),  # high cognition
}


def _tone(freq: float, length: int, sample_rate: int) -> np.ndarray:
    phase_inc = TWO_PI * freq / sample_rate
    phase = np.mod(np.arange(length, dtype=np.float64) * phase_inc, TWO_PI)
    return np.sin(phase)


def _fade_envelope(length: int, fade: int) -> np.ndarray:
    """Linear ramp up over the first `fade` samples and down over the last ones."""
    i = np.arange(length, dtype=np.float64)
    env = np.ones(length, dtype=np.float64)
    fade_in = i < fade
    fade_out = ~fade_in & (i > length - fade)
    env[fade_in] = i[fade_in] / fade
    env[fade_out] = (length - i[fade_out]) / fade
    return env


def apply_binaural(buffer: AudioBuffer, options: EffectOptions) -> AudioBuffer:
    rate = buffer.sample_rate
    length = buffer.length

    hz = max(options.hz if options.hz is not None else DEFAULT_HZ, 1.0)
    offset = max(options.offset if options.offset is not None else DEFAULT_OFFSET, 0.0)
    amplitude = options.amplitude if options.amplitude is not None else DEFAULT_AMPLITUDE
    fade_ms = options.fade_ms if options.fade_ms is not None else DEFAULT_FADE_MS
    fade = max(1, int((fade_ms / 1000.0) * rate))

    f_left = hz - offset / 2.0
    f_right = hz + offset / 2.0

    out_channels = 2 if buffer.num_channels == 1 else buffer.num_channels
    source = buffer.with_channels(out_channels).astype(np.float64)
    env = _fade_envelope(length, fade)

    left_tone = amplitude * _tone(f_left, length, rate) * env
    right_tone = amplitude * _tone(f_right, length, rate) * env

    out = np.empty((out_channels, length), dtype=np.float32)
    for ch in range(out_channels):
        tone = left_tone if ch == 0 else right_tone
        out[ch] = np.clip(source[ch] + tone, -1.0, 1.0)
    return AudioBuffer(out, rate)


class BinauralEffect(BaseEffect):
    @property
    def name(self) -> str:
        return "binaural"

    @property
    def presets(self):
        return PRESETS

    def apply(self, buffer: AudioBuffer, options: EffectOptions) -> AudioBuffer:
        return apply_binaural(buffer, options)
