"""Gain and silence trimming."""

import numpy as np

from .buffer import AudioBuffer


def apply_volume(buffer: AudioBuffer, volume: float) -> AudioBuffer:
    """Scale every sample by `volume`, clamped to [-1, 1]."""
    return AudioBuffer(np.clip(buffer.samples * np.float32(volume), -1.0, 1.0), buffer.sample_rate)


def trim_silence(buffer: AudioBuffer, threshold: float, min_silence_ms: float) -> AudioBuffer:
    """Crop leading and trailing near-silence.

    A window of `min_silence_ms` slides over the per-sample peak (max |x|
    across channels). The result runs from the first window holding a peak
    above `threshold` to the end of the last such window. A buffer with no
    sample above the threshold comes back as a single silent sample.
    """
    rate = buffer.sample_rate
    window = max(1, int((min_silence_ms / 1000.0) * rate))
    length = buffer.length

    if length == 0:
        return AudioBuffer.placeholder(rate)

    peak = np.abs(buffer.samples).max(axis=0)
    loud = np.flatnonzero(peak > threshold)
    if loud.size == 0:
        return AudioBuffer.placeholder(rate)

    last_window_start = max(0, length - window)
    start = max(0, int(loud[0]) - window + 1)
    end = min(length, min(int(loud[-1]), last_window_start) + window)

    if start >= end:
        return AudioBuffer.placeholder(rate)
    return AudioBuffer(buffer.samples[:, start:end].copy(), rate)
