"""Multi-channel float audio buffers: silence, resampling, concat and mix."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

log = logging.getLogger("buffer")

DEFAULT_SAMPLE_RATE = 24000


@dataclass
class AudioBuffer:
    """A block of float32 audio, shape (channels, frames), at a sample rate.

    Every channel has the same number of frames. Zero frames is allowed and
    means "no audio"; it never causes a division by zero anywhere below.
    """

    samples: np.ndarray
    sample_rate: int = DEFAULT_SAMPLE_RATE

    def __post_init__(self):
        data = np.asarray(self.samples, dtype=np.float32)
        if data.ndim == 1:
            data = data.reshape(1, -1)
        if data.ndim != 2 or data.shape[0] < 1:
            raise ValueError(f"AudioBuffer needs (channels, frames) data, got shape {data.shape}")
        self.samples = data
        self.sample_rate = int(self.sample_rate)

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def empty(cls, channels: int, length: int, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioBuffer:
        return cls(np.zeros((channels, max(0, length)), dtype=np.float32), sample_rate)

    @classmethod
    def from_mono(cls, data, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioBuffer:
        return cls(np.asarray(data, dtype=np.float32).reshape(1, -1), sample_rate)

    @classmethod
    def from_stereo(cls, left, right, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioBuffer:
        return cls(np.vstack([np.asarray(left, dtype=np.float32),
                              np.asarray(right, dtype=np.float32)]), sample_rate)

    @classmethod
    def silence(cls, duration: float, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioBuffer:
        """Mono silence of `duration` seconds (truncated to whole samples)."""
        return cls.empty(1, int(duration * sample_rate), sample_rate)

    @classmethod
    def placeholder(cls, sample_rate: int = DEFAULT_SAMPLE_RATE) -> AudioBuffer:
        """The 1-sample silent buffer used wherever "nothing" must still be audio."""
        return cls.empty(1, 1, sample_rate)

    # ── Shape ─────────────────────────────────────────────────

    @property
    def num_channels(self) -> int:
        return self.samples.shape[0]

    @property
    def length(self) -> int:
        return self.samples.shape[1]

    @property
    def duration(self) -> float:
        return self.length / self.sample_rate if self.sample_rate else 0.0

    def channel(self, index: int) -> np.ndarray:
        return self.samples[index]

    def copy(self) -> AudioBuffer:
        return AudioBuffer(self.samples.copy(), self.sample_rate)

    def __len__(self) -> int:
        return self.length

    def __repr__(self) -> str:
        return (f"AudioBuffer(channels={self.num_channels}, length={self.length}, "
                f"sample_rate={self.sample_rate})")

    # ── Conversion ────────────────────────────────────────────

    def resample(self, target_rate: int) -> AudioBuffer:
        """Linear-interpolation resample. Same rate returns an exact copy."""
        target_rate = int(target_rate)
        if target_rate == self.sample_rate:
            return self.copy()

        ratio = self.sample_rate / target_rate
        src_len = self.length
        new_len = int(math.ceil(src_len / ratio))
        if src_len == 0 or new_len == 0:
            return AudioBuffer.empty(self.num_channels, 0, target_rate)

        positions = np.arange(new_len, dtype=np.float64) * ratio
        grid = np.arange(src_len, dtype=np.float64)
        out = np.empty((self.num_channels, new_len), dtype=np.float32)
        for ch in range(self.num_channels):
            # np.interp holds the last sample past the end, same as reading src[floor(pos)]
            out[ch] = np.interp(positions, grid, self.samples[ch].astype(np.float64))

        log.debug("Resampled %d samples @ %dHz -> %d samples @ %dHz",
                  src_len, self.sample_rate, new_len, target_rate)
        return AudioBuffer(out, target_rate)

    def to_mono(self) -> np.ndarray:
        """Per-sample arithmetic mean across channels."""
        if self.num_channels == 1:
            return self.samples[0].copy()
        return self.samples.mean(axis=0, dtype=np.float64).astype(np.float32)

    def with_channels(self, channels: int) -> np.ndarray:
        """Channel data widened to `channels`, repeating the last channel."""
        if channels <= self.num_channels:
            return self.samples[:channels]
        extra = np.repeat(self.samples[-1:], channels - self.num_channels, axis=0)
        return np.vstack([self.samples, extra])

    # ── Combination ───────────────────────────────────────────

    @staticmethod
    def _reconcile(buffers: Sequence[AudioBuffer]) -> tuple[list[AudioBuffer], int, int]:
        target_rate = buffers[0].sample_rate
        resampled = [b if b.sample_rate == target_rate else b.resample(target_rate)
                     for b in buffers]
        channels = max(b.num_channels for b in resampled)
        return resampled, channels, target_rate

    @classmethod
    def concat(cls, buffers: Sequence[AudioBuffer]) -> AudioBuffer:
        """Place buffers back to back at the first buffer's sample rate."""
        if not buffers:
            return cls.placeholder()

        resampled, channels, rate = cls._reconcile(buffers)
        total = sum(b.length for b in resampled)
        out = np.zeros((channels, total), dtype=np.float32)

        offset = 0
        for buf in resampled:
            out[:, offset:offset + buf.length] = buf.with_channels(channels)
            offset += buf.length
        return cls(out, rate)

    @classmethod
    def merge(cls, buffers: Sequence[AudioBuffer]) -> AudioBuffer:
        """Sum buffers sample-by-sample, clamping the running mix to [-1, 1].

        There is no gain compensation: loud overlapping sources clip.
        """
        if not buffers:
            return cls.placeholder()

        resampled, channels, rate = cls._reconcile(buffers)
        longest = max(b.length for b in resampled)
        out = np.zeros((channels, longest), dtype=np.float32)

        for buf in resampled:
            region = out[:, :buf.length]
            np.clip(region + buf.with_channels(channels), -1.0, 1.0, out=region)
        return cls(out, rate)
