"""Sound-effect lookup: built-in set first, then on-disk directories.

The built-in effects are synthesized in memory on first use and served as
WAV bytes, so they go through exactly the same decode path as files a user
drops into the sounds directory.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Optional

import numpy as np

from dsp.buffer import AudioBuffer
from dsp.wav import WavFormatError, from_wav_bytes, to_wav_bytes

log = logging.getLogger("sounds")

BUILTIN_RATE = 44100

# key -> file name looked up in the sounds / resource directories
SOUND_FILES = {
    "beep": "beep_low_high.wav",
    "pop": "pop.wav",
    "bubble_pop": "bubble_pop.wav",
    "camera_shutter": "camera_shutter.wav",
    "censor_beep": "censor_beep.wav",
    "heart_beat": "heart_beat.wav",
    "padlock": "padlock.wav",
    "snap": "snap.wav",
}


# ── Built-in sound synthesis ──────────────────────────────────

def _t(seconds: float) -> np.ndarray:
    return np.arange(int(seconds * BUILTIN_RATE)) / BUILTIN_RATE


def _ramp(signal: np.ndarray, ms: float = 5.0) -> np.ndarray:
    """Short linear fade at both ends to avoid clicks."""
    n = min(len(signal) // 2, int(ms / 1000.0 * BUILTIN_RATE))
    if n > 0:
        ramp = np.linspace(0.0, 1.0, n)
        signal[:n] *= ramp
        signal[-n:] *= ramp[::-1]
    return signal


def _sine(freq: float, seconds: float, amp: float) -> np.ndarray:
    return amp * np.sin(2 * np.pi * freq * _t(seconds))


def _sweep(f0: float, f1: float, seconds: float) -> np.ndarray:
    t = _t(seconds)
    freq = np.linspace(f0, f1, len(t))
    return np.sin(2 * np.pi * np.cumsum(freq) / BUILTIN_RATE)


def _decay(seconds: float, rate: float) -> np.ndarray:
    return np.exp(-rate * _t(seconds))


def _noise(seconds: float, seed: int) -> np.ndarray:
    return np.random.default_rng(seed).uniform(-1.0, 1.0, len(_t(seconds)))


def _gap(seconds: float) -> np.ndarray:
    return np.zeros(len(_t(seconds)))


def _beep():
    return np.concatenate([_ramp(_sine(660, 0.15, 0.4)), _ramp(_sine(880, 0.15, 0.4))])


def _pop():
    return 0.6 * _sweep(400, 150, 0.06) * _decay(0.06, 60)


def _bubble_pop():
    return _ramp(0.5 * _sweep(300, 1200, 0.08) * _decay(0.08, 40))


def _camera_shutter():
    click = 0.5 * _noise(0.03, seed=7) * _decay(0.03, 150)
    return np.concatenate([click, _gap(0.06), 0.8 * click])


def _censor_beep():
    return _ramp(_sine(1000, 0.5, 0.5))


def _heart_beat():
    thump = 0.8 * _sine(60, 0.15, 1.0) * _decay(0.15, 30)
    return np.concatenate([thump, _gap(0.1), 0.6 * thump, _gap(0.4)])


def _padlock():
    ring = 0.3 * _sine(2500, 0.12, 1.0) * _decay(0.12, 45)
    ring[: len(_t(0.01))] += 0.4 * _noise(0.01, seed=11)
    return ring


def _snap():
    return 0.7 * _noise(0.015, seed=3) * _decay(0.015, 300)


_BUILTIN_SYNTHS: Dict[str, Callable[[], np.ndarray]] = {
    "beep": _beep,
    "pop": _pop,
    "bubble_pop": _bubble_pop,
    "camera_shutter": _camera_shutter,
    "censor_beep": _censor_beep,
    "heart_beat": _heart_beat,
    "padlock": _padlock,
    "snap": _snap,
}


@lru_cache(maxsize=None)
def get_builtin_sound(key: str) -> Optional[bytes]:
    """WAV bytes for a built-in effect, or None if the key is not built in."""
    synth = _BUILTIN_SYNTHS.get(key)
    if synth is None:
        return None
    samples = np.clip(synth(), -1.0, 1.0)
    return to_wav_bytes(AudioBuffer.from_mono(samples, BUILTIN_RATE))


def builtin_sounds() -> list[str]:
    return sorted(_BUILTIN_SYNTHS)


# ── Lookup ────────────────────────────────────────────────────

def _safe_key(key: str) -> bool:
    return bool(key) and "/" not in key and "\\" not in key and ".." not in key


class SoundLibrary:
    """Resolves sound keys to WAV bytes and decoded buffers."""

    def __init__(self, sounds_dir: Optional[Path] = None, resource_dir: Optional[Path] = None):
        self.sounds_dir = Path(sounds_dir) if sounds_dir else None
        self.resource_dir = Path(resource_dir) if resource_dir else None

    def _candidates(self, key: str):
        filename = SOUND_FILES.get(key, f"{key}.wav")
        for directory in (self.sounds_dir, self.resource_dir):
            if directory is not None:
                yield directory / filename

    def resolve(self, key: str) -> Optional[bytes]:
        """Raw WAV bytes for `key`, or None when nothing matches."""
        if not _safe_key(key):
            log.warning("Rejected sound key %r", key)
            return None

        data = get_builtin_sound(key)
        if data is not None:
            return data

        for path in self._candidates(key):
            if path.is_file():
                log.debug("Sound %r -> %s", key, path)
                return path.read_bytes()

        checked = ", ".join(str(p) for p in self._candidates(key)) or "no directories configured"
        log.warning("Sound effect %r not found (built-ins, %s)", key, checked)
        return None

    def load(self, key: str, sample_rate: int) -> Optional[AudioBuffer]:
        """Decoded buffer at `sample_rate`, or None if missing or unreadable."""
        try:
            data = self.resolve(key)
        except OSError as e:
            log.warning("Could not read sound effect %r: %s", key, e)
            return None
        if data is None:
            return None

        try:
            buffer = from_wav_bytes(data)
        except WavFormatError as e:
            log.warning("Sound effect %r is not a usable WAV: %s", key, e)
            return None
        return buffer.resample(sample_rate)
