"""Piper TTS wrapper - narration text to trimmed, level-matched mono audio.

Two layers:
  - PiperEngine: the raw engine (text + voice model + speed -> waveform).
    Anything with the same shape (the SpeechEngine protocol) can stand in,
    which is how the tests run without model files.
  - Narrator: maps script voice keys and script speeds onto the engine and
    post-processes the result (silence trim, fixed attenuation).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Protocol

import numpy as np
from scipy.signal import resample

from dsp.buffer import AudioBuffer
from dsp.levels import apply_volume, trim_silence

from .errors import SynthesisError

log = logging.getLogger("tts")

# ── Voice catalog ─────────────────────────────────────────────
# Script voice key -> Piper voice model. URL pattern:
# {repo}/{lang}/{locale}/{voice_name}/{quality}/{id}.onnx

VOICE_CATALOG = [
    {"key": "female",  "id": "en_US-hfc_female-medium", "name": "HFC Female (US)", "lang": "en", "locale": "en_US", "voice_name": "hfc_female", "quality": "medium"},
    {"key": "female2", "id": "en_US-lessac-medium",     "name": "Lessac (US)",     "lang": "en", "locale": "en_US", "voice_name": "lessac",     "quality": "medium"},
    {"key": "male",    "id": "en_US-hfc_male-medium",   "name": "HFC Male (US)",   "lang": "en", "locale": "en_US", "voice_name": "hfc_male",   "quality": "medium"},
    {"key": "male2",   "id": "en_GB-alan-medium",       "name": "Alan (UK)",       "lang": "en", "locale": "en_GB", "voice_name": "alan",       "quality": "medium"},
]

DEFAULT_VOICE_KEY = "female"

VOICES = {v["key"]: v["id"] for v in VOICE_CATALOG}
_CATALOG_BY_ID = {v["id"]: v for v in VOICE_CATALOG}

# Script speeds [0.5, 2.0] are squeezed into this engine range
ENGINE_SPEED_MIN = 0.75
ENGINE_SPEED_MAX = 1.25


def voice_files(voice_id: str) -> tuple[str, str]:
    """File names of a voice's model and its config."""
    return f"{voice_id}.onnx", f"{voice_id}.onnx.json"


def voice_urls(voice_id: str, repo_url: str) -> tuple[str, str]:
    """Download URLs for a voice's .onnx and .onnx.json."""
    entry = _CATALOG_BY_ID[voice_id]
    base = (
        f"{repo_url.rstrip('/')}/"
        f"{entry['lang']}/{entry['locale']}/{entry['voice_name']}/{entry['quality']}/{voice_id}"
    )
    return f"{base}.onnx", f"{base}.onnx.json"


def engine_speed(speed: float) -> float:
    """Map a script speed onto the engine's range: 0.5 -> 0.75, 2.0 -> 1.25, linear in between."""
    clamped = min(max(speed, 0.5), 2.0)
    return ENGINE_SPEED_MIN + ((clamped - 0.5) / 1.5) * (ENGINE_SPEED_MAX - ENGINE_SPEED_MIN)


def resolve_voice_id(voice_key: str) -> str:
    voice_id = VOICES.get(voice_key)
    if voice_id is None:
        log.warning("Unknown voice %r, falling back to %r", voice_key, DEFAULT_VOICE_KEY)
        voice_id = VOICES[DEFAULT_VOICE_KEY]
    return voice_id


def list_voices(model_dir: Path) -> list[dict]:
    """Return the voice catalog with download status for each voice."""
    result = []
    for entry in VOICE_CATALOG:
        onnx_name, config_name = voice_files(entry["id"])
        result.append({
            "key": entry["key"],
            "id": entry["id"],
            "name": entry["name"],
            "downloaded": (model_dir / onnx_name).exists() and (model_dir / config_name).exists(),
        })
    return result


# ── Engine ────────────────────────────────────────────────────

class SpeechEngine(Protocol):
    sample_rate: int

    def synthesize(self, text: str, voice_path: Path, speed: float) -> np.ndarray:
        """Mono float waveform at `sample_rate`."""
        ...


class PiperEngine:
    """Piper voices loaded lazily from local .onnx files, cached per path."""

    def __init__(self, default_voice_path: Path):
        self._voice_cache: dict = {}
        self.sample_rate = self._get_voice(Path(default_voice_path)).config.sample_rate

    def _get_voice(self, model_path: Path):
        key = str(model_path)
        if key in self._voice_cache:
            return self._voice_cache[key]

        from piper import PiperVoice

        log.info("Loading Piper TTS voice: %s", model_path)
        voice = PiperVoice.load(key)
        log.info("Piper voice loaded: %s (native rate: %d Hz)", model_path.name, voice.config.sample_rate)
        self._voice_cache[key] = voice
        return voice

    def synthesize(self, text: str, voice_path: Path, speed: float) -> np.ndarray:
        from piper import SynthesisConfig

        voice = self._get_voice(Path(voice_path))
        native_rate = voice.config.sample_rate
        # Piper expresses speed as phoneme length: longer = slower
        config = SynthesisConfig(length_scale=1.0 / speed)

        raw_parts = [chunk.audio_int16_bytes for chunk in voice.synthesize(text, syn_config=config)]
        if not raw_parts:
            log.warning("TTS produced no audio for: %r", text[:50])
            return np.zeros(0, dtype=np.float32)

        samples = np.frombuffer(b"".join(raw_parts), dtype=np.int16).astype(np.float32) / 32768.0

        if native_rate != self.sample_rate:
            num_output_samples = int(len(samples) * self.sample_rate / native_rate)
            samples = resample(samples, num_output_samples).astype(np.float32)

        log.debug(
            "TTS [%s]: %d chars -> %d samples @ %dHz (%.2fs)",
            Path(voice_path).stem, len(text), len(samples), self.sample_rate,
            len(samples) / self.sample_rate,
        )
        return samples


# ── Narrator ──────────────────────────────────────────────────

class Narrator:
    """Script-level narration: voice keys, script speeds, trim and gain."""

    def __init__(
        self,
        engine: SpeechEngine,
        model_dir: Path,
        trim_threshold: float = 0.002,
        trim_min_silence_ms: float = 20.0,
        gain: float = 0.85,
    ):
        self.engine = engine
        self.model_dir = Path(model_dir)
        self.trim_threshold = trim_threshold
        self.trim_min_silence_ms = trim_min_silence_ms
        self.gain = gain

    @property
    def sample_rate(self) -> int:
        return self.engine.sample_rate

    def voice_path(self, voice_key: str) -> Path:
        onnx_name, _ = voice_files(resolve_voice_id(voice_key))
        return self.model_dir / onnx_name

    def narrate(self, text: str, voice_key: str, speed: float) -> AudioBuffer:
        """Speak `text`. Engine failures are raised as SynthesisError."""
        path = self.voice_path(voice_key)
        try:
            wav = self.engine.synthesize(text, path, engine_speed(speed))
        except Exception as e:
            raise SynthesisError(f"Speech synthesis failed for {text[:50]!r}: {e}") from e

        buffer = AudioBuffer.from_mono(wav, self.engine.sample_rate)
        trimmed = trim_silence(buffer, self.trim_threshold, self.trim_min_silence_ms)
        return apply_volume(trimmed, self.gain)

    __call__ = narrate


def load_engine(model_dir: Path, voice_key: Optional[str] = None) -> PiperEngine:
    """Create the Piper engine, using the given (or default) voice for the working rate."""
    onnx_name, _ = voice_files(resolve_voice_id(voice_key or DEFAULT_VOICE_KEY))
    return PiperEngine(Path(model_dir) / onnx_name)
