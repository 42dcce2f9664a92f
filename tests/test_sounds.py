"""Tests for sound-effect lookup and the built-in sound set."""
import numpy as np
import pytest

from dsp.buffer import AudioBuffer
from dsp.wav import from_wav_bytes, to_wav_bytes
from narration.sounds import (
    BUILTIN_RATE,
    SOUND_FILES,
    SoundLibrary,
    builtin_sounds,
    get_builtin_sound,
)


def wav_file(path, value=0.5, length=100, rate=16000):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(to_wav_bytes(AudioBuffer.from_mono(np.full(length, value), rate)))
    return path


class TestBuiltins:

    def test_all_keys_built_in(self):
        assert builtin_sounds() == sorted(SOUND_FILES)

    @pytest.mark.parametrize("key", sorted(SOUND_FILES))
    def test_builtin_decodes(self, key):
        buf = from_wav_bytes(get_builtin_sound(key))
        assert buf.sample_rate == BUILTIN_RATE
        assert buf.num_channels == 1
        assert buf.length > 0
        assert np.abs(buf.samples).max() > 0.01

    def test_unknown_key(self):
        assert get_builtin_sound("kazoo") is None


class TestSoundLibrary:

    def test_builtin_wins_over_directory(self, temp_dir):
        wav_file(temp_dir / "pop.wav", value=0.9)
        lib = SoundLibrary(temp_dir)
        assert lib.resolve("pop") == get_builtin_sound("pop")

    def test_load_resamples(self):
        buf = SoundLibrary().load("beep", 24000)
        assert buf.sample_rate == 24000
        expected = from_wav_bytes(get_builtin_sound("beep")).resample(24000).length
        assert buf.length == expected

    def test_custom_sound_from_sounds_dir(self, temp_dir):
        wav_file(temp_dir / "sounds" / "gong.wav", value=0.5)
        buf = SoundLibrary(temp_dir / "sounds").load("gong", 16000)
        assert buf.length == 100
        assert np.allclose(buf.samples, 0.5, atol=1e-4)

    def test_resource_dir_fallback(self, temp_dir):
        wav_file(temp_dir / "res" / "gong.wav", value=0.25)
        lib = SoundLibrary(temp_dir / "sounds", temp_dir / "res")
        assert np.allclose(lib.load("gong", 16000).samples, 0.25, atol=1e-4)

    def test_sounds_dir_before_resource_dir(self, temp_dir):
        wav_file(temp_dir / "sounds" / "gong.wav", value=0.75)
        wav_file(temp_dir / "res" / "gong.wav", value=0.25)
        lib = SoundLibrary(temp_dir / "sounds", temp_dir / "res")
        assert np.allclose(lib.load("gong", 16000).samples, 0.75, atol=1e-4)

    def test_missing_sound(self, temp_dir):
        assert SoundLibrary(temp_dir).load("nothing_here", 24000) is None
        assert SoundLibrary().resolve("nothing_here") is None

    @pytest.mark.parametrize("key", ["../secret", "a/b", "a\\b", ""])
    def test_unsafe_keys_rejected(self, temp_dir, key):
        (temp_dir / "secret.wav").write_bytes(b"x")
        assert SoundLibrary(temp_dir / "sounds").resolve(key) is None

    def test_unreadable_wav_is_skipped(self, temp_dir):
        (temp_dir / "broken.wav").write_bytes(b"not audio at all")
        assert SoundLibrary(temp_dir).load("broken", 24000) is None
