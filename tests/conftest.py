"""
Pytest fixtures for the audio script tests.
"""
import shutil
import sys
import tempfile
from pathlib import Path

import numpy as np
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from dsp.buffer import AudioBuffer  # noqa: E402
from narration.config import Settings  # noqa: E402


class StubEngine:
    """Speech engine stand-in: 0.1s of constant 0.5 per call, calls recorded."""

    def __init__(self, sample_rate=24000, frames=2400, value=0.5):
        self.sample_rate = sample_rate
        self.frames = frames
        self.value = value
        self.calls = []

    def synthesize(self, text, voice_path, speed):
        self.calls.append((text, Path(voice_path).name, speed))
        return np.full(self.frames, self.value, dtype=np.float32)


class FailingEngine(StubEngine):
    def synthesize(self, text, voice_path, speed):
        raise RuntimeError("onnx session exploded")


@pytest.fixture
def sample_rate():
    """Standard working sample rate for tests."""
    return 24000


@pytest.fixture
def temp_dir():
    """Create temporary directory for test outputs."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def stub_engine():
    return StubEngine()


@pytest.fixture
def failing_engine():
    return FailingEngine()


@pytest.fixture
def test_settings(temp_dir):
    """Settings isolated from the developer's .env and real directories."""
    return Settings(
        _env_file=None,
        data_dir=temp_dir / "out",
        model_dir=temp_dir / "models",
        sounds_dir=temp_dir / "sounds",
    )


@pytest.fixture
def tone():
    """Factory for mono constant-value buffers."""
    def _make(length, value=0.5, rate=24000):
        return AudioBuffer.from_mono(np.full(length, value, dtype=np.float32), rate)
    return _make
