"""Settings for the script-to-audio renderer.

Uses pydantic-settings to load from the project's .env file (variables are
prefixed with AUDIO_SCRIPT_), with type validation and defaults that work
from a fresh checkout.
"""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # Where rendered WAV files land
    data_dir: Path = PROJECT_ROOT / "output"

    # Voice models (downloaded on demand)
    model_dir: Path = PROJECT_ROOT / "models"
    voice_repo_url: str = "https://huggingface.co/rhasspy/piper-voices/resolve/main"
    download_timeout: float = 120.0

    # Sound effects: user directory first, then bundled resources
    sounds_dir: Optional[Path] = None
    resource_dir: Optional[Path] = None

    # Interpreter defaults
    default_voice: str = "female"
    default_speed: float = 1.0

    # Narration post-processing
    trim_threshold: float = 0.002
    trim_min_silence_ms: float = 20.0
    narration_gain: float = 0.85

    model_config = {
        "env_file": str(PROJECT_ROOT / ".env"),
        "env_prefix": "AUDIO_SCRIPT_",
        "extra": "ignore",
    }

    @property
    def effective_sounds_dir(self) -> Path:
        return self.sounds_dir or (self.data_dir / "sounds")


settings = Settings()
