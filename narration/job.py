"""Script-to-audio jobs - the end-to-end pipeline behind the CLI.

Core flow:
  1. Emit "start"
  2. Prefetch missing voice models ("download" events), load the engine
  3. Preprocess + parse the script, render it ("generate" events)
  4. Write the WAV once the whole buffer exists ("write"), then "complete"

Any fatal error unwinds straight out of the job; nothing is written in that
case. generate_audio_command() is the thin surface that turns those errors
into a plain message string.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import httpx
from pydantic import BaseModel

from dsp.wav import write_wav

from .assets import ensure_assets
from .config import Settings, settings as default_settings
from .errors import AudioScriptError, RenderError, SynthesisError
from .interpreter import ScriptInterpreter
from .markup import parse_script
from .preprocess import preprocess_script
from .progress import ProgressListener, ProgressReporter
from .sounds import SoundLibrary
from .tts import Narrator, SpeechEngine, load_engine

log = logging.getLogger("job")


class AudioScript(BaseModel):
    """A script to render. `filename` is filled in once the WAV is written."""
    title: str
    script: str
    filename: Optional[str] = None


def new_job_id() -> str:
    return f"tts-{int(time.time() * 1000)}"


def output_path(data_dir: Path, script: AudioScript) -> tuple[str, Path]:
    """Resolve the output file name (default "<title>.wav") inside data_dir."""
    filename = script.filename or f"{script.title}.wav"
    root = Path(data_dir).resolve()
    path = (root / filename).resolve()
    if root != path and root not in path.parents:
        raise RenderError(f"Output file {filename!r} is outside {root}")
    return filename, path


async def prepare_engine(
    cfg: Settings,
    reporter: ProgressReporter,
    client: Optional[httpx.AsyncClient] = None,
) -> SpeechEngine:
    """Download missing voice files, then load the Piper engine."""
    await ensure_assets(cfg.model_dir, cfg.voice_repo_url, reporter, client=client,
                        timeout=cfg.download_timeout)
    try:
        return load_engine(cfg.model_dir, cfg.default_voice)
    except Exception as e:
        raise SynthesisError(f"Failed to load speech engine from {cfg.model_dir}: {e}") from e


async def generate_audio(
    script: AudioScript,
    on_progress: Optional[ProgressListener] = None,
    *,
    engine: Optional[SpeechEngine] = None,
    sounds: Optional[SoundLibrary] = None,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> AudioScript:
    """Render `script` to a WAV file and return it with `filename` set.

    Args:
        script: Title, markup and optional output file name.
        on_progress: Optional listener for ProgressEvents.
        engine: Speech engine to use. When omitted, voice files are
            prefetched and a Piper engine is loaded.
        sounds: Sound-effect library; defaults to the configured directories.
        settings: Configuration; defaults to the module-level settings.
        client: httpx client for downloads (tests pass a mocked one).

    Raises:
        AudioScriptError: on any fatal failure.
    """
    cfg = settings or default_settings
    job_id = new_job_id()
    reporter = ProgressReporter(job_id, on_progress)
    filename, path = output_path(cfg.data_dir, script)

    log.info("Job %s: %r -> %s", job_id, script.title, path)
    reporter.emit(f"Starting audio generation: {script.title}", 0.0, "start")

    if engine is None:
        engine = await prepare_engine(cfg, reporter, client)

    narrator = Narrator(
        engine,
        cfg.model_dir,
        trim_threshold=cfg.trim_threshold,
        trim_min_silence_ms=cfg.trim_min_silence_ms,
        gain=cfg.narration_gain,
    )
    library = sounds or SoundLibrary(cfg.effective_sounds_dir, cfg.resource_dir)
    rate = narrator.sample_rate

    root = parse_script(preprocess_script(script.script))
    interpreter = ScriptInterpreter(
        narrator.narrate,
        lambda key: library.load(key, rate),
        rate,
        progress=reporter,
        voice=cfg.default_voice,
        speed=cfg.default_speed,
    )
    audio = interpreter.render(root)

    reporter.emit(f"Writing audio file: {filename}", 0.99, "write")
    try:
        write_wav(audio, path)
    except OSError as e:
        raise RenderError(f"Failed to write {path}: {e}") from e

    reporter.emit("Audio generation complete", 1.0, "complete")
    log.info("Job %s complete: %.2fs of audio", job_id, audio.duration)
    return script.model_copy(update={"filename": filename})


def generate_audio_command(
    title: str,
    script: str,
    filename: Optional[str] = None,
    on_progress: Optional[ProgressListener] = None,
    **kwargs,
) -> str:
    """Render a script. Returns the output file name, or an error message. Never raises."""
    try:
        result = asyncio.run(generate_audio(
            AudioScript(title=title, script=script, filename=filename),
            on_progress,
            **kwargs,
        ))
    except AudioScriptError as e:
        log.error("Audio generation failed: %s", e)
        return f"Error: {e}"
    except Exception as e:
        log.exception("Audio generation raised an unexpected exception")
        return f"Error: {type(e).__name__}: {e}"
    return result.filename
