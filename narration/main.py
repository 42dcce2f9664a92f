"""Audio script renderer - command-line entry point.

Run with: python -m narration.main SCRIPT [--title T] [--output NAME] [--debug]

Features:
  - Reads the script from a file, or from stdin with "-"
  - Downloads missing voice models on first use
  - Rich progress line while the job runs
  - --list-voices / --list-sounds to inspect what scripts can use
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from dsp.effects import EFFECT_REGISTRY

from .config import settings
from .errors import AudioScriptError
from .job import AudioScript, generate_audio
from .progress import ProgressEvent
from .sounds import builtin_sounds
from .tts import list_voices

console = Console()

_STAGE_STYLE = {
    "start": "bold",
    "download": "yellow",
    "generate": "cyan",
    "write": "blue",
    "complete": "green",
}


def _setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)-14s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )
    # Suppress noisy HTTP-level debug logs, we only want job/engine logs
    if debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)


def _print_voices() -> None:
    table = Table(title="Voices")
    table.add_column("key", style="cyan")
    table.add_column("model")
    table.add_column("name")
    table.add_column("downloaded")
    for v in list_voices(settings.model_dir):
        table.add_row(v["key"], v["id"], v["name"], "yes" if v["downloaded"] else "no")
    console.print(table)


def _print_sounds() -> None:
    console.print("[bold]Built-in sounds:[/] " + ", ".join(builtin_sounds()))
    console.print(f"[dim]Custom sounds are read from {settings.effective_sounds_dir}[/]")
    for name, effect in sorted(EFFECT_REGISTRY.items()):
        presets = ", ".join(effect.presets) or "-"
        console.print(f"[bold]Effect[/] [cyan]{name}[/] presets: {presets}")


class _ProgressPrinter:
    """Prints one line per stage change, and generate updates every 10%."""

    def __init__(self):
        self._last_stage = ""
        self._last_bucket = -1

    def __call__(self, event: ProgressEvent) -> None:
        bucket = int(min(event.progress, 1.0) * 10)
        if event.stage == self._last_stage and event.stage == "generate" and bucket == self._last_bucket:
            return
        self._last_stage = event.stage
        self._last_bucket = bucket
        style = _STAGE_STYLE.get(event.stage, "dim")
        console.print(f"  [{style}]{event.stage:<9}[/] {event.progress:5.0%}  {event.message}")


def _read_script(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def main() -> None:
    parser = argparse.ArgumentParser(description="Render an audio script to WAV")
    parser.add_argument("script", nargs="?", help="Script file, or '-' for stdin")
    parser.add_argument("--title", help="Job title (default: script file name)")
    parser.add_argument("--output", help="Output file name inside the data directory")
    parser.add_argument("--list-voices", action="store_true", help="Show the voice table and exit")
    parser.add_argument("--list-sounds", action="store_true", help="Show sounds and effects and exit")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    _setup_logging(args.debug)

    if args.list_voices or args.list_sounds:
        if args.list_voices:
            _print_voices()
        if args.list_sounds:
            _print_sounds()
        return

    if not args.script:
        parser.error("a script file (or '-') is required")

    try:
        text = _read_script(args.script)
    except OSError as e:
        console.print(f"[red]Cannot read script: {e}[/]")
        sys.exit(2)

    title = args.title or (Path(args.script).stem if args.script != "-" else "script")
    job = AudioScript(title=title, script=text, filename=args.output)

    try:
        result = asyncio.run(generate_audio(job, _ProgressPrinter()))
    except AudioScriptError as e:
        console.print(f"[red]Error: {e}[/]")
        sys.exit(1)

    console.print(f"[green]Wrote[/] {settings.data_dir / result.filename}")


if __name__ == "__main__":
    main()
