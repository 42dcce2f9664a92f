"""Tests for the command-line entry point."""
import sys

import pytest

import narration.main as cli
from narration.job import AudioScript


@pytest.fixture
def cli_settings(monkeypatch, test_settings):
    monkeypatch.setattr(cli, "settings", test_settings)
    return test_settings


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["audio-script", *args])
    cli.main()


def test_list_voices(monkeypatch, capsys, cli_settings):
    run_cli(monkeypatch, "--list-voices")
    out = capsys.readouterr().out
    assert "en_GB-alan-medium" in out
    assert "female2" in out


def test_list_sounds(monkeypatch, capsys, cli_settings):
    run_cli(monkeypatch, "--list-sounds")
    out = capsys.readouterr().out
    assert "camera_shutter" in out
    assert "binaural" in out


def test_script_required(monkeypatch, cli_settings):
    with pytest.raises(SystemExit) as exc:
        run_cli(monkeypatch)
    assert exc.value.code == 2


def test_unreadable_script(monkeypatch, cli_settings, temp_dir):
    with pytest.raises(SystemExit) as exc:
        run_cli(monkeypatch, str(temp_dir / "missing.txt"))
    assert exc.value.code == 2


def test_renders_script_file(monkeypatch, capsys, cli_settings, temp_dir):
    seen = []

    async def fake_generate(script, on_progress=None):
        seen.append(script)
        return script.model_copy(update={"filename": "out.wav"})

    monkeypatch.setattr(cli, "generate_audio", fake_generate)
    source = temp_dir / "calm.txt"
    source.write_text("Breathe in", encoding="utf-8")

    run_cli(monkeypatch, str(source))
    assert seen == [AudioScript(title="calm", script="Breathe in")]
    assert "out.wav" in capsys.readouterr().out


def test_progress_printer_throttles_generate_events(capsys):
    from narration.progress import ProgressEvent

    printer = cli._ProgressPrinter()
    for i in range(20):
        printer(ProgressEvent("j", "Processing script", 0.1 + i * 0.001, "generate"))
    printer(ProgressEvent("j", "done", 1.0, "complete"))
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert len(lines) == 2
