"""Script interpreter - walks the node tree and produces audio segments.

Each node evaluates to a flat, ordered list of AudioBuffers ("segments").
Structural tags just pass their children's segments up; control tags
(effect, loop, volume, overlay) first concatenate their children's
segments into one buffer and then transform it.

Voice and speed are dynamically scoped: a <voice> or <speed> tag changes
the value for its own subtree only and restores the previous value on the
way out, even if evaluation fails.

Progress is reported once per visited node as 0.1 + 0.9 * processed/total.
The total is counted once up front; overlay parts add an extra tick each,
so the ratio is approximate and can run past 1.0 for overlay-heavy scripts.
"""

from __future__ import annotations

import logging
import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from dsp.buffer import AudioBuffer
from dsp.effect_router import apply_effect, resolve_options
from dsp.levels import apply_volume

from .errors import RenderError
from .markup import Element, Node, Text, count_nodes
from .progress import ProgressReporter

log = logging.getLogger("interpreter")

DEFAULT_VOICE = "female"
DEFAULT_SPEED = 1.0

# (text, voice key, speed) -> narration audio
NarrateFn = Callable[[str, str, float], AudioBuffer]
# sound key -> decoded audio, or None when it cannot be found
LoadSoundFn = Callable[[str], Optional[AudioBuffer]]


def parse_float(value: Optional[str], default: float) -> float:
    """Attribute as a finite float, or `default` when missing or malformed."""
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        log.debug("Bad numeric attribute %r, using %s", value, default)
        return default
    return number if math.isfinite(number) else default


def parse_count(value: Optional[str], default: int = 1) -> int:
    """Attribute as a non-negative integer, or `default`."""
    if value is None:
        return default
    try:
        number = int(value.strip())
    except (AttributeError, ValueError):
        log.debug("Bad count attribute %r, using %d", value, default)
        return default
    return number if number >= 0 else default


@dataclass
class InterpreterContext:
    """Mutable state for one tree walk."""
    voice: str = DEFAULT_VOICE
    speed: float = DEFAULT_SPEED
    processed: int = 0
    total: int = 0

    @property
    def progress(self) -> float:
        if self.total <= 0:
            return 0.0
        return 0.1 + 0.9 * (self.processed / self.total)

    @contextmanager
    def scoped(self, **overrides) -> Iterator[InterpreterContext]:
        """Temporarily override voice/speed for the duration of a subtree."""
        saved = {name: getattr(self, name) for name in overrides}
        for name, value in overrides.items():
            setattr(self, name, value)
        try:
            yield self
        finally:
            for name, value in saved.items():
                setattr(self, name, value)


class ScriptInterpreter:
    """Evaluates a parsed script into audio.

    Args:
        narrate: Turns text into audio for the current voice and speed.
            Errors it raises abort the render.
        load_sound: Looks up a sound effect; None means "skip it".
        sample_rate: Working rate for silences and sound effects.
        progress: Optional reporter for per-node progress events.
    """

    def __init__(
        self,
        narrate: NarrateFn,
        load_sound: LoadSoundFn,
        sample_rate: int,
        progress: Optional[ProgressReporter] = None,
        voice: str = DEFAULT_VOICE,
        speed: float = DEFAULT_SPEED,
    ):
        self.narrate = narrate
        self.load_sound = load_sound
        self.sample_rate = sample_rate
        self.progress = progress
        self.context = InterpreterContext(voice=voice, speed=speed)

        self._handlers = {
            "speed": self._eval_speed,
            "voice": self._eval_voice,
            "pause": self._eval_pause,
            "overlay": self._eval_overlay,
            "sound": self._eval_sound,
            "effect": self._eval_effect,
            "loop": self._eval_loop,
            "volume": self._eval_volume,
        }

    # ── Entry points ──────────────────────────────────────────

    def render(self, root: Element) -> AudioBuffer:
        """Evaluate every child of `root` and join the result into one buffer."""
        self.context.total = count_nodes(root)
        self.context.processed = 0
        log.info("Rendering script: %d nodes", self.context.total)

        segments: list[AudioBuffer] = []
        for child in root.children:
            segments.extend(self.evaluate(child))

        if not segments:
            return AudioBuffer.placeholder(self.sample_rate)
        return self._concat(segments)

    def evaluate(self, node: Node) -> list[AudioBuffer]:
        """Segments produced by one node, in document order."""
        self._tick("Processing script")

        if isinstance(node, Text):
            return self._eval_text(node)

        handler = self._handlers.get(node.tag, self._eval_children)
        return handler(node)

    # ── Helpers ───────────────────────────────────────────────

    def _tick(self, message: str) -> None:
        self.context.processed += 1
        if self.progress is not None:
            self.progress.emit(message, self.context.progress, "generate")

    def _eval_children(self, node: Element) -> list[AudioBuffer]:
        segments: list[AudioBuffer] = []
        for child in node.children:
            segments.extend(self.evaluate(child))
        return segments

    @staticmethod
    def _concat(segments: list[AudioBuffer]) -> AudioBuffer:
        try:
            return AudioBuffer.concat(segments)
        except (ValueError, MemoryError) as e:
            raise RenderError(f"Failed to concatenate {len(segments)} segments: {e}") from e

    # ── Tag handlers ──────────────────────────────────────────

    def _eval_text(self, node: Text) -> list[AudioBuffer]:
        text = node.text.strip()
        if not text:
            return []
        log.debug("Text [%s @ %.2fx]: %r", self.context.voice, self.context.speed, text[:80])
        return [self.narrate(text, self.context.voice, self.context.speed)]

    def _eval_speed(self, node: Element) -> list[AudioBuffer]:
        value = node.get("value")
        if value is None:
            return self._eval_children(node)
        with self.context.scoped(speed=parse_float(value, DEFAULT_SPEED)):
            return self._eval_children(node)

    def _eval_voice(self, node: Element) -> list[AudioBuffer]:
        value = node.get("value")
        if value is None:
            return self._eval_children(node)
        # Unknown keys are kept; the narrator falls back to its default voice
        with self.context.scoped(voice=value):
            return self._eval_children(node)

    def _eval_pause(self, node: Element) -> list[AudioBuffer]:
        duration = parse_float(node.get("value"), 1.0)
        segments = [AudioBuffer.silence(duration, self.sample_rate)]
        segments.extend(self._eval_children(node))
        return segments

    def _eval_overlay(self, node: Element) -> list[AudioBuffer]:
        parts: list[AudioBuffer] = []
        for child in node.children:
            if not isinstance(child, Element) or child.tag != "part":
                continue
            self._tick("Processing overlay part")
            part_segments = self._eval_children(child)
            if part_segments:
                parts.append(self._concat(part_segments))

        if not parts:
            return []
        try:
            return [AudioBuffer.merge(parts)]
        except (ValueError, MemoryError) as e:
            raise RenderError(f"Failed to mix {len(parts)} overlay parts: {e}") from e

    def _eval_sound(self, node: Element) -> list[AudioBuffer]:
        segments: list[AudioBuffer] = []
        key = node.get("value")
        if key:
            buffer = self.load_sound(key)
            if buffer is not None:
                segments.append(buffer.resample(self.sample_rate))
        segments.extend(self._eval_children(node))
        return segments

    def _eval_effect(self, node: Element) -> list[AudioBuffer]:
        name = node.get("value") or ""
        options = resolve_options(name, node.get("preset"), node.get("options"))

        child_segments = self._eval_children(node)
        if not child_segments:
            return []
        return [apply_effect(name, self._concat(child_segments), options)]

    def _eval_loop(self, node: Element) -> list[AudioBuffer]:
        times = parse_count(node.get("value"), 1)
        child_segments = self._eval_children(node)
        if not child_segments:
            return []
        once = self._concat(child_segments)
        return [once.copy() for _ in range(times)]

    def _eval_volume(self, node: Element) -> list[AudioBuffer]:
        volume = max(0.0, parse_float(node.get("value"), 1.0))
        child_segments = self._eval_children(node)
        if not child_segments:
            return []
        return [apply_volume(self._concat(child_segments), volume)]
