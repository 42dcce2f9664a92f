"""Fluent helper for building script markup in code.

    script = (ScriptBuilder()
              .text("Breathe in.")
              .pause(2)
              .effect("echo", "And out.", preset="light")
              .build())

Text is inserted as-is, so markup inside it is interpreted too.
"""

from __future__ import annotations

import json
from typing import Iterable, Optional, Union

Content = Union[str, "ScriptBuilder"]


def _inner(content: Content) -> str:
    return content.build() if isinstance(content, ScriptBuilder) else content


class ScriptBuilder:
    def __init__(self):
        self._content: list[str] = []

    def _wrap(self, tag: str, attrs: str, content: Content) -> ScriptBuilder:
        self._content.append(f"<{tag} {attrs}>{_inner(content)}</{tag}>")
        return self

    def text(self, text: str) -> ScriptBuilder:
        self._content.append(text)
        return self

    def pause(self, seconds: float) -> ScriptBuilder:
        self._content.append(f'<pause value="{seconds}"></pause>')
        return self

    def sound(self, key: str) -> ScriptBuilder:
        self._content.append(f'<sound value="{key}"></sound>')
        return self

    def voice(self, voice_key: str, content: Content) -> ScriptBuilder:
        return self._wrap("voice", f'value="{voice_key}"', content)

    def speed(self, value: float, content: Content) -> ScriptBuilder:
        return self._wrap("speed", f'value="{value}"', content)

    def volume(self, value: float, content: Content) -> ScriptBuilder:
        return self._wrap("volume", f'value="{value}"', content)

    def loop(self, times: int, content: Content) -> ScriptBuilder:
        return self._wrap("loop", f'value="{times}"', content)

    def effect(
        self,
        name: str,
        content: Content,
        preset: Optional[str] = None,
        options: Optional[dict] = None,
    ) -> ScriptBuilder:
        attrs = f'value="{name}"'
        if preset:
            attrs += f' preset="{preset}"'
        if options:
            # Single-quoted so the JSON's double quotes survive
            attrs += f" options='{json.dumps(options)}'"
        return self._wrap("effect", attrs, content)

    def overlay(self, parts: Iterable[Content]) -> ScriptBuilder:
        inner = "".join(f"<part>{_inner(p)}</part>" for p in parts)
        self._content.append(f"<overlay>{inner}</overlay>")
        return self

    def build(self) -> str:
        return "".join(self._content)

    def __str__(self) -> str:
        return self.build()
