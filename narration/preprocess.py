"""Script text cleanup applied before parsing.

Order matters and is fixed:
  1. Bare <pause ...> / <sound ...> tags get an explicit closing tag, so the
     parser does not swallow the text that follows them.
  2. "..." becomes a full stop plus a short pause.
  3. "(pause)" becomes a short pause tag.
  4. The common HTML entities are unescaped.
"""

import re

SHORT_PAUSE = '<pause value="0.5"></pause>'

# Tags that are normally written without a body
_BODYLESS_TAGS = ("pause", "sound")

_ENTITIES = (
    ("&quot;", '"'),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
)


def _close_bodyless(text: str, tag: str) -> str:
    """Append </tag> to every <tag ...> that is followed only by whitespace, a tag or the end.

    Tags that already close themselves (<tag/>), tags already followed by
    their closing tag, and tags wrapping real text are left alone.
    """
    opening = re.compile(rf"<{tag}(?=[\s>/])[^>]*>", re.IGNORECASE)
    closing = re.compile(rf"\s*</{tag}\s*>", re.IGNORECASE)

    out = []
    pos = 0
    for match in opening.finditer(text):
        out.append(text[pos:match.end()])
        pos = match.end()
        if match.group(0).endswith("/>"):
            continue
        rest = text[pos:]
        if closing.match(rest):
            continue
        stripped = rest.lstrip()
        if not stripped or stripped.startswith("<"):
            out.append(f"</{tag}>")
    out.append(text[pos:])
    return "".join(out)


def preprocess_script(script: str) -> str:
    result = script
    for tag in _BODYLESS_TAGS:
        result = _close_bodyless(result, tag)

    result = result.replace("...", "." + SHORT_PAUSE)
    result = result.replace("(pause)", SHORT_PAUSE)

    for entity, char in _ENTITIES:
        result = result.replace(entity, char)
    return result
