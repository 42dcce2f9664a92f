"""Script markup -> node tree.

The parser is deliberately forgiving, HTML style: tag and attribute names
are lowercased, elements left open are closed at the end of their parent,
stray closing tags are dropped and `<tag/>` is an empty element. The tree
it builds is plain data with no parent links.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Optional, Union

ROOT_TAG = "root"


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Element:
    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: tuple[Node, ...] = ()

    def get(self, name: str) -> Optional[str]:
        """Attribute value, or None when the attribute is absent."""
        return self.attributes.get(name)


Node = Union[Text, Element]


class _Builder:
    """Mutable element under construction; frozen into an Element on close."""

    def __init__(self, tag: str, attributes: dict[str, str]):
        self.tag = tag
        self.attributes = attributes
        self.children: list[Node] = []

    def freeze(self) -> Element:
        return Element(self.tag, self.attributes, tuple(self.children))


class _TreeParser(HTMLParser):
    def __init__(self):
        super().__init__(convert_charrefs=True)
        self._stack: list[_Builder] = [_Builder(ROOT_TAG, {})]

    @staticmethod
    def _attrs(attrs) -> dict[str, str]:
        # Valueless attributes (<tag flag>) read as empty strings
        return {name.lower(): (value if value is not None else "") for name, value in attrs}

    def handle_starttag(self, tag, attrs):
        self._stack.append(_Builder(tag.lower(), self._attrs(attrs)))

    def handle_startendtag(self, tag, attrs):
        self._stack[-1].children.append(Element(tag.lower(), self._attrs(attrs)))

    def handle_endtag(self, tag):
        tag = tag.lower()
        # Find the nearest open element with this name; ignore the tag if none
        for depth in range(len(self._stack) - 1, 0, -1):
            if self._stack[depth].tag == tag:
                while len(self._stack) > depth:
                    self._close_top()
                return

    def handle_data(self, data):
        if not data:
            return
        children = self._stack[-1].children
        if children and isinstance(children[-1], Text):
            children[-1] = Text(children[-1].text + data)
        else:
            children.append(Text(data))

    def _close_top(self):
        done = self._stack.pop().freeze()
        self._stack[-1].children.append(done)

    def result(self) -> Element:
        while len(self._stack) > 1:
            self._close_top()
        return self._stack[0].freeze()


def parse_script(markup: str) -> Element:
    """Parse (already preprocessed) script markup into a tree under a synthetic root."""
    parser = _TreeParser()
    parser.feed(markup)
    parser.close()
    return parser.result()


def count_nodes(node: Node) -> int:
    """Number of nodes in the subtree, the node itself included."""
    if isinstance(node, Text):
        return 1
    return 1 + sum(count_nodes(child) for child in node.children)
