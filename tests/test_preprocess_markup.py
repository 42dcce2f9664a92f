"""Tests for script cleanup and the markup parser."""
import pytest

from narration.markup import Element, Text, count_nodes, parse_script
from narration.preprocess import SHORT_PAUSE, preprocess_script


class TestPreprocess:

    def test_ellipsis_becomes_full_stop_and_pause(self):
        out = preprocess_script("Hello... world")
        assert out == 'Hello.<pause value="0.5"></pause> world'
        assert "..." not in out

    def test_pause_keyword(self):
        assert preprocess_script("Breathe (pause) out") == f"Breathe {SHORT_PAUSE} out"

    def test_entities_unescaped(self):
        assert preprocess_script("&amp; &lt; &gt;") == "& < >"
        assert preprocess_script("say &quot;hi&quot;") == 'say "hi"'

    def test_escaped_tags_become_markup(self):
        assert preprocess_script('&lt;pause value=&quot;1&quot;&gt;&lt;/pause&gt;') == \
            '<pause value="1"></pause>'

    def test_bare_pause_before_tag_is_closed(self):
        out = preprocess_script('<pause value="1"><sound value="beep">')
        assert out == '<pause value="1"></pause><sound value="beep"></sound>'

    def test_bare_tag_at_end_is_closed(self):
        assert preprocess_script('Hi <pause value="2">') == 'Hi <pause value="2"></pause>'

    def test_bare_tag_followed_by_whitespace_only(self):
        assert preprocess_script('<sound value="pop">  ') == '<sound value="pop"></sound>  '

    def test_pause_wrapping_text_is_left_alone(self):
        script = '<pause value="1">Then we continue'
        assert preprocess_script(script) == script

    @pytest.mark.parametrize("script", [
        '<pause value="1"/>',
        '<pause value="1"></pause>',
        '<pause value="1">  </pause>',
        '<sound value="beep"></sound>',
    ])
    def test_already_closed_tags_unchanged(self, script):
        assert preprocess_script(script) == script

    def test_other_tags_are_not_touched(self):
        assert preprocess_script('<paused>x') == '<paused>x'
        assert preprocess_script('<voice value="male">') == '<voice value="male">'


class TestParser:

    def test_text_and_elements(self):
        root = parse_script('Hi <voice value="male">there</voice>')
        assert root.tag == "root"
        assert root.children == (
            Text("Hi "),
            Element("voice", {"value": "male"}, (Text("there"),)),
        )

    def test_names_lowercased(self):
        root = parse_script('<SPEED Value="1.5">x</SPEED>')
        speed = root.children[0]
        assert speed.tag == "speed"
        assert speed.get("value") == "1.5"

    def test_self_closing_tag(self):
        root = parse_script('<pause value="2"/>after')
        assert root.children == (Element("pause", {"value": "2"}), Text("after"))

    def test_missing_attribute_is_none(self):
        root = parse_script("<loop>x</loop>")
        assert root.children[0].get("value") is None

    def test_stray_closing_tag_ignored(self):
        root = parse_script("a</speed>b")
        assert root.children == (Text("ab"),)

    def test_unclosed_element_closed_at_end(self):
        root = parse_script('<speed value="2">fast')
        assert root.children == (Element("speed", {"value": "2"}, (Text("fast"),)),)

    def test_closing_outer_tag_closes_inner(self):
        root = parse_script('<voice value="male"><speed value="2">x</voice>y')
        voice, tail = root.children
        assert voice.children == (Element("speed", {"value": "2"}, (Text("x"),)),)
        assert tail == Text("y")

    def test_single_quoted_json_attribute(self):
        root = parse_script("""<effect value="echo" options='{"decay": 0.9}'>x</effect>""")
        assert root.children[0].get("options") == '{"decay": 0.9}'

    def test_overlay_parts(self):
        root = parse_script("<overlay><part>a</part><part>b</part></overlay>")
        overlay = root.children[0]
        assert [c.tag for c in overlay.children] == ["part", "part"]

    def test_count_nodes(self):
        root = parse_script('A<voice value="male">B<pause value="1"></pause></voice>C')
        # root, A, voice, B, pause, C
        assert count_nodes(root) == 6
        assert count_nodes(Text("x")) == 1

    def test_preprocessed_ellipsis_parses_to_pause(self):
        root = parse_script(preprocess_script("Wait... now"))
        assert root.children == (
            Text("Wait."),
            Element("pause", {"value": "0.5"}),
            Text(" now"),
        )
