"""
Tests for Reply Parsing

Tests for storygen/llm/parsing.py
"""

import pytest

from storygen.llm.parsing import try_parse_structured


class TestTryParseStructured:
    """Tests for try_parse_structured."""

    def test_object(self):
        assert try_parse_structured('{"title": "Dawn", "scenes": 3}') == {"title": "Dawn", "scenes": 3}

    def test_array(self):
        assert try_parse_structured(' [1, 2, 3] ') == [1, 2, 3]

    def test_fenced_json(self):
        text = 'Here is the outline:\n```json\n{"beats": ["open", "close"]}\n```\nEnjoy.'
        assert try_parse_structured(text) == {"beats": ["open", "close"]}

    def test_fence_without_language(self):
        assert try_parse_structured('```\n[{"shot": 1}]\n```') == [{"shot": 1}]

    @pytest.mark.parametrize("text", [
        "",
        None,
        "Plain prose reply.",
        "42",
        '"a string"',
        "true",
        '{"unterminated": ',
        "```json\nnot json\n```",
    ])
    def test_not_structured(self, text):
        assert try_parse_structured(text) is None

    def test_never_raises_on_deep_nesting(self):
        assert try_parse_structured("[" * 100000) is None
