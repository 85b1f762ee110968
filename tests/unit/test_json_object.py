"""Unit tests for pulling a JSON object out of model replies."""

from __future__ import annotations

import pytest

from grantdesk.utils.errors import AnalysisParseError
from grantdesk.utils.json_object import extract_json_object, find_balanced_object


class TestFindBalancedObject:
    def test_plain_object(self) -> None:
        assert find_balanced_object('{"a": 1}') == '{"a": 1}'

    def test_markdown_fence(self) -> None:
        reply = 'Here you go:\n```json\n{"title": "지원사업"}\n```\nThanks!'
        assert find_balanced_object(reply) == '{"title": "지원사업"}'

    def test_nested_objects(self) -> None:
        reply = 'x {"outer": {"inner": {"n": 1}}, "k": 2} trailing }'
        assert find_balanced_object(reply) == '{"outer": {"inner": {"n": 1}}, "k": 2}'

    def test_braces_inside_strings_are_ignored(self) -> None:
        reply = '{"description": "지원 규모 {최대} 포함 }", "n": 1} extra'
        assert find_balanced_object(reply) == '{"description": "지원 규모 {최대} 포함 }", "n": 1}'

    def test_escaped_quote_inside_string(self) -> None:
        reply = r'{"q": "he said \"}\" loudly"} tail'
        assert find_balanced_object(reply) == r'{"q": "he said \"}\" loudly"}'

    def test_no_object(self) -> None:
        assert find_balanced_object("no braces here") is None

    def test_unbalanced(self) -> None:
        assert find_balanced_object('{"a": {"b": 1}') is None


class TestExtractJsonObject:
    def test_parses_first_object(self) -> None:
        reply = 'Answer: {"title": "A", "requiredDocuments": ["x"]} and {"title": "B"}'
        assert extract_json_object(reply) == {"title": "A", "requiredDocuments": ["x"]}

    @pytest.mark.parametrize("reply", ["", "plain prose", "{not json}", '{"a": 1'])
    def test_failure_raises_parse_error(self, reply: str) -> None:
        with pytest.raises(AnalysisParseError):
            extract_json_object(reply, provider_name="gemini")

    def test_provider_name_is_attached(self) -> None:
        with pytest.raises(AnalysisParseError) as exc_info:
            extract_json_object("nothing", provider_name="gemini")
        assert exc_info.value.provider_name == "gemini"
        assert str(exc_info.value).startswith("[gemini]")
