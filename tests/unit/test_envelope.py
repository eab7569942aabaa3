"""Unit tests for Outcome construction and handler-result normalisation."""

from __future__ import annotations

from contracts.api import InvocationRequest, Outcome, TextContent
from runtime.envelope import error_outcome, json_outcome, normalize_result, text_outcome, to_mcp_result


class TestOutcome:
    def test_text_outcome(self) -> None:
        outcome = text_outcome("hi")
        assert outcome.to_wire() == {"content": [{"type": "text", "text": "hi"}]}

    def test_error_outcome_sets_flag(self) -> None:
        assert error_outcome("bad").to_wire() == {
            "content": [{"type": "text", "text": "bad"}],
            "isError": True,
        }

    def test_json_outcome_is_pretty_printed(self) -> None:
        outcome = json_outcome({"a": 1})
        assert outcome.text == '{\n  "a": 1\n}'

    def test_wire_shape_parses_back(self) -> None:
        outcome = Outcome.model_validate({"content": [{"type": "text", "text": "x"}], "isError": True})
        assert outcome.is_error

    def test_invocation_request_alias(self) -> None:
        request = InvocationRequest.model_validate({"toolName": "ping-tool", "arguments": {"target": "x"}})
        assert request.tool_name == "ping-tool"


class TestNormalizeResult:
    def test_outcome_passes_through(self) -> None:
        outcome = text_outcome("same")
        assert normalize_result(outcome) is outcome

    def test_string_becomes_text_block(self) -> None:
        assert normalize_result("plain").text == "plain"

    def test_none_is_empty_success(self) -> None:
        outcome = normalize_result(None)
        assert not outcome.is_error
        assert outcome.content == []

    def test_wire_dict(self) -> None:
        outcome = normalize_result({"content": [{"type": "text", "text": "d"}], "isError": True})
        assert outcome.is_error
        assert outcome.text == "d"

    def test_list_of_blocks_and_strings(self) -> None:
        outcome = normalize_result(["a", TextContent(text="b"), {"type": "text", "text": "c"}])
        assert [b.text for b in outcome.content] == ["a", "b", "c"]

    def test_malformed_dict_is_error(self) -> None:
        outcome = normalize_result({"content": [{"type": "image"}]})
        assert outcome.is_error

    def test_unsupported_type_is_error(self) -> None:
        outcome = normalize_result(42)
        assert outcome.is_error
        assert "int" in outcome.text


class TestMcpConversion:
    def test_to_mcp_result(self) -> None:
        result = to_mcp_result(error_outcome("nope"))
        assert result.isError is True
        assert result.content[0].text == "nope"
