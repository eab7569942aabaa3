"""Unit tests for the dispatcher: resolution, validation, execution, safety net."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from contracts.api import Outcome, TextContent
from contracts.audit import AuditEvent
from contracts.tool_sdk import BinaryField, EnumField, NumberField, StringField, ToolDefinition
from runtime.audit.logger import JsonlAuditLogger
from runtime.dispatcher import Dispatcher
from runtime.tools.registry import ToolRegistry


# ── helpers ─────────────────────────────────────────────────────────


class Spy:
    """Handler that records every call it receives."""

    def __init__(self, result: Any = "done") -> None:
        self.calls: list[dict[str, Any]] = []
        self.result = result

    def __call__(self, args: dict[str, Any]) -> Any:
        self.calls.append(args)
        return self.result


class AsyncSpy(Spy):
    async def __call__(self, args: dict[str, Any]) -> Any:  # type: ignore[override]
        await asyncio.sleep(0)
        return super().__call__(args)


def _dispatcher(*definitions: ToolDefinition, audit=None) -> Dispatcher:
    registry = ToolRegistry()
    for d in definitions:
        registry.register(d)
    return Dispatcher(registry, audit=audit, transport="test")


# ── success paths ───────────────────────────────────────────────────


class TestDispatchSuccess:
    @pytest.mark.asyncio
    async def test_sync_handler_success(self) -> None:
        spy = Spy("hello")
        d = _dispatcher(ToolDefinition(name="greet", schema={"who": StringField()}, handler=spy))
        outcome = await d.dispatch("greet", {"who": "world"})
        assert not outcome.is_error
        assert outcome.text == "hello"
        assert spy.calls == [{"who": "world"}]

    @pytest.mark.asyncio
    async def test_async_handler_is_awaited(self) -> None:
        spy = AsyncSpy(Outcome(content=[TextContent(text="async ok")]))
        d = _dispatcher(ToolDefinition(name="later", handler=spy))
        outcome = await d.dispatch("later", {})
        assert outcome.text == "async ok"
        assert len(spy.calls) == 1

    @pytest.mark.asyncio
    async def test_success_envelope_has_no_is_error(self) -> None:
        d = _dispatcher(ToolDefinition(name="plain", handler=Spy("x")))
        wire = (await d.dispatch("plain")).to_wire()
        assert wire == {"content": [{"type": "text", "text": "x"}]}

    @pytest.mark.asyncio
    async def test_default_substitution_reaches_handler(self) -> None:
        spy = Spy()
        d = _dispatcher(ToolDefinition(name="counter", schema={"count": NumberField(default=4)}, handler=spy))
        await d.dispatch("counter", {})
        assert spy.calls == [{"count": 4}]

    @pytest.mark.asyncio
    async def test_handler_error_outcome_passes_through(self) -> None:
        failing = Outcome(content=[TextContent(text="Error: nope")], is_error=True)
        d = _dispatcher(ToolDefinition(name="domain", handler=Spy(failing)))
        outcome = await d.dispatch("domain", {})
        assert outcome.is_error
        assert outcome.text == "Error: nope"


# ── failure paths ───────────────────────────────────────────────────


class TestDispatchFailures:
    @pytest.mark.asyncio
    async def test_unknown_tool(self) -> None:
        spy = Spy()
        d = _dispatcher(ToolDefinition(name="real", handler=spy))
        wire = (await d.dispatch("does-not-exist", {})).to_wire()
        assert wire["isError"] is True
        assert wire["content"][0]["type"] == "text"
        assert "does-not-exist" in wire["content"][0]["text"]
        assert spy.calls == []

    @pytest.mark.asyncio
    async def test_missing_required_field_skips_handler(self) -> None:
        spy = Spy()
        d = _dispatcher(ToolDefinition(name="needs", schema={"path": StringField()}, handler=spy))
        outcome = await d.dispatch("needs", {})
        assert outcome.is_error
        assert "path" in outcome.text
        assert spy.calls == []

    @pytest.mark.asyncio
    async def test_enum_violation_names_field(self) -> None:
        spy = Spy()
        d = _dispatcher(
            ToolDefinition(name="modal", schema={"mode": EnumField(members=["a", "b"])}, handler=spy)
        )
        outcome = await d.dispatch("modal", {"mode": "c"})
        assert outcome.is_error
        assert "mode" in outcome.text
        assert spy.calls == []

    @pytest.mark.asyncio
    async def test_range_boundaries(self) -> None:
        spy = Spy()
        d = _dispatcher(
            ToolDefinition(name="ranged", schema={"n": NumberField(minimum=1, maximum=100)}, handler=spy)
        )
        assert not (await d.dispatch("ranged", {"n": 1})).is_error
        assert not (await d.dispatch("ranged", {"n": 100})).is_error
        assert (await d.dispatch("ranged", {"n": 0})).is_error
        assert (await d.dispatch("ranged", {"n": 101})).is_error
        assert len(spy.calls) == 2

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_error_outcome(self) -> None:
        def explode(args: dict[str, Any]) -> None:
            raise ValueError("kaboom")

        d = _dispatcher(ToolDefinition(name="bomb", handler=explode))
        outcome = await d.dispatch("bomb", {})
        assert outcome.is_error
        assert "kaboom" in outcome.text

    @pytest.mark.asyncio
    async def test_async_handler_exception_becomes_error_outcome(self) -> None:
        async def explode(args: dict[str, Any]) -> None:
            raise RuntimeError("async kaboom")

        d = _dispatcher(ToolDefinition(name="abomb", handler=explode))
        outcome = await d.dispatch("abomb", {})
        assert outcome.is_error
        assert "async kaboom" in outcome.text

    @pytest.mark.asyncio
    async def test_unsupported_return_type_is_error(self) -> None:
        d = _dispatcher(ToolDefinition(name="weird", handler=Spy(object())))
        outcome = await d.dispatch("weird", {})
        assert outcome.is_error

    @pytest.mark.asyncio
    async def test_safety_net_catches_dispatcher_faults(self) -> None:
        class BrokenRegistry(ToolRegistry):
            def get(self, name: str) -> ToolDefinition:
                raise RuntimeError("registry exploded")

        outcome = await Dispatcher(BrokenRegistry()).dispatch("anything", {})
        assert outcome.is_error
        assert "registry exploded" in outcome.text

    @pytest.mark.asyncio
    async def test_each_dispatch_calls_handler_at_most_once(self) -> None:
        calls = 0

        def flaky(args: dict[str, Any]) -> None:
            nonlocal calls
            calls += 1
            raise ConnectionError("transient")

        d = _dispatcher(ToolDefinition(name="flaky", handler=flaky))
        await d.dispatch("flaky", {})
        assert calls == 1


# ── audit trail ─────────────────────────────────────────────────────


class TestDispatchAudit:
    @pytest.mark.asyncio
    async def test_success_writes_call_and_result(self, tmp_path: Path) -> None:
        audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
        d = _dispatcher(ToolDefinition(name="ok", handler=Spy()), audit=audit)
        await d.dispatch("ok", {"x": 1})

        entries = audit.tail()
        assert [e.event for e in entries] == [AuditEvent.TOOL_CALL, AuditEvent.TOOL_RESULT]
        assert entries[0].request_id == entries[1].request_id
        assert entries[0].tool == "ok"
        assert entries[0].transport == "test"
        assert entries[0].detail["arguments"] == {"x": 1}
        assert "duration_ms" in entries[1].detail

    @pytest.mark.asyncio
    async def test_unknown_and_rejected_events(self, tmp_path: Path) -> None:
        audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
        d = _dispatcher(ToolDefinition(name="needs", schema={"p": StringField()}, handler=Spy()), audit=audit)
        await d.dispatch("ghost", {})
        await d.dispatch("needs", {})

        events = [e.event for e in audit.tail()]
        assert events == [AuditEvent.TOOL_UNKNOWN, AuditEvent.TOOL_REJECTED]
        rejected = audit.query_by_event(AuditEvent.TOOL_REJECTED)[0]
        assert rejected.detail["field"] == "p"
        assert rejected.detail["kind"] == "validation"

    @pytest.mark.asyncio
    async def test_fault_event(self, tmp_path: Path) -> None:
        def explode(args: dict[str, Any]) -> None:
            raise ValueError("bad")

        audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
        d = _dispatcher(ToolDefinition(name="bomb", handler=explode), audit=audit)
        await d.dispatch("bomb", {})

        events = [e.event for e in audit.tail()]
        assert events == [AuditEvent.TOOL_CALL, AuditEvent.TOOL_FAULT, AuditEvent.TOOL_RESULT]
        fault = audit.query_by_event(AuditEvent.TOOL_FAULT)[0]
        assert fault.detail["kind"] == "handler_fault"

    @pytest.mark.asyncio
    async def test_binary_arguments_are_summarised(self, tmp_path: Path) -> None:
        audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
        d = _dispatcher(ToolDefinition(name="bin", handler=Spy()), audit=audit)
        await d.dispatch("bin", {"blob": b"12345"})
        call = audit.query_by_event(AuditEvent.TOOL_CALL)[0]
        assert call.detail["arguments"] == {"blob": "<5 bytes>"}

    @pytest.mark.asyncio
    async def test_logged_arguments_are_validated_and_redacted(self, tmp_path: Path) -> None:
        audit = JsonlAuditLogger(tmp_path / "audit.jsonl")
        definition = ToolDefinition(
            name="login",
            schema={
                "user": StringField(),
                "password": StringField(sensitive=True),
                "avatar": BinaryField(required=False),
                "bio": StringField(required=False),
                "retries": NumberField(integer=True, default=3),
            },
            handler=Spy(),
        )
        d = _dispatcher(definition, audit=audit)
        await d.dispatch(
            "login", {"user": "ada", "password": "hunter2", "avatar": "AAEC", "bio": "x" * 1000}
        )

        call = audit.query_by_event(AuditEvent.TOOL_CALL)[0]
        assert call.detail["arguments"] == {
            "user": "ada",
            "password": "<redacted>",
            "avatar": "<3 bytes>",
            "bio": "<1000 chars>",
            "retries": 3,
        }
        assert "hunter2" not in (tmp_path / "audit.jsonl").read_text()
