"""Unit tests for the tool registry and registration bootstrap."""

from __future__ import annotations

import logging

import pytest

from contracts.errors import UnknownToolError
from contracts.tool_sdk import StringField, ToolDefinition
from runtime.mcp_server import ToolServer
from runtime.tools.registry import ToolRegistry, bootstrap, builtin_registrations


# ── helpers ─────────────────────────────────────────────────────────


def _definition(name: str, description: str = "") -> ToolDefinition:
    return ToolDefinition(name=name, description=description, handler=lambda args: name)


def _registration(name: str):
    def register(server: ToolServer) -> None:
        server.register(_definition(name))

    return register


@pytest.fixture()
def server():
    s = ToolServer()
    yield s
    s.close()


# ── registry ────────────────────────────────────────────────────────


class TestToolRegistry:
    def test_register_and_get(self) -> None:
        registry = ToolRegistry()
        registry.register(_definition("alpha"))
        assert registry.get("alpha").name == "alpha"
        assert "alpha" in registry
        assert len(registry) == 1

    def test_get_unknown_raises(self) -> None:
        with pytest.raises(UnknownToolError) as exc_info:
            ToolRegistry().get("nope")
        assert "nope" in str(exc_info.value)

    def test_list_tools_sorted(self) -> None:
        registry = ToolRegistry()
        for name in ("zeta", "alpha", "mid"):
            registry.register(_definition(name))
        assert registry.list_tools() == ["alpha", "mid", "zeta"]
        assert [d.name for d in registry.definitions()] == ["alpha", "mid", "zeta"]

    def test_duplicate_registration_last_wins_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = ToolRegistry()
        registry.register(_definition("dup", "first"))
        with caplog.at_level(logging.WARNING, logger="runtime.tools.registry"):
            registry.register(_definition("dup", "second"))
        assert registry.get("dup").description == "second"
        assert len(registry) == 1
        assert any("dup" in r.getMessage() for r in caplog.records)

    def test_frozen_registry_rejects_registration(self) -> None:
        registry = ToolRegistry()
        registry.freeze()
        assert registry.frozen
        with pytest.raises(RuntimeError):
            registry.register(_definition("late"))


# ── bootstrap ───────────────────────────────────────────────────────


class TestBootstrap:
    def test_skips_non_callable_with_one_diagnostic(
        self, server: ToolServer, caplog: pytest.LogCaptureFixture
    ) -> None:
        registrations = [_registration("one"), _registration("two"), "not a function"]
        with caplog.at_level(logging.INFO, logger="runtime.tools.registry"):
            added = bootstrap(registrations, server)

        assert added == 2
        assert server.registry.list_tools() == ["one", "two"]
        diagnostics = [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert len(diagnostics) == 1
        assert "not callable" in diagnostics[0].getMessage()

    def test_failing_registration_is_skipped(
        self, server: ToolServer, caplog: pytest.LogCaptureFixture
    ) -> None:
        def broken(server: ToolServer) -> None:
            raise RuntimeError("cannot build tool")

        with caplog.at_level(logging.ERROR, logger="runtime.tools.registry"):
            added = bootstrap([broken, _registration("ok")], server)
        assert added == 1
        assert "ok" in server.registry
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_freezes_registry(self, server: ToolServer) -> None:
        bootstrap([_registration("one")], server)
        assert server.registry.frozen


class TestBuiltinCatalogue:
    EXPECTED = {
        "read-file",
        "write-file",
        "copy-files",
        "move-files",
        "delete-file",
        "create-dir",
        "delete-dir",
        "list-files",
        "count-files",
        "get-file-metadata",
        "find-and-replace",
        "create-archive",
        "extract-archive",
        "execute-command-advanced",
        "list-processes",
        "get-system-info",
        "set-environment-variable",
        "query-sqlite",
        "knowledge-base-manager",
        "process-text",
        "ping-tool",
        "make-http-request",
        "scrape-web",
        "todo-list-tool",
        "watch-file-changes",
    }

    def test_every_builtin_registers(self, server: ToolServer) -> None:
        added = bootstrap(builtin_registrations(), server)
        assert added == 25
        assert set(server.registry.list_tools()) == self.EXPECTED

    def test_every_builtin_has_an_object_schema(self, server: ToolServer) -> None:
        bootstrap(builtin_registrations(), server)
        for definition in server.registry.definitions():
            schema = definition.input_schema()
            assert schema["type"] == "object", definition.name
            assert definition.description, definition.name
            for field_name in schema.get("required", []):
                assert field_name in schema["properties"]

    def test_required_fields_of_read_file(self, server: ToolServer) -> None:
        bootstrap(builtin_registrations(), server)
        definition = server.registry.get("read-file")
        assert isinstance(definition.fields["filePaths"], StringField)
        assert definition.input_schema()["required"] == ["filePaths"]
