"""Tool registry: register, look up, and bootstrap toolhub tools."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Iterable

from contracts.errors import UnknownToolError
from contracts.tool_sdk import ToolDefinition

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

logger = logging.getLogger(__name__)

Registration = Callable[["ToolServer"], None]


class ToolRegistry:
    """In-memory name → ToolDefinition mapping."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._frozen = False

    def register(self, definition: ToolDefinition) -> None:
        """Register a tool definition.  Overwrites if the name already exists."""
        if self._frozen:
            raise RuntimeError(f"Registry is frozen; cannot register '{definition.name}'")
        if definition.name in self._tools:
            logger.warning("Tool '%s' registered twice; the later registration wins", definition.name)
        self._tools[definition.name] = definition

    def get(self, name: str) -> ToolDefinition:
        """Return a registered definition by name, or raise ``UnknownToolError``."""
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownToolError(name) from None

    def list_tools(self) -> list[str]:
        """Return sorted list of registered tool names."""
        return sorted(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        return [self._tools[name] for name in sorted(self._tools)]

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


def bootstrap(registrations: Iterable[Any], server: ToolServer) -> int:
    """Invoke every registration function with *server*.

    Non-callable entries and registrations that raise are logged and
    skipped.  Freezes the registry afterwards and returns how many tools
    were added.
    """
    registry = server.registry
    before = len(registry)
    skipped = 0

    for registration in registrations:
        if not callable(registration):
            logger.warning("Skipping tool registration that is not callable: %r", registration)
            skipped += 1
            continue
        try:
            registration(server)
        except Exception:
            logger.exception(
                "Tool registration %s failed", getattr(registration, "__module__", registration)
            )
            skipped += 1

    registry.freeze()
    added = len(registry) - before
    logger.info("%d tools have been registered (%d skipped)", added, skipped)
    return added


def builtin_registrations() -> list[Registration]:
    """Return the registration functions of every built-in tool."""
    from runtime.tools import (
        copy_files,
        count_files,
        create_archive,
        create_dir,
        delete_dir,
        delete_file,
        execute_command,
        extract_archive,
        find_and_replace,
        get_file_metadata,
        get_system_info,
        knowledge_base,
        list_files,
        list_processes,
        make_http_request,
        move_files,
        ping,
        process_text,
        query_sqlite,
        read_file,
        scrape_web,
        set_environment_variable,
        todo_list,
        watch_file_changes,
        write_file,
    )

    return [
        read_file.register,
        write_file.register,
        copy_files.register,
        move_files.register,
        delete_file.register,
        create_dir.register,
        delete_dir.register,
        list_files.register,
        count_files.register,
        get_file_metadata.register,
        find_and_replace.register,
        create_archive.register,
        extract_archive.register,
        execute_command.register,
        list_processes.register,
        get_system_info.register,
        set_environment_variable.register,
        query_sqlite.register,
        knowledge_base.register,
        process_text.register,
        ping.register,
        make_http_request.register,
        scrape_web.register,
        todo_list.register,
        watch_file_changes.register,
    ]
