"""Shared initialisation logic for the toolhub HTTP and stdio servers."""

from __future__ import annotations

from contracts.audit import AuditLogger, NullAuditLogger
from contracts.config import Config
from runtime.audit.logger import JsonlAuditLogger
from runtime.config_loader import load_config
from runtime.mcp_server import ToolServer
from runtime.tools.registry import bootstrap, builtin_registrations


class ToolHubComponents:
    """Container for initialised toolhub components."""

    def __init__(self, config: Config, server: ToolServer, audit: AuditLogger) -> None:
        self.config = config
        self.server = server
        self.audit = audit

    @property
    def registry(self):
        return self.server.registry

    def close(self) -> None:
        self.server.close()


def create_audit_logger(config: Config) -> AuditLogger:
    if not config.audit.enabled:
        return NullAuditLogger()
    return JsonlAuditLogger(config.audit.path)


def create_server(config: Config, audit: AuditLogger | None = None, transport: str = "") -> ToolServer:
    """Build a ToolServer and register every built-in tool against it."""
    server = ToolServer(config=config, audit=audit, transport=transport)
    bootstrap(builtin_registrations(), server)
    return server


def init_toolhub(
    config_path: str | None = None,
    config: Config | None = None,
    transport: str = "",
) -> ToolHubComponents:
    """Load config and create the audit logger and a bootstrapped server.

    Uses ``TOOLHUB_CONFIG`` if neither *config_path* nor *config* is given.
    """
    if config is None:
        config = load_config(config_path)

    audit = create_audit_logger(config)
    server = create_server(config, audit=audit, transport=transport)

    return ToolHubComponents(config=config, server=server, audit=audit)
