"""toolhub CLI: validate config, list tools, run the server, call a tool, query audit logs."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

# Ensure project root is importable when running as script
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def _load_config_or_exit(path: str | None):
    from runtime.config_loader import load_config

    try:
        return load_config(path)
    except FileNotFoundError:
        print(f"Error: config not found: {path}", file=sys.stderr)
        sys.exit(1)
    except Exception as exc:
        print(f"Error: invalid config: {exc}", file=sys.stderr)
        sys.exit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a toolhub.yaml config and bootstrap the tool catalogue against it."""
    config = _load_config_or_exit(args.config)

    print(f"Config OK: {config.server.name} v{config.server.version}")
    print(f"  Listen:        {config.server.host}:{config.server.port}")
    print(f"  Time limits:   default {config.limits.default_time_limit}s, max {config.limits.max_time_limit}s")
    print(f"  Todo store:    {config.data.todo_path}")
    print(f"  Knowledge base: {config.data.knowledge_base_path}")
    print(f"  Audit path:    {config.audit.path if config.audit.enabled else '(disabled)'}")

    from runtime.server_helpers import create_server

    server = create_server(config)
    try:
        print(f"  Tools:         {len(server.registry)} registered")
    finally:
        server.close()


def cmd_tools(args: argparse.Namespace) -> None:
    """Print the tool catalogue."""
    from runtime.server_helpers import create_server

    server = create_server(_load_config_or_exit(args.config))
    try:
        for definition in server.registry.definitions():
            if args.json:
                print(json.dumps({"name": definition.name, "inputSchema": definition.input_schema()}))
            else:
                print(f"{definition.name:28s} {definition.description}")
    finally:
        server.close()


def cmd_run(args: argparse.Namespace) -> None:
    """Start the toolhub server over SSE (HTTP) or stdio."""
    if args.config:
        os.environ["TOOLHUB_CONFIG"] = args.config
    config = _load_config_or_exit(args.config)
    setup_logging(args.log_level or config.logging.level)

    from runtime.failfast import install_fail_fast

    if args.transport == "stdio":
        from runtime.server_helpers import init_toolhub

        install_fail_fast()
        components = init_toolhub(config=config, transport="stdio")

        async def _serve() -> None:
            install_fail_fast(asyncio.get_running_loop())
            await components.server.run_stdio()

        asyncio.run(_serve())
        return

    host = args.host or config.server.host
    port = args.port or config.server.port
    os.environ["TOOLHUB_FAIL_FAST"] = "1"
    install_fail_fast()

    print(f"Starting toolhub '{config.server.name}'...", file=sys.stderr)
    print(f"  Host:      {host}", file=sys.stderr)
    print(f"  Port:      {port}", file=sys.stderr)
    print(f"  SSE:       http://{host}:{port}/sse", file=sys.stderr)
    print(f"  Health:    http://{host}:{port}/health", file=sys.stderr)

    import uvicorn

    uvicorn.run(
        "runtime.app:app",
        host=host,
        port=port,
        log_level=(args.log_level or config.logging.level).lower(),
    )


def cmd_call(args: argparse.Namespace) -> None:
    """Dispatch one tool call and print the wire envelope."""
    try:
        arguments = json.loads(args.arguments) if args.arguments else {}
    except json.JSONDecodeError as exc:
        print(f"Error: arguments are not valid JSON: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(arguments, dict):
        print("Error: arguments must be a JSON object", file=sys.stderr)
        sys.exit(1)

    from runtime.server_helpers import init_toolhub

    components = init_toolhub(config=_load_config_or_exit(args.config), transport="cli")
    try:
        outcome = asyncio.run(components.server.call_tool(args.tool, arguments))
    finally:
        components.close()

    print(json.dumps(outcome.to_wire(), indent=2))
    if outcome.is_error:
        sys.exit(2)


def cmd_logs(args: argparse.Namespace) -> None:
    """Query audit logs."""
    from contracts.audit import AuditEvent
    from runtime.audit.logger import JsonlAuditLogger

    log_path = args.log_path

    if not Path(log_path).exists():
        print(f"No audit log found at {log_path}", file=sys.stderr)
        sys.exit(1)

    event = None
    if args.event:
        try:
            event = AuditEvent(args.event)
        except ValueError:
            valid = ", ".join(e.value for e in AuditEvent)
            print(f"Unknown event type: {args.event}", file=sys.stderr)
            print(f"Valid events: {valid}", file=sys.stderr)
            sys.exit(1)

    audit = JsonlAuditLogger(log_path)
    if args.request_id and not (event or args.tool):
        entries = audit.query_by_request(args.request_id)
    else:
        entries = audit.query(request_id=args.request_id, event=event, tool=args.tool, limit=args.limit)

    if not entries:
        print("No matching audit entries.")
        return

    for entry in entries:
        record = json.loads(entry.model_dump_json())
        if args.json:
            print(json.dumps(record))
        else:
            ts = record["ts"][:19]
            rid = record["request_id"][:8]
            detail = json.dumps(record.get("detail", {}))
            print(f"{ts}  [{record['event']:13s}]  {rid}  {record['tool']:24s}  {detail}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolhub",
        description="toolhub: MCP tool server CLI",
    )
    sub = parser.add_subparsers(dest="command")

    # validate
    p_val = sub.add_parser("validate", help="Validate a toolhub.yaml config")
    p_val.add_argument("config", nargs="?", default=None, help="Path to config")
    p_val.set_defaults(func=cmd_validate)

    # tools
    p_tools = sub.add_parser("tools", help="List the registered tools")
    p_tools.add_argument("--config", "-c", default=None, help="Path to config")
    p_tools.add_argument("--json", action="store_true", help="Print one JSON object per tool")
    p_tools.set_defaults(func=cmd_tools)

    # run
    p_run = sub.add_parser("run", help="Start the toolhub server")
    p_run.add_argument("config", nargs="?", default=None, help="Path to config")
    p_run.add_argument("--transport", choices=["sse", "stdio"], default="sse", help="MCP transport")
    p_run.add_argument("--host", default=None, help="Bind address (default from config)")
    p_run.add_argument("--port", type=int, default=None, help="Port (default from config)")
    p_run.add_argument("--log-level", default=None, help="debug | info | warning | error")
    p_run.set_defaults(func=cmd_run)

    # call
    p_call = sub.add_parser("call", help="Call one tool and print the result envelope")
    p_call.add_argument("tool", help="Tool name")
    p_call.add_argument("arguments", nargs="?", default=None, help="Arguments as a JSON object")
    p_call.add_argument("--config", "-c", default=None, help="Path to config")
    p_call.set_defaults(func=cmd_call)

    # logs
    p_logs = sub.add_parser("logs", help="Query audit logs")
    p_logs.add_argument("log_path", help="Path to audit JSONL file")
    p_logs.add_argument("--request-id", "-r", help="Filter by request ID")
    p_logs.add_argument("--event", "-e", help="Filter by event type")
    p_logs.add_argument("--tool", "-t", help="Filter by tool name")
    p_logs.add_argument("--limit", "-n", type=int, default=20, help="Max entries")
    p_logs.add_argument("--json", action="store_true", help="Output raw JSON")
    p_logs.set_defaults(func=cmd_logs)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
