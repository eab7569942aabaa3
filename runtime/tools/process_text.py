"""Built-in process-text tool: line-oriented text transforms on a file."""

from __future__ import annotations

import asyncio
import json
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, EnumField, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer

OPERATIONS = [
    "sort",
    "dedupe",
    "filter",
    "replace",
    "count",
    "merge",
    "case_transform",
    "prefix_suffix",
    "tabs_spaces",
    "trim",
]


class TextProcessingError(Exception):
    pass


# ── Transforms ───────────────────────────────────────────────────────


def sort_lines(text: str, order: str = "asc") -> str:
    return "\n".join(sorted(text.split("\n"), reverse=order == "desc"))


def dedupe_lines(text: str) -> str:
    return "\n".join(dict.fromkeys(text.split("\n")))


def filter_lines(text: str, pattern: str, is_regex: bool = False) -> str:
    if is_regex:
        regex = re.compile(pattern)
        return "\n".join(line for line in text.split("\n") if regex.search(line))
    return "\n".join(line for line in text.split("\n") if pattern in line)


def replace_all(text: str, find: str, replacement: str, is_regex: bool = False) -> str:
    if is_regex:
        return re.sub(find, replacement, text)
    return text.replace(find, replacement)


def count_text(text: str) -> dict[str, int]:
    return {
        "lines": len(text.split("\n")),
        "words": len(text.split()),
        "characters": len(text),
    }


def transform_case(text: str, option: str) -> str:
    lines = text.split("\n")
    if option == "upper":
        return "\n".join(line.upper() for line in lines)
    if option == "lower":
        return "\n".join(line.lower() for line in lines)
    return "\n".join(
        " ".join(word[:1].upper() + word[1:].lower() for word in line.split(" "))
        for line in lines
    )


def add_prefix_suffix(text: str, prefix: str = "", suffix: str = "") -> str:
    return "\n".join(f"{prefix}{line}{suffix}" for line in text.split("\n"))


def convert_tabs(text: str, tab_size: int | None = None) -> str:
    """Tabs become *tab_size* spaces; without a size, runs of four spaces become tabs."""
    if tab_size:
        return text.replace("\t", " " * tab_size)
    return text.replace("    ", "\t")


def trim_lines(text: str) -> str:
    return "\n".join(line.strip() for line in text.split("\n"))


# ── Tool ─────────────────────────────────────────────────────────────


def _read(path: Path) -> str:
    if not path.is_file():
        raise TextProcessingError(f"Error: File not found at {path}")
    return path.read_text(encoding="utf-8")


def _need(args: dict[str, Any], name: str) -> Any:
    value = args.get(name)
    if not value:
        raise TextProcessingError(f"Error: '{name}' parameter is required for {args['operation']} operation.")
    return value


def process(args: dict[str, Any]) -> str:
    """Run the requested operation and return the resulting text."""
    op = args["operation"]

    if op == "merge":
        paths = [p for p in _need(args, "merge_paths").split(" ") if p.strip()]
        return "".join(_read(Path(p)) + "\n" for p in paths)

    text = _read(Path(args["file_path"]))
    is_regex = args["is_regex"]

    if op == "sort":
        return sort_lines(text, args["sort_order"])
    if op == "dedupe":
        return dedupe_lines(text)
    if op == "filter":
        return filter_lines(text, _need(args, "filter_pattern"), is_regex)
    if op == "replace":
        return replace_all(text, _need(args, "find_text"), args.get("replace_text") or "", is_regex)
    if op == "count":
        return json.dumps(count_text(text), indent=2)
    if op == "case_transform":
        return transform_case(text, _need(args, "case_option"))
    if op == "prefix_suffix":
        return add_prefix_suffix(text, args.get("prefix") or "", args.get("suffix") or "")
    if op == "tabs_spaces":
        return convert_tabs(text, args.get("tab_size"))
    return trim_lines(text)


class ProcessTextTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="process-text",
            title="Process Text",
            description=(
                "Text processing on a file: sort, dedupe, filter, replace, count, merge, "
                "case_transform, prefix_suffix, tabs_spaces, trim. Results are returned, "
                "or written to output_path."
            ),
            schema={
                "file_path": StringField(description="Text file to process (ignored by merge)."),
                "operation": EnumField(members=OPERATIONS),
                "sort_order": EnumField(members=["asc", "desc"], default="asc"),
                "filter_pattern": StringField(required=False, description="Pattern for filter."),
                "is_regex": BooleanField(default=False, description="Patterns are regular expressions."),
                "find_text": StringField(required=False, description="Text to find for replace."),
                "replace_text": StringField(required=False, description="Replacement for replace."),
                "merge_paths": StringField(required=False, description="Space-separated files to merge."),
                "case_option": EnumField(members=["upper", "lower", "capitalize"], required=False),
                "prefix": StringField(required=False),
                "suffix": StringField(required=False),
                "tab_size": NumberField(
                    integer=True, minimum=1, required=False,
                    description="Spaces per tab; omit to convert four spaces to a tab.",
                ),
                "output_path": StringField(required=False, description="Write the result here instead."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        try:
            result = await asyncio.to_thread(process, args)
            output_path = args.get("output_path")
            if output_path:
                await asyncio.to_thread(Path(output_path).write_text, result, encoding="utf-8")
                return text_outcome(
                    f"Text processing completed successfully. Output written to {output_path}"
                )
        except TextProcessingError as exc:
            return error_outcome(str(exc))
        except re.error as exc:
            return error_outcome(f"Error: Invalid regex pattern - {exc}")
        except (OSError, UnicodeDecodeError) as exc:
            return error_outcome(f"Error performing text processing operation: {exc}")
        return text_outcome(result)


def register(server: ToolServer) -> None:
    server.register(ProcessTextTool().definition())
