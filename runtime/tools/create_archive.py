"""Built-in create-archive tool: zip, tar and tar.gz archives."""

from __future__ import annotations

import asyncio
import tarfile
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import ArrayField, BaseTool, EnumField, NumberField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome
from runtime.tools.fs_utils import tree_size

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


def build_archive(files: list[Path], output: Path, fmt: str, level: int) -> None:
    """Write *files* (files or directories) into a new archive at *output*.

    Each entry is stored under its base name, directories with their
    contents.
    """
    output.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "zip":
        with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED, compresslevel=level) as zf:
            for item in files:
                if item.is_dir():
                    for child in sorted(item.rglob("*")):
                        zf.write(child, Path(item.name) / child.relative_to(item))
                else:
                    zf.write(item, item.name)
        return

    mode = "w:gz" if fmt == "tar.gz" else "w"
    kwargs = {"compresslevel": level} if fmt == "tar.gz" else {}
    with tarfile.open(output, mode, **kwargs) as tf:
        for item in files:
            tf.add(item, arcname=item.name)


class CreateArchiveTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="create-archive",
            title="Create Archive",
            description="Creates a ZIP, TAR or TAR.GZ archive from files and folders.",
            schema={
                "files": ArrayField(min_items=1, description="Files or folders to include."),
                "outputPath": StringField(description="Path of the archive to create."),
                "format": EnumField(members=["zip", "tar", "tar.gz"], default="zip"),
                "compressionLevel": NumberField(
                    integer=True, minimum=0, maximum=9, default=6,
                    description="Compression level for zip and tar.gz.",
                ),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        files = [Path(f) for f in args["files"]]
        output, fmt = Path(args["outputPath"]), args["format"]

        for item in files:
            if not item.exists():
                return error_outcome(f"Error: File or folder {item} does not exist")

        try:
            original = sum(tree_size(item) for item in files)
            await asyncio.to_thread(build_archive, files, output, fmt, args["compressionLevel"])
            compressed = output.stat().st_size
        except (OSError, zipfile.BadZipFile, tarfile.TarError) as exc:
            return error_outcome(f"Error creating archive: {exc}")

        ratio = round((1 - compressed / original) * 100) if original else 0
        return text_outcome(
            "\n".join([
                "Compression complete!",
                f"Archive file: {output}",
                f"Format: {fmt.upper()}",
                f"Original size: {round(original / 1024)}KB",
                f"Compressed size: {round(compressed / 1024)}KB",
                f"Compression ratio: {ratio}%",
                f"Files included: {len(files)}",
            ])
        )


def register(server: ToolServer) -> None:
    server.register(CreateArchiveTool().definition())
