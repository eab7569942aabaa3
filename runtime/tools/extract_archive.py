"""Built-in extract-archive tool: zip, tar, tar.gz and tgz."""

from __future__ import annotations

import asyncio
import tarfile
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING, Any

from contracts.api import Outcome
from contracts.tool_sdk import BaseTool, BooleanField, StringField, ToolDefinition

from runtime.envelope import error_outcome, text_outcome

if TYPE_CHECKING:
    from runtime.mcp_server import ToolServer


def archive_format(path: Path) -> str | None:
    name = path.name.lower()
    if name.endswith(".zip"):
        return "ZIP"
    if name.endswith((".tar.gz", ".tgz", ".gz")):
        return "TAR.GZ"
    if name.endswith(".tar"):
        return "TAR"
    return None


def extract(archive: Path, dest: Path, fmt: str) -> list[Path]:
    """Extract *archive* into *dest* and return the extracted member paths.

    Members that would land outside *dest* are rejected.
    """
    dest.mkdir(parents=True, exist_ok=True)
    root = dest.resolve()

    if fmt == "ZIP":
        with zipfile.ZipFile(archive) as zf:
            names = zf.namelist()
            for name in names:
                if not (root / name).resolve().is_relative_to(root):
                    raise ValueError(f"Archive member escapes target directory: {name}")
            zf.extractall(dest)
        return [dest / name for name in names]

    with tarfile.open(archive, "r:gz" if fmt == "TAR.GZ" else "r:") as tf:
        names = tf.getnames()
        tf.extractall(dest, filter="data")
    return [dest / name for name in names]


class ExtractArchiveTool(BaseTool):
    def definition(self) -> ToolDefinition:
        return ToolDefinition(
            name="extract-archive",
            title="Extract Archive",
            description="Extracts a ZIP, TAR, TAR.GZ or TGZ archive into a directory.",
            schema={
                "archivePath": StringField(description="Archive to extract."),
                "extractTo": StringField(description="Target directory."),
                "overwrite": BooleanField(default=False, description="Allow a non-empty target directory."),
            },
            handler=self.run,
        )

    async def run(self, args: dict[str, Any]) -> Outcome:
        archive, dest = Path(args["archivePath"]), Path(args["extractTo"])

        if not archive.is_file():
            return error_outcome(f"Error: Archive file {archive} does not exist")
        fmt = archive_format(archive)
        if fmt is None:
            return error_outcome("Error: Unsupported archive format. Supported formats: ZIP, TAR, TAR.GZ, TGZ")
        if not args["overwrite"] and dest.is_dir() and any(dest.iterdir()):
            return error_outcome(
                f"Error: Target directory {dest} is not empty. Set overwrite=true to overwrite existing files."
            )

        try:
            extracted = await asyncio.to_thread(extract, archive, dest, fmt)
        except (OSError, ValueError, zipfile.BadZipFile, tarfile.TarError) as exc:
            return error_outcome(f"Error extracting archive: {exc}")

        total = sum(p.stat().st_size for p in extracted if p.is_file())
        return text_outcome(
            "\n".join([
                "Extraction complete!",
                f"Archive file: {archive}",
                f"Format: {fmt}",
                f"Extracted to: {dest}",
                f"Number of files extracted: {len(extracted)}",
                f"Total size: {round(total / 1024)}KB",
            ])
        )


def register(server: ToolServer) -> None:
    server.register(ExtractArchiveTool().definition())
