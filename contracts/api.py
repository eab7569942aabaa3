"""Wire-level request/response contracts.

Every dispatch resolves to exactly one ``Outcome``; its wire shape is
``{"content": [{"type": "text", "text": ...}], "isError": true?}``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# ── Content blocks ───────────────────────────────────────────────────


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


# ── Request / response envelope ──────────────────────────────────────


class InvocationRequest(BaseModel):
    """A named tool call as received over the transport."""

    model_config = ConfigDict(populate_by_name=True)

    tool_name: str = Field(alias="toolName")
    arguments: dict[str, Any] = {}


class Outcome(BaseModel):
    """The universal handler return value."""

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent] = []
    is_error: bool = Field(default=False, alias="isError")

    @property
    def text(self) -> str:
        """All text blocks joined by newlines."""
        return "\n".join(block.text for block in self.content)

    def to_wire(self) -> dict[str, Any]:
        """Serialise to the wire shape; ``isError`` is omitted on success."""
        data: dict[str, Any] = {
            "content": [block.model_dump() for block in self.content],
        }
        if self.is_error:
            data["isError"] = True
        return data
