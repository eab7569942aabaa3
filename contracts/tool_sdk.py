"""Tool SDK contracts.

Every toolhub tool implements BaseTool.  The runtime validates inputs
against the tool's declarative schema, executes the handler, and
normalises whatever comes back into an ``Outcome``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Annotated, Any, Awaitable, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from contracts.api import Outcome

Handler = Callable[[dict[str, Any]], Union[Outcome, Awaitable[Outcome], Any]]


# ── Field descriptors ────────────────────────────────────────────────


class _BaseField(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: str = ""
    required: bool = True
    default: Any = None
    sensitive: bool = False  # redacted in the audit trail

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def json_schema(self) -> dict[str, Any]:
        """JSON Schema fragment used for validation of a present value."""
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        """JSON Schema fragment advertised in the tool catalogue."""
        schema = self.json_schema()
        if self.description:
            schema["description"] = self.description
        if self.has_default:
            schema["default"] = self.default
        return schema


class StringField(_BaseField):
    type: Literal["string"] = "string"
    min_length: int | None = None

    def json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "string"}
        if self.min_length is not None:
            schema["minLength"] = self.min_length
        return schema


class NumberField(_BaseField):
    type: Literal["number"] = "number"
    integer: bool = False
    minimum: float | None = None
    maximum: float | None = None

    @model_validator(mode="after")
    def _check_range(self) -> "NumberField":
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError(f"minimum {self.minimum} is greater than maximum {self.maximum}")
        return self

    def json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "integer" if self.integer else "number"}
        if self.minimum is not None:
            schema["minimum"] = self.minimum
        if self.maximum is not None:
            schema["maximum"] = self.maximum
        return schema


class BooleanField(_BaseField):
    type: Literal["boolean"] = "boolean"

    def json_schema(self) -> dict[str, Any]:
        return {"type": "boolean"}


class EnumField(_BaseField):
    type: Literal["enum"] = "enum"
    members: list[str]

    @field_validator("members")
    @classmethod
    def _non_empty(cls, members: list[str]) -> list[str]:
        if not members:
            raise ValueError("enum field needs at least one member")
        return members

    def json_schema(self) -> dict[str, Any]:
        return {"type": "string", "enum": list(self.members)}


class ArrayField(_BaseField):
    type: Literal["array"] = "array"
    min_items: int | None = None

    def json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "array", "items": {"type": "string"}}
        if self.min_items is not None:
            schema["minItems"] = self.min_items
        return schema


class BinaryField(_BaseField):
    """Opaque bytes.  Over JSON the value travels as a base64 string."""

    type: Literal["binary"] = "binary"

    def json_schema(self) -> dict[str, Any]:
        return {"type": "binary"}

    def describe(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": "string", "contentEncoding": "base64"}
        if self.description:
            schema["description"] = self.description
        return schema


FieldSpec = Annotated[
    Union[StringField, NumberField, BooleanField, EnumField, ArrayField, BinaryField],
    Field(discriminator="type"),
]


# ── Tool definition ──────────────────────────────────────────────────


class ToolDefinition(BaseModel):
    """Name, declarative schema and handler of one tool."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(pattern=r"^[A-Za-z0-9_-]+$")
    title: str = ""
    description: str = ""
    schema_: dict[str, FieldSpec] = Field(default_factory=dict, alias="schema")
    handler: Callable[..., Any]
    strict: bool = False

    @property
    def fields(self) -> dict[str, Any]:
        return self.schema_

    def input_schema(self) -> dict[str, Any]:
        """Render the schema as a JSON Schema object for the tool catalogue."""
        properties = {name: spec.describe() for name, spec in self.schema_.items()}
        required = [
            name for name, spec in self.schema_.items()
            if spec.required and not spec.has_default
        ]
        schema: dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        if self.strict:
            schema["additionalProperties"] = False
        return schema


# ── Abstract base class ─────────────────────────────────────────────


class BaseTool(ABC):
    """Abstract base class that every toolhub tool implements."""

    @abstractmethod
    def definition(self) -> ToolDefinition:
        """Return the tool's name, schema and handler."""
        ...

    @abstractmethod
    async def run(self, args: dict[str, Any]) -> Outcome:
        """Execute the tool with already-validated arguments."""
        ...
