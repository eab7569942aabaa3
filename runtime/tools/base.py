"""Tool base utilities: schema validation for toolhub tools.

One generic validator consumes every tool's declarative schema.  Fields
are checked in declaration order and validation stops at the first
violation.
"""

from __future__ import annotations

import base64
import binascii
import copy
from typing import Any, Union

import jsonschema
from jsonschema import validators
from pydantic import BaseModel

from contracts.errors import ArgumentValidationError
from contracts.tool_sdk import BinaryField, NumberField, ToolDefinition


class ValidationFailure(BaseModel):
    """The first violated constraint of an invocation's arguments."""

    field: str
    reason: str
    code: str = "invalid"

    @property
    def message(self) -> str:
        if self.code == "missing":
            return f"missing required field: {self.field}"
        if self.code == "unexpected":
            return f"unexpected field: {self.field}"
        return f"invalid value for field '{self.field}': {self.reason}"


ValidationResult = Union[dict[str, Any], ValidationFailure]


def _is_binary(checker: Any, instance: Any) -> bool:
    return isinstance(instance, (bytes, bytearray, str))


_FieldValidator = validators.extend(
    jsonschema.Draft202012Validator,
    type_checker=jsonschema.Draft202012Validator.TYPE_CHECKER.redefine("binary", _is_binary),
)


def _check_field(name: str, descriptor: Any, value: Any) -> Any:
    """Type-check *value* against *descriptor* and return the coerced value.

    Raises ``ArgumentValidationError`` naming the field on any violation.
    """
    try:
        _FieldValidator(descriptor.json_schema()).validate(value)
    except jsonschema.ValidationError as exc:
        raise ArgumentValidationError(name, exc.message) from exc

    if isinstance(descriptor, NumberField) and descriptor.integer:
        return int(value)
    if isinstance(descriptor, BinaryField) and isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ArgumentValidationError(name, "is not valid base64 data") from exc
    if isinstance(descriptor, BinaryField):
        return bytes(value)
    return value


def check_args(definition: ToolDefinition, raw: dict[str, Any] | None) -> dict[str, Any]:
    """Validate *raw* against the definition's schema.

    Returns the validated arguments with defaults applied.  Undeclared
    fields pass through untouched unless the definition is strict.
    Raises ``ArgumentValidationError`` for the first violation.
    """
    raw = dict(raw or {})
    validated: dict[str, Any] = {}

    for name, descriptor in definition.fields.items():
        value = raw.get(name)
        if value is None:
            if descriptor.has_default:
                validated[name] = copy.copy(descriptor.default)
            elif descriptor.required:
                raise ArgumentValidationError(name, "missing required field", code="missing")
            continue
        validated[name] = _check_field(name, descriptor, value)

    for name, value in raw.items():
        if name in definition.fields:
            continue
        if definition.strict:
            raise ArgumentValidationError(name, "unexpected field", code="unexpected")
        validated[name] = value

    return validated


def validate_args(definition: ToolDefinition, raw: dict[str, Any] | None) -> ValidationResult:
    """Validate *raw* and return either the arguments or a ``ValidationFailure``."""
    try:
        return check_args(definition, raw)
    except ArgumentValidationError as exc:
        return ValidationFailure(field=exc.field, reason=exc.reason, code=exc.code)
