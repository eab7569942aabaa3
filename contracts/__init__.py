"""Shared contracts: source of truth for all toolhub interfaces."""

from contracts.api import InvocationRequest, Outcome, TextContent
from contracts.audit import AuditEntry, AuditEvent, AuditLogger, NullAuditLogger
from contracts.config import AuditConfig, Config, DataConfig, LimitsConfig, LoggingConfig, ServerConfig
from contracts.errors import (
    ArgumentValidationError,
    ErrorKind,
    ToolHubError,
    ToolTimeoutError,
    UnknownToolError,
)
from contracts.tool_sdk import (
    ArrayField,
    BaseTool,
    BinaryField,
    BooleanField,
    EnumField,
    FieldSpec,
    NumberField,
    StringField,
    ToolDefinition,
)

__all__ = [
    # api
    "InvocationRequest",
    "Outcome",
    "TextContent",
    # audit
    "AuditEntry",
    "AuditEvent",
    "AuditLogger",
    "NullAuditLogger",
    # config
    "AuditConfig",
    "Config",
    "DataConfig",
    "LimitsConfig",
    "LoggingConfig",
    "ServerConfig",
    # errors
    "ArgumentValidationError",
    "ErrorKind",
    "ToolHubError",
    "ToolTimeoutError",
    "UnknownToolError",
    # tool sdk
    "ArrayField",
    "BaseTool",
    "BinaryField",
    "BooleanField",
    "EnumField",
    "FieldSpec",
    "NumberField",
    "StringField",
    "ToolDefinition",
]
