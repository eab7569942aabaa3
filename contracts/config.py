"""Configuration (toolhub.yaml) schema: Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


# ── Sections ────────────────────────────────────────────────────────


class ServerConfig(BaseModel):
    name: str = "toolhub"
    version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, ge=1, le=65535)


class LimitsConfig(BaseModel):
    """Handler time limits, in seconds."""

    default_time_limit: int = Field(default=120, ge=1)
    max_time_limit: int = Field(default=600, ge=1)

    @model_validator(mode="after")
    def _clamp_default(self) -> "LimitsConfig":
        # TIME_LIMIT and MAX_TIME_LIMIT are set independently
        if self.default_time_limit > self.max_time_limit:
            self.default_time_limit = self.max_time_limit
        return self


class DataConfig(BaseModel):
    todo_path: str = "todo-list.json"
    knowledge_base_path: str = "knowledge_base.db"


class AuditConfig(BaseModel):
    enabled: bool = True
    path: str = "toolhub-audit.jsonl"


class LoggingConfig(BaseModel):
    level: str = "info"  # debug | info | warning | error


# ── Root config ──────────────────────────────────────────────────────


class Config(BaseModel):
    server: ServerConfig = ServerConfig()
    limits: LimitsConfig = LimitsConfig()
    data: DataConfig = DataConfig()
    audit: AuditConfig = AuditConfig()
    logging: LoggingConfig = LoggingConfig()
