"""Unit tests for toolhub.yaml loading and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from contracts.config import Config, LimitsConfig
from runtime.config_loader import load_config


def _write(tmp_path: Path, data: dict) -> Path:
    p = tmp_path / "toolhub.yaml"
    p.write_text(yaml.dump(data))
    return p


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = load_config(env={})
        assert config == Config()
        assert config.server.port == 3000
        assert config.limits.default_time_limit == 120

    def test_explicit_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "absent.yaml"), env={})

    def test_env_var_names_file(self, tmp_path: Path) -> None:
        p = _write(tmp_path, {"server": {"name": "from-env"}})
        config = load_config(env={"TOOLHUB_CONFIG": str(p)})
        assert config.server.name == "from-env"

    def test_sections_parsed(self, tmp_path: Path) -> None:
        p = _write(
            tmp_path,
            {
                "server": {"port": 8123},
                "data": {"todo_path": "t.json", "knowledge_base_path": "kb.db"},
                "audit": {"enabled": False},
            },
        )
        config = load_config(str(p), env={})
        assert config.server.port == 8123
        assert config.data.todo_path == "t.json"
        assert not config.audit.enabled

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        p = tmp_path / "toolhub.yaml"
        p.write_text("")
        assert load_config(str(p), env={}) == Config()

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        p = tmp_path / "toolhub.yaml"
        p.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_config(str(p), env={})

    def test_env_overrides(self, tmp_path: Path) -> None:
        p = _write(tmp_path, {"server": {"port": 1111}})
        config = load_config(str(p), env={"PORT": "2222", "TIME_LIMIT": "30", "MAX_TIME_LIMIT": "60"})
        assert config.server.port == 2222
        assert config.limits.default_time_limit == 30
        assert config.limits.max_time_limit == 60

    def test_time_limit_above_default_max_is_clamped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = load_config(None, env={"TIME_LIMIT": "900"})
        assert config.limits.default_time_limit == 600
        assert config.limits.max_time_limit == 600

    def test_raised_max_keeps_time_limit(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        config = load_config(None, env={"TIME_LIMIT": "900", "MAX_TIME_LIMIT": "1200"})
        assert config.limits.default_time_limit == 900

    def test_invalid_port_rejected(self, tmp_path: Path) -> None:
        p = _write(tmp_path, {"server": {"port": 70000}})
        with pytest.raises(ValidationError):
            load_config(str(p), env={})


class TestLimitsConfig:
    def test_default_clamped_to_max(self) -> None:
        limits = LimitsConfig(default_time_limit=700, max_time_limit=600)
        assert limits.default_time_limit == 600
        assert limits.max_time_limit == 600
