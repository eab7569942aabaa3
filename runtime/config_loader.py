"""Config loader: parse and validate toolhub.yaml, then apply env overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from contracts.config import Config

DEFAULT_CONFIG_PATH = "./toolhub.yaml"

# env var → (section, key)
_ENV_OVERRIDES = {
    "PORT": ("server", "port"),
    "TIME_LIMIT": ("limits", "default_time_limit"),
    "MAX_TIME_LIMIT": ("limits", "max_time_limit"),
}


def load_config(path: str | None = None, env: Mapping[str, str] | None = None) -> Config:
    """Load a toolhub.yaml file and return a validated Config.

    With no *path*, ``TOOLHUB_CONFIG`` is used, falling back to
    ``./toolhub.yaml``; a missing default file yields the built-in
    defaults.  An explicitly named file must exist.
    """
    env = os.environ if env is None else env
    explicit = path or env.get("TOOLHUB_CONFIG")
    p = Path(explicit or DEFAULT_CONFIG_PATH)

    data: dict[str, Any] = {}
    if p.exists():
        raw = p.read_text(encoding="utf-8")
        loaded = yaml.safe_load(raw)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config must be a YAML mapping, got {type(loaded).__name__}")
        data = loaded
    elif explicit:
        raise FileNotFoundError(f"Config not found: {explicit}")

    for var, (section, key) in _ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data.setdefault(section, {})[key] = value

    return Config(**data)
