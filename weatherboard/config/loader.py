"""YAML config loader with environment overrides and dotted-key lookup."""

import os
from pathlib import Path
from typing import Any

import yaml

from weatherboard.config.defaults import DEFAULT_CITIES
from weatherboard.config.schema import DashboardConfig

API_KEY_ENV = "OPENWEATHER_API_KEY"


def load_config(path: str | Path | None = None) -> DashboardConfig:
    """Load and validate config from a YAML file.

    A missing path yields the built-in defaults. If no cities are specified,
    injects DEFAULT_CITIES. An empty provider API key is filled from the
    OPENWEATHER_API_KEY environment variable.
    """
    raw: dict[str, Any] = {}
    if path is not None and Path(path).exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    if not raw.get("default_cities"):
        raw["default_cities"] = list(DEFAULT_CITIES)

    provider = raw.setdefault("provider", {}) or {}
    raw["provider"] = provider
    if not provider.get("api_key"):
        provider["api_key"] = os.environ.get(API_KEY_ENV, "")

    return DashboardConfig(**raw)


def get_config_value(config: DashboardConfig, dotted_key: str) -> Any:
    """Get a config value by dotted key path. E.g. 'cache.freshness_window_ms'."""
    obj: Any = config
    for part in dotted_key.split("."):
        if isinstance(obj, list):
            obj = obj[int(part)]
        elif hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict):
            obj = obj[part]
        else:
            raise KeyError(f"Config key not found: {dotted_key}")
    return obj
