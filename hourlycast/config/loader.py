"""YAML config loader with environment overrides and runtime get/set."""

import hashlib
import json
import os
from pathlib import Path
from typing import Any

import yaml

from hourlycast.config.schema import AppConfig

CONFIG_ENV_VAR = "HOURLYCAST_CONFIG"
DEFAULT_CONFIG = "ops/configs/default.yaml"


def resolve_config_path(path: str | Path | None = None) -> Path:
    """Pick the config path: explicit argument, then $HOURLYCAST_CONFIG, then the default."""
    if path is not None:
        return Path(path)
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG))


def load_config(path: str | Path) -> AppConfig:
    """Load and validate config from a YAML file.

    An empty file yields the defaults. ``$PORT`` overrides ``server.port``.
    """
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    port = os.environ.get("PORT")
    if port:
        raw.setdefault("server", {})["port"] = int(port)

    return AppConfig(**raw)


def config_hash(config: AppConfig) -> str:
    """Compute a deterministic SHA256 hash of the config."""
    data = config.model_dump_json(indent=None)
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def get_config_value(config: AppConfig, dotted_key: str) -> Any:
    """Get a config value by dotted key path. E.g. 'scraper.max_hours'."""
    parts = dotted_key.split(".")
    obj: Any = config
    for part in parts:
        if isinstance(obj, list):
            obj = obj[int(part)]
        elif hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict):
            obj = obj[part]
        else:
            raise KeyError(f"Config key not found: {dotted_key}")
    return obj


def set_config_value(config: AppConfig, dotted_key: str, value: Any) -> AppConfig:
    """Set a config value by dotted key path and re-validate.

    Returns a new AppConfig instance.
    """
    data = json.loads(config.model_dump_json())
    parts = dotted_key.split(".")
    target = data
    for part in parts[:-1]:
        target = target[part]
    # Attempt type coercion for common cases
    old_value = target.get(parts[-1])
    if isinstance(old_value, bool) and isinstance(value, str):
        value = value.strip().lower() in ("1", "true", "yes", "on")
    elif isinstance(old_value, int) and isinstance(value, str):
        value = int(value)
    elif isinstance(old_value, float) and isinstance(value, str):
        value = float(value)
    target[parts[-1]] = value
    return AppConfig(**data)


def save_config(config: AppConfig, path: str | Path) -> None:
    """Write the config back as YAML, keeping a .bak copy of the previous file."""
    path = Path(path)
    if path.exists():
        path.with_suffix(path.suffix + ".bak").write_text(path.read_text())
    with open(path, "w") as f:
        yaml.dump(
            json.loads(config.model_dump_json()),
            f,
            default_flow_style=False,
            sort_keys=False,
        )
