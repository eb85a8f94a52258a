"""3-layer configuration system for the posture engine.

Loads and merges configuration from:
1. Default settings (built-in)
2. Config file (posture.yaml)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

from ..errors import ConfigError

CONFIG_FILENAME = "posture.yaml"

DEFAULT_CONFIG: dict = {
    "client": {
        "target_compliance_score": None,
    },
    "scoring": {
        "bands": {"on_track": 80, "at_risk": 50},
    },
    "regulations": {
        "directory": "regulations",
        "selected": [],
    },
    "report": {
        "top_policies": 10,
        "unmapped_display_limit": 15,
        "critical_gap_limit": 10,
    },
    "ci": {
        "exit_codes": {"on_track": 0, "at_risk": 2, "critical": 1},
    },
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_config_file(config_path: Path) -> dict:
    """Load a YAML config file. A missing or empty file yields {}."""
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Config file {config_path} must contain a mapping",
            {"type": type(data).__name__},
        )
    return data


def find_config_file(start: Path) -> Optional[Path]:
    """Return posture.yaml in ``start`` (a file's directory or a directory)."""
    directory = start if start.is_dir() else start.parent
    candidate = directory / CONFIG_FILENAME
    return candidate if candidate.exists() else None


def get_effective_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path is not None:
        file_config = load_config_file(config_path)
        if file_config:
            config = deep_merge(config, file_config)
        config["_config_path"] = str(config_path)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    return config


def get_selected_regulations(
    config: dict,
    add_regulations: Optional[list[str]] = None,
    skip_regulations: Optional[list[str]] = None,
) -> list[str]:
    """Calculate the regulation IDs to assess, deduplicated in order."""
    skip = set(skip_regulations or [])
    selected = list((config.get("regulations") or {}).get("selected") or [])
    selected.extend(add_regulations or [])

    seen: set[str] = set()
    result: list[str] = []
    for reg in selected:
        if reg and reg not in seen and reg not in skip:
            seen.add(reg)
            result.append(reg)
    return result
