'''
 # @ Copyright: @copyright (c) 2025 Gahan AI Private Limited
 # @ Author: Pallab Maji
 # @ Create Time: 2025-10-30 17:10:00
 # @ Modified time: 2025-11-05 14:00:00
 # @ Description: Helpers for configuration loading, artifact directories and JSON payloads.
'''

from __future__ import annotations

"""Shared utility helpers for configuration and filesystem management."""

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict

import yaml

LOGGER = logging.getLogger("gai_griddet.utils")


def load_yaml_config(path: str | Path) -> Dict[str, Any]:
    """Load a YAML configuration file whose root is a mapping."""
    config_path = Path(path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected dict at root of config, got {type(data)!r}")
    LOGGER.debug("Loaded configuration sections %s from %s", sorted(data), config_path)
    return data


def ensure_dir(path: str | Path) -> Path:
    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target


def _json_safe(value: Any) -> Any:
    # JSON has no NaN; undefined diagnostics are written as null
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def write_json(path: str | Path, payload: Any) -> Path:
    """Persist a JSON payload with deterministic formatting and return its path."""
    target = Path(path)
    ensure_dir(target.parent)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(_json_safe(payload), handle, ensure_ascii=False, indent=2)
    return target


def read_json(path: str | Path) -> Any:
    target = Path(path)
    with target.open("r", encoding="utf-8") as handle:
        return json.load(handle)
