"""Configuration loader for the dictionary bot."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml

from .collation import DEFAULT_SENSITIVITY, SENSITIVITIES


@dataclass(frozen=True)
class DictConfig:
    data_dir: Path
    dict_file: str
    sensitivity: str
    strict_load: bool
    atomic_write: bool
    wait_for_flush: bool
    flush_timeout_sec: float
    debug: bool

    @property
    def dict_path(self) -> Path:
        return self.data_dir / self.dict_file

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DictConfig":
        sensitivity = str(data.get("sensitivity", DEFAULT_SENSITIVITY))
        if sensitivity not in SENSITIVITIES:
            raise ValueError(f"Invalid sensitivity in config: {sensitivity!r}")
        return cls(
            data_dir=Path(data.get("data_dir", "data")),
            dict_file=str(data.get("dict_file", "dictdata.json")),
            sensitivity=sensitivity,
            strict_load=_as_bool(data.get("strict_load", False)),
            atomic_write=_as_bool(data.get("atomic_write", True)),
            wait_for_flush=_as_bool(data.get("wait_for_flush", False)),
            flush_timeout_sec=float(data.get("flush_timeout_sec", 5.0)),
            debug=_as_bool(data.get("debug", False)),
        )


ENV_MAP = {
    "data_dir": "DATA_PATH",
    "dict_file": "DICT_FILE",
    "sensitivity": "DICT_SENSITIVITY",
    "strict_load": "DICT_STRICT_LOAD",
    "atomic_write": "DICT_ATOMIC_WRITE",
    "wait_for_flush": "DICT_WAIT_FOR_FLUSH",
    "flush_timeout_sec": "DICT_FLUSH_TIMEOUT_SEC",
    "debug": "DEBUG_ENABLE",
}

BOOL_KEYS = {"strict_load", "atomic_write", "wait_for_flush", "debug"}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def merge_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    merged = json.loads(json.dumps(config_data))  # deep copy via json

    for key, env_name in ENV_MAP.items():
        if env_name not in os.environ:
            continue
        value: Any = os.environ[env_name]
        if key in BOOL_KEYS:
            value = _as_bool(value)
        elif key == "flush_timeout_sec":
            value = float(value)
        merged[key] = value

    return merged


def load_config(config_path: str | Path = "config/dictionary.defaults.yml") -> DictConfig:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = load_yaml(path)
    data = merge_env_overrides(data)
    return DictConfig.from_dict(data)
