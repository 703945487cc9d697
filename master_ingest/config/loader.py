from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_HEADER_SCAN_ROWS,
    DEFAULT_NULL_TOKENS,
    DEFAULT_PAGE_SIZE,
    DatabaseConfig,
    ImportConfig,
    IngestSettings,
)

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against config_schema.json (shipped with the package)
- Apply defaults (header_scan_rows=30, page_size=1000)
- null_tokens extend the built-in '#N/A' placeholder, they never replace it
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _load_schema() -> dict[str, Any]:
    try:
        return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(f"config schema missing from package: {SCHEMA_PATH}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"config schema is not valid JSON: {e}") from e


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Raise ConfigError naming the first schema violation (with its key path)."""
    try:
        jsonschema.validate(data, _load_schema())
    except ValidationError as e:
        where = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigError(f"config validation failed at {where}: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )

    settings = IngestSettings(
        header_scan_rows=data.get("header_scan_rows", DEFAULT_HEADER_SCAN_ROWS),
        # NULL 判定は大文字比較。#N/A は設定に関係なく常に含める
        null_tokens=DEFAULT_NULL_TOKENS | {t.strip().upper() for t in data.get("null_tokens") or []},
        page_size=data.get("page_size", DEFAULT_PAGE_SIZE),
        tables={name: target_cfg["table"] for name, target_cfg in (data.get("targets") or {}).items()},
    )
    return ImportConfig(database=db, settings=settings)
