from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DEFAULT_MAX_ROWS,
    DEFAULT_PAGE_SIZE,
    DatabaseConfig,
    ImportConfig,
)
from ..models.field_spec import FieldSpec

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults (max_rows=1000, header_row=1, language=zh, page_size=1000)
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing/broken, or data violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_fields(raw_fields: list[dict[str, Any]] | None) -> tuple[FieldSpec, ...]:
    if not raw_fields:
        return ()
    specs = tuple(FieldSpec.from_mapping(f) for f in raw_fields)
    names = [s.name for s in specs]
    dup = sorted({n for n in names if names.count(n) > 1})
    if dup:
        raise ConfigError(f"duplicate field names: {dup}")
    return specs


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
    return ImportConfig(
        source_file=data["source_file"],
        table=data["table"],
        owner_uid=str(data["owner_uid"]),
        sheet=data.get("sheet"),
        max_rows=data.get("max_rows", DEFAULT_MAX_ROWS),
        header_row=data.get("header_row", 1),
        language=data.get("language", "zh"),
        fields=_build_fields(data.get("fields")),
        fields_file=data.get("fields_file"),
        page_size=data.get("page_size", DEFAULT_PAGE_SIZE),
        database=db,
    )
