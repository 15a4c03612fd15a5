from __future__ import annotations

from pathlib import Path

import pytest

from table_importer.config.loader import ConfigError, load_config
from table_importer.models.field_spec import FieldType


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.source_file == "./data/users.xlsx"
    assert cfg.table == "users"
    assert cfg.owner_uid == "u-1001"
    assert cfg.max_rows == 100
    assert cfg.header_row == 1
    assert cfg.language == "zh"
    assert cfg.page_size == 1000
    assert [f.name for f in cfg.fields] == ["id", "name", "age", "score", "active", "joined"]
    active = cfg.fields[4]
    assert active.type is FieldType.BOOLEAN
    assert active.default_value == "yes"
    assert active.required is False
    assert cfg.database.port == 5432


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_load_config_invalid_yaml(write_config: Path):
    write_config.write_text("source_file: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(write_config)


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("owner_uid: u-1001\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_config_requires_fields_or_fields_file(temp_workdir: Path):
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text("source_file: a.xlsx\ntable: t\nowner_uid: u\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(cfg)
    cfg.write_text("source_file: a.xlsx\ntable: t\nowner_uid: u\nfields_file: f.xlsx\nlanguage: en\n", encoding="utf-8")
    loaded = load_config(cfg)
    assert loaded.fields == ()
    assert loaded.fields_file == "f.xlsx"
    assert loaded.language == "en"


def test_load_config_extra_field(write_config: Path):
    text = write_config.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_load_config_rejects_bad_table_name(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("table: users", 'table: "users; drop"')
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(write_config)


def test_load_config_duplicate_field_names(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace(
        "  - {name: joined, type: Time}", "  - {name: joined, type: Time}\n  - {name: age, type: String}"
    )
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError, match="duplicate field names"):
        load_config(write_config)


def test_numeric_owner_uid_is_stringified(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("owner_uid: u-1001", "owner_uid: 1001")
    write_config.write_text(text, encoding="utf-8")
    assert load_config(write_config).owner_uid == "1001"
