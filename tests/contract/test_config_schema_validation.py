from __future__ import annotations

import json

import jsonschema
import pytest
from jsonschema.exceptions import ValidationError

from table_importer.config.loader import SCHEMA_PATH

"""Config schema contract test (bundled config_schema.json)."""


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def _base() -> dict:
    return {
        "source_file": "./data/users.xlsx",
        "table": "users",
        "owner_uid": "u-1",
        "fields": [{"name": "age", "type": "Integer", "required": True, "default": 3}],
    }


def test_schema_is_valid_draft7(schema):
    jsonschema.Draft7Validator.check_schema(schema)


def test_valid_example(schema):
    cfg = _base() | {
        "sheet": "Users",
        "max_rows": 500,
        "header_row": 2,
        "language": "en",
        "page_size": 200,
        "database": {"host": "db", "port": 5432, "user": "u", "password": None, "database": "app", "dsn": None},
    }
    jsonschema.validate(cfg, schema)


def test_fields_file_instead_of_fields(schema):
    cfg = _base()
    del cfg["fields"]
    cfg["fields_file"] = "./data/fields.xlsx"
    jsonschema.validate(cfg, schema)


def test_integer_owner_uid_allowed(schema):
    jsonschema.validate(_base() | {"owner_uid": 42}, schema)


@pytest.mark.parametrize("missing", ["source_file", "table", "owner_uid"])
def test_required_keys(schema, missing):
    cfg = _base()
    del cfg[missing]
    with pytest.raises(ValidationError):
        jsonschema.validate(cfg, schema)


def test_needs_fields_or_fields_file(schema):
    cfg = _base()
    del cfg["fields"]
    with pytest.raises(ValidationError):
        jsonschema.validate(cfg, schema)


@pytest.mark.parametrize(
    "patch",
    [
        {"extra": 1},
        {"table": "users; drop table x"},
        {"max_rows": 0},
        {"header_row": 0},
        {"language": "ja"},
        {"fields": []},
        {"fields": [{"name": "a"}]},
        {"fields": [{"name": "a", "type": "String", "unique": True}]},
        {"database": {"schema": "public"}},
    ],
)
def test_rejects_invalid(schema, patch):
    with pytest.raises(ValidationError):
        jsonschema.validate(_base() | patch, schema)


def test_schema_qualified_table_allowed(schema):
    jsonschema.validate(_base() | {"table": "app.users"}, schema)
