# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pandas as pd
import pytest

from table_importer.logging.init import reset_logging


def make_workbook(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write sheets (list of rows, no pandas header/index) to an .xlsx file."""
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return path


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def workbook(temp_workdir: Path) -> Callable[..., Path]:
    def _make(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_workbook(temp_workdir / "data" / name, sheets)
    return _make


@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_file: ./data/users.xlsx
table: users
owner_uid: u-1001
max_rows: 100
fields:
  - {name: id, type: Integer, required: true}
  - {name: name, type: String, required: true}
  - {name: age, type: Integer, required: true}
  - {name: score, type: Number}
  - {name: active, type: Boolean, default: "yes"}
  - {name: joined, type: Time}
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def users_workbook(workbook) -> Path:
    return workbook(
        "users.xlsx",
        {
            "Users": [
                ["name", "age", "score", "active", "joined"],
                ["Alice", "30", "12.50", "Y", "2024-01-02 03:04:05"],
                ["Bob", "", "", "", ""],
                ["Carol", "41", "-3", "no", "2023-12-31 23:59:59"],
            ]
        },
    )
