from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO

import pandas as pd

from ..models.typed_row import RawRow
from ..services.errors import StructuralError
from ..services.header import clean_header

"""Excel reader: workbook sheet -> header row + RawRow list.

Everything is read as text (dtype=str, no NA conversion) so that "NA", "null"
and friends reach the type coercion untouched. Empty cells become None and
fully blank rows are skipped.

header_row is 1-based; rows above it are treated as title rows and ignored.
"""

__all__ = [
    "SheetHeaderError",
    "SheetNotFoundError",
    "SheetData",
    "read_sheet",
]


class SheetHeaderError(StructuralError):
    """Raised when the header row is missing."""
    error_type = "SHEET_HEADER_MISSING"


class SheetNotFoundError(StructuralError):
    error_type = "SHEET_NOT_FOUND"


@dataclass
class SheetData:
    sheet_name: str
    header: list[str]
    rows: list[RawRow]  # 全空白行は除外済み


def _cell_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value)
    return text if text != "" else None


def read_sheet(
    source: Path | str | BinaryIO,
    sheet: str | None = None,
    header_row: int = 1,
) -> SheetData:
    """Read one sheet of a workbook as text.

    Parameters
    ----------
    source: ファイルパス or バイナリストリーム (アップロード等)
    sheet: 対象シート名 (None なら先頭シート)
    header_row: ヘッダ行 (1 始まり)

    The workbook handle is closed on every exit path.
    """
    if header_row < 1:
        raise ValueError(f"header_row must be >= 1, got {header_row}")
    with pd.ExcelFile(source) as xls:
        names = [str(n) for n in xls.sheet_names]
        if sheet is None:
            if not names:
                raise SheetNotFoundError("workbook has no sheets")
            sheet_name = names[0]
        elif sheet in names:
            sheet_name = sheet
        else:
            raise SheetNotFoundError(f"sheet '{sheet}' not found (available: {names})")
        df = xls.parse(sheet_name, header=None, dtype=str, keep_default_na=False)
    return normalize_sheet(df, sheet_name, header_row)


def normalize_sheet(df: pd.DataFrame, sheet_name: str, header_row: int = 1) -> SheetData:
    """Split a raw DataFrame into header + RawRows.

    Steps:
    1. Validate the header row exists
    2. Header cells are stripped, trailing empty columns dropped
    3. Rows below the header become RawRows (sheet row numbers kept)
    """
    if df.shape[0] < header_row:
        raise SheetHeaderError(f"sheet '{sheet_name}' lacks header row {header_row}")
    header = clean_header(_cell_text(v) for v in df.iloc[header_row - 1].tolist())
    if not header:
        raise SheetHeaderError(f"sheet '{sheet_name}' header row {header_row} is empty")

    rows: list[RawRow] = []
    for offset, values in enumerate(df.iloc[header_row:].itertuples(index=False, name=None)):
        cells = {i: _cell_text(v) for i, v in enumerate(values)}
        raw = RawRow(row_number=header_row + offset + 1, cells=cells)
        if raw.is_blank():
            continue
        rows.append(raw)
    return SheetData(sheet_name=sheet_name, header=header, rows=rows)
