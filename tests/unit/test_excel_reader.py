from __future__ import annotations

import io

import pytest

from table_importer.excel.reader import SheetHeaderError, SheetNotFoundError, read_sheet


def test_read_first_sheet_as_text(workbook):
    path = workbook(
        "people.xlsx",
        {
            "People": [
                ["name", "age", "joined"],
                ["Alice", 30, "2024-01-02 03:04:05"],
                ["Bob", None, None],
            ],
            "Other": [["x"], ["1"]],
        },
    )
    sheet = read_sheet(path)
    assert sheet.sheet_name == "People"
    assert sheet.header == ["name", "age", "joined"]
    assert len(sheet.rows) == 2
    first, second = sheet.rows
    assert first.row_number == 2
    assert first.cell(0) == "Alice"
    assert first.cell(1) == "30"
    assert second.cell(1) is None
    assert second.cell(2) is None


def test_na_like_strings_are_kept(workbook):
    path = workbook("na.xlsx", {"S": [["code"], ["NA"], ["null"]]})
    sheet = read_sheet(path)
    assert [r.cell(0) for r in sheet.rows] == ["NA", "null"]


def test_blank_rows_skipped_and_row_numbers_kept(workbook):
    path = workbook("gaps.xlsx", {"S": [["id"], ["1"], [None], ["2"]]})
    sheet = read_sheet(path)
    assert [(r.row_number, r.cell(0)) for r in sheet.rows] == [(2, "1"), (4, "2")]


def test_header_row_offset_skips_title(workbook):
    path = workbook("title.xlsx", {"S": [["User import", None], ["name", "age"], ["Al", "3"]]})
    sheet = read_sheet(path, header_row=2)
    assert sheet.header == ["name", "age"]
    assert sheet.rows[0].row_number == 3


def test_named_sheet(workbook):
    path = workbook("multi.xlsx", {"A": [["a"], ["1"]], "B": [["b"], ["2"]]})
    assert read_sheet(path, sheet="B").header == ["b"]
    with pytest.raises(SheetNotFoundError):
        read_sheet(path, sheet="C")


def test_missing_header_row(workbook):
    path = workbook("short.xlsx", {"S": [["only title"]]})
    with pytest.raises(SheetHeaderError):
        read_sheet(path, header_row=2)


def test_reads_binary_stream(workbook):
    path = workbook("stream.xlsx", {"S": [["id"], ["7"]]})
    stream = io.BytesIO(path.read_bytes())
    sheet = read_sheet(stream)
    assert sheet.rows[0].cell(0) == "7"
