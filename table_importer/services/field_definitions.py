from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..models.field_spec import FieldSpec, FieldType
from ..models.import_result import ImportState
from ..models.typed_row import RawRow
from .coercion import is_blank, parse_integer, parse_number
from .errors import (
    CoercionError,
    FieldTypeError,
    FieldValueMissingError,
    HeaderNotValidatedError,
    IllegalDefaultError,
    ImportFormatError,
    NoValidDataError,
    TableImportError,
)
from .header import validate_header_template

"""Field-definition workbook import.

The workbook uses the fixed bilingual template (name, type, description,
default, required) and yields the FieldSpec list of a user table. Unlike the
row import, every problem here is fatal: a schema with a bad default would
only move the failure to the row import.
"""

__all__ = [
    "REQUIRED_MARKS",
    "FieldDefinitionImporter",
    "import_field_definitions",
]

logger = logging.getLogger(__name__)

# 列位置 (テンプレート順)
COL_NAME, COL_TYPE, COL_DESCRIPTION, COL_DEFAULT, COL_REQUIRED = range(5)
_MANDATORY_COLUMNS = (COL_NAME, COL_TYPE, COL_DESCRIPTION, COL_REQUIRED)

# 中国語テンプレートは「是」のみ
REQUIRED_MARKS: dict[str, frozenset[str]] = {
    "zh": frozenset({"是"}),
    "en": frozenset({"是", "yes", "y", "true"}),
}


def _check_default(type_label: str, default: str, row_number: int) -> None:
    kind = FieldType(type_label)
    try:
        if kind is FieldType.INTEGER:
            parse_integer(default)
        elif kind is FieldType.NUMBER:
            parse_number(default)
        elif kind is FieldType.BOOLEAN:
            if default.strip().lower() not in ("true", "false"):
                raise ValueError(default)
    except (CoercionError, ValueError):
        raise IllegalDefaultError(
            f"row {row_number}: default value {default!r} is not a valid {type_label}",
            row=row_number,
        ) from None


class FieldDefinitionImporter:
    def __init__(self, language: str = "zh") -> None:
        self.language = language
        self._required_marks = REQUIRED_MARKS["en" if language == "en" else "zh"]
        self.state = ImportState.AWAITING_HEADER
        self.fields: list[FieldSpec] = []

    def accept_header(self, header: Sequence[str]) -> list[str]:
        try:
            accepted = validate_header_template(header, self.language)
        except ImportFormatError:
            self.state = ImportState.FAILED
            raise
        self.state = ImportState.PARSING
        return accepted

    def parse_row(self, row: RawRow) -> FieldSpec:
        if self.state is not ImportState.PARSING:
            self.state = ImportState.FAILED
            raise HeaderNotValidatedError()
        try:
            spec = self._build(row)
        except TableImportError:
            self.state = ImportState.FAILED
            raise
        self.fields.append(spec)
        return spec

    def _build(self, row: RawRow) -> FieldSpec:
        for col in _MANDATORY_COLUMNS:
            if is_blank(row.cell(col)):
                raise FieldValueMissingError(
                    f"row {row.row_number}: field name, type, description and required flag cannot be empty",
                    row=row.row_number,
                )
        name = (row.cell(COL_NAME) or "").strip()
        type_label = (row.cell(COL_TYPE) or "").strip()
        if type_label not in FieldType.labels():
            raise FieldTypeError(
                f"row {row.row_number}: illegal data type {type_label!r}, allowed: {FieldType.labels()}",
                row=row.row_number,
            )
        default = row.cell(COL_DEFAULT)
        if default is not None and not is_blank(default):
            _check_default(type_label, default, row.row_number)
        required_mark = (row.cell(COL_REQUIRED) or "").strip().lower()
        return FieldSpec(
            name=name,
            type=FieldType(type_label),
            required=required_mark in self._required_marks,
            default_value=default,
            description=row.cell(COL_DESCRIPTION),
        )

    def finish(self) -> list[FieldSpec]:
        if self.state is not ImportState.PARSING:
            self.state = ImportState.FAILED
            raise HeaderNotValidatedError()
        if not self.fields:
            self.state = ImportState.FAILED
            raise NoValidDataError("No field information found, please check the Excel data!")
        self.state = ImportState.DONE
        logger.debug("field definitions parsed count=%d", len(self.fields))
        return list(self.fields)

    def run(self, header: Sequence[str], rows: Iterable[RawRow]) -> list[FieldSpec]:
        self.accept_header(header)
        for row in rows:
            self.parse_row(row)
        return self.finish()


def import_field_definitions(
    header: Sequence[str], rows: Iterable[RawRow], language: str = "zh"
) -> list[FieldSpec]:
    return FieldDefinitionImporter(language).run(header, rows)
