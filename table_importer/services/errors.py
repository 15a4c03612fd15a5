from __future__ import annotations

"""Exception taxonomy for the typed-row importer.

StructuralError: the input does not fit the schema at all (header mismatch,
unknown field, zero rows). Always aborts the whole import.
CoercionError: a single value cannot be parsed as its declared type.

Every exception carries an ``error_type`` code used for the JSON Lines
failure log, and optionally the offending sheet row.
"""

__all__ = [
    "TableImportError",
    "StructuralError",
    "HeaderMismatchError",
    "ImportFormatError",
    "HeaderNotValidatedError",
    "FieldNotFoundError",
    "NoValidDataError",
    "FieldValueMissingError",
    "FieldTypeError",
    "IllegalDefaultError",
    "CoercionError",
]


class TableImportError(Exception):
    """Base class for all import failures."""
    error_type = "IMPORT_ERROR"

    def __init__(self, message: str, *, row: int = -1) -> None:
        super().__init__(message)
        self.message = message
        self.row = row


class StructuralError(TableImportError):
    error_type = "STRUCTURAL_ERROR"


class HeaderMismatchError(StructuralError):
    """Header cells are not the schema's (non-system) field names."""
    error_type = "HEADER_MISMATCH"

    def __init__(self, expected: list[str], actual: list[str]) -> None:
        super().__init__(f"Header mismatch! Expected: {expected}, Actual: {actual}")
        self.expected = expected
        self.actual = actual


class ImportFormatError(StructuralError):
    """Header is not the fixed field-definition template."""
    error_type = "IMPORT_FORMAT"

    def __init__(self, expected: list[str], actual: list[str]) -> None:
        super().__init__(
            "Import format error, please use the field template. "
            f"Expected: {expected}, Actual: {actual}"
        )
        self.expected = expected
        self.actual = actual


class HeaderNotValidatedError(StructuralError):
    error_type = "HEADER_NOT_VALIDATED"

    def __init__(self) -> None:
        super().__init__("Header not validated, please check Excel file.")


class FieldNotFoundError(StructuralError):
    error_type = "FIELD_NOT_FOUND"

    def __init__(self, name: str, *, row: int = -1) -> None:
        super().__init__(f"Field {name} does not exist!", row=row)
        self.field_name = name


class NoValidDataError(StructuralError):
    error_type = "NO_VALID_DATA"


class FieldValueMissingError(StructuralError):
    """A mandatory cell of the field-definition template is empty."""
    error_type = "FIELD_VALUE_MISSING"


class FieldTypeError(StructuralError):
    error_type = "FIELD_TYPE_ILLEGAL"


class IllegalDefaultError(StructuralError):
    error_type = "ILLEGAL_DEFAULT"


class CoercionError(TableImportError, ValueError):
    """A value cannot be parsed as its declared field type."""
    error_type = "COERCION_ERROR"

    def __init__(self, value: str, type_label: str, reason: str | None = None, *, row: int = -1,
                 field_name: str | None = None) -> None:
        msg = f"Unable to parse {type_label} value: {value!r}"
        if reason:
            msg += f" ({reason})"
        if field_name is not None:
            msg = f"field '{field_name}': {msg}"
        if row >= 0:
            msg = f"row {row} {msg}"
        super().__init__(msg, row=row)
        self.value = value
        self.type_label = type_label
        self.reason = reason
        self.field_name = field_name

    def at(self, row: int, field_name: str) -> CoercionError:
        """Copy of this error annotated with the sheet row and field."""
        return CoercionError(self.value, self.type_label, self.reason, row=row, field_name=field_name)
