from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence

from ..models.field_spec import SYSTEM_FIELDS, FieldSpec
from .errors import HeaderMismatchError, ImportFormatError

"""Header row validation.

Two modes:
- set mode: the header must hold exactly the schema's non-system field names,
  in any order (row import)
- template mode: the header must equal the fixed field-definition template of
  the requested language, in order (field-definition import)
"""

__all__ = [
    "FIELD_TEMPLATE_HEADERS",
    "clean_header",
    "expected_field_names",
    "validate_header_set",
    "validate_header_template",
]

FIELD_TEMPLATE_HEADERS: dict[str, list[str]] = {
    "zh": ["字段名*", "数据类型*", "描述*", "默认值", "是否必填*"],
    "en": ["Field Name*", "Data Type*", "Description*", "Default Value", "Required*"],
}


def clean_header(cells: Iterable[object]) -> list[str]:
    """Strip header cells and drop trailing empty columns."""
    header = ["" if c is None else str(c).strip() for c in cells]
    while header and header[-1] == "":
        header.pop()
    return header


def expected_field_names(fields: Iterable[FieldSpec]) -> list[str]:
    return [f.name for f in fields if f.name not in SYSTEM_FIELDS]


def validate_header_set(fields: Sequence[FieldSpec], actual: Sequence[str]) -> list[str]:
    """Check the header against the schema ignoring order.

    Returns the accepted header order (the order found in the sheet).

    Raises:
        HeaderMismatchError: multiset of header cells differs from the schema names
    """
    expected = expected_field_names(fields)
    actual_list = list(actual)
    if Counter(expected) != Counter(actual_list):
        raise HeaderMismatchError(expected, actual_list)
    return actual_list


def validate_header_template(actual: Sequence[str], language: str = "zh") -> list[str]:
    """Check the header against the field-definition template, order included.

    Raises:
        ImportFormatError: header differs from the template of ``language``
    """
    expected = FIELD_TEMPLATE_HEADERS["en" if language == "en" else "zh"]
    actual_list = list(actual)
    if actual_list != expected:
        raise ImportFormatError(expected, actual_list)
    return actual_list
