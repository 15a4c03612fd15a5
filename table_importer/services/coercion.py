from __future__ import annotations

import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from ..models.field_spec import FieldSpec, FieldType
from .errors import CoercionError

"""Per-cell type coercion and default-value resolution.

Coercion is strict: a cell either parses as its declared type or raises
CoercionError. Default resolution never raises; a configured default that
cannot be coerced is passed through as the raw string.
"""

__all__ = [
    "TIME_FORMAT",
    "TRUTHY_TOKENS",
    "FALSY_TOKENS",
    "is_blank",
    "coerce_value",
    "parse_integer",
    "parse_number",
    "parse_boolean",
    "parse_time",
    "resolve_default",
]

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
# strptime は 1 桁の月日も受け付けるため、桁数は正規表現で先に固定する
_TIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

TRUTHY_TOKENS = frozenset({"1", "true", "t", "yes", "y"})
FALSY_TOKENS = frozenset({"0", "false", "f", "no", "n"})


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def parse_integer(text: str) -> int:
    s = text.strip()
    if not _INTEGER_RE.match(s):
        raise CoercionError(text, FieldType.INTEGER.value)
    value = int(s)
    if not INT64_MIN <= value <= INT64_MAX:
        raise CoercionError(text, FieldType.INTEGER.value, "out of 64-bit range")
    return value


def parse_number(text: str) -> Decimal:
    s = text.strip()
    if not _NUMBER_RE.match(s):
        raise CoercionError(text, FieldType.NUMBER.value)
    try:
        return Decimal(s)
    except InvalidOperation as e:  # pragma: no cover - regex already filters
        raise CoercionError(text, FieldType.NUMBER.value) from e


def parse_boolean(text: str) -> bool:
    token = text.strip().lower()
    if token in TRUTHY_TOKENS:
        return True
    if token in FALSY_TOKENS:
        return False
    raise CoercionError(text, FieldType.BOOLEAN.value)


def parse_time(text: str) -> datetime:
    s = text.strip()
    if not _TIME_RE.match(s):
        raise CoercionError(text, FieldType.TIME.value, f"expected format {TIME_FORMAT}")
    try:
        return datetime.strptime(s, TIME_FORMAT)
    except ValueError as e:
        # 2024-02-30 など桁数は正しいが存在しない日時
        raise CoercionError(text, FieldType.TIME.value, str(e)) from e


_PARSERS = {
    FieldType.INTEGER: parse_integer,
    FieldType.NUMBER: parse_number,
    FieldType.BOOLEAN: parse_boolean,
    FieldType.TIME: parse_time,
}


def coerce_value(text: str, field_type: FieldType) -> Any:
    """Parse non-blank cell text according to field_type.

    Text fields return the raw string unchanged.

    Raises:
        CoercionError: text does not parse as field_type
    """
    parser = _PARSERS.get(field_type)
    if parser is None:
        return text
    return parser(text)


def _zero_value(field_type: FieldType) -> Any:
    if field_type is FieldType.INTEGER:
        return 0
    if field_type is FieldType.NUMBER:
        return Decimal(0)
    if field_type is FieldType.BOOLEAN:
        return False
    if field_type is FieldType.TIME:
        return datetime.now().replace(microsecond=0)
    return ""


def resolve_default(spec: FieldSpec, required: bool) -> Any:
    """Value for a blank cell.

    1. configured (non-blank) default, coerced by type; raw string if it does not parse
    2. required without default -> type zero value (0, Decimal 0, False, now, "")
    3. optional without default -> None, or "" for text fields
    """
    default = spec.default_value
    if default is not None and not is_blank(default):
        try:
            return coerce_value(default, spec.type)
        except CoercionError:
            logger.warning(
                "default value for field=%s type=%s does not parse, using raw string %r",
                spec.name,
                spec.type.value,
                default,
            )
            return default

    if required:
        return _zero_value(spec.type)
    if spec.type is FieldType.STRING:
        return ""
    return None
