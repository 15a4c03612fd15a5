from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

"""RawRow / TypedRow models.

RawRow is a spreadsheet row as column-indexed text, TypedRow the fully coerced
row handed to the sink. Both live only for the duration of one import call.
"""

__all__ = [
    "RawRow",
    "TypedRow",
    "OWNER_COLUMN",
]

OWNER_COLUMN = "uid"


@dataclass(frozen=True)
class RawRow:
    """Unparsed sheet row.

    row_number is the 1-based sheet row (header row included in the count),
    cells maps 0-based column index -> cell text (None when the cell is absent).
    """
    row_number: int
    cells: Mapping[int, str | None]

    def cell(self, index: int) -> str | None:
        return self.cells.get(index)

    def is_blank(self) -> bool:
        return all(v is None or not str(v).strip() for v in self.cells.values())


@dataclass(frozen=True)
class TypedRow:
    """Fully coerced row ready for downstream storage.

    values keeps the accepted header order and is exposed read-only. Rows
    compare by value but are not hashable (values is a mapping).
    """
    row_number: int
    owner_uid: str | None
    values: Mapping[str, Any] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.values, MappingProxyType):
            object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def as_record(self) -> dict[str, Any]:
        """Record for the sink: owner column first, then columns in header order."""
        record: dict[str, Any] = {OWNER_COLUMN: self.owner_uid}
        record.update(self.values)
        return record
