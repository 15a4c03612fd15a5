from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .typed_row import TypedRow

"""Result models for a single import invocation.

ImportResult is what the row importer produces; ImportReport aggregates the
run (sink insert + timing) for the SUMMARY line.
"""

__all__ = [
    "ImportState",
    "ImportResult",
    "ImportReport",
]


class ImportState(Enum):
    """Importer lifecycle.

    AWAITING_HEADER -> PARSING on a matching header, PARSING -> DONE when the
    input is exhausted with at least one accepted row. Any structural or
    coercion error moves to FAILED.
    """
    AWAITING_HEADER = "awaiting_header"
    PARSING = "parsing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class ImportResult:
    header: tuple[str, ...]
    rows: tuple[TypedRow, ...]
    accepted_rows: int
    dropped_rows: int  # 上限超過で読み捨てた行数
    state: ImportState = ImportState.DONE

    def records(self) -> list[dict[str, object]]:
        return [r.as_record() for r in self.rows]


@dataclass(frozen=True)
class ImportReport:
    """Run-level summary (one workbook -> one table)."""
    status: str  # success/failed
    table: str
    accepted_rows: int
    dropped_rows: int
    inserted_rows: int
    field_count: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == "success"
