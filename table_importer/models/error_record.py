from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines failure log.

row=-1 is used for sheet-level failures (header mismatch, no data) where no
single row is at fault.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Excel filename being imported
        sheet: Sheet name (or "<FIRST>" when the first sheet was used)
        row: 1-based sheet row. -1 when the row is unknown
        error_type: UPPER_SNAKE_CASE classification
        message: Human readable description
    """
    timestamp: str
    file: str
    sheet: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, sheet: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            sheet=sheet,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
