from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord
from ..services.errors import TableImportError

"""Import failure log (JSON Lines).

One import run fails at most once, but the rollback of the insert can add a
second record, so records are buffered and written together on flush().
File name: ``logs/errors-YYYYMMDD-HHMMSS.log`` (UTC, fixed on first write).
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "SHEET_UNKNOWN",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"
# シート名未指定 (先頭シート) の場合のラベル
SHEET_UNKNOWN = "<FIRST>"


class ErrorLogBuffer:
    """Buffered failure records of one or more import runs. Serial use only."""

    def __init__(self, logs_dir: Path = LOGS_DIR) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> tuple[ErrorRecord, ...]:
        return tuple(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def record_failure(
        self,
        file: str,
        error_type: str,
        message: str,
        *,
        sheet: str | None = None,
        row: int = -1,
    ) -> ErrorRecord:
        """Buffer a failure that is not a TableImportError (DB, rollback, broken workbook)."""
        record = ErrorRecord.create(
            file=file,
            sheet=sheet or SHEET_UNKNOWN,
            row=row,
            error_type=error_type,
            message=message,
        )
        self._records.append(record)
        return record

    def record_import_error(self, exc: TableImportError, file: str, sheet: str | None = None) -> ErrorRecord:
        """Buffer an import failure; error_type and row come from the exception."""
        return self.record_failure(file, exc.error_type, exc.message, sheet=sheet, row=exc.row)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file. Nothing is created when empty."""
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            f.writelines(r.to_json_line() + "\n" for r in self._records)
        self._records.clear()
        return fp
