from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, BinaryIO

from ..db.batch_insert import BatchInsertError, BatchMetrics, insert_typed_rows
from ..excel.reader import read_sheet
from ..logging.error_log import SHEET_UNKNOWN, ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.field_spec import FieldSpec
from ..models.import_result import ImportReport, ImportResult
from ..models.typed_row import TypedRow
from .errors import TableImportError
from .field_definitions import import_field_definitions
from .progress import RowProgress
from .row_importer import TypedRowImporter

"""Service orchestration for one import run.

Steps:
1. Load field definitions (inline config or field-definition workbook)
2. Read the source sheet and run the typed row importer over it
3. Hand the complete result to the sink (DB insert in one transaction, a
   caller supplied callable, or mock mode) - never a partial result
4. Record failures in the JSON Lines error log and return an ImportReport
"""

logger = logging.getLogger(__name__)

RowSink = Callable[[Sequence[TypedRow]], int]


class ProcessingError(Exception):
    """Fatal run error (source missing, unusable configuration)."""


def load_field_specs(config: ImportConfig) -> tuple[FieldSpec, ...]:
    """Field definitions for the run, loaded once per import call."""
    if config.fields:
        return tuple(config.fields)
    if not config.fields_file:
        raise ProcessingError("no field definitions configured (fields or fields_file)")
    path = Path(config.fields_file)
    if not path.exists():
        raise ProcessingError(f"fields file not found: {path}")
    sheet = read_sheet(path)
    specs = import_field_definitions(sheet.header, sheet.rows, config.language)
    logger.info("loaded %d field definitions from %s", len(specs), path.name)
    return tuple(specs)


def import_workbook(
    source: Path | str | BinaryIO,
    fields: Sequence[FieldSpec],
    owner_uid: str | None,
    max_rows: int,
    *,
    sheet: str | None = None,
    header_row: int = 1,
) -> ImportResult:
    """Read one sheet and convert it to TypedRows.

    Raises:
        TableImportError: structural or coercion failure (no rows are returned)
    """
    sheet_data = read_sheet(source, sheet=sheet, header_row=header_row)
    importer = TypedRowImporter(fields, owner_uid, max_rows)
    importer.accept_header(sheet_data.header)
    with RowProgress(len(sheet_data.rows), description=f"Importing {sheet_data.sheet_name}") as progress:
        for raw in sheet_data.rows:
            importer.parse_row(raw)
            progress.advance()
        progress.set_postfix(accepted=importer.accepted, dropped=importer.dropped)
    result = importer.finish()
    logger.debug(
        "sheet=%s header=%s accepted=%d dropped=%d",
        sheet_data.sheet_name,
        list(result.header),
        result.accepted_rows,
        result.dropped_rows,
    )
    return result


def _rollback(cursor: Any, error_log: ErrorLogBuffer, file_name: str) -> None:
    try:
        cursor.execute("ROLLBACK")
    except Exception as rollback_e:
        # 元のエラーを上書きしない
        error_log.record_failure(file_name, "TRANSACTION_ROLLBACK_ERROR", str(rollback_e))


def _insert_rows(
    config: ImportConfig, rows: Sequence[TypedRow], cursor: Any, error_log: ErrorLogBuffer, file_name: str
) -> int:
    """Insert all rows inside one transaction. Rolls back and re-raises on failure."""

    def on_batch(metrics: BatchMetrics) -> None:
        logger.debug(
            "batch insert table=%s rows=%d elapsed=%.4fs",
            config.table,
            metrics.batch_size,
            metrics.elapsed_seconds,
        )

    cursor.execute("BEGIN")
    try:
        result = insert_typed_rows(
            cursor, config.table, rows, page_size=config.page_size, metrics_callback=on_batch
        )
        cursor.execute("COMMIT")
    except Exception:
        _rollback(cursor, error_log, file_name)
        raise
    return result.inserted_rows


def run_import(
    config: ImportConfig,
    cursor: Any = None,
    *,
    sink: RowSink | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportReport:
    """Run one import as configured.

    Args:
        config: import configuration
        cursor: database cursor (None = mock mode unless ``sink`` is given)
        sink: callable receiving the complete row sequence, returns stored row count
        error_log: failure log buffer (a fresh one is created when omitted)

    Returns:
        ImportReport (status=failed on any import or insert error)

    Raises:
        ProcessingError: source workbook missing or no field definitions
    """
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    source = Path(config.source_file)
    if not source.exists():
        raise ProcessingError(f"source file not found: {source}")

    sheet_label = config.sheet or SHEET_UNKNOWN
    fields: tuple[FieldSpec, ...] = ()
    result: ImportResult | None = None
    inserted = 0
    error: str | None = None
    try:
        fields = load_field_specs(config)
        result = import_workbook(
            source,
            fields,
            config.owner_uid,
            config.effective_max_rows,
            sheet=config.sheet,
            header_row=config.header_row,
        )
        if sink is not None:
            inserted = sink(result.rows)
        elif cursor is not None:
            inserted = _insert_rows(config, result.rows, cursor, error_log, source.name)
        else:
            inserted = result.accepted_rows
            logger.debug("mock mode table=%s rows=%d (not inserted)", config.table, inserted)
    except TableImportError as e:
        error = str(e)
        result = None
        error_log.record_import_error(e, source.name, sheet_label)
        logger.error("import failed: %s", e)
    except BatchInsertError as e:
        error = str(e)
        result = None
        error_log.record_failure(source.name, "DATABASE_INSERT_ERROR", str(e), sheet=sheet_label)
        logger.error("insert failed table=%s: %s", config.table, e)
    except ProcessingError:
        raise
    except Exception as e:
        # 壊れたブック等 (pandas/openpyxl 由来)
        error = str(e) or type(e).__name__
        result = None
        error_log.record_failure(source.name, "UNEXPECTED_ERROR", error, sheet=sheet_label)
        logger.error("unexpected error importing %s: %s", source.name, error, exc_info=True)
    finally:
        try:
            error_log.flush()
        except OSError as e:
            logger.warning("failed to write error log: %s", e)

    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    accepted = result.accepted_rows if result is not None else 0
    return ImportReport(
        status="success" if error is None else "failed",
        table=config.table,
        accepted_rows=accepted,
        dropped_rows=result.dropped_rows if result is not None else 0,
        inserted_rows=inserted if error is None else 0,
        field_count=len(fields),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=(accepted / elapsed) if elapsed > 0 else 0.0,
        error=error,
    )
