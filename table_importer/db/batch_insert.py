from __future__ import annotations

import re
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..models.typed_row import TypedRow

"""DB sink: bulk INSERT of TypedRows with psycopg2.extras.execute_values.

Column list = owner column + accepted header order (taken from the first row's
record). Transaction boundaries are owned by the caller (orchestrator).
"""

try:  # pragma: no cover - optional until psycopg2 present at runtime
    from psycopg2.extras import execute_values
except ImportError:  # pragma: no cover
    execute_values = None  # type: ignore

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class BatchMetrics:
    """Timing of one execute_values call."""
    batch_size: int
    elapsed_seconds: float
    start_time: float
    end_time: float


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    columns: tuple[str, ...] = ()


def quote_table(table: str) -> str:
    """Quote ``table`` or ``schema.table``; reject anything else."""
    parts = table.split(".")
    if len(parts) > 2 or not all(_IDENTIFIER_RE.match(p) for p in parts):
        raise BatchInsertError(f"invalid table name: {table!r}")
    return ".".join(f'"{p}"' for p in parts)


def insert_typed_rows(
    cursor: Any,
    table: str,
    rows: Sequence[TypedRow],
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> InsertResult:
    """Insert all rows in one execute_values call (paged by page_size).

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: 挿入先テーブル (schema.table 可)
    rows: 取込済み TypedRow (全行同じ列構成)
    page_size: execute_values の page_size
    metrics_callback: receives BatchMetrics after the call (not invoked for empty input)
    """
    if execute_values is None:
        raise BatchInsertError("psycopg2 not available")
    if not rows:
        return InsertResult(inserted_rows=0)

    table_sql = quote_table(table)
    columns = tuple(rows[0].as_record().keys())
    cols_sql = ",".join('"{}"'.format(c.replace('"', '""')) for c in columns)
    values = [tuple(r.as_record()[c] for c in columns) for r in rows]
    sql = f"INSERT INTO {table_sql} ({cols_sql}) VALUES %s"

    start_time = time.time()
    try:
        execute_values(cursor, sql, values, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(values),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )
    return InsertResult(inserted_rows=len(values), columns=columns)
