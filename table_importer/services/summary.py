from __future__ import annotations

from ..models.import_result import ImportReport

"""SUMMARY line rendering.

Format:
SUMMARY status={status} table={table} rows={accepted} dropped={dropped}
inserted={inserted} fields={fields} elapsed_sec={elapsed} throughput_rps={rps}
"""


def _format_number(value: float) -> str:
    # 整数値は小数点なし、極小値は指数表記を避ける
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if abs(value) < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(report: ImportReport) -> str:
    """Render the SUMMARY line for one import run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> report = ImportReport(
        ...     status="success", table="users", accepted_rows=10, dropped_rows=0,
        ...     inserted_rows=10, field_count=3, start_time=start, end_time=end,
        ...     elapsed_seconds=2.0, throughput_rows_per_sec=5.0,
        ... )
        >>> render_summary_line(report)
        'SUMMARY status=success table=users rows=10 dropped=0 inserted=10 fields=3 elapsed_sec=2 throughput_rps=5'
    """
    return (
        f"SUMMARY status={report.status} "
        f"table={report.table} "
        f"rows={report.accepted_rows} "
        f"dropped={report.dropped_rows} "
        f"inserted={report.inserted_rows} "
        f"fields={report.field_count} "
        f"elapsed_sec={_format_number(report.elapsed_seconds)} "
        f"throughput_rps={_format_number(report.throughput_rows_per_sec)}"
    )
