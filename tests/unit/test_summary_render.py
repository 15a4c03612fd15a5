from __future__ import annotations

from datetime import UTC, datetime

from table_importer.models.import_result import ImportReport
from table_importer.services.summary import render_summary_line


def _report(**overrides) -> ImportReport:
    base = dict(
        status="success",
        table="users",
        accepted_rows=10,
        dropped_rows=2,
        inserted_rows=10,
        field_count=5,
        start_time=datetime(2024, 1, 1, tzinfo=UTC),
        end_time=datetime(2024, 1, 1, 0, 0, 2, tzinfo=UTC),
        elapsed_seconds=2.0,
        throughput_rows_per_sec=5.0,
    )
    base.update(overrides)
    return ImportReport(**base)


def test_render_integers_without_decimals():
    assert render_summary_line(_report()) == (
        "SUMMARY status=success table=users rows=10 dropped=2 inserted=10 fields=5 "
        "elapsed_sec=2 throughput_rps=5"
    )


def test_render_small_and_fractional_values():
    line = render_summary_line(_report(elapsed_seconds=0.0012, throughput_rows_per_sec=8333.3333333))
    assert "elapsed_sec=0.0012 " in line
    assert line.endswith("throughput_rps=8333.333")


def test_render_failed_report():
    line = render_summary_line(
        _report(status="failed", accepted_rows=0, dropped_rows=0, inserted_rows=0,
                elapsed_seconds=0, throughput_rows_per_sec=0, error="Header mismatch!")
    )
    assert line.startswith("SUMMARY status=failed table=users rows=0 dropped=0 inserted=0")
    assert line.endswith("elapsed_sec=0 throughput_rps=0")
