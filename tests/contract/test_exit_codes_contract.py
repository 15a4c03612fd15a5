from __future__ import annotations

from pathlib import Path

from table_importer.cli import main as cli_main
from table_importer.cli.main import EXIT_FATAL, EXIT_IMPORT_FAILED, EXIT_SUCCESS

"""Exit code contract: 0 success, 1 fatal startup, 2 import failed."""


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_IMPORT_FAILED) == (0, 1, 2)


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # config/import.yml 無し → exit 1
    assert cli_main([]) == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_success(write_config, users_workbook, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    assert cli_main([]) == 0


def test_exit_code_import_failed(write_config, workbook, monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    workbook("users.xlsx", {"Users": [["wrong"], ["x"]]})
    assert cli_main([]) == 2


def test_db_connect_failure_falls_back_to_mock(write_config, users_workbook, monkeypatch, capsys):
    import psycopg2

    def refuse(*args, **kwargs):
        raise psycopg2.OperationalError("connection refused")

    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    monkeypatch.setattr(psycopg2, "connect", refuse)
    assert cli_main([]) == 0
    out = capsys.readouterr().out
    assert "fallback to mock mode" in out
    assert "mode=mock" in out
