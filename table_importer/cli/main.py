from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..excel.reader import read_sheet
from ..logging.init import log_summary, set_level, setup_logging
from ..models.config_models import ImportConfig
from ..services.errors import TableImportError
from ..services.orchestrator import ProcessingError, load_field_specs, run_import
from ..services.summary import render_summary_line

"""CLI entrypoint: ``python -m table_importer.cli``.

Flow:
- Load .env (DB connection variables win over the YAML database section)
- Load and validate the config
- Run the import (live DB, or mock mode when no connection is available)
- Print the SUMMARY line and exit with 0 / 1 (fatal) / 2 (import failed)
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_IMPORT_FAILED = 2


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Provide a psycopg2 cursor.

    Connection parameters, highest priority first:
        1. DATABASE_URL / PGDSN (after .env has been loaded with override)
        2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the config's database section
    """
    import psycopg2

    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    # BEGIN/COMMIT は orchestrator が明示的に発行する
    conn.autocommit = True
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Excel -> typed rows importer")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print sheet header & first rows then exit")
    p.add_argument("--fields-only", action="store_true", help="Print resolved field definitions then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: ImportConfig) -> int:
    sheet = read_sheet(Path(cfg.source_file), sheet=cfg.sheet, header_row=cfg.header_row)
    print(f"SHEET: {sheet.sheet_name} header={sheet.header} rows={len(sheet.rows)}")
    for raw in sheet.rows[:3]:
        print(f"  row {raw.row_number}: {[raw.cell(i) for i in range(len(sheet.header))]}")
    return EXIT_SUCCESS


def _print_fields(cfg: ImportConfig) -> int:
    for spec in load_field_specs(cfg):
        flag = "required" if spec.required else "optional"
        default = "" if spec.default_value is None else f" default={spec.default_value!r}"
        print(f"FIELD: {spec.name} type={spec.type.value} {flag}{default}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] が渡された場合に sys.argv (pytest の引数) を誤って読まない
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    source = Path(cfg.source_file)
    if not source.exists():
        logger.error(f"source file not found: {source}")
        return EXIT_FATAL

    logger.info(f"Importing {source} -> {cfg.table}")

    try:
        if args.inspect_data:
            return _inspect_data(cfg)
        if args.fields_only:
            return _print_fields(cfg)
    except (ProcessingError, TableImportError) as e:
        logger.error(f"{e}")
        return EXIT_FATAL

    # テスト等で DB 接続を完全に無効化: DISABLE_DB_CONNECT=1
    db_mode = "mock"
    try:
        if os.getenv("DISABLE_DB_CONNECT") == "1":
            logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
            report = run_import(cfg, cursor=None)
        else:
            try:
                with _db_connection(cfg) as cur:
                    db_mode = "live"
                    report = run_import(cfg, cursor=cur)
            except ProcessingError:
                raise
            except Exception as db_e:
                if db_mode == "live":
                    raise
                logger.info(f"DB connection failed -> fallback to mock mode: {db_e}")
                report = run_import(cfg, cursor=None)
    except ProcessingError as e:
        logger.error(f"processing({db_mode}): {e}")
        return EXIT_FATAL

    logger.info(f"mode={db_mode} rows={report.accepted_rows} inserted={report.inserted_rows}")
    # log_summary が "SUMMARY " を付与するので先頭を除去
    log_summary(render_summary_line(report)[len("SUMMARY "):])
    return EXIT_SUCCESS if report.succeeded else EXIT_IMPORT_FAILED
