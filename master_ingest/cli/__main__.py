from __future__ import annotations

import argparse
import os
import sys
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from master_ingest.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from master_ingest.logging.error_log import ErrorLogBuffer
from master_ingest.logging.init import log_summary, set_debug, setup_logging
from master_ingest.models.config_models import DatabaseConfig, IngestSettings
from master_ingest.models.targets import TARGETS
from master_ingest.services.pipeline import import_upload, process_files
from master_ingest.services.summary import render_summary_line

"""CLI entrypoint.

    master-ingest stores EP.csv CP.csv WP.csv
    master-ingest pricelist "Rate list v3.csv" --dry-run

Each file is one upload with its own transaction. Exit codes:
    0  every file imported
    2  at least one file failed (others may have been committed)
    1  fatal: bad config, missing input file, database unreachable
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Connection string resolution order.

    1. DATABASE_URL / PGDSN (environment, .env already loaded with override)
    2. config `database.dsn`
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back to the
       matching config fields, then libpq-style defaults
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(db_cfg: DatabaseConfig):  # pragma: no cover (thin wrapper; tested via mocks)
    """Yield a psycopg2 cursor on an autocommit connection.

    The writer issues BEGIN / COMMIT / ROLLBACK itself, one transaction per file.
    """
    conn = psycopg2.connect(_resolve_dsn(db_cfg))
    cur = None
    try:
        conn.autocommit = True
        cur = conn.cursor()
        yield cur
    finally:
        if cur is not None:
            cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its connection settings win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Spreadsheet -> PostgreSQL master-data importer")
    p.add_argument("target", choices=sorted(TARGETS), help="Import target")
    p.add_argument("files", nargs="+", type=Path, help="CSV / TSV / XLSX exports")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--dry-run", action="store_true", help="Build records without touching the database")
    p.add_argument("--inspect", action="store_true",
                   help="Print located header, column map and first records then exit")
    return p.parse_args(argv)


def _inspect(files: list[Path], target: str, settings: IngestSettings) -> int:
    for f in files:
        print(f"FILE: {f.name}")
        outcome = import_upload(f.read_bytes(), target, None, settings, file_name=f.name)
        if outcome.failed:
            print(f"  error: {outcome.error}")
            continue
        print(f"  header_row={outcome.header_index}")
        mapped = {k: v for k, v in (outcome.header_map or {}).items() if v is not None}
        unmapped = sorted(k for k, v in (outcome.header_map or {}).items() if v is None)
        print(f"  columns={mapped}")
        print(f"  unresolved={unmapped}")
        print(f"  records={outcome.count}")
        for record in outcome.records[:3]:
            print(f"    {record}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # [] を渡されたときに sys.argv が混入しないよう None のときだけ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    missing = [str(p) for p in args.files if not p.is_file()]
    if missing:
        logger.error(f"file not found: {', '.join(missing)}")
        return EXIT_FATAL

    if args.inspect:
        return _inspect(args.files, args.target, cfg.settings)

    error_log = ErrorLogBuffer()
    # DISABLE_DB_CONNECT=1 でも DB 無しの dry-run
    if args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1":
        mode = "dry-run"
        result = process_files(args.files, args.target, None, cfg.settings, error_log)
    else:
        mode = "live"
        try:
            with _db_connection(cfg.database) as cur:
                result = process_files(args.files, args.target, cur, cfg.settings, error_log)
        except psycopg2.Error as e:
            logger.error(f"database: {e}")
            error_log.flush()
            return EXIT_FATAL

    logger.info(f"mode={mode} target={args.target} total_rows={result.total_written_rows}")

    log_path = error_log.flush()
    if log_path is not None:
        logger.warning(f"error log written: {log_path}")

    summary_line = render_summary_line(len(args.files), result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
