from __future__ import annotations

import csv
import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..db.upsert import upsert_batch
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.config_models import IngestSettings
from ..models.import_outcome import ImportOutcome, ImportStage
from ..models.processing_result import FileStat, ProcessingResult
from ..models.targets import ImportTarget, get_target
from ..tabular.headers import (
    HeaderNotFoundError,
    MissingNaturalKeyError,
    locate_header,
    resolve_headers,
)
from ..tabular.reader import decode
from .progress import ProgressTracker
from .record_builder import build_records

"""Import pipeline orchestration.

import_upload() drives one uploaded buffer through

    received → decoded → header_located → header_resolved → records_built → committed

and always returns an ImportOutcome; operator-facing failures are reported in
it rather than raised. process_files() runs one upload per file (one
transaction each) for the command line.
"""

__all__ = [
    "import_upload",
    "process_files",
]

logger = logging.getLogger(__name__)


def _fail(
    target: ImportTarget,
    stage: ImportStage,
    failed_at: ImportStage,
    error_type: str,
    message: str,
    file_name: str,
    error_log: ErrorLogBuffer | None,
    **extra: Any,
) -> ImportOutcome:
    logger.error("[%s] %s: %s", target.name, error_type, message)
    if error_log is not None:
        error_log.append(ErrorRecord.create(
            file=file_name,
            target=target.name,
            stage=failed_at.value,
            error_type=error_type,
            message=message,
        ))
    return ImportOutcome(
        target=target.name,
        stage=stage,
        error=message,
        failed_at=failed_at,
        **extra,
    )


def import_upload(
    data: bytes | None,
    target: ImportTarget | str,
    cursor: Any = None,
    settings: IngestSettings | None = None,
    *,
    file_name: str = "<upload>",
    error_log: ErrorLogBuffer | None = None,
) -> ImportOutcome:
    """Import one uploaded spreadsheet.

    Args:
        data: raw upload bytes (None = no file supplied)
        target: ImportTarget or its name ("stores" / "pricelist")
        cursor: database cursor; None = dry run (records are built, nothing written)
        settings: ingest settings (defaults when None)
        file_name: name used in logs and the error log
        error_log: optional buffer receiving an ErrorRecord on failure

    Returns:
        ImportOutcome; outcome.to_response() is the {count, message} / {error}
        body for an HTTP caller.
    """
    if isinstance(target, str):
        target = get_target(target)
    settings = settings or IngestSettings()
    table = settings.table_for(target.name, target.table)
    stage = ImportStage.RECEIVED
    logger.info("[%s] upload received: %s", target.name, file_name)

    if data is None:
        return _fail(target, stage, ImportStage.DECODED, "NO_FILE",
                     "No file uploaded", file_name, error_log)
    if not data.strip():
        return _fail(target, stage, ImportStage.DECODED, "EMPTY_UPLOAD",
                     "Uploaded file is empty", file_name, error_log)

    try:
        grid = decode(data)
    except UnicodeDecodeError as e:
        return _fail(target, stage, ImportStage.DECODED, "DECODE_ERROR",
                     f"could not decode upload as UTF-8 text: {e}", file_name, error_log)
    except csv.Error as e:
        return _fail(target, stage, ImportStage.DECODED, "DECODE_ERROR",
                     f"could not split delimited text: {e}", file_name, error_log)
    except Exception as e:  # corrupt workbook (zipfile / openpyxl / pandas)
        return _fail(target, stage, ImportStage.DECODED, "DECODE_ERROR",
                     f"could not read workbook: {e}", file_name, error_log)
    if not any(any(cell.strip() for cell in row) for row in grid):
        return _fail(target, stage, ImportStage.DECODED, "EMPTY_UPLOAD",
                     "Uploaded file has no rows", file_name, error_log)
    stage = ImportStage.DECODED
    logger.info("[%s] decoded %d row(s)", target.name, len(grid))

    try:
        header_index = locate_header(grid, target.anchor_rules, settings.header_scan_rows)
    except HeaderNotFoundError as e:
        return _fail(target, stage, ImportStage.HEADER_LOCATED, "HEADER_NOT_FOUND",
                     str(e), file_name, error_log)
    stage = ImportStage.HEADER_LOCATED

    try:
        header_map = resolve_headers(grid[header_index], target.aliases, target.natural_key)
    except MissingNaturalKeyError as e:
        return _fail(target, stage, ImportStage.HEADER_RESOLVED, "MISSING_NATURAL_KEY",
                     str(e), file_name, error_log, header_index=header_index)
    stage = ImportStage.HEADER_RESOLVED
    logger.debug("[%s] header map: %s", target.name, header_map)

    records = build_records(grid, header_index, header_map, target, settings.null_tokens)
    stage = ImportStage.RECORDS_BUILT

    if cursor is None:
        return ImportOutcome(
            target=target.name,
            stage=stage,
            count=len(records),
            message=f"Validated {len(records)} {target.label} (dry run, nothing written).",
            header_index=header_index,
            header_map=header_map,
            dry_run=True,
            records=records,
        )

    try:
        count = upsert_batch(cursor, table, target.natural_key, records,
                             target.updatable_fields, page_size=settings.page_size)
    except Exception as e:
        return _fail(target, stage, ImportStage.COMMITTED, "TRANSACTION_ERROR",
                     f"Sync failed: {e}", file_name, error_log,
                     header_index=header_index, header_map=header_map)

    return ImportOutcome(
        target=target.name,
        stage=ImportStage.COMMITTED,
        count=count,
        message=f"Successfully synced {count} {target.label}.",
        header_index=header_index,
        header_map=header_map,
        records=records,
    )


def process_files(
    paths: Sequence[Path],
    target: ImportTarget | str,
    cursor: Any = None,
    settings: IngestSettings | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ProcessingResult:
    """Import each file as its own upload (own transaction) and aggregate.

    A failing file does not stop the others; its changes are rolled back by
    the writer and it is counted as failed.
    """
    if isinstance(target, str):
        target = get_target(target)
    start_time = datetime.now(UTC)
    file_stats: list[FileStat] = []
    success_count = 0
    failed_count = 0
    total_rows = 0

    with ProgressTracker(len(paths), description="Importing files") as progress:
        for path in paths:
            progress.start_file(path)
            file_start = datetime.now(UTC)
            try:
                data = path.read_bytes()
            except OSError as e:
                outcome = _fail(target, ImportStage.RECEIVED, ImportStage.DECODED, "READ_ERROR",
                                f"could not read {path}: {e.strerror or e}", path.name, error_log)
            else:
                outcome = import_upload(
                    data, target, cursor, settings, file_name=path.name, error_log=error_log,
                )
            file_elapsed = (datetime.now(UTC) - file_start).total_seconds()

            if outcome.failed:
                failed_count += 1
            else:
                success_count += 1
                total_rows += outcome.count
            logger.info("%s %s", path.name, json.dumps(outcome.to_response(), ensure_ascii=False))

            progress.finish_file(not outcome.failed, outcome.count)
            file_stats.append(FileStat(
                file_name=path.name,
                status="failed" if outcome.failed else "success",
                written_rows=outcome.count,
                elapsed_seconds=file_elapsed,
                stage=outcome.stage.value,
            ))

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=success_count,
        failed_files=failed_count,
        total_written_rows=total_rows,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
    )
