from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for multi-file command line runs.

One FileStat per uploaded file, aggregated into a ProcessingResult that feeds
the SUMMARY line.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file processing statistics (internal helper for ProcessingResult)."""
    file_name: str
    status: str  # success/failed
    written_rows: int
    elapsed_seconds: float
    stage: str = ""  # last ImportStage value reached


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results and summary output for one command line run."""
    success_files: int
    failed_files: int
    total_written_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float  # end - start
    throughput_rows_per_sec: float  # total_written / elapsed
    file_stats: list[FileStat] | None = None
