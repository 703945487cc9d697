from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""JSON-Lines error log for failed uploads.

The pipeline appends one ErrorRecord per failed upload; the command line
flushes the buffer once at the end of a run to
`logs/errors-YYYYMMDD-HHMMSS.log` (UTC). A run without failures writes no file.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
    "LOGS_DIR",
]

LOGS_DIR = Path("logs")
FILE_STAMP = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Collects ErrorRecords for one run; not thread safe (uploads run serially)."""

    def __init__(self, logs_dir: Path = LOGS_DIR) -> None:
        self._logs_dir = logs_dir
        self._pending: list[ErrorRecord] = []
        self._path: Path | None = None

    @property
    def file_path(self) -> Path:
        # 初回参照時に確定し、以降の flush は同じファイルに追記する
        if self._path is None:
            stamp = datetime.now(UTC).strftime(FILE_STAMP)
            self._path = self._logs_dir / f"errors-{stamp}.log"
        return self._path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._pending)

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Write pending records and clear them; None when nothing was pending."""
        if not self._pending:
            return None
        path = self.file_path
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.writelines(record.to_json_line() + "\n" for record in self._pending)
        self._pending.clear()
        return path
