from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

"""File-level progress bar for multi-file imports.

Drawn with tqdm only when stdout is a terminal; under cron, CI or a pipe the
tracker just counts and the labeled log lines are the only output.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """One tick per uploaded file, with ok/failed/rows in the postfix."""

    def __init__(self, total_files: int, *, description: str = "Importing files") -> None:
        self.total_files = total_files
        self.description = description
        self.current_file = 0
        self.succeeded = 0
        self.failed = 0
        self.rows = 0
        self.enabled = is_tty_enabled()
        self.pbar: Any | None = self._open_bar() if self.enabled else None

    def _open_bar(self) -> Any:
        return tqdm(
            total=self.total_files,
            desc=self.description,
            unit="file",
            leave=True,
            ncols=80,
            ascii=True,
        )

    def start_file(self, file_path: Path) -> None:
        self.current_file += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, success: bool, rows: int = 0) -> None:
        if success:
            self.succeeded += 1
            self.rows += rows
        else:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.set_postfix(ok=self.succeeded, failed=self.failed, rows=self.rows)
            self.pbar.set_description(self.description)
            self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
