from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""ImportOutcome domain model and ImportStage enum.

The ImportOutcome is the result of pushing one uploaded buffer through the
pipeline. It records the last stage reached and, on failure, the stage that
could not be reached, so partial failures can be inspected directly.
"""

__all__ = [
    "ImportStage",
    "ImportOutcome",
]


class ImportStage(Enum):
    """Lifecycle of one import request.

    State transitions:
        received → decoded → header_located → header_resolved → records_built → committed

    Failure exits happen while trying to reach header_located (no header row),
    header_resolved (natural key column missing) or committed (transaction error).
    Input errors (no file, empty file, undecodable bytes) stop at received/decoded.
    """
    RECEIVED = "received"
    DECODED = "decoded"
    HEADER_LOCATED = "header_located"
    HEADER_RESOLVED = "header_resolved"
    RECORDS_BUILT = "records_built"
    COMMITTED = "committed"


@dataclass(frozen=True)
class ImportOutcome:
    """Result of one import request.

    stage: last stage reached
    failed_at: stage that could not be reached (None on success)
    count: records written (or built, in dry-run mode)
    message / error: operator-facing text, exactly one of them is set
    """
    target: str
    stage: ImportStage
    count: int = 0
    message: str | None = None
    error: str | None = None
    failed_at: ImportStage | None = None
    header_index: int | None = None
    header_map: dict[str, int | None] | None = None
    dry_run: bool = False
    records: list[Any] = field(default_factory=list, repr=False)

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_response(self) -> dict[str, Any]:
        """Shape returned to the HTTP caller: {count, message} or {error}."""
        if self.error is not None:
            return {"error": self.error}
        return {"count": self.count, "message": self.message}
