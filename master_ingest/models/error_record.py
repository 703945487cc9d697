from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""One failed upload as a JSON line.

Keys are fixed: timestamp, file, target, stage, error_type, message.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Failed upload, as written to logs/errors-*.log.

    stage is the ImportStage value that could not be reached; error_type is an
    UPPER_SNAKE code such as HEADER_NOT_FOUND or TRANSACTION_ERROR.
    """
    timestamp: str  # UTC, "Z" suffix
    file: str
    target: str
    stage: str
    error_type: str
    message: str

    @classmethod
    def create(cls, file: str, target: str, stage: str, error_type: str, message: str) -> ErrorRecord:
        now = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return cls(now, file, target, stage, error_type, message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
