from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Row-scoped errors keep their kind (ROW_NORMALIZATION, PERSISTENCE, ...) here
even though users only see the flat localized message. ``row=-1`` marks a
batch-level error where no single row is to blame.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        source: file name (or "ocr") the row came from
        row: 1-based data-row number, -1 for batch-level errors
        error_kind: UPPER_SNAKE error kind
        message: rendered message
    """
    timestamp: str
    source: str
    row: int
    error_kind: str
    message: str

    @staticmethod
    def create(source: str, row: int, error_kind: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            source=source,
            row=row,
            error_kind=error_kind,
            message=message,
        )

    def to_json_line(self) -> str:
        # dataclass -> dict keeps the schema closed (no extra keys)
        return json.dumps(asdict(self), ensure_ascii=False)
