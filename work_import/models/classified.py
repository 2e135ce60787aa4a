from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar

from .records import RecordOrigin

"""ClassifiedRow tagged variant: ValidRow | DuplicateRow | ErrorRow.

Exactly one per input row, in input order, each keeping the original
``row_index`` and origin for user-facing diagnostics.
"""

__all__ = [
    "ValidRow",
    "DuplicateRow",
    "ErrorRow",
    "ClassifiedRow",
]


@dataclass(frozen=True)
class ValidRow:
    status: ClassVar[str] = "valid"
    row_index: int
    origin: RecordOrigin
    entity: Any


@dataclass(frozen=True)
class DuplicateRow:
    """Informational: the row describes an entity that already exists (catalog or earlier row)."""
    status: ClassVar[str] = "duplicate"
    row_index: int
    origin: RecordOrigin
    matched_id: str
    reason: str  # catalog_name_brand | catalog_code | batch_name_brand | batch_code
    identifier_text: str


@dataclass(frozen=True)
class ErrorRow:
    status: ClassVar[str] = "error"
    row_index: int
    origin: RecordOrigin
    message: str  # localized, without the "Row N:" prefix
    kind: str  # error kind, e.g. ROW_NORMALIZATION
    field: str | None = None


ClassifiedRow = ValidRow | DuplicateRow | ErrorRow
