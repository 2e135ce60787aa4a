from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Result models for preview, commit and OCR review save.

``to_dict`` emits exactly the external JSON contract keys; timing fields are
kept on the dataclass for the SUMMARY line only.
"""

__all__ = [
    "PreviewStats",
    "RowIssue",
    "DuplicateInfo",
    "PreviewResult",
    "CommitResult",
    "OcrSaveResult",
]


@dataclass(frozen=True)
class PreviewStats:
    total_rows: int
    valid_count: int
    duplicate_count: int
    error_count: int

    def to_dict(self) -> dict[str, int]:
        return {
            "totalRows": self.total_rows,
            "validCount": self.valid_count,
            "duplicateCount": self.duplicate_count,
            "errorCount": self.error_count,
        }


@dataclass(frozen=True)
class RowIssue:
    """Structured form of one row error, used for logging (kind is never shown to users)."""
    row: int
    kind: str
    message: str  # localized, already prefixed with the row number
    field: str | None = None


@dataclass(frozen=True)
class DuplicateInfo:
    row: int
    identifier_text: str
    matched_id: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "identifierText": self.identifier_text, "matchedId": self.matched_id}


@dataclass(frozen=True)
class PreviewResult:
    stats: PreviewStats
    errors: list[str]
    duplicates: list[DuplicateInfo]
    sample_valid_entities: list[dict[str, Any]]
    issues: list[RowIssue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "stats": self.stats.to_dict(),
            "errors": list(self.errors),
            "duplicates": [d.to_dict() for d in self.duplicates],
            "sampleValidEntities": list(self.sample_valid_entities),
        }


@dataclass(frozen=True)
class CommitResult:
    imported_count: int
    errors: list[str]
    total_rows: int = 0
    valid_count: int = 0  # rows classified valid at commit time (imported + failed writes)
    duplicate_count: int = 0
    issues: list[RowIssue] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"importedCount": self.imported_count, "errors": list(self.errors)}


@dataclass(frozen=True)
class OcrSaveResult:
    saved_count: int
    error_count: int
    errors: list[str]
    issues: list[RowIssue] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"savedCount": self.saved_count, "errorCount": self.error_count, "errors": list(self.errors)}
