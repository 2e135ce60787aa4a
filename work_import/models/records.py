from __future__ import annotations

from dataclasses import dataclass
from typing import Any

"""RawRecord / NormalizedRecord models.

A RawRecord is one unprocessed spreadsheet row or OCR invoice line, keyed by
canonical field label ("Date", "Product Name", ...). ``row_index`` is the
1-based data-row ordinal used in every user-facing diagnostic; ``origin.line``
is the physical line in the source (spreadsheet line / OCR text line).
"""

__all__ = [
    "RecordOrigin",
    "RawRecord",
    "NormalizedRecord",
]


@dataclass(frozen=True)
class RecordOrigin:
    source: str  # file name, or "ocr" for extracted text
    line: int  # physical 1-based line in the source


@dataclass(frozen=True)
class RawRecord:
    origin: RecordOrigin
    row_index: int  # unique within one batch, first data row = 1
    fields: dict[str, str]  # canonical field label -> raw cell text

    def get(self, field: str) -> str:
        return self.fields.get(field, "")


@dataclass(frozen=True)
class NormalizedRecord:
    """RawRecord with each recognized field coerced to its target type (None when blank)."""
    origin: RecordOrigin
    row_index: int
    values: dict[str, Any]
    raw_values: dict[str, str]  # original text kept for diagnostics
