from __future__ import annotations

from collections.abc import Sequence

from ..messages import DEFAULT_LOCALE, render_row_message
from ..models.classified import ClassifiedRow, DuplicateRow, ErrorRow, ValidRow
from ..models.results import DuplicateInfo, PreviewResult, PreviewStats, RowIssue

"""Preview builder: classified rows -> PreviewResult.

Pure aggregation with no I/O; the same rows always give the same result.
"""

__all__ = [
    "DEFAULT_SAMPLE_SIZE",
    "row_issue",
    "build_preview",
]

DEFAULT_SAMPLE_SIZE = 5


def row_issue(row: ErrorRow, locale: str = DEFAULT_LOCALE) -> RowIssue:
    return RowIssue(
        row=row.row_index,
        kind=row.kind,
        message=render_row_message(row.row_index, row.message, locale),
        field=row.field,
    )


def build_preview(
    rows: Sequence[ClassifiedRow],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    locale: str = DEFAULT_LOCALE,
) -> PreviewResult:
    valid = [r for r in rows if isinstance(r, ValidRow)]
    duplicates = [r for r in rows if isinstance(r, DuplicateRow)]
    issues = [row_issue(r, locale) for r in rows if isinstance(r, ErrorRow)]

    stats = PreviewStats(
        total_rows=len(rows),
        valid_count=len(valid),
        duplicate_count=len(duplicates),
        error_count=len(issues),
    )
    return PreviewResult(
        stats=stats,
        errors=[i.message for i in issues],
        duplicates=[
            DuplicateInfo(
                row=d.row_index,
                identifier_text=d.identifier_text,
                matched_id=d.matched_id,
                reason=d.reason,
            )
            for d in duplicates
        ],
        sample_valid_entities=[r.entity.to_dict() for r in valid[:sample_size]],
        issues=issues,
    )
