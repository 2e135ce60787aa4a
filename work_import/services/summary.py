from __future__ import annotations

from ..models.results import CommitResult, OcrSaveResult, PreviewResult

"""SUMMARY line rendering.

Format:
SUMMARY mode={mode} kind={kind} rows={rows} valid={valid} duplicates={dup}
errors={errors} imported={imported}

A review save has no classification pass: rows counts the saved entries,
valid equals imported, duplicates is always 0.
"""

__all__ = [
    "render_summary_line",
]


def render_summary_line(mode: str, kind: str, result: PreviewResult | CommitResult | OcrSaveResult) -> str:
    """Render the SUMMARY line for a preview, commit or review-save result.

    Examples:
        >>> from work_import.models import CommitResult
        >>> render_summary_line("commit", "attendance", CommitResult(
        ...     imported_count=2, errors=["Row 2: x"], total_rows=3, valid_count=2))
        'SUMMARY mode=commit kind=attendance rows=3 valid=2 duplicates=0 errors=1 imported=2'
    """
    if isinstance(result, PreviewResult):
        rows = result.stats.total_rows
        valid = result.stats.valid_count
        duplicates = result.stats.duplicate_count
        errors = result.stats.error_count
        imported = 0
    elif isinstance(result, CommitResult):
        rows = result.total_rows
        valid = result.valid_count
        duplicates = result.duplicate_count
        errors = len(result.errors)
        imported = result.imported_count
    else:
        rows = result.saved_count + result.error_count
        valid = imported = result.saved_count
        duplicates = 0
        errors = result.error_count

    return (
        f"SUMMARY mode={mode} kind={kind} "
        f"rows={rows} "
        f"valid={valid} "
        f"duplicates={duplicates} "
        f"errors={errors} "
        f"imported={imported}"
    )
