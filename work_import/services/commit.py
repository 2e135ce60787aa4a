from __future__ import annotations

import logging
import time
from collections.abc import Sequence

from ..db.store import ImportStore
from ..errors import PersistenceError
from ..logging.error_log import ErrorLogBuffer
from ..messages import DEFAULT_LOCALE, render_row_message
from ..models.classified import ClassifiedRow, DuplicateRow, ErrorRow, ValidRow
from ..models.error_record import ErrorRecord
from ..models.results import CommitResult, RowIssue
from .preview import row_issue
from .progress import ProgressTracker

"""Commit executor: persist the Valid rows of a classification pass.

- Rows are written one at a time, in input order, each immediately
- A failed write is recorded and the next row is still attempted
- Duplicate and Error rows are never written; Error rows are reported
- Never raises for row-level problems
"""

__all__ = [
    "execute_commit",
]

logger = logging.getLogger(__name__)


def execute_commit(
    rows: Sequence[ClassifiedRow],
    store: ImportStore,
    kind: str,
    *,
    source: str = "",
    locale: str = DEFAULT_LOCALE,
    error_log: ErrorLogBuffer | None = None,
    progress: ProgressTracker | None = None,
) -> CommitResult:
    start = time.perf_counter()
    imported = 0
    issues: list[RowIssue] = []

    for row in rows:
        if isinstance(row, ErrorRow):
            issues.append(row_issue(row, locale))
        elif isinstance(row, ValidRow):
            try:
                new_id = store.persist(kind, row.entity)
            except PersistenceError as e:
                issues.append(_persistence_issue(row, e, locale))
            except Exception as e:
                # Unknown driver/store failure: still row-scoped
                logger.debug("row=%d unexpected store error", row.row_index, exc_info=True)
                issues.append(_persistence_issue(row, PersistenceError(str(e) or type(e).__name__), locale))
            else:
                imported += 1
                logger.debug("row=%d persisted id=%s", row.row_index, new_id)
        if progress is not None:
            progress.advance(imported=imported, failed=len(issues))

    if error_log is not None:
        for issue in issues:
            error_log.append(ErrorRecord.create(source, issue.row, issue.kind, issue.message))

    return CommitResult(
        imported_count=imported,
        errors=[i.message for i in issues],
        total_rows=len(rows),
        valid_count=sum(1 for r in rows if isinstance(r, ValidRow)),
        duplicate_count=sum(1 for r in rows if isinstance(r, DuplicateRow)),
        issues=issues,
        elapsed_seconds=time.perf_counter() - start,
    )


def _persistence_issue(row: ValidRow, error: PersistenceError, locale: str) -> RowIssue:
    logger.warning("row=%d not persisted: %s", row.row_index, error)
    return RowIssue(
        row=row.row_index,
        kind=error.kind,
        message=render_row_message(row.row_index, error.render(locale), locale),
    )
