from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..classify.rules import build_material
from ..config.loader import ImportConfig
from ..db.store import ImportStore
from ..errors import ImportEngineError, PersistenceError
from ..kinds import MATERIALS
from ..logging.error_log import ErrorLogBuffer
from ..messages import render_row_message
from ..models.error_record import ErrorRecord
from ..models.master_data import MasterDataIndex, MasterEntry
from ..models.records import RawRecord, RecordOrigin
from ..models.results import OcrSaveResult, RowIssue
from ..normalize.fields import compact_code, normalize_record

"""OCR review merge.

OCR output is never committed automatically. Each candidate line becomes a
StagingEntry a person edits or discards; the reviewed entries are then saved
one by one. There is no duplicate stage: the reviewer has already confirmed
each entry. Failures are counted and reported together, the remaining
entries are still saved.
"""

__all__ = [
    "StagingEntry",
    "stage_candidates",
    "apply_edits",
    "save_reviewed",
]

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = tuple(c.name for c in MATERIALS.columns)


@dataclass
class StagingEntry:
    row_index: int
    origin: RecordOrigin
    fields: dict[str, str]
    matched_id: str | None = None  # catalog entry the product code matched
    discarded: bool = False

    def edit(self, changes: Mapping[str, str]) -> None:
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise KeyError(f"unknown fields: {sorted(unknown)}")
        self.fields.update({k: "" if v is None else str(v) for k, v in changes.items()})

    def discard(self) -> None:
        self.discarded = True

    def to_record(self) -> RawRecord:
        return RawRecord(origin=self.origin, row_index=self.row_index, fields=dict(self.fields))


def _catalog_by_code(index: MasterDataIndex) -> dict[str, MasterEntry]:
    return {compact_code(m.canonical_code): m for m in index.materials if m.canonical_code}


def stage_candidates(records: Sequence[RawRecord], index: MasterDataIndex) -> list[StagingEntry]:
    """Turn OCR records into editable entries, pre-filled from the catalog on a code match."""
    by_code = _catalog_by_code(index)
    entries: list[StagingEntry] = []
    for record in records:
        fields = {name: record.get(name) for name in EDITABLE_FIELDS}
        match = by_code.get(compact_code(fields["Product Code"])) if fields["Product Code"] else None
        if match is not None:
            fields["Product Name"] = match.display_name
            fields["Brand"] = match.brand or fields["Brand"]
            fields["Category"] = match.category or fields["Category"]
            fields["Unit"] = match.unit or fields["Unit"]
        entries.append(
            StagingEntry(
                row_index=record.row_index,
                origin=record.origin,
                fields=fields,
                matched_id=match.id if match is not None else None,
            )
        )
    return entries


def apply_edits(entries: Sequence[StagingEntry], edits: Mapping[int, Mapping[str, str] | None]) -> None:
    """Apply reviewer edits keyed by row index; ``None`` discards the entry."""
    by_row = {e.row_index: e for e in entries}
    for row_index, changes in edits.items():
        entry = by_row.get(row_index)
        if entry is None:
            raise KeyError(f"no staged entry for row {row_index}")
        if changes is None:
            entry.discard()
        else:
            entry.edit(changes)


def save_reviewed(
    entries: Sequence[StagingEntry],
    store: ImportStore,
    config: ImportConfig | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
) -> OcrSaveResult:
    config = config or ImportConfig()
    saved = 0
    issues: list[RowIssue] = []
    for entry in entries:
        if entry.discarded:
            continue
        try:
            normalized = normalize_record(entry.to_record(), MATERIALS.field_specs)
            entity = build_material(normalized, {}, config)
            store.persist(MATERIALS.name, entity)
        except ImportEngineError as e:
            issues.append(_issue(entry, e, config.locale))
        except Exception as e:
            logger.debug("row=%d unexpected store error", entry.row_index, exc_info=True)
            issues.append(_issue(entry, PersistenceError(str(e) or type(e).__name__), config.locale))
        else:
            saved += 1

    if error_log is not None:
        for issue in issues:
            source = next((e.origin.source for e in entries if e.row_index == issue.row), "ocr")
            error_log.append(ErrorRecord.create(source, issue.row, issue.kind, issue.message))

    logger.info("review save: saved=%d failed=%d", saved, len(issues))
    return OcrSaveResult(
        saved_count=saved,
        error_count=len(issues),
        errors=[i.message for i in issues],
        issues=issues,
    )


def _issue(entry: StagingEntry, error: ImportEngineError, locale: str) -> RowIssue:
    return RowIssue(
        row=entry.row_index,
        kind=error.kind,
        message=render_row_message(entry.row_index, error.render(locale), locale),
        field=getattr(error, "field", None),
    )
