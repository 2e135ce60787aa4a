from __future__ import annotations

import logging
from collections.abc import Iterable

from ..config.loader import ImportConfig
from ..errors import RowError, RowResolutionError
from ..kinds import ImportKind
from ..models.classified import ClassifiedRow, DuplicateRow, ErrorRow, ValidRow
from ..models.records import NormalizedRecord, RawRecord
from ..normalize.fields import normalize_record
from ..resolve.resolver import EntityResolver
from .policies import DuplicatePolicy
from .rules import ENTITY_BUILDERS, EntityBuilder

"""Row classifier: RawRecord -> exactly one ValidRow | DuplicateRow | ErrorRow.

Per row, in order:
1. normalize fields (RowNormalizationError)
2. resolve every referenced entity (RowResolutionError on not found / ambiguous)
3. apply the kind's domain rules and build the entity (RowSemanticError)
4. ask the duplicate policy; valid rows are remembered for later rows

Row-scoped errors become ErrorRow and never interrupt the remaining rows.
"""

__all__ = [
    "RowClassifier",
]

logger = logging.getLogger(__name__)


class RowClassifier:
    def __init__(
        self,
        kind: ImportKind,
        resolver: EntityResolver,
        policy: DuplicatePolicy,
        config: ImportConfig | None = None,
        builder: EntityBuilder | None = None,
    ) -> None:
        self.kind = kind
        self.resolver = resolver
        self.policy = policy
        self.config = config or ImportConfig()
        self.builder = builder or ENTITY_BUILDERS[kind.name]

    def classify(self, record: RawRecord) -> ClassifiedRow:
        try:
            normalized = normalize_record(record, self.kind.field_specs)
            references = self._resolve_references(normalized)
            entity = self.builder(normalized, references, self.config)
        except RowError as e:
            logger.debug("row=%d %s field=%s: %s", record.row_index, e.kind, e.field, e)
            return ErrorRow(
                row_index=record.row_index,
                origin=record.origin,
                message=e.render(self.config.locale),
                kind=e.kind,
                field=e.field,
            )

        match = self.policy.check(entity)
        if match is not None:
            return DuplicateRow(
                row_index=record.row_index,
                origin=record.origin,
                matched_id=match.matched_id,
                reason=match.reason,
                identifier_text=match.identifier_text,
            )
        self.policy.remember(entity, record.row_index)
        return ValidRow(row_index=record.row_index, origin=record.origin, entity=entity)

    def classify_all(self, records: Iterable[RawRecord]) -> list[ClassifiedRow]:
        # Sequential on purpose: batch duplicate detection must see earlier rows
        return [self.classify(record) for record in records]

    def _resolve_references(self, record: NormalizedRecord) -> dict[str, str]:
        resolved: dict[str, str] = {}
        for field_name, master_kind in self.kind.references.items():
            text = record.values.get(field_name)
            if text is None:
                continue
            resolution = self.resolver.resolve(master_kind, text)
            if not resolution.resolved:
                raise RowResolutionError(
                    resolution.reason or "not_found",
                    field=field_name,
                    value=resolution.attempted_text,
                )
            resolved[field_name] = resolution.entity_id
        return resolved
