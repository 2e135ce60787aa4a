from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..classify.classifier import RowClassifier
from ..classify.policies import policy_for
from ..config.loader import ImportConfig
from ..db.store import ImportStore
from ..kinds import get_kind
from ..logging.error_log import ErrorLogBuffer
from ..models.classified import ClassifiedRow
from ..models.error_record import ErrorRecord
from ..models.results import CommitResult, OcrSaveResult, PreviewResult
from ..resolve.resolver import EntityResolver
from ..sources.ocr import TextExtractor, read_invoice_image
from ..sources.spreadsheet import read_spreadsheet
from .commit import execute_commit
from .preview import build_preview
from .progress import ProgressTracker
from .review import StagingEntry, save_reviewed, stage_candidates

"""Import engine: the two-phase preview/commit protocol.

Flow per call:
    read source -> load fresh MasterDataIndex -> classify -> preview | commit

Every call reloads the master data, so commit re-validates every row against
the store as it is at commit time; nothing is cached from an earlier preview.
Preview performs no writes of any kind.

Images go through the OCR review path instead (``stage_image`` then
``save_review``): extracted lines are never classified and committed
automatically.
"""

__all__ = [
    "ImportMode",
    "ImportSource",
    "ImportEngine",
]

logger = logging.getLogger(__name__)


class ImportMode(str, Enum):
    DRY_RUN = "dryRun"
    COMMIT = "commit"


@dataclass(frozen=True)
class ImportSource:
    """Uploaded content plus its file name (the extension selects the reader)."""
    name: str
    content: bytes

    @staticmethod
    def from_path(path: Path) -> ImportSource:
        return ImportSource(name=path.name, content=path.read_bytes())


ProgressFactory = Callable[[int], ProgressTracker]


class ImportEngine:
    def __init__(
        self,
        store: ImportStore,
        config: ImportConfig | None = None,
        *,
        progress_factory: ProgressFactory | None = None,
    ) -> None:
        self.store = store
        self.config = config or ImportConfig()
        self.progress_factory = progress_factory

    def classify(self, source: ImportSource, kind_name: str) -> list[ClassifiedRow]:
        """Run Source Reader -> Normalizer -> Resolver -> Classifier on a fresh snapshot.

        Raises:
            InputFormatError: the whole input is unusable (nothing is classified).
        """
        kind = get_kind(kind_name, self.config)
        records = read_spreadsheet(source.name, source.content, kind)
        index = self.store.load_master_data()
        classifier = RowClassifier(
            kind,
            EntityResolver(index, self.config.fuzzy_match),
            policy_for(kind.name, index),
            self.config,
        )
        return classifier.classify_all(records)

    def preview(self, source: ImportSource, kind_name: str) -> PreviewResult:
        rows = self.classify(source, kind_name)
        result = build_preview(rows, self.config.sample_size, self.config.locale)
        logger.info(
            "preview %s (%s): total=%d valid=%d duplicates=%d errors=%d",
            source.name,
            kind_name,
            result.stats.total_rows,
            result.stats.valid_count,
            result.stats.duplicate_count,
            result.stats.error_count,
        )
        return result

    def commit(self, source: ImportSource, kind_name: str) -> CommitResult:
        rows = self.classify(source, kind_name)
        error_log = ErrorLogBuffer(self.config.logs_dir)
        progress = self.progress_factory(len(rows)) if self.progress_factory else None
        try:
            result = execute_commit(
                rows,
                self.store,
                kind_name,
                source=source.name,
                locale=self.config.locale,
                error_log=error_log,
                progress=progress,
            )
        finally:
            if progress is not None:
                progress.close()
        log_path = error_log.flush()
        if log_path is not None:
            logger.info("row errors written to %s", log_path)
        logger.info(
            "commit %s (%s): imported=%d failed=%d", source.name, kind_name, result.imported_count, len(result.errors)
        )
        return result

    def run(self, source: ImportSource, kind_name: str, mode: ImportMode | str) -> PreviewResult | CommitResult:
        if ImportMode(mode) is ImportMode.COMMIT:
            return self.commit(source, kind_name)
        return self.preview(source, kind_name)

    async def stage_image(self, source: ImportSource, extractor: TextExtractor) -> list[StagingEntry]:
        """Extract invoice lines from an image and stage them for human review.

        Raises:
            InputFormatError: unsupported image type.
            OcrExtractionError: extraction failed or timed out (no entry is staged).
        """
        records = await read_invoice_image(
            source.name, source.content, extractor, self.config.ocr_timeout_seconds
        )
        return stage_candidates(records, self.store.load_master_data())

    def save_review(self, entries: Sequence[StagingEntry]) -> OcrSaveResult:
        error_log = ErrorLogBuffer(self.config.logs_dir)
        result = save_reviewed(entries, self.store, self.config, error_log=error_log)
        error_log.flush()
        return result

    def log_batch_error(self, source_name: str, kind: str, message: str) -> None:
        """Record a whole-batch failure (row=-1) in the error log."""
        error_log = ErrorLogBuffer(self.config.logs_dir)
        error_log.append(ErrorRecord.create(source_name, -1, kind, message))
        error_log.flush()
