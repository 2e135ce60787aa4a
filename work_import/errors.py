from __future__ import annotations

from .messages import DEFAULT_LOCALE, render_message

"""Error taxonomy for the import engine.

Every error carries a machine-readable ``kind`` (UPPER_SNAKE, used in the
JSON Lines error log) and a message key rendered in the caller's locale.

- InputFormatError: whole batch, fatal. Raised before any row is processed.
- RowNormalizationError / RowResolutionError / RowSemanticError: row scoped,
  collected by the classifier and never interrupting the remaining rows.
- PersistenceError: row scoped, raised by stores during commit.
"""

__all__ = [
    "ImportEngineError",
    "InputFormatError",
    "OcrExtractionError",
    "RowError",
    "RowNormalizationError",
    "RowResolutionError",
    "RowSemanticError",
    "PersistenceError",
]


class ImportEngineError(Exception):
    """Base exception for all import engine failures."""

    kind = "IMPORT_ENGINE"

    def __init__(self, message_key: str, **params: object) -> None:
        self.message_key = message_key
        self.params = params
        super().__init__(render_message(message_key, DEFAULT_LOCALE, **params))

    def render(self, locale: str = DEFAULT_LOCALE) -> str:
        return render_message(self.message_key, locale, **self.params)


class InputFormatError(ImportEngineError):
    """The whole input is unusable (unreadable file, missing required header...)."""

    kind = "INPUT_FORMAT"


class OcrExtractionError(InputFormatError):
    """Text extraction failed or timed out; its output is discarded."""

    kind = "OCR_EXTRACTION"


class RowError(ImportEngineError):
    """Base for row-scoped problems. ``field`` names the offending column when known."""

    kind = "ROW"

    def __init__(self, message_key: str, *, field: str | None = None, **params: object) -> None:
        self.field = field
        if field is not None:
            params.setdefault("field", field)
        super().__init__(message_key, **params)


class RowNormalizationError(RowError):
    kind = "ROW_NORMALIZATION"


class RowResolutionError(RowError):
    kind = "ROW_RESOLUTION"


class RowSemanticError(RowError):
    kind = "ROW_SEMANTIC"


class PersistenceError(ImportEngineError):
    """A valid row could not be written (constraint race, connection drop...)."""

    kind = "PERSISTENCE"

    def __init__(self, detail: str) -> None:
        super().__init__("persistence_failed", detail=detail)
