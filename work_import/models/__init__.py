"""Domain models for the staged import engine."""

from .classified import ClassifiedRow, DuplicateRow, ErrorRow, ValidRow
from .entities import AttendanceEntry, MaterialEntry
from .error_record import ErrorRecord
from .master_data import EMPLOYEE, MATERIAL, SITE, MasterDataIndex, MasterEntry
from .records import NormalizedRecord, RawRecord, RecordOrigin
from .results import CommitResult, DuplicateInfo, OcrSaveResult, PreviewResult, PreviewStats, RowIssue

__all__ = [
    # Input records
    "RecordOrigin",
    "RawRecord",
    "NormalizedRecord",
    # Master data
    "EMPLOYEE",
    "SITE",
    "MATERIAL",
    "MasterEntry",
    "MasterDataIndex",
    # Entities
    "AttendanceEntry",
    "MaterialEntry",
    # Classification
    "ValidRow",
    "DuplicateRow",
    "ErrorRow",
    "ClassifiedRow",
    # Results
    "PreviewStats",
    "RowIssue",
    "DuplicateInfo",
    "PreviewResult",
    "CommitResult",
    "OcrSaveResult",
    "ErrorRecord",
]
