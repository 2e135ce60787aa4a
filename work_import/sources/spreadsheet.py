from __future__ import annotations

import io
import logging
from pathlib import PurePath
from typing import Any

import pandas as pd

from ..errors import InputFormatError
from ..kinds import ImportKind
from ..models.records import RawRecord, RecordOrigin

"""Spreadsheet reader (.xlsx / .xls / .csv) producing RawRecords.

Steps:
1. Reject unsupported extensions before touching the content
2. Read every cell as text with pandas (no NA conversion: "NA" stays "NA")
3. Locate the header row: the first of the first 10 lines naming any known column
4. Fail the whole batch if a required header is missing
5. Emit one RawRecord per non-empty line below the header
"""

__all__ = [
    "SPREADSHEET_EXTENSIONS",
    "HEADER_SCAN_LINES",
    "read_frame",
    "locate_header",
    "read_spreadsheet",
]

logger = logging.getLogger(__name__)

SPREADSHEET_EXTENSIONS = frozenset({".xlsx", ".xls", ".csv"})
HEADER_SCAN_LINES = 10

_EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}


def _extension(name: str) -> str:
    return PurePath(name).suffix.lower()


def read_frame(name: str, content: bytes) -> pd.DataFrame:
    """Read raw content into a header-less DataFrame of strings."""
    extension = _extension(name)
    if extension not in SPREADSHEET_EXTENSIONS:
        raise InputFormatError("unsupported_file_type", extension=extension or name)
    if not content.strip():
        raise InputFormatError("no_rows_found")

    try:
        if extension == ".csv":
            return pd.read_csv(
                io.BytesIO(content),
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False,
                sep=None,
                engine="python",
                encoding="utf-8-sig",
            )
        # First sheet only; multi-sheet workbooks are not merged
        return pd.read_excel(
            io.BytesIO(content),
            header=None,
            dtype=str,
            keep_default_na=False,
            engine=_EXCEL_ENGINES[extension],
        )
    except pd.errors.EmptyDataError as e:
        raise InputFormatError("no_rows_found") from e
    except Exception as e:
        logger.debug("failed to read %s: %s", name, e)
        raise InputFormatError("unreadable_file", detail=str(e) or type(e).__name__) from e


def _cell_text(value: Any) -> str:
    if value is None or pd.isna(value):
        return ""
    return str(value).strip()


def locate_header(frame: pd.DataFrame, kind: ImportKind) -> tuple[int, dict[int, str]]:
    """Return (frame row position, column position -> field label) of the header line."""
    lookup = kind.header_lookup()
    for position in range(min(HEADER_SCAN_LINES, frame.shape[0])):
        mapping: dict[int, str] = {}
        for column, value in enumerate(frame.iloc[position].tolist()):
            label = lookup.get(_cell_text(value).casefold())
            # First occurrence wins when two columns map to the same field
            if label is not None and label not in mapping.values():
                mapping[column] = label
        if mapping:
            return position, mapping
    raise InputFormatError("missing_headers", columns=", ".join(kind.required_headers))


def read_spreadsheet(name: str, content: bytes, kind: ImportKind) -> list[RawRecord]:
    frame = read_frame(name, content)
    if frame.empty:
        raise InputFormatError("no_rows_found")

    header_position, mapping = locate_header(frame, kind)
    missing = [h for h in kind.required_headers if h not in mapping.values()]
    if missing:
        raise InputFormatError("missing_headers", columns=", ".join(missing))

    records: list[RawRecord] = []
    for position in range(header_position + 1, frame.shape[0]):
        cells = frame.iloc[position].tolist()
        fields = {label: _cell_text(cells[column]) for column, label in mapping.items()}
        if not any(_cell_text(v) for v in cells):
            continue
        records.append(
            RawRecord(
                origin=RecordOrigin(source=name, line=position + 1),
                row_index=len(records) + 1,
                fields=fields,
            )
        )

    if not records:
        raise InputFormatError("no_rows_found")
    logger.debug("read %d rows from %s (header on line %d)", len(records), name, header_position + 1)
    return records
