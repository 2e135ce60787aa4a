from __future__ import annotations

import asyncio
import logging
import re
from pathlib import PurePath
from typing import Protocol

from ..errors import InputFormatError, OcrExtractionError
from ..models.records import RawRecord, RecordOrigin
from ..normalize.fields import UNIT_PATTERN

"""OCR source: image -> text (external engine) -> candidate invoice lines.

Extraction is one awaited call bounded by a timeout. On timeout or engine
failure the text is dropped entirely; nothing partial reaches the records.
Cancellation of the caller propagates unchanged.
"""

__all__ = [
    "IMAGE_EXTENSIONS",
    "PRODUCT_CODE_PATTERN",
    "TextExtractor",
    "extract_product_codes",
    "find_supplier",
    "parse_invoice_text",
    "extract_text",
    "read_invoice_image",
]

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif", ".webp"})

# 2-4 letters, optional separator, 2-6 digits, optional variant letter ("ARV225A")
PRODUCT_CODE_PATTERN = re.compile(r"\b[A-Z]{2,4}[-\s]?\d{2,6}[A-Z]?\b", re.IGNORECASE)

_NUMBER = r"\d+(?:[.,]\d+)?"

# name qty unit price, separated by spaces, tabs or pipes
_INVOICE_LINE = re.compile(
    rf"^(?P<name>.+?)[\s|]+(?P<qty>{_NUMBER})\s*\|?\s*(?P<unit>{UNIT_PATTERN})\.?[\s|]+€?\s*(?P<price>{_NUMBER})\b",
    re.IGNORECASE,
)
# trailing "14L" / "25 kg" on a code line
_TRAILING_QTY = re.compile(rf"\s+(?P<qty>{_NUMBER})\s*(?P<unit>{UNIT_PATTERN})\.?$", re.IGNORECASE)

_SKIP_TOTALS = re.compile(r"^(totale|subtotale|iva|sconto|total|subtotal|imponibile|imposta)\b", re.IGNORECASE)
_SKIP_HEADERS = re.compile(
    r"^(descrizione|description|articolo|codice|code|materiale|quantità|unità|prezzo|quantity|unit|price)\b",
    re.IGNORECASE,
)
_SKIP_META = re.compile(r"^(fornitore|supplier|cliente|customer|data|date|fattura|invoice|n\.|numero|via|p\.?\s?iva)\b", re.IGNORECASE)
_SUPPLIER = re.compile(r"^\s*(?:fornitore|supplier)\s*:\s*(?P<name>.+)$", re.IGNORECASE)
_COMPANY = re.compile(r"s\.r\.l\.|s\.p\.a\.|s\.n\.c\.|\bltd\b|\binc\b|\bgmbh\b", re.IGNORECASE)
_ADDRESS = re.compile(r"\b(?:via|viale|piazza|corso|cap|tel|p\.?\s?iva|c\.f)\b", re.IGNORECASE)
SUPPLIER_SCAN_LINES = 10
MIN_LINE_LENGTH = 5


class TextExtractor(Protocol):
    """External text extraction capability (OCR engine)."""

    async def extract(self, image: bytes) -> str: ...


def _compact_code(code: str) -> str:
    return re.sub(r"[\s-]", "", code).upper()


def extract_product_codes(text: str) -> list[str]:
    """Product-code-like tokens, upper-cased, separators removed, first-seen order."""
    codes: list[str] = []
    for match in PRODUCT_CODE_PATTERN.finditer(text):
        code = _compact_code(match.group(0))
        if code not in codes:
            codes.append(code)
    return codes


def find_supplier(lines: list[str]) -> str:
    """Supplier from a "Fornitore:" line, else a company-looking line near the top."""
    for line in lines[:SUPPLIER_SCAN_LINES]:
        m = _SUPPLIER.match(line)
        if m:
            return m.group("name").strip()
    for line in lines[:5]:
        stripped = line.strip()
        if len(stripped) >= 3 and _COMPANY.search(stripped):
            return re.split(r"\s{2,}|\bvia\b|\bviale\b|\bpiazza\b|\bcorso\b", stripped, flags=re.IGNORECASE)[0].strip()
    return ""


def _clean_name(name: str) -> str:
    clean = PRODUCT_CODE_PATTERN.sub(" ", name)
    clean = re.sub(r"[|–\-]+", " ", clean)
    return " ".join(clean.split())


def _parse_line(line: str) -> dict[str, str] | None:
    m = _INVOICE_LINE.match(line)
    if m:
        # Codes only from the name part: "kg 12" in the numeric columns is not a code
        name_codes = extract_product_codes(m.group("name"))
        return {
            "Product Code": name_codes[0] if name_codes else "",
            "Product Name": _clean_name(m.group("name")),
            "Quantity": m.group("qty"),
            "Unit": m.group("unit"),
            "Price": m.group("price"),
        }
    codes = extract_product_codes(line)
    if not codes:
        return None
    code = codes[0]

    rest = line
    quantity = unit = ""
    t = _TRAILING_QTY.search(rest)
    if t:
        quantity, unit = t.group("qty"), t.group("unit")
        rest = rest[: t.start()]
    return {
        "Product Code": code,
        "Product Name": _clean_name(rest),
        "Quantity": quantity,
        "Unit": unit,
        "Price": "",
    }


def parse_invoice_text(text: str, source: str = "ocr") -> list[RawRecord]:
    """One RawRecord per candidate invoice line (code-bearing or name/qty/unit/price)."""
    lines = text.splitlines()
    supplier = find_supplier(lines)
    records: list[RawRecord] = []
    for number, raw_line in enumerate(lines, start=1):
        line = raw_line.strip()
        if len(line) < MIN_LINE_LENGTH:
            continue
        if _SKIP_TOTALS.match(line) or _SKIP_HEADERS.match(line) or _SKIP_META.match(line):
            continue
        # Letterhead: company and address lines
        if _COMPANY.search(line) or _ADDRESS.search(line):
            continue
        fields = _parse_line(line)
        if fields is None:
            continue
        fields["Brand"] = ""
        fields["Supplier"] = supplier
        records.append(
            RawRecord(origin=RecordOrigin(source=source, line=number), row_index=len(records) + 1, fields=fields)
        )
    return records


async def extract_text(image: bytes, extractor: TextExtractor, timeout: float) -> str:
    try:
        return await asyncio.wait_for(extractor.extract(image), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise OcrExtractionError("ocr_timeout", seconds=timeout) from e
    except OcrExtractionError:
        raise
    except Exception as e:
        raise OcrExtractionError("ocr_failed", detail=str(e) or type(e).__name__) from e


async def read_invoice_image(
    name: str, image: bytes, extractor: TextExtractor, timeout: float
) -> list[RawRecord]:
    extension = PurePath(name).suffix.lower()
    if extension not in IMAGE_EXTENSIONS:
        raise InputFormatError("unsupported_file_type", extension=extension or name)
    if not image:
        raise InputFormatError("no_rows_found")
    text = await extract_text(image, extractor, timeout)
    records = parse_invoice_text(text, source=name)
    logger.info("extracted %d candidate lines from %s", len(records), name)
    return records
