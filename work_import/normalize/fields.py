from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from ..errors import RowNormalizationError
from ..models.records import NormalizedRecord, RawRecord

"""Field normalizer: raw cell text -> typed values.

Rules:
- Dates: DD/MM/YYYY (separators / - .) first, then YYYY-MM-DD. Nothing else
  is accepted: "2024/25/12", "20241225" or a bare serial number are rejected,
  never guessed. A trailing midnight time ("2024-03-01 00:00:00", how
  spreadsheet date cells come out as text) is tolerated.
- Times: HH:MM (24h), optional ":00" seconds.
- Decimals: comma or dot decimal separator, thousands grouping with the other
  character, optional currency symbol. Durations also accept a trailing unit
  word ("8h", "7,5 ore").
- Decimal fields with a unit field (Quantity) also accept the unit written
  in the same cell ("25 kg", "14L"); the unit goes to the unit field unless
  that cell is filled.
- Product codes compare compacted: whitespace and dashes dropped, upper-cased.
- A required field that is blank or fails coercion raises
  RowNormalizationError quoting the field and the raw value verbatim.
  Optional blank fields become None.
"""

__all__ = [
    "FieldType",
    "FieldSpec",
    "parse_date",
    "parse_time",
    "parse_decimal",
    "parse_quantity",
    "compact_code",
    "UNIT_PATTERN",
    "normalize_record",
]


class FieldType(Enum):
    TEXT = "text"
    REFERENCE = "reference"  # free text resolved later against master data
    DATE = "date"
    TIME = "time"
    DECIMAL = "decimal"
    DURATION = "duration"  # decimal hours, unit suffix tolerated


@dataclass(frozen=True)
class FieldSpec:
    name: str  # canonical field label, also used in messages
    type: FieldType = FieldType.TEXT
    required: bool = False  # value must be present (never defaulted)
    reference: str | None = None  # master data kind for REFERENCE fields
    unit_field: str | None = None  # receives a unit written inside this field


_DMY = re.compile(r"^(\d{1,2})([/.-])(\d{1,2})\2(\d{4})$")
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[ T]00:00(?::00)?)?$")
_TIME = re.compile(r"^([01]?\d|2[0-3])[:.]([0-5]\d)(?::00)?$")
_CURRENCY = re.compile(r"[€$£\s ]")
_DURATION_SUFFIX = re.compile(r"^(.*?\d)\s*(?:h|hr|hrs|hours?|ore|ora)\.?$", re.IGNORECASE)
_PLAIN_NUMBER = re.compile(r"^[+-]?\d+(?:\.\d+)?$")

UNIT_PATTERN = r"pz|pezzi|pezzo|pcs|pc|kg|mq|mc|mt|metri|m|lt|litri|l|sacchi|rotoli|taniche|cartucce"
_QUANTITY_UNIT = re.compile(rf"^(?P<qty>.*?\d)\s*(?P<unit>{UNIT_PATTERN})\.?$", re.IGNORECASE)


def parse_date(text: str) -> date:
    """Parse DD/MM/YYYY, then YYYY-MM-DD. Raises ValueError otherwise."""
    value = text.strip()
    m = _DMY.match(value)
    if m:
        day, month, year = int(m.group(1)), int(m.group(3)), int(m.group(4))
        return date(year, month, day)
    m = _ISO.match(value)
    if m:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    raise ValueError(f"unrecognized date: {text!r}")


def parse_time(text: str) -> time:
    m = _TIME.match(text.strip())
    if not m:
        raise ValueError(f"unrecognized time: {text!r}")
    return time(int(m.group(1)), int(m.group(2)))


def _ungroup(number: str, sep: str) -> str:
    """Drop ``sep`` used as a thousands separator; reject any other use of it."""
    head, *groups = number.split(sep)
    if not re.fullmatch(r"[+-]?\d{1,3}", head) or not all(re.fullmatch(r"\d{3}", g) for g in groups):
        raise ValueError(f"ambiguous grouping: {number!r}")
    return head + "".join(groups)


def parse_decimal(text: str, allow_unit_suffix: bool = False) -> Decimal:
    value = _CURRENCY.sub("", text)
    if allow_unit_suffix:
        m = _DURATION_SUFFIX.match(value)
        if m:
            value = m.group(1).strip()
    if "," in value and "." in value:
        # The right-most separator is the decimal one: 1.234,56 / 1,234.56
        decimal_sep = "," if value.rfind(",") > value.rfind(".") else "."
        group_sep = "." if decimal_sep == "," else ","
        integer, _, fraction = value.rpartition(decimal_sep)
        value = f"{_ungroup(integer, group_sep)}.{fraction}"
    elif value.count(",") == 1:
        value = value.replace(",", ".")
    elif value.count(",") > 1:
        value = _ungroup(value, ",")
    elif value.count(".") > 1:
        value = _ungroup(value, ".")
    if not _PLAIN_NUMBER.match(value):
        raise ValueError(f"not a number: {text!r}")
    try:
        return Decimal(value)
    except InvalidOperation as e:  # pragma: no cover - regex already guards
        raise ValueError(f"not a number: {text!r}") from e


def parse_quantity(text: str) -> tuple[Decimal, str | None]:
    """"25 kg" -> (25, "kg"); a bare number keeps unit None."""
    m = _QUANTITY_UNIT.match(text.strip())
    if m:
        return parse_decimal(m.group("qty")), m.group("unit").lower()
    return parse_decimal(text), None


def compact_code(code: str) -> str:
    return re.sub(r"[\s-]", "", code).upper()


def _coerce(spec: FieldSpec, value: str) -> Any:
    if spec.type is FieldType.DATE:
        return parse_date(value)
    if spec.type is FieldType.TIME:
        return parse_time(value)
    if spec.type is FieldType.DECIMAL:
        return parse_decimal(value)
    if spec.type is FieldType.DURATION:
        return parse_decimal(value, allow_unit_suffix=True)
    return re.sub(r"\s+", " ", value)


def normalize_record(record: RawRecord, specs: Iterable[FieldSpec]) -> NormalizedRecord:
    """Coerce every field in ``specs``; the first failing field raises RowNormalizationError."""
    values: dict[str, Any] = {}
    raw_values: dict[str, str] = {}
    embedded_units: dict[str, str] = {}
    for spec in specs:
        raw = record.get(spec.name)
        raw_values[spec.name] = raw
        stripped = raw.strip()
        if not stripped:
            if spec.required:
                raise RowNormalizationError("missing_value", field=spec.name, value=raw)
            values[spec.name] = None
            continue
        try:
            if spec.unit_field:
                values[spec.name], unit = parse_quantity(stripped)
                if unit:
                    embedded_units[spec.unit_field] = unit
            else:
                values[spec.name] = _coerce(spec, stripped)
        except ValueError as e:
            raise RowNormalizationError("invalid_value", field=spec.name, value=raw) from e
    for unit_field, unit in embedded_units.items():
        if values.get(unit_field) is None:
            values[unit_field] = unit
    return NormalizedRecord(
        origin=record.origin,
        row_index=record.row_index,
        values=values,
        raw_values=raw_values,
    )
