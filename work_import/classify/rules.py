from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from ..config.loader import ImportConfig
from ..errors import RowNormalizationError, RowSemanticError
from ..models.entities import AttendanceEntry, MaterialEntry
from ..models.records import NormalizedRecord
from ..normalize.fields import compact_code, parse_time

"""Domain rules turning a normalized, resolved record into an entity.

Attendance:
- Clock In / Clock Out given: both are required (open-ended rows are
  rejected) and clock-out must be strictly after clock-in.
- Neither given: the pair is derived from Hours starting at the configured
  default clock-in (07:00).
- Worked hours must be in (0, 24].

Materials: codes are upper-cased, units mapped to their short form, and the
family|spec|unit key is computed for catalog grouping.
"""

__all__ = [
    "EntityBuilder",
    "build_attendance",
    "build_material",
    "material_key",
    "normalize_unit",
    "ENTITY_BUILDERS",
]

EntityBuilder = Callable[[NormalizedRecord, Mapping[str, str], ImportConfig], Any]

MAX_SHIFT_HOURS = Decimal(24)
_HOURS_QUANT = Decimal("0.01")

UNIT_SYNONYMS = {
    "pezzo": "pz", "pezzi": "pz", "pzi": "pz", "pcs": "pz", "pc": "pz",
    "sacco": "sacchi", "sac": "sacchi",
    "chilogrammo": "kg", "chilogrammi": "kg", "kilo": "kg",
    "litro": "l", "litri": "l", "lt": "l",
    "metro": "m", "metri": "m", "mt": "m",
    "metro quadro": "mq", "metri quadri": "mq", "m2": "mq",
    "metro cubo": "mc", "metri cubi": "mc", "m3": "mc",
}

# Plural -> singular for the family word (explicit list, no suffix heuristics)
FAMILY_SINGULAR = {
    "nastri": "nastro",
    "tubi": "tubo",
    "cavi": "cavo",
    "viti": "vite",
    "bulloni": "bullone",
    "pannelli": "pannello",
    "lastre": "lastra",
    "mattoni": "mattone",
    "tegole": "tegola",
    "sacchi": "sacco",
}

SPEC_MAX_LENGTH = 40


def _hours_between(start: datetime, end: datetime) -> Decimal:
    seconds = Decimal(int((end - start).total_seconds()))
    return (seconds / Decimal(3600)).quantize(_HOURS_QUANT)


def build_attendance(
    record: NormalizedRecord, references: Mapping[str, str], config: ImportConfig
) -> AttendanceEntry:
    values = record.values
    work_date = values["Date"]
    clock_in = values.get("Clock In")
    clock_out = values.get("Clock Out")

    if clock_in is not None or clock_out is not None:
        if clock_in is None:
            raise RowSemanticError("open_ended", field="Clock In")
        if clock_out is None:
            raise RowSemanticError("open_ended", field="Clock Out")
        start = datetime.combine(work_date, clock_in)
        end = datetime.combine(work_date, clock_out)
    else:
        hours = values.get("Hours")
        if hours is None:
            raise RowNormalizationError("missing_value", field="Hours", value=record.raw_values.get("Hours", ""))
        if hours <= 0 or hours > MAX_SHIFT_HOURS:
            raise RowSemanticError("hours_range", field="Hours", hours=record.raw_values.get("Hours", hours))
        start = datetime.combine(work_date, parse_time(config.default_clock_in))
        end = start + timedelta(minutes=int((hours * 60).to_integral_value()))

    if end <= start:
        raise RowSemanticError(
            "clock_order",
            field="Clock Out",
            clock_in=start.strftime("%H:%M"),
            clock_out=end.strftime("%H:%M"),
        )

    return AttendanceEntry(
        employee_id=references["Employee"],
        site_id=references["Site"],
        work_date=work_date,
        clock_in=start,
        clock_out=end,
        hours=_hours_between(start, end),
    )


def normalize_unit(unit: str | None) -> str | None:
    if not unit:
        return None
    clean = " ".join(unit.casefold().split())
    return UNIT_SYNONYMS.get(clean, clean)


def material_key(name: str, unit: str) -> str:
    """family|spec|unit, e.g. "Tubi PVC 50mm" / "metri" -> "tubo|pvc 50mm|m"."""
    words = " ".join(name.casefold().split()).split(" ")
    family = FAMILY_SINGULAR.get(words[0], words[0])
    spec = re.sub(r"[.,;:]", "", " ".join(words[1:])).strip()
    if len(spec) > SPEC_MAX_LENGTH:
        spec = spec[:SPEC_MAX_LENGTH].strip() + "..."
    return f"{family}|{spec}|{unit}"


def build_material(
    record: NormalizedRecord, references: Mapping[str, str], config: ImportConfig
) -> MaterialEntry:
    values = record.values
    quantity = values.get("Quantity")
    price = values.get("Price")
    if quantity is not None and quantity <= 0:
        raise RowSemanticError("non_positive", field="Quantity", value=record.raw_values.get("Quantity"))
    if price is not None and price < 0:
        raise RowSemanticError("negative_amount", field="Price", value=record.raw_values.get("Price"))

    code = values.get("Product Code")
    unit = normalize_unit(values.get("Unit")) or config.default_unit
    name = values["Product Name"]
    return MaterialEntry(
        name=name,
        brand=values["Brand"],
        category=values.get("Category") or config.default_category,
        unit=unit,
        normalized_key=material_key(name, unit),
        product_code=compact_code(code) if code else None,
        quantity=quantity,
        price=price,
        supplier=values.get("Supplier") or None,
    )


ENTITY_BUILDERS: dict[str, EntityBuilder] = {
    "attendance": build_attendance,
    "materials": build_material,
}
