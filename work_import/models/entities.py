from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

"""Domain entities produced by a successful classification.

``to_dict`` renders JSON-safe values (ISO dates, decimal strings) for preview
samples and CLI output.
"""

__all__ = [
    "AttendanceEntry",
    "MaterialEntry",
]


def _decimal(value: Decimal | None) -> str | None:
    return None if value is None else format(value, "f")


@dataclass(frozen=True)
class AttendanceEntry:
    """One complete clock-in/clock-out pair for an employee on a site."""
    employee_id: str
    site_id: str
    work_date: date
    clock_in: datetime
    clock_out: datetime
    hours: Decimal  # clock_out - clock_in, in hours (2 decimals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "employeeId": self.employee_id,
            "siteId": self.site_id,
            "date": self.work_date.isoformat(),
            "clockIn": self.clock_in.isoformat(timespec="minutes"),
            "clockOut": self.clock_out.isoformat(timespec="minutes"),
            "hours": _decimal(self.hours),
        }


@dataclass(frozen=True)
class MaterialEntry:
    """A catalog material row."""
    name: str
    brand: str
    category: str
    unit: str
    normalized_key: str  # family|spec|unit
    product_code: str | None = None
    quantity: Decimal | None = None
    price: Decimal | None = None
    supplier: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "productCode": self.product_code,
            "brand": self.brand,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "quantity": _decimal(self.quantity),
            "price": _decimal(self.price),
            "supplier": self.supplier,
            "normalizedKey": self.normalized_key,
        }
