from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from ..models.entities import MaterialEntry
from ..models.master_data import MasterDataIndex
from ..normalize.fields import compact_code
from ..resolve.resolver import normalize_text

"""Duplicate policies, one per import kind.

A policy is created fresh for every classification pass (it remembers the
valid rows of the current batch) and injected into the RowClassifier.
Rows are fed in input order, so batch-internal duplicates are always
reported on the later row.
"""

__all__ = [
    "DuplicateMatch",
    "DuplicatePolicy",
    "NoDuplicatePolicy",
    "MaterialDuplicatePolicy",
    "POLICY_FACTORIES",
    "policy_for",
]


@dataclass(frozen=True)
class DuplicateMatch:
    matched_id: str
    reason: str
    identifier_text: str


class DuplicatePolicy(Protocol):
    def check(self, entity: Any) -> DuplicateMatch | None: ...

    def remember(self, entity: Any, row_index: int) -> None: ...


class NoDuplicatePolicy:
    """Attendance rows are independent events; nothing is ever a duplicate."""

    def check(self, entity: Any) -> DuplicateMatch | None:
        return None

    def remember(self, entity: Any, row_index: int) -> None:
        return None


def _name_brand_key(name: str, brand: str | None) -> tuple[str, str]:
    return normalize_text(name), normalize_text(brand or "")


class MaterialDuplicatePolicy:
    """Same normalized (name, brand) or same product code, in the catalog or earlier in the batch."""

    def __init__(self, index: MasterDataIndex) -> None:
        self._catalog_keys: dict[tuple[str, str], str] = {}
        self._catalog_codes: dict[str, str] = {}
        for entry in index.materials:
            self._catalog_keys.setdefault(_name_brand_key(entry.display_name, entry.brand), entry.id)
            if entry.canonical_code:
                self._catalog_codes.setdefault(compact_code(entry.canonical_code), entry.id)
        self._batch_keys: dict[tuple[str, str], int] = {}
        self._batch_codes: dict[str, int] = {}

    def check(self, entity: MaterialEntry) -> DuplicateMatch | None:
        key = _name_brand_key(entity.name, entity.brand)
        label = f"{entity.name} ({entity.brand})"
        code = entity.product_code
        if key in self._catalog_keys:
            return DuplicateMatch(self._catalog_keys[key], "catalog_name_brand", label)
        if code and code in self._catalog_codes:
            return DuplicateMatch(self._catalog_codes[code], "catalog_code", code)
        if key in self._batch_keys:
            return DuplicateMatch(f"row:{self._batch_keys[key]}", "batch_name_brand", label)
        if code and code in self._batch_codes:
            return DuplicateMatch(f"row:{self._batch_codes[code]}", "batch_code", code)
        return None

    def remember(self, entity: MaterialEntry, row_index: int) -> None:
        self._batch_keys.setdefault(_name_brand_key(entity.name, entity.brand), row_index)
        if entity.product_code:
            self._batch_codes.setdefault(entity.product_code, row_index)


POLICY_FACTORIES: dict[str, Callable[[MasterDataIndex], DuplicatePolicy]] = {
    "attendance": lambda index: NoDuplicatePolicy(),
    "materials": MaterialDuplicatePolicy,
}


def policy_for(kind_name: str, index: MasterDataIndex) -> DuplicatePolicy:
    factory = POLICY_FACTORIES.get(kind_name)
    if factory is None:
        return NoDuplicatePolicy()
    return factory(index)
