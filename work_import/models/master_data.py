from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

"""MasterDataIndex: read-only snapshot of the reference collections.

Built once at the start of every preview/commit call (``ImportStore.load_master_data``)
and never mutated afterwards; every collection is a tuple of frozen entries.
Edits made by other callers while a call runs are only observed by the next call.
"""

__all__ = [
    "EMPLOYEE",
    "SITE",
    "MATERIAL",
    "MasterEntry",
    "MasterDataIndex",
]

EMPLOYEE = "employee"
SITE = "site"
MATERIAL = "material"

_COLLECTIONS = {EMPLOYEE: "employees", SITE: "sites", MATERIAL: "materials"}


@dataclass(frozen=True)
class MasterEntry:
    id: str
    display_name: str
    canonical_code: str | None = None
    aliases: tuple[str, ...] = ()
    # Catalog-only attributes (materials)
    brand: str | None = None
    category: str | None = None
    unit: str | None = None

    @staticmethod
    def from_mapping(data: Mapping[str, Any]) -> MasterEntry:
        return MasterEntry(
            id=str(data["id"]),
            display_name=str(data["display_name"]),
            canonical_code=data.get("canonical_code") or None,
            aliases=tuple(str(a) for a in data.get("aliases") or ()),
            brand=data.get("brand") or None,
            category=data.get("category") or None,
            unit=data.get("unit") or None,
        )

    def to_mapping(self) -> dict[str, Any]:
        out: dict[str, Any] = {"id": self.id, "display_name": self.display_name}
        if self.canonical_code:
            out["canonical_code"] = self.canonical_code
        if self.aliases:
            out["aliases"] = list(self.aliases)
        for key in ("brand", "category", "unit"):
            value = getattr(self, key)
            if value:
                out[key] = value
        return out


@dataclass(frozen=True)
class MasterDataIndex:
    employees: tuple[MasterEntry, ...] = field(default_factory=tuple)
    sites: tuple[MasterEntry, ...] = field(default_factory=tuple)
    materials: tuple[MasterEntry, ...] = field(default_factory=tuple)

    def collection(self, kind: str) -> tuple[MasterEntry, ...]:
        try:
            return getattr(self, _COLLECTIONS[kind])
        except KeyError:
            raise ValueError(f"unknown master data kind: {kind}") from None

    def get(self, kind: str, entry_id: str) -> MasterEntry | None:
        for entry in self.collection(kind):
            if entry.id == entry_id:
                return entry
        return None

    @classmethod
    def build(
        cls,
        employees: Iterable[MasterEntry] = (),
        sites: Iterable[MasterEntry] = (),
        materials: Iterable[MasterEntry] = (),
    ) -> MasterDataIndex:
        return cls(employees=tuple(employees), sites=tuple(sites), materials=tuple(materials))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> MasterDataIndex:
        """Build from a ``{employees: [...], sites: [...], materials: [...]}`` mapping (YAML/JSON)."""
        return cls.build(
            **{
                name: [MasterEntry.from_mapping(item) for item in data.get(name) or ()]
                for name in _COLLECTIONS.values()
            }
        )

    def to_mapping(self) -> dict[str, list[dict[str, Any]]]:
        return {
            name: [entry.to_mapping() for entry in getattr(self, name)]
            for name in _COLLECTIONS.values()
        }
