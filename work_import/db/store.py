from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from ..errors import PersistenceError
from ..models.entities import AttendanceEntry, MaterialEntry
from ..models.master_data import EMPLOYEE, MATERIAL, SITE, MasterDataIndex, MasterEntry
from ..normalize.fields import compact_code
from ..resolve.resolver import normalize_text

"""Storage boundary of the import engine.

The engine only needs two things from storage: a fresh read-only snapshot of
the master data at the start of each call, and per-entity persistence that
raises PersistenceError for a row that cannot be written.

InMemoryStore backs tests, the CLI ``--master-data`` mode and dry
environments; PostgresStore (db/postgres.py) is the production store.
"""

__all__ = [
    "ImportStore",
    "InMemoryStore",
]


class ImportStore(Protocol):
    def load_master_data(self) -> MasterDataIndex: ...

    def persist(self, kind: str, entity: Any) -> str:
        """Write one entity immediately; return its id. Raises PersistenceError."""
        ...


class InMemoryStore:
    def __init__(
        self,
        employees: list[MasterEntry] | None = None,
        sites: list[MasterEntry] | None = None,
        materials: list[MasterEntry] | None = None,
    ) -> None:
        self.employees: list[MasterEntry] = list(employees or [])
        self.sites: list[MasterEntry] = list(sites or [])
        self.materials: list[MasterEntry] = list(materials or [])
        self.attendance: list[tuple[str, AttendanceEntry]] = []
        self._next_id = 1

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> InMemoryStore:
        index = MasterDataIndex.from_mapping(data)
        return cls(list(index.employees), list(index.sites), list(index.materials))

    def load_master_data(self) -> MasterDataIndex:
        # Tuples copy the lists: later writes never leak into a running call
        return MasterDataIndex.build(self.employees, self.sites, self.materials)

    def _collection(self, kind: str) -> list[MasterEntry]:
        return {EMPLOYEE: self.employees, SITE: self.sites, MATERIAL: self.materials}[kind]

    def delete(self, kind: str, entry_id: str) -> None:
        entries = self._collection(kind)
        entries[:] = [e for e in entries if e.id != entry_id]

    def _new_id(self, prefix: str) -> str:
        new_id = f"{prefix}-{self._next_id}"
        self._next_id += 1
        return new_id

    def persist(self, kind: str, entity: Any) -> str:
        if kind == "attendance":
            return self._persist_attendance(entity)
        if kind == "materials":
            return self._persist_material(entity)
        raise PersistenceError(f"unsupported entity kind '{kind}'")

    def _persist_attendance(self, entry: AttendanceEntry) -> str:
        # Mirrors the foreign keys of the relational store
        if not any(e.id == entry.employee_id for e in self.employees):
            raise PersistenceError(f"employee {entry.employee_id} does not exist")
        if not any(s.id == entry.site_id for s in self.sites):
            raise PersistenceError(f"site {entry.site_id} does not exist")
        new_id = self._new_id("att")
        self.attendance.append((new_id, entry))
        return new_id

    def _persist_material(self, entry: MaterialEntry) -> str:
        key = (normalize_text(entry.name), normalize_text(entry.brand))
        code = compact_code(entry.product_code) if entry.product_code else None
        for existing in self.materials:
            if (normalize_text(existing.display_name), normalize_text(existing.brand or "")) == key:
                raise PersistenceError(f"material '{entry.name}' ({entry.brand}) already exists")
            if code and existing.canonical_code and compact_code(existing.canonical_code) == code:
                raise PersistenceError(f"product code {entry.product_code} already exists")
        new_id = self._new_id("mat")
        self.materials.append(
            MasterEntry(
                id=new_id,
                display_name=entry.name,
                canonical_code=entry.product_code,
                brand=entry.brand,
                category=entry.category,
                unit=entry.unit,
            )
        )
        return new_id
