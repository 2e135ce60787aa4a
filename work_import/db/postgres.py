from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from typing import Any

import psycopg2

from ..config.loader import DatabaseConfig
from ..errors import PersistenceError
from ..models.entities import AttendanceEntry, MaterialEntry
from ..models.master_data import MasterDataIndex, MasterEntry

"""PostgreSQL store (psycopg2).

Master data is read with three SELECTs at the start of each call. Every
entity is inserted and committed on its own: a failed row is rolled back
alone and earlier rows stay persisted. There is no batch transaction.

Connection parameters resolve in this order:
1. DATABASE_URL / PGDSN environment variables (``.env`` loaded by the CLI)
2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
3. the ``database`` section of config/import.yml
"""

__all__ = [
    "resolve_dsn",
    "connect",
    "PostgresStore",
]

logger = logging.getLogger(__name__)

EMPLOYEES_SQL = 'SELECT "id", "first_name", "last_name", "username" FROM "employees" ORDER BY "id"'
SITES_SQL = 'SELECT "id", "name", "code" FROM "sites" ORDER BY "id"'
MATERIALS_SQL = (
    'SELECT "id", "name", "product_code", "brand", "category", "unit" FROM "materials" ORDER BY "id"'
)

ATTENDANCE_COLUMNS = ("employee_id", "site_id", "work_date", "clock_in", "clock_out", "hours")
MATERIAL_COLUMNS = (
    "name", "brand", "category", "unit", "normalized_key", "product_code", "quantity", "price", "supplier",
)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def connect(db_cfg: DatabaseConfig) -> Any:  # pragma: no cover (thin wrapper)
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    return conn


def _insert_sql(table: str, columns: Sequence[str]) -> str:
    cols_sql = ",".join(f'"{c}"' for c in columns)
    placeholders = ",".join(["%s"] * len(columns))
    return f'INSERT INTO "{table}" ({cols_sql}) VALUES ({placeholders}) RETURNING "id"'


class PostgresStore:
    def __init__(self, connection: Any) -> None:
        self.connection = connection

    def _fetch(self, sql: str) -> list[tuple[Any, ...]]:
        with self.connection.cursor() as cur:
            cur.execute(sql)
            return list(cur.fetchall())

    def load_master_data(self) -> MasterDataIndex:
        employees = []
        for emp_id, first_name, last_name, username in self._fetch(EMPLOYEES_SQL):
            full_name = f"{first_name or ''} {last_name or ''}".strip()
            aliases = [a for a in (f"{last_name or ''} {first_name or ''}".strip(), username) if a]
            employees.append(MasterEntry(id=str(emp_id), display_name=full_name, aliases=tuple(aliases)))
        sites = [
            MasterEntry(id=str(site_id), display_name=name, canonical_code=code or None)
            for site_id, name, code in self._fetch(SITES_SQL)
        ]
        materials = [
            MasterEntry(
                id=str(mat_id),
                display_name=name,
                canonical_code=code or None,
                brand=brand or None,
                category=category or None,
                unit=unit or None,
            )
            for mat_id, name, code, brand, category, unit in self._fetch(MATERIALS_SQL)
        ]
        # The snapshot is committed so no transaction stays open across the call
        self.connection.commit()
        logger.debug(
            "master data loaded: employees=%d sites=%d materials=%d", len(employees), len(sites), len(materials)
        )
        return MasterDataIndex.build(employees, sites, materials)

    def persist(self, kind: str, entity: Any) -> str:
        if kind == "attendance":
            table, columns, values = "attendance", ATTENDANCE_COLUMNS, self._attendance_values(entity)
        elif kind == "materials":
            table, columns, values = "materials", MATERIAL_COLUMNS, self._material_values(entity)
        else:
            raise PersistenceError(f"unsupported entity kind '{kind}'")

        try:
            with self.connection.cursor() as cur:
                cur.execute(_insert_sql(table, columns), values)
                (new_id,) = cur.fetchone()
            self.connection.commit()
        except psycopg2.Error as e:
            self.connection.rollback()
            detail = (getattr(e, "pgerror", None) or str(e)).strip()
            raise PersistenceError(detail) from e
        return str(new_id)

    @staticmethod
    def _attendance_values(entry: AttendanceEntry) -> tuple[Any, ...]:
        return (entry.employee_id, entry.site_id, entry.work_date, entry.clock_in, entry.clock_out, entry.hours)

    @staticmethod
    def _material_values(entry: MaterialEntry) -> tuple[Any, ...]:
        return (
            entry.name,
            entry.brand,
            entry.category,
            entry.unit,
            entry.normalized_key,
            entry.product_code,
            entry.quantity,
            entry.price,
            entry.supplier,
        )
