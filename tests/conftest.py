# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from work_import.config.loader import ImportConfig
from work_import.db.store import InMemoryStore
from work_import.logging.init import reset_logging
from work_import.services.engine import ImportEngine, ImportSource

MASTER_DATA: dict[str, list[dict[str, Any]]] = {
    "employees": [
        {"id": "emp-1", "display_name": "Mario Rossi", "aliases": ["Rossi Mario", "mrossi"]},
        {"id": "emp-2", "display_name": "Luca Bianchi", "aliases": ["Bianchi Luca"]},
    ],
    "sites": [
        {"id": "site-a", "display_name": "Sede A", "canonical_code": "SA"},
        {"id": "site-b", "display_name": "Sede B", "canonical_code": "SB"},
    ],
    "materials": [
        {
            "id": "mat-1",
            "display_name": "Pittura Bianca",
            "canonical_code": "ARV225A",
            "brand": "Arvex",
            "category": "Pitture",
            "unit": "l",
        },
        {
            "id": "mat-2",
            "display_name": "Cemento Portland",
            "canonical_code": "CEM325",
            "brand": "Buzzi",
            "category": "Edilizia",
            "unit": "sacchi",
        },
    ],
}

ATTENDANCE_HEADER = ["Date", "Employee", "Hours", "Site"]
MATERIALS_HEADER = ["Product Code", "Brand", "Product Name", "Category", "Quantity", "Unit", "Price"]


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def master_data() -> dict[str, list[dict[str, Any]]]:
    return {name: [dict(item) for item in items] for name, items in MASTER_DATA.items()}


@pytest.fixture()
def store(master_data) -> InMemoryStore:
    return InMemoryStore.from_mapping(master_data)


@pytest.fixture()
def config(tmp_path: Path) -> ImportConfig:
    return ImportConfig(logs_dir=str(tmp_path / "logs"))


@pytest.fixture()
def engine(store: InMemoryStore, config: ImportConfig) -> ImportEngine:
    return ImportEngine(store, config)


def _frame(header: list[str], rows: Iterable[Iterable[Any]], title: str | None) -> pd.DataFrame:
    lines: list[list[Any]] = []
    if title is not None:
        lines.append([title] + [""] * (len(header) - 1))
    lines.append(list(header))
    lines.extend(list(r) for r in rows)
    return pd.DataFrame(lines)


@pytest.fixture()
def make_xlsx() -> Callable[..., bytes]:
    """Build .xlsx bytes; the header is written as a plain row so title lines can precede it."""

    def factory(header: list[str], rows: Iterable[Iterable[Any]], title: str | None = None) -> bytes:
        buf = io.BytesIO()
        _frame(header, rows, title).to_excel(buf, header=False, index=False, engine="openpyxl")
        return buf.getvalue()

    return factory


@pytest.fixture()
def make_csv() -> Callable[..., bytes]:
    def factory(header: list[str], rows: Iterable[Iterable[Any]], sep: str = ",") -> bytes:
        lines = [sep.join(header)] + [sep.join(str(v) for v in r) for r in rows]
        return ("\n".join(lines) + "\n").encode("utf-8")

    return factory


@pytest.fixture()
def attendance_source(make_xlsx) -> Callable[..., ImportSource]:
    def factory(rows: Iterable[Iterable[Any]], header: list[str] | None = None) -> ImportSource:
        return ImportSource("presenze.xlsx", make_xlsx(header or ATTENDANCE_HEADER, rows))

    return factory


@pytest.fixture()
def materials_source(make_csv) -> Callable[..., ImportSource]:
    def factory(rows: Iterable[Iterable[Any]], header: list[str] | None = None) -> ImportSource:
        return ImportSource("listino.csv", make_csv(header or MATERIALS_HEADER, rows, sep=";"))

    return factory
