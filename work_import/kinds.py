from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace

from .config.loader import ImportConfig
from .errors import InputFormatError
from .models.master_data import EMPLOYEE, SITE
from .normalize.fields import FieldSpec, FieldType

"""Import kinds: recognized columns, header aliases and field types.

Header matching is case-insensitive on trimmed text. Italian aliases are
included since most source sheets come from Italian offices. Extra aliases
can be added per kind through the ``columns`` config section.
"""

__all__ = [
    "ColumnSpec",
    "ImportKind",
    "ATTENDANCE",
    "MATERIALS",
    "KINDS",
    "get_kind",
]


@dataclass(frozen=True)
class ColumnSpec:
    field: FieldSpec
    aliases: tuple[str, ...]
    header_required: bool = False  # missing header fails the whole batch

    @property
    def name(self) -> str:
        return self.field.name


@dataclass(frozen=True)
class ImportKind:
    name: str
    columns: tuple[ColumnSpec, ...]

    @property
    def field_specs(self) -> tuple[FieldSpec, ...]:
        return tuple(c.field for c in self.columns)

    @property
    def required_headers(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.header_required)

    @property
    def references(self) -> dict[str, str]:
        """Field label -> master data kind for every REFERENCE field."""
        return {
            c.name: c.field.reference
            for c in self.columns
            if c.field.type is FieldType.REFERENCE and c.field.reference
        }

    def header_lookup(self) -> dict[str, str]:
        """Folded header text -> canonical field label."""
        lookup: dict[str, str] = {}
        for column in self.columns:
            for alias in (column.name, *column.aliases):
                lookup.setdefault(alias.strip().casefold(), column.name)
        return lookup

    def with_aliases(self, extra: Mapping[str, Sequence[str]]) -> ImportKind:
        if not extra:
            return self
        columns = tuple(
            replace(c, aliases=c.aliases + tuple(extra.get(c.name, ()))) for c in self.columns
        )
        return replace(self, columns=columns)


ATTENDANCE = ImportKind(
    name="attendance",
    columns=(
        ColumnSpec(FieldSpec("Date", FieldType.DATE, required=True), ("Data", "Giorno"), header_required=True),
        ColumnSpec(
            FieldSpec("Employee", FieldType.REFERENCE, required=True, reference=EMPLOYEE),
            ("Dipendente", "Nome", "Operaio", "Lavoratore"),
            header_required=True,
        ),
        # Value may be blank when Clock In / Clock Out are given
        ColumnSpec(FieldSpec("Hours", FieldType.DURATION), ("Ore", "Orario", "H"), header_required=True),
        ColumnSpec(
            FieldSpec("Site", FieldType.REFERENCE, required=True, reference=SITE),
            ("Cantiere", "Sito", "Luogo"),
            header_required=True,
        ),
        ColumnSpec(FieldSpec("Clock In", FieldType.TIME), ("Entrata", "Ora Entrata", "Inizio")),
        ColumnSpec(FieldSpec("Clock Out", FieldType.TIME), ("Uscita", "Ora Uscita", "Fine")),
    ),
)

MATERIALS = ImportKind(
    name="materials",
    columns=(
        ColumnSpec(FieldSpec("Product Code"), ("Code", "Codice", "Codice Prodotto")),
        ColumnSpec(FieldSpec("Brand", required=True), ("Marca",), header_required=True),
        ColumnSpec(
            FieldSpec("Product Name", required=True),
            ("Name", "Prodotto", "Nome Prodotto", "Nome", "Descrizione"),
            header_required=True,
        ),
        ColumnSpec(FieldSpec("Category"), ("Categoria",)),
        ColumnSpec(
            FieldSpec("Quantity", FieldType.DECIMAL, unit_field="Unit"),
            ("Quantità", "Quantita", "Qta", "Q.tà", "Quantity/Unit", "Quantità/Unità", "Quantita/Unita"),
        ),
        ColumnSpec(FieldSpec("Unit"), ("Unità", "Unita", "UM", "U.M.")),
        ColumnSpec(FieldSpec("Price", FieldType.DECIMAL), ("Prezzo", "Prezzo Unitario", "Costo", "Listino")),
        ColumnSpec(FieldSpec("Supplier"), ("Fornitore",)),
    ),
)

KINDS: dict[str, ImportKind] = {k.name: k for k in (ATTENDANCE, MATERIALS)}


def get_kind(name: str, config: ImportConfig | None = None) -> ImportKind:
    try:
        kind = KINDS[name]
    except KeyError:
        raise InputFormatError("unknown_kind", kind=name) from None
    if config is not None:
        kind = kind.with_aliases(config.column_aliases.get(name, {}))
    return kind
