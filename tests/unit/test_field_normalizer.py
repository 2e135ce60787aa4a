from __future__ import annotations

from datetime import date, time
from decimal import Decimal

import pytest

from work_import.errors import RowNormalizationError
from work_import.models.records import RawRecord, RecordOrigin
from work_import.normalize.fields import (
    FieldSpec,
    FieldType,
    compact_code,
    normalize_record,
    parse_date,
    parse_decimal,
    parse_quantity,
    parse_time,
)


def _record(**fields: str) -> RawRecord:
    return RawRecord(origin=RecordOrigin("t.xlsx", 2), row_index=1, fields=fields)


@pytest.mark.parametrize(
    "text",
    ["25/12/2024", "2024-12-25", "25-12-2024", "25.12.2024", "2024-12-25 00:00:00"],
)
def test_parse_date_accepts_both_layouts(text):
    assert parse_date(text) == date(2024, 12, 25)


@pytest.mark.parametrize("text", ["2024/25/12", "20241225", "45000", "12/25/2024", "bad-date", "25/12/24"])
def test_parse_date_rejects_everything_else(text):
    with pytest.raises(ValueError):
        parse_date(text)


def test_parse_date_day_first():
    # 01/03 is the first of March, never January 3rd
    assert parse_date("01/03/2024") == date(2024, 3, 1)


@pytest.mark.parametrize("text,expected", [("07:00", time(7, 0)), ("7.30", time(7, 30)), ("17:45:00", time(17, 45))])
def test_parse_time(text, expected):
    assert parse_time(text) == expected


@pytest.mark.parametrize("text", ["24:00", "7", "07:60", "sette"])
def test_parse_time_rejects(text):
    with pytest.raises(ValueError):
        parse_time(text)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("8", Decimal("8")),
        ("7,5", Decimal("7.5")),
        ("7.5", Decimal("7.5")),
        ("1.234,56", Decimal("1234.56")),
        ("1,234.56", Decimal("1234.56")),
        ("€ 12,50", Decimal("12.50")),
        ("1.234.567", Decimal("1234567")),
    ],
)
def test_parse_decimal(text, expected):
    assert parse_decimal(text) == expected


@pytest.mark.parametrize("text", ["abc", "1,2,3", "12.5.1", ""])
def test_parse_decimal_rejects(text):
    with pytest.raises(ValueError):
        parse_decimal(text)


def test_parse_decimal_unit_suffix_only_for_durations():
    assert parse_decimal("8h", allow_unit_suffix=True) == Decimal("8")
    assert parse_decimal("7,5 ore", allow_unit_suffix=True) == Decimal("7.5")
    with pytest.raises(ValueError):
        parse_decimal("8h")


def test_normalize_record_types_and_optional_blanks():
    specs = [
        FieldSpec("Date", FieldType.DATE, required=True),
        FieldSpec("Hours", FieldType.DURATION),
        FieldSpec("Note"),
    ]
    rec = normalize_record(_record(Date="01/03/2024", Hours="  ", Note="  due   spazi "), specs)
    assert rec.values == {"Date": date(2024, 3, 1), "Hours": None, "Note": "due spazi"}
    assert rec.raw_values["Note"] == "  due   spazi "
    assert rec.row_index == 1


def test_normalize_record_missing_required():
    with pytest.raises(RowNormalizationError) as e:
        normalize_record(_record(Date=""), [FieldSpec("Date", FieldType.DATE, required=True)])
    assert e.value.field == "Date"
    assert e.value.kind == "ROW_NORMALIZATION"
    assert "Date is missing" in str(e.value)


def test_normalize_record_quotes_raw_value_verbatim():
    with pytest.raises(RowNormalizationError) as e:
        normalize_record(_record(Date="bad-date"), [FieldSpec("Date", FieldType.DATE, required=True)])
    assert str(e.value) == "Date has an invalid value 'bad-date'"
    assert e.value.render("it") == "Date non valido 'bad-date'"


def test_normalize_record_absent_field_is_blank():
    rec = normalize_record(_record(), [FieldSpec("Price", FieldType.DECIMAL)])
    assert rec.values["Price"] is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("25 kg", (Decimal("25"), "kg")),
        ("14L", (Decimal("14"), "l")),
        ("2,5 mq", (Decimal("2.5"), "mq")),
        ("1.250,5 pz.", (Decimal("1250.5"), "pz")),
        ("12", (Decimal("12"), None)),
    ],
)
def test_parse_quantity(text, expected):
    assert parse_quantity(text) == expected


def test_parse_quantity_rejects_unknown_unit():
    with pytest.raises(ValueError):
        parse_quantity("25 scatole")


def test_unit_written_with_quantity_fills_blank_unit():
    specs = [FieldSpec("Quantity", FieldType.DECIMAL, unit_field="Unit"), FieldSpec("Unit")]
    rec = normalize_record(_record(Quantity="25 kg", Unit=""), specs)
    assert rec.values == {"Quantity": Decimal("25"), "Unit": "kg"}

    rec = normalize_record(_record(Quantity="25 kg", Unit="sacchi"), specs)
    assert rec.values == {"Quantity": Decimal("25"), "Unit": "sacchi"}


def test_compact_code():
    assert compact_code("arv 225a") == "ARV225A"
    assert compact_code("ARV-225A") == "ARV225A"
