from __future__ import annotations

import pytest

from work_import.config.loader import ImportConfig
from work_import.errors import InputFormatError
from work_import.kinds import ATTENDANCE, MATERIALS, get_kind
from work_import.sources.spreadsheet import read_spreadsheet


def test_xlsx_rows_become_raw_records(make_xlsx):
    content = make_xlsx(
        ["Date", "Employee", "Hours", "Site"],
        [["01/03/2024", "Mario Rossi", 8, "Sede A"], ["02/03/2024", "Luca Bianchi", "7,5", "Sede B"]],
    )
    records = read_spreadsheet("presenze.xlsx", content, ATTENDANCE)
    assert [r.row_index for r in records] == [1, 2]
    assert records[0].fields["Employee"] == "Mario Rossi"
    assert records[0].fields["Hours"] == "8"
    assert records[1].fields["Hours"] == "7,5"
    assert records[0].origin.source == "presenze.xlsx"
    assert records[0].origin.line == 2


def test_italian_headers_and_title_rows(make_xlsx):
    content = make_xlsx(
        ["Data", "Dipendente", "Ore", "Cantiere", "Note"],
        [["01/03/2024", "Mario Rossi", 8, "Sede A", "ignored"]],
        title="Foglio presenze marzo",
    )
    records = read_spreadsheet("presenze.xlsx", content, ATTENDANCE)
    assert len(records) == 1
    assert records[0].fields == {"Date": "01/03/2024", "Employee": "Mario Rossi", "Hours": "8", "Site": "Sede A"}
    assert records[0].origin.line == 3


def test_header_matching_is_case_insensitive_and_trimmed(make_csv):
    content = make_csv(["  DATE ", "employee", "hours", "SITE"], [["01/03/2024", "Mario Rossi", "8", "Sede A"]])
    records = read_spreadsheet("presenze.csv", content, ATTENDANCE)
    assert records[0].fields["Site"] == "Sede A"


def test_blank_lines_are_skipped(make_csv):
    content = make_csv(
        ["Date", "Employee", "Hours", "Site"],
        [["01/03/2024", "Mario Rossi", "8", "Sede A"], ["", "", "", ""], ["02/03/2024", "Mario Rossi", "8", "Sede A"]],
    )
    records = read_spreadsheet("presenze.csv", content, ATTENDANCE)
    assert [r.row_index for r in records] == [1, 2]
    assert [r.origin.line for r in records] == [2, 4]


def test_na_text_is_kept(make_csv):
    content = make_csv(["Brand", "Product Name"], [["NA", "Nastro NA"]], sep=";")
    records = read_spreadsheet("listino.csv", content, MATERIALS)
    assert records[0].fields["Brand"] == "NA"


def test_missing_required_header_fails_batch(make_xlsx):
    content = make_xlsx(["Date", "Employee", "Hours"], [["01/03/2024", "Mario Rossi", 8]])
    with pytest.raises(InputFormatError) as e:
        read_spreadsheet("presenze.xlsx", content, ATTENDANCE)
    assert e.value.kind == "INPUT_FORMAT"
    assert "Site" in str(e.value)


def test_no_recognized_header_at_all(make_csv):
    content = make_csv(["foo", "bar"], [["1", "2"]])
    with pytest.raises(InputFormatError) as e:
        read_spreadsheet("x.csv", content, ATTENDANCE)
    assert "missing required columns" in str(e.value)


@pytest.mark.parametrize("name", ["presenze.pdf", "presenze.txt", "presenze"])
def test_unsupported_extension_checked_first(name):
    with pytest.raises(InputFormatError) as e:
        read_spreadsheet(name, b"anything", ATTENDANCE)
    assert "unsupported file type" in str(e.value)


def test_header_only_means_no_rows(make_csv):
    content = make_csv(["Date", "Employee", "Hours", "Site"], [])
    with pytest.raises(InputFormatError) as e:
        read_spreadsheet("presenze.csv", content, ATTENDANCE)
    assert str(e.value) == "no rows found"


def test_empty_content_means_no_rows():
    with pytest.raises(InputFormatError) as e:
        read_spreadsheet("presenze.xlsx", b"", ATTENDANCE)
    assert str(e.value) == "no rows found"


def test_corrupt_workbook_is_unreadable():
    with pytest.raises(InputFormatError) as e:
        read_spreadsheet("presenze.xlsx", b"this is not a zip archive", ATTENDANCE)
    assert str(e.value).startswith("unreadable file")


def test_config_column_aliases(make_csv):
    kind = get_kind("attendance", ImportConfig(column_aliases={"attendance": {"Employee": ["Addetto"]}}))
    content = make_csv(["Date", "Addetto", "Hours", "Site"], [["01/03/2024", "Mario Rossi", "8", "Sede A"]])
    records = read_spreadsheet("presenze.csv", content, kind)
    assert records[0].fields["Employee"] == "Mario Rossi"


def test_unknown_kind():
    with pytest.raises(InputFormatError) as e:
        get_kind("vehicles")
    assert str(e.value) == "unknown import kind 'vehicles'"
