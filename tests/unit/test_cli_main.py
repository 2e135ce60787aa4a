from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import psycopg2
import pytest
import yaml

from work_import.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main

ATTENDANCE_CSV = "Date,Employee,Hours,Site\n01/03/2024,Mario Rossi,8,Sede A\n02/03/2024,Luca Bianchi,6,SB\n"


@pytest.fixture()
def master_file(temp_workdir: Path, master_data) -> Path:
    path = temp_workdir / "data" / "master.yml"
    path.write_text(yaml.safe_dump(master_data, allow_unicode=True), encoding="utf-8")
    return path


def _write(temp_workdir: Path, name: str, text: str) -> Path:
    path = temp_workdir / "data" / name
    path.write_text(text, encoding="utf-8")
    return path


def _error_lines(temp_workdir: Path) -> list[dict]:
    return [
        json.loads(line)
        for log in sorted((temp_workdir / "logs").glob("errors-*.log"))
        for line in log.read_text(encoding="utf-8").splitlines()
    ]


def test_preview_all_valid(temp_workdir, master_file, capsys):
    path = _write(temp_workdir, "presenze.csv", ATTENDANCE_CSV)
    code = main(["--master-data", str(master_file), "preview", "--kind", "attendance", str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert '"totalRows": 2' in out
    assert "SUMMARY mode=preview kind=attendance rows=2 valid=2 duplicates=0 errors=0 imported=0" in out


def test_commit_partial_failure(temp_workdir, master_file, capsys):
    path = _write(temp_workdir, "presenze.csv", ATTENDANCE_CSV + "03/03/2024,Mario Rossi,8,Sede Z\n")
    code = main(["--master-data", str(master_file), "commit", "--kind", "attendance", str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_PARTIAL_FAILURE
    assert '"importedCount": 2' in out
    assert "Row 3: Site 'Sede Z' not found" in out
    assert "SUMMARY mode=commit kind=attendance rows=3 valid=2 duplicates=0 errors=1 imported=2" in out
    records = _error_lines(temp_workdir)
    assert [(r["row"], r["error_kind"]) for r in records] == [(3, "ROW_RESOLUTION")]


def test_commit_materials_with_duplicate_is_success(temp_workdir, master_file, capsys):
    text = (
        "Codice;Marca;Prodotto;Categoria;Quantità;UM;Prezzo\n"
        "ARV225A;Arvex;Pittura Bianca;Pitture;10;l;12,50\n"
        "FIS-8;Fischer;Tassello 8mm;Fissaggi;100;pz;0,12\n"
    )
    path = _write(temp_workdir, "listino.csv", text)
    code = main(["--master-data", str(master_file), "commit", "--kind", "materials", str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS_ALL
    assert '"importedCount": 1' in out
    assert "duplicates=1" in out


def test_unsupported_file_is_fatal_and_logged(temp_workdir, master_file, capsys):
    path = _write(temp_workdir, "note.txt", "hello")
    code = main(["--master-data", str(master_file), "preview", "--kind", "attendance", str(path)])
    assert code == EXIT_FATAL
    assert "ERROR note.txt: unsupported file type '.txt'" in capsys.readouterr().out
    records = _error_lines(temp_workdir)
    assert records[0]["row"] == -1
    assert records[0]["error_kind"] == "INPUT_FORMAT"


def test_missing_headers_is_fatal(temp_workdir, master_file):
    path = _write(temp_workdir, "presenze.csv", "Date,Employee\n01/03/2024,Mario Rossi\n")
    assert main(["--master-data", str(master_file), "preview", "--kind", "attendance", str(path)]) == EXIT_FATAL


def test_missing_input_file(temp_workdir, master_file):
    code = main(["--master-data", str(master_file), "preview", "--kind", "attendance", "data/none.xlsx"])
    assert code == EXIT_FATAL


def test_missing_master_data_file(temp_workdir):
    path = _write(temp_workdir, "presenze.csv", ATTENDANCE_CSV)
    code = main(["--master-data", "data/none.yml", "preview", "--kind", "attendance", str(path)])
    assert code == EXIT_FATAL


def test_explicit_config_must_exist(temp_workdir, master_file):
    path = _write(temp_workdir, "presenze.csv", ATTENDANCE_CSV)
    code = main(
        ["--config", "config/missing.yml", "--master-data", str(master_file), "preview", "--kind", "attendance", str(path)]
    )
    assert code == EXIT_FATAL


def test_config_locale_applies(temp_workdir, master_file, capsys):
    (temp_workdir / "config" / "import.yml").write_text("locale: it\n", encoding="utf-8")
    path = _write(temp_workdir, "presenze.csv", ATTENDANCE_CSV + "03/03/2024,Mario Rossi,8,Sede Z\n")
    code = main(["--master-data", str(master_file), "preview", "--kind", "attendance", str(path)])
    assert code == EXIT_PARTIAL_FAILURE
    assert "Riga 3: Site 'Sede Z' non trovato" in capsys.readouterr().out


def test_database_unreachable(temp_workdir):
    path = _write(temp_workdir, "presenze.csv", ATTENDANCE_CSV)
    with patch("work_import.db.postgres.connect", side_effect=psycopg2.OperationalError("connection refused")):
        code = main(["preview", "--kind", "attendance", str(path)])
    assert code == EXIT_FATAL


def test_debug_flag(temp_workdir, master_file):
    path = _write(temp_workdir, "presenze.csv", ATTENDANCE_CSV)
    main(["--debug", "--master-data", str(master_file), "preview", "--kind", "attendance", str(path)])
    assert logging.getLogger("work_import").level == logging.DEBUG


def test_ocr_codes(temp_workdir, capsys):
    path = _write(temp_workdir, "fattura.txt", "Fornitore: Colorificio Rossi\nARV225A Pittura Bianca 14L\n")
    assert main(["ocr-codes", str(path)]) == EXIT_SUCCESS_ALL
    out = capsys.readouterr().out
    payload = json.loads(out[out.index("{"):])
    assert payload["codes"] == ["ARV225A"]
    assert payload["candidates"][0]["Supplier"] == "Colorificio Rossi"


def test_ocr_codes_missing_file(temp_workdir):
    assert main(["ocr-codes", "data/none.txt"]) == EXIT_FATAL


def test_ocr_codes_from_image(temp_workdir):
    path = temp_workdir / "data" / "fattura.png"
    path.write_bytes(b"\x89PNG fake")
    with patch(
        "work_import.sources.tesseract.TesseractExtractor._recognize", return_value="XY-990 Stucco in pasta 5 kg\n"
    ) as recognize:
        assert main(["ocr-codes", str(path)]) == EXIT_SUCCESS_ALL
    recognize.assert_called_once_with(b"\x89PNG fake")


def test_ocr_codes_extraction_failure(temp_workdir, capsys):
    path = temp_workdir / "data" / "fattura.jpg"
    path.write_bytes(b"jpeg")
    with patch("work_import.sources.tesseract.TesseractExtractor._recognize", side_effect=OSError("tesseract not found")):
        assert main(["ocr-codes", str(path)]) == EXIT_FATAL
    assert "ERROR fattura.jpg: text extraction failed: tesseract not found" in capsys.readouterr().out
