from __future__ import annotations

import re
from pathlib import Path

import yaml

from work_import.cli.__main__ import main

"""Contract test: one SUMMARY line per preview/commit run.

SUMMARY mode=(preview|commit) kind=(attendance|materials) rows=N valid=N duplicates=N errors=N imported=N
"""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY mode=(preview|commit) kind=(attendance|materials) rows=(\d+) valid=(\d+) "
    r"duplicates=(\d+) errors=(\d+) imported=(\d+)$"
)


def test_pattern_examples():
    assert SUMMARY_PATTERN.match(
        "SUMMARY mode=preview kind=materials rows=3 valid=1 duplicates=1 errors=1 imported=0"
    )
    assert not SUMMARY_PATTERN.match("SUMMARY mode=preview kind=materials rows=3")


def test_commit_emits_single_summary_line(temp_workdir: Path, master_data, capsys):
    master = temp_workdir / "data" / "master.yml"
    master.write_text(yaml.safe_dump(master_data), encoding="utf-8")
    path = temp_workdir / "data" / "listino.csv"
    path.write_text(
        "Marca;Prodotto;UM\nArvex;Pittura Bianca;l\nFischer;Tassello 8mm;pz\n;Senza marca;pz\n",
        encoding="utf-8",
    )
    main(["--master-data", str(master), "commit", "--kind", "materials", str(path)])

    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m
    rows, valid, duplicates, errors, imported = (int(g) for g in m.groups()[2:])
    assert (rows, valid, duplicates, errors, imported) == (3, 1, 1, 1, 1)
    assert rows == valid + duplicates + errors
