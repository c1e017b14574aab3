from __future__ import annotations

import json
from pathlib import Path

from company_reconciler.cli.__main__ import main as cli_main

"""Skip log contract: JSON Lines with fixed keys, one file per run under log_directory."""

REQUIRED_KEYS = ["timestamp", "sheet", "row", "kind", "reason"]


def _records(log_dir: Path) -> list[dict]:
    files = sorted(log_dir.glob("skipped-*.log"))
    assert len(files) == 1, files
    return [json.loads(line) for line in files[0].read_text(encoding="utf-8").splitlines()]


def test_skip_log_records(database_workbook: Path, write_config: Path, temp_workdir: Path, capsys):
    assert cli_main(["gaps"]) == 0
    records = _records(temp_workdir / "logs")
    for rec in records:
        assert list(rec) == REQUIRED_KEYS
        assert rec["timestamp"].endswith("Z")
        assert rec["sheet"] == "Companies (AUTOMATION ONLY)"
    assert [(r["row"], r["kind"]) for r in records] == [
        (1, "HEADER"),
        (6, "EMPTY"),
        (8, "LEGEND"),
        (9, "LEGEND"),
    ]


def test_run_level_failure_uses_row_minus_one(temp_workdir: Path, write_config: Path, make_workbook, capsys):
    make_workbook(temp_workdir / "data" / "companies.xlsx", {"Sheet1": [["x"]]})
    assert cli_main(["gaps"]) == 1
    records = _records(temp_workdir / "logs")
    assert len(records) == 1
    assert records[0]["row"] == -1
    assert records[0]["kind"] == "MISSING_SOURCE"
    assert records[0]["sheet"] == "<RUN>"
