from __future__ import annotations

import json
from pathlib import Path

import openpyxl
import pytest

from company_reconciler.config.loader import load_config
from company_reconciler.excel.store import WorkbookStore
from company_reconciler.models.tracker_record import TRACKER_HEADER
from company_reconciler.services.orchestrator import run_projection

"""End-to-end projection over real .xlsx files: company database in, tracker out."""


@pytest.fixture
def config(database_workbook: Path, write_config: Path):
    return load_config(write_config)


def _tracker_rows(temp_workdir: Path) -> list[list[str]]:
    return WorkbookStore(temp_workdir / "data" / "tracker.xlsx").read_rows("Outreach Tracker", "A1:K")


def test_projection_writes_tracker(config, temp_workdir: Path):
    result = run_projection(config)

    rows = _tracker_rows(temp_workdir)
    assert rows[0] == TRACKER_HEADER
    assert [r[:3] for r in rows[1:]] == [
        ["ME-0001", "Acme Inc", "Contacted"],
        ["ME-0006", "Acme Inc", "To Contact"],
        ["ME-0002", "Globex", "Completed"],
        ["ME-0005", "Initech", "To Contact"],
    ]
    acme = rows[1]
    assert acme[TRACKER_HEADER.index("Assigned PIC")] == "Ben"
    assert acme[TRACKER_HEADER.index("Follow-up Count")] == "1"
    # later contact row wins for the last update only
    assert acme[TRACKER_HEADER.index("Last Update")] == "2024-04-15"
    assert rows[2][TRACKER_HEADER.index("Remarks")] == "second office"

    assert (result.counts.processed, result.counts.allocated, result.counts.changed) == (5, 1, 4)
    # three distinct names for four companies
    assert result.warnings


def test_projection_leaves_database_untouched(config, database_workbook: Path):
    before = database_workbook.read_bytes()
    run_projection(config)
    assert database_workbook.read_bytes() == before


def test_projection_writes_skip_log(config, temp_workdir: Path):
    run_projection(config)
    logs = list((temp_workdir / "logs").glob("skipped-*.log"))
    assert len(logs) == 1
    kinds = [json.loads(line)["kind"] for line in logs[0].read_text(encoding="utf-8").splitlines()]
    assert kinds == ["HEADER", "EMPTY", "LEGEND", "LEGEND"]


def test_reprojection_clears_stale_rows(config, temp_workdir: Path, make_workbook):
    tracker = temp_workdir / "data" / "tracker.xlsx"
    stale = [TRACKER_HEADER] + [[f"ME-{n:04d}", f"Old {n}", "Contacted"] for n in range(1, 11)]
    make_workbook(tracker, {"Outreach Tracker": stale, "Notes": [["keep me"]]})

    run_projection(config)

    rows = _tracker_rows(temp_workdir)
    assert len(rows) == 5
    assert all(not r[1].startswith("Old") for r in rows[1:])
    wb = openpyxl.load_workbook(tracker)
    assert wb["Notes"]["A1"].value == "keep me"


def test_projection_is_stable_across_runs(config, temp_workdir: Path):
    first = run_projection(config).to_document()["companies"]
    second = run_projection(config).to_document()["companies"]
    assert [c["id"] for c in first] == [c["id"] for c in second]


def test_dry_run_writes_nothing(config, temp_workdir: Path):
    result = run_projection(config, dry_run=True)
    assert result.dry_run is True
    assert len(result.payload["companies"]) == 4
    assert not (temp_workdir / "data" / "tracker.xlsx").exists()
