from __future__ import annotations

import json
from pathlib import Path

import pytest

from company_reconciler.config.loader import load_config
from company_reconciler.excel.store import MissingSourceError, StoreUnavailableError
from company_reconciler.services.orchestrator import run_projection, run_status_migration

"""Run-level failures abort before any write and leave a record in the skip log."""


def _log_records(temp_workdir: Path) -> list[dict]:
    (log,) = (temp_workdir / "logs").glob("skipped-*.log")
    return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines()]


def test_missing_marker_sheet(temp_workdir: Path, write_config: Path, make_workbook):
    make_workbook(temp_workdir / "data" / "companies.xlsx", {"Companies": [["No.", "Company Name"]]})
    with pytest.raises(MissingSourceError):
        run_projection(load_config(write_config))

    records = _log_records(temp_workdir)
    assert [(r["row"], r["kind"]) for r in records] == [(-1, "MISSING_SOURCE")]
    assert not (temp_workdir / "data" / "tracker.xlsx").exists()


def test_fallback_to_first_sheet(temp_workdir: Path, write_config: Path, make_workbook, database_rows):
    make_workbook(temp_workdir / "data" / "companies.xlsx", {"Companies": database_rows})
    write_config.write_text(
        write_config.read_text(encoding="utf-8").replace(
            'sheet_marker: "AUTOMATION ONLY"',
            'sheet_marker: "AUTOMATION ONLY"\n  fallback_to_first_sheet: true',
        ),
        encoding="utf-8",
    )
    result = run_projection(load_config(write_config), dry_run=True)
    assert len(result.payload["companies"]) == 4


def test_unreadable_workbook(temp_workdir: Path, write_config: Path):
    (temp_workdir / "data" / "companies.xlsx").write_bytes(b"garbage")
    with pytest.raises(StoreUnavailableError):
        run_projection(load_config(write_config))
    assert _log_records(temp_workdir)[0]["kind"] == "STORE_UNAVAILABLE"


def test_status_migration_without_tracker(temp_workdir: Path, write_config: Path):
    with pytest.raises(StoreUnavailableError):
        run_status_migration(load_config(write_config))
