from __future__ import annotations

from pathlib import Path

import pytest

from company_reconciler.config.loader import load_config
from company_reconciler.excel.store import StoreUnavailableError, WorkbookStore
from company_reconciler.models.tracker_record import TRACKER_HEADER
from company_reconciler.services.orchestrator import run_tracker_sync

"""In-place tracker sync against the sample company database."""


@pytest.fixture
def tracker_workbook(temp_workdir: Path, make_workbook) -> Path:
    rows = [
        TRACKER_HEADER,
        ["ME-0001", "ACME Incorporated", "Interested", 4],
        ["ME-0099", "Globex", "Contacted"],
        ["", "globex", "To Contact"],
        ["ME-0003", "Umbrella", "Rejected"],
    ]
    return make_workbook(temp_workdir / "data" / "tracker.xlsx", {"Outreach Tracker": rows})


def _rows(path: Path) -> list[list[str]]:
    return WorkbookStore(path).read_rows("Outreach Tracker", "A1:K")


def test_sync_corrects_and_appends_in_place(database_workbook: Path, tracker_workbook: Path, write_config: Path):
    result = run_tracker_sync(load_config(write_config))

    rows = _rows(tracker_workbook)
    assert rows[1][:4] == ["ME-0001", "Acme Inc", "Interested", "4"]
    assert rows[2][:3] == ["ME-0002", "Globex", "Contacted"]
    assert rows[3][:3] == ["", "globex", "To Contact"]
    assert rows[4][:3] == ["ME-0003", "Umbrella", "Rejected"]
    assert rows[5][:4] == ["ME-0005", "Initech", "To Contact", "0"]
    assert rows[5][10]
    assert len(rows) == 6

    sync = result.payload["sync"]
    assert sync["added"] == [{"id": "ME-0005", "name": "Initech"}]
    assert sync["nameCorrections"] == [{"row": 2, "id": "ME-0001", "oldName": "ACME Incorporated", "newName": "Acme Inc"}]
    assert sync["idChanges"] == [{"row": 3, "name": "Globex", "oldId": "ME-0099", "newId": "ME-0002"}]
    assert sync["duplicateRows"] == [{"row": 4, "id": "", "name": "globex"}]
    assert sync["missingInDatabase"] == [{"row": 5, "id": "ME-0003", "name": "Umbrella"}]
    assert (result.counts.processed, result.counts.skipped, result.counts.changed) == (3, 4, 3)


def test_sync_dry_run_writes_nothing(database_workbook: Path, tracker_workbook: Path, write_config: Path):
    before = tracker_workbook.read_bytes()
    result = run_tracker_sync(load_config(write_config), dry_run=True)

    assert result.dry_run is True
    assert result.counts.changed == 3
    assert len(result.payload["sync"]["idChanges"]) == 1
    assert tracker_workbook.read_bytes() == before


def test_second_sync_changes_nothing(database_workbook: Path, tracker_workbook: Path, write_config: Path):
    config = load_config(write_config)
    run_tracker_sync(config)
    before = tracker_workbook.read_bytes()

    again = run_tracker_sync(config)

    assert again.counts.changed == 0
    assert again.payload["sync"]["duplicateRows"] == [{"row": 4, "id": "", "name": "globex"}]
    assert tracker_workbook.read_bytes() == before


def test_sync_into_empty_tracker_writes_header(database_workbook: Path, temp_workdir: Path, write_config: Path, make_workbook):
    path = make_workbook(temp_workdir / "data" / "tracker.xlsx", {"Outreach Tracker": []})
    result = run_tracker_sync(load_config(write_config))

    rows = _rows(path)
    assert rows[0] == TRACKER_HEADER
    assert [r[:2] for r in rows[1:]] == [["ME-0001", "Acme Inc"], ["ME-0002", "Globex"], ["ME-0005", "Initech"]]
    assert result.counts.changed == 3


def test_sync_without_tracker_workbook_fails(database_workbook: Path, write_config: Path):
    with pytest.raises(StoreUnavailableError):
        run_tracker_sync(load_config(write_config))
