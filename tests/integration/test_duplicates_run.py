from __future__ import annotations

from pathlib import Path

from company_reconciler.config.loader import load_config
from company_reconciler.models.tracker_record import TRACKER_HEADER
from company_reconciler.services.orchestrator import run_duplicate_scan, run_tracker_duplicate_scan


def test_database_duplicates_include_allocated_ids(database_workbook: Path, write_config: Path):
    result = run_duplicate_scan(load_config(write_config))
    groups = result.payload["duplicates"]
    assert len(groups) == 1
    assert groups[0]["normalizedName"] == "acme inc"
    assert [(m["id"], m["rows"]) for m in groups[0]["members"]] == [("ME-0001", [2, 3]), ("ME-0006", [4])]


def test_tracker_duplicates_attach_contacts(
    database_workbook: Path, write_config: Path, temp_workdir: Path, make_workbook
):
    make_workbook(
        temp_workdir / "data" / "tracker.xlsx",
        {
            "Outreach Tracker": [
                TRACKER_HEADER,
                ["ME-0001", "Acme Inc", "Contacted"],
                ["ME-0009", "ACME   inc", "To Contact"],
                ["ME-0002", "Globex", "Completed"],
            ]
        },
    )
    result = run_tracker_duplicate_scan(load_config(write_config))

    assert result.counts.processed == 3
    (group,) = result.payload["duplicates"]
    first, second = group["members"]
    assert (first["id"], first["rows"]) == ("ME-0001", [2])
    assert [c["name"] for c in first["contacts"]] == ["Alice", "Bob"]
    assert first["contacts"][0]["uniqueId"] == "contact-ME-0001-1"
    assert first["contacts"][0]["email"] == "alice@acme.test"
    assert second["id"] == "ME-0009"
    assert second["contacts"] == []
