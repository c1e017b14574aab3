from __future__ import annotations

from company_reconciler.models.config_models import ColumnOverrides
from company_reconciler.services.columns import DATABASE_LAYOUT, TRACKER_LAYOUT, resolve_columns


def test_positional_fallback_without_header():
    columns = resolve_columns(None, DATABASE_LAYOUT)
    assert not columns.from_header
    assert columns.index("identifier") == 0
    assert columns.index("name") == 1
    assert columns.index("status") == 15


def test_header_aliases_case_insensitive():
    header = ["Company ID", "company name", "Email", " status "]
    columns = resolve_columns(header, DATABASE_LAYOUT)
    assert columns.from_header
    assert columns.index("identifier") == 0
    assert columns.index("name") == 1
    assert columns.index("email") == 2
    assert columns.index("status") == 3
    # unmatched fields keep their fixed position
    assert columns.index("phone") == 8


def test_overrides_replace_aliases_and_positions():
    overrides = ColumnOverrides(aliases={"assigned_to": ("Owner",)}, positions={"status": 4})
    columns = resolve_columns(["No.", "Company Name", "Owner"], DATABASE_LAYOUT, overrides)
    assert columns.index("assigned_to") == 2
    assert columns.index("status") == 4


def test_get_and_extract():
    columns = resolve_columns(["No.", "Company Name", "Email"], DATABASE_LAYOUT)
    row = ["ME-0001", "Acme", "  a@acme.test "]
    assert columns.get(row, "email") == "  a@acme.test "
    assert columns.get(row, "phone") == ""
    assert columns.extract(row, exclude=("identifier", "name")) == {"email": "a@acme.test"}


def test_tracker_layout_follows_header_order():
    columns = resolve_columns(None, TRACKER_LAYOUT)
    assert columns.index("id") == 0
    assert columns.index("status") == 2
    assert columns.index("last_update") == 10


def test_unmatched_field_never_shares_a_matched_column():
    header = ["Company ID", "company name", "Email", " status "]
    columns = resolve_columns(header, DATABASE_LAYOUT)
    # fixed position 2 belongs to Email here
    assert columns.index("discipline") == -1
    row = ["ME-0001", "Acme", "a@acme.test", "Contacted"]
    assert columns.get(row, "discipline") == ""
    assert columns.get(row, "email") == "a@acme.test"


def test_unmatched_field_skips_unknown_header_cell():
    header = ["No.", "Company Name"] + [""] * 10 + ["Notes"]
    columns = resolve_columns(header, DATABASE_LAYOUT)
    assert columns.index("remark") == -1
    # blank header cell at the fixed position keeps the fallback
    assert columns.index("discipline") == 2


def test_positions_are_unique_with_partial_header():
    header = ["No.", "Company Name"] + [""] * 10 + ["Status"]
    columns = resolve_columns(header, DATABASE_LAYOUT)
    mapped = [i for i in columns.positions.values() if i >= 0]
    assert len(mapped) == len(set(mapped))
    assert columns.index("status") == 12
    assert columns.index("remark") == -1
