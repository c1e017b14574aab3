from __future__ import annotations

import pytest

from company_reconciler.models.row_data import CandidateRecord
from company_reconciler.services.allocator import (
    IdentifierCounter,
    allocate_missing,
    format_structured_id,
    parse_structured_id,
    scan_max_identifier,
)


@pytest.mark.parametrize(
    "token,expected",
    [
        ("ME-0001", 1),
        (" ME-0042 ", 42),
        ("ME-12345", 12345),
        ("ME-001", None),  # below the zero padding width
        ("ME-0000", None),
        ("me-0001", None),
        ("XY-0001", None),
        ("Acme", None),
        ("", None),
    ],
)
def test_parse_structured_id(token, expected):
    assert parse_structured_id(token, "ME", 4) == expected


def test_format_structured_id_pads():
    assert format_structured_id(3, "ME", 4) == "ME-0003"
    assert format_structured_id(12345, "ME", 4) == "ME-12345"


def test_scan_starts_after_highest_structured_id():
    counter = scan_max_identifier(["ME-0002", "", "ME-0010", "legend", "No."])
    assert counter.next_value == 11
    assert "legend" in counter.reserved


def test_scan_without_structured_ids_starts_at_one():
    assert scan_max_identifier(["Acme", ""]).next_value == 1


def test_allocate_returns_new_counter():
    counter = IdentifierCounter(next_value=3)
    token, advanced = counter.allocate()
    assert token == "ME-0003"
    assert advanced.next_value == 4
    assert counter.next_value == 3  # immutable


def test_allocate_skips_reserved_tokens():
    counter = IdentifierCounter(next_value=3, reserved=frozenset({"ME-0003", "ME-0004"}))
    token, advanced = counter.allocate()
    assert token == "ME-0005"
    assert advanced.next_value == 6


def test_allocate_missing_only_touches_records_without_id():
    records = [
        CandidateRecord(identifier="ME-0007", name="Acme", row_index=1),
        CandidateRecord(identifier=None, name="Globex", row_index=2),
        CandidateRecord(identifier=None, name="Initech", row_index=3),
    ]
    counter = scan_max_identifier(r.identifier or "" for r in records)
    out, counter = allocate_missing(records, counter)

    assert [r.identifier for r in out] == ["ME-0007", "ME-0008", "ME-0009"]
    assert [r.allocated for r in out] == [False, True, True]
    assert counter.next_value == 10
    observed = {r.identifier for r in records if r.identifier}
    assert not observed & {r.identifier for r in out if r.allocated}
