from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from ..models.config_models import ColumnOverrides
from ..models.tracker_record import DEFAULT_STATUS, TRACKER_HEADER, TrackerRecord
from .columns import TRACKER_LAYOUT, resolve_columns
from .projection import parse_count

"""Conversion between TrackerRecords and tracker sheet rows."""

__all__ = [
    "to_sheet_rows",
    "parse_tracker_rows",
]


def to_sheet_rows(records: Sequence[TrackerRecord]) -> list[list[Any]]:
    """Header row followed by one row per record, in projection order."""
    return [list(TRACKER_HEADER)] + [r.to_row() for r in records]


def parse_tracker_rows(
    rows: Sequence[Sequence[str]],
    overrides: ColumnOverrides | None = None,
) -> list[TrackerRecord]:
    """Read tracker rows back; rows without an id are ignored.

    The first row is used as header when any of its cells names a tracker column.
    """
    if not rows:
        return []
    columns = resolve_columns(rows[0], TRACKER_LAYOUT, overrides)
    start = 1 if columns.from_header else 0
    records: list[TrackerRecord] = []
    for index in range(start, len(rows)):
        row = rows[index]
        company_id = columns.get(row, "id").strip()
        if not company_id:
            continue
        records.append(
            TrackerRecord(
                id=company_id,
                name=columns.get(row, "name").strip(),
                status=columns.get(row, "status").strip() or DEFAULT_STATUS,
                urgency_score=parse_count(columns.get(row, "urgency_score")),
                previous_response=columns.get(row, "previous_response").strip(),
                assigned_to=columns.get(row, "assigned_to").strip(),
                last_contact=columns.get(row, "last_contact").strip(),
                follow_up_count=parse_count(columns.get(row, "follow_up_count")),
                sponsorship_tier=columns.get(row, "sponsorship_tier").strip(),
                remarks=columns.get(row, "remarks").strip(),
                last_update=columns.get(row, "last_update").strip(),
                row_index=index,
            )
        )
    return records
