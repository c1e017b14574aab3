from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from types import MappingProxyType

from ..excel.ranges import cell_ref
from ..excel.writer import CellUpdate
from ..models.tracker_record import TrackerRecord

"""Status vocabulary migration.

Rewrites the deprecated status tokens of the tracker to their canonical replacements.
The mapping is a closed set. Only rows whose status exactly matches a deprecated
token (after trimming) produce a cell update, so running the migration on its own
output stages nothing.
"""

__all__ = [
    "STATUS_MIGRATION",
    "StatusChange",
    "StatusMigrationPlan",
    "locate_status_column",
    "plan_status_migration",
    "apply_to_rows",
    "migrate_tracker_records",
]

STATUS_MIGRATION = MappingProxyType({
    "Completed": "Registered",
    "Negotiating": "Interested",
})

HEADER_ID_TOKENS = frozenset({"company id", "no."})


@dataclass(frozen=True)
class StatusChange:
    row_index: int  # 0-based index into the rows read
    company_id: str
    old: str
    new: str

    def to_dict(self) -> dict[str, object]:
        return {"row": self.row_index + 1, "id": self.company_id, "from": self.old, "to": self.new}


@dataclass(frozen=True)
class StatusMigrationPlan:
    sheet: str | None
    status_column: int  # 0-based
    header_found: bool
    start_row: int  # first data row (0-based)
    changes: list[StatusChange] = field(default_factory=list)
    row_offset: int = 0  # sheet row index of rows[0] (0-based)
    col_offset: int = 0  # sheet column index of the first cell read (0-based)

    @property
    def updates(self) -> list[CellUpdate]:
        """Only the changed cells, never the whole table."""
        return [
            CellUpdate(cell_ref(self.sheet, c.row_index + self.row_offset, self.status_column + self.col_offset), c.new)
            for c in self.changes
        ]

    @property
    def changed(self) -> int:
        return len(self.changes)


def locate_status_column(header: Sequence[str], header_name: str = "status", fallback: int = 2) -> tuple[int, bool]:
    wanted = header_name.strip().casefold()
    for idx, cell in enumerate(header):
        if isinstance(cell, str) and cell.strip().casefold() == wanted:
            return idx, True
    return fallback, False


def plan_status_migration(
    rows: Sequence[Sequence[str]],
    sheet: str | None = None,
    header_name: str = "status",
    fallback_column: int = 2,
    row_offset: int = 0,
    col_offset: int = 0,
) -> StatusMigrationPlan:
    """Stage one update per row holding a deprecated status. Pure.

    row_offset/col_offset place ``rows`` inside the sheet when the range read does not
    start at A1.
    """
    if not rows:
        return StatusMigrationPlan(
            sheet=sheet, status_column=fallback_column, header_found=False, start_row=0,
            row_offset=row_offset, col_offset=col_offset,
        )

    header = rows[0]
    column, found = locate_status_column(header, header_name, fallback_column)
    first_cell = header[0].strip().casefold() if header and isinstance(header[0], str) else ""
    start = 1 if found or first_cell in HEADER_ID_TOKENS else 0

    changes: list[StatusChange] = []
    for i in range(start, len(rows)):
        row = rows[i]
        if column >= len(row) or not row[column]:
            continue
        current = row[column].strip()
        new = STATUS_MIGRATION.get(current)
        if new is not None:
            changes.append(
                StatusChange(row_index=i, company_id=row[0].strip() if row else "", old=current, new=new)
            )
    return StatusMigrationPlan(
        sheet=sheet, status_column=column, header_found=found, start_row=start, changes=changes,
        row_offset=row_offset, col_offset=col_offset,
    )


def apply_to_rows(rows: Sequence[Sequence[str]], plan: StatusMigrationPlan) -> list[list[str]]:
    """Copy of ``rows`` with the plan applied, as the store would hold it afterwards."""
    out = [list(r) for r in rows]
    for change in plan.changes:
        row = out[change.row_index]
        while len(row) <= plan.status_column:
            row.append("")
        row[plan.status_column] = change.new
    return out


def migrate_tracker_records(records: Sequence[TrackerRecord]) -> tuple[list[TrackerRecord], int]:
    migrated: list[TrackerRecord] = []
    changed = 0
    for record in records:
        new = STATUS_MIGRATION.get(record.status.strip())
        if new is None:
            migrated.append(record)
        else:
            migrated.append(record.with_status(new))
            changed += 1
    return migrated, changed
