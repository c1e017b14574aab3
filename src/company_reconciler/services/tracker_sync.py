from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models.error_record import utc_timestamp
from ..models.row_data import CandidateRecord
from ..models.tracker_record import DEFAULT_STATUS, TrackerRecord
from .columns import ColumnMap
from .duplicates import normalize_name

"""Incremental tracker sync.

Unlike the projection, which clears and rewrites the tracker, the sync keeps every
existing tracker row and its edits. Each company of the database (distinct id, first
name seen) claims one tracker row: by id first, then by normalized name. The claimed
row gets its id and name corrected to the database values; a company that claims no
row is appended with default values.

Tracker rows that share a claimed company's name but carry an id unknown to the
database are reported as duplicate rows, and rows left unclaimed are reported as
missing from the database. Both are reported only: no tracker row is deleted and the
database is never written.
"""

__all__ = [
    "SyncEntry",
    "NameFix",
    "IdFix",
    "SyncPlan",
    "database_companies",
    "entries_from_tracker_rows",
    "plan_tracker_sync",
]


@dataclass(frozen=True)
class SyncEntry:
    """Id and name of one tracker row."""
    id: str
    name: str
    row_number: int  # 1-based sheet row

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row_number, "id": self.id, "name": self.name}


@dataclass(frozen=True)
class NameFix:
    row_number: int
    id: str
    old_name: str
    new_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row_number, "id": self.id, "oldName": self.old_name, "newName": self.new_name}


@dataclass(frozen=True)
class IdFix:
    row_number: int
    name: str
    old_id: str
    new_id: str

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row_number, "name": self.name, "oldId": self.old_id, "newId": self.new_id}


@dataclass(frozen=True)
class SyncPlan:
    added: list[TrackerRecord] = field(default_factory=list)
    name_fixes: list[NameFix] = field(default_factory=list)
    id_fixes: list[IdFix] = field(default_factory=list)
    duplicate_rows: list[SyncEntry] = field(default_factory=list)
    missing_in_database: list[SyncEntry] = field(default_factory=list)

    @property
    def changed(self) -> int:
        """Tracker rows written: appended plus corrected."""
        return len(self.added) + len({f.row_number for f in self.name_fixes} | {f.row_number for f in self.id_fixes})

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": [{"id": r.id, "name": r.name} for r in self.added],
            "nameCorrections": [f.to_dict() for f in self.name_fixes],
            "idChanges": [f.to_dict() for f in self.id_fixes],
            "duplicateRows": [e.to_dict() for e in self.duplicate_rows],
            "missingInDatabase": [e.to_dict() for e in self.missing_in_database],
        }


def database_companies(records: Iterable[CandidateRecord]) -> list[tuple[str, str]]:
    """Distinct ``(id, name)`` pairs in sheet order; rows without an id are left out."""
    seen: dict[str, str] = {}
    for r in records:
        if r.identifier and r.identifier not in seen:
            seen[r.identifier] = r.name
    return list(seen.items())


def entries_from_tracker_rows(
    rows: Sequence[Sequence[str]],
    columns: ColumnMap,
    first_row: int = 1,
) -> list[SyncEntry]:
    """Rows carrying an id or a name; the header row, if any, is left out."""
    start = 1 if columns.from_header else 0
    entries: list[SyncEntry] = []
    for index in range(start, len(rows)):
        row = rows[index]
        company_id = columns.get(row, "id").strip()
        name = columns.get(row, "name").strip()
        if company_id or name:
            entries.append(SyncEntry(id=company_id, name=name, row_number=index + first_row))
    return entries


def _first_unclaimed(entries: Sequence[SyncEntry], claimed: set[int]) -> SyncEntry | None:
    for entry in entries:
        if entry.row_number not in claimed:
            return entry
    return None


def plan_tracker_sync(
    companies: Sequence[tuple[str, str]],
    tracker: Sequence[SyncEntry],
    default_status: str = DEFAULT_STATUS,
    now: str | None = None,
) -> SyncPlan:
    """Match database companies to tracker rows. Pure.

    Args:
        companies: Distinct (id, name) pairs of the company database, in sheet order
        tracker: Tracker rows in sheet order
        now: last_update of appended companies (default: current UTC)
    """
    now = now or utc_timestamp()
    known_ids = {company_id for company_id, _ in companies}

    by_id: dict[str, list[SyncEntry]] = {}
    # rows whose id belongs to no database company; only these can be healed by name
    by_name: dict[str, list[SyncEntry]] = {}
    for entry in tracker:
        if entry.id:
            by_id.setdefault(entry.id, []).append(entry)
        if entry.name and entry.id not in known_ids:
            by_name.setdefault(normalize_name(entry.name), []).append(entry)

    plan = SyncPlan()
    claimed: set[int] = set()
    for company_id, name in companies:
        key = normalize_name(name)
        primary = _first_unclaimed(by_id.get(company_id, ()), claimed)
        if primary is None:
            primary = _first_unclaimed(by_name.get(key, ()), claimed)
        if primary is None:
            plan.added.append(TrackerRecord(id=company_id, name=name, status=default_status, last_update=now))
            continue

        claimed.add(primary.row_number)
        if primary.name != name:
            plan.name_fixes.append(NameFix(primary.row_number, company_id, primary.name, name))
        if primary.id != company_id:
            plan.id_fixes.append(IdFix(primary.row_number, name, primary.id, company_id))
        for other in by_name.get(key, ()):
            if other.row_number not in claimed:
                claimed.add(other.row_number)
                plan.duplicate_rows.append(other)

    plan.missing_in_database.extend(e for e in tracker if e.row_number not in claimed and e.name)
    return plan
