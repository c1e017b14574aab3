from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from ..models.analysis import ContactSummary, DuplicateGroup, DuplicateMember
from ..models.row_data import CandidateRecord
from ..models.tracker_record import TrackerRecord
from .columns import ColumnMap

"""Duplicate company detection by normalized name.

Two entries are the same company only if their normalized names are exactly equal;
there is no fuzzy matching. A name is reported when it is held by two or more
distinct identifiers. The same identifier repeated under one name (one company, many
contact rows) is never reported.

Groups are a signal for human review. Companies that legitimately share a name are
reported too; nothing is merged automatically.
"""

__all__ = [
    "NameEntry",
    "normalize_name",
    "group_duplicates",
    "entries_from_candidates",
    "entries_from_tracker",
    "contacts_by_company",
]


def normalize_name(name: str) -> str:
    """Case-fold, collapse whitespace runs to one space, trim."""
    return " ".join(name.casefold().split())


@dataclass(frozen=True)
class NameEntry:
    id: str
    name: str
    row_number: int  # 1-based sheet row
    status: str = ""
    assigned_to: str = ""
    remarks: str = ""


def entries_from_candidates(records: Iterable[CandidateRecord], first_row: int = 1) -> list[NameEntry]:
    """Entries for records that carry an identifier.

    first_row: sheet row number of row_index 0 (the first row of the range read).
    """
    return [
        NameEntry(
            id=r.identifier,
            name=r.name,
            row_number=r.row_index + first_row,
            status=r.attribute("status"),
            assigned_to=r.attribute("assigned_to"),
            remarks=r.attribute("remark"),
        )
        for r in records
        if r.identifier
    ]


def entries_from_tracker(records: Iterable[TrackerRecord], first_row: int = 1) -> list[NameEntry]:
    return [
        NameEntry(
            id=r.id,
            name=r.name,
            row_number=(r.row_index or 0) + first_row,
            status=r.status,
            assigned_to=r.assigned_to,
            remarks=r.remarks,
        )
        for r in records
        if r.id and r.name
    ]


def contacts_by_company(
    rows: Sequence[Sequence[str]],
    columns: ColumnMap,
    first_row: int = 1,
) -> dict[str, list[ContactSummary]]:
    """Contact rows of the company database keyed by company identifier."""
    contacts: dict[str, list[ContactSummary]] = {}
    for index, row in enumerate(rows):
        company_id = columns.get(row, "identifier").strip()
        if not company_id:
            continue
        contacts.setdefault(company_id, []).append(
            ContactSummary(
                contact_id=f"contact-{company_id}-{index}",
                row_number=index + first_row,
                name=columns.get(row, "contact_name").strip(),
                role=columns.get(row, "role").strip(),
                email=columns.get(row, "email").strip(),
                phone=columns.get(row, "phone").strip(),
                remark=columns.get(row, "remark").strip(),
            )
        )
    return contacts


def group_duplicates(
    entries: Iterable[NameEntry],
    contacts: Mapping[str, Sequence[ContactSummary]] | None = None,
) -> list[DuplicateGroup]:
    """Groups of two or more distinct identifiers sharing a normalized name.

    Members keep first-seen order; groups are sorted by normalized name.
    """
    # normalized name -> id -> entries (insertion ordered)
    by_name: dict[str, dict[str, list[NameEntry]]] = {}
    for entry in entries:
        if not entry.id or not entry.name.strip():
            continue
        key = normalize_name(entry.name)
        by_name.setdefault(key, {}).setdefault(entry.id, []).append(entry)

    groups: list[DuplicateGroup] = []
    for key in sorted(by_name):
        ids = by_name[key]
        if len(ids) < 2:
            continue
        members = []
        for company_id, seen in ids.items():
            first = seen[0]
            members.append(
                DuplicateMember(
                    id=company_id,
                    name=first.name,
                    rows=tuple(e.row_number for e in seen),
                    status=first.status,
                    assigned_to=first.assigned_to,
                    remarks=first.remarks,
                    contacts=tuple(contacts.get(company_id, ())) if contacts else (),
                )
            )
        groups.append(DuplicateGroup(normalized_name=key, members=tuple(members)))
    return groups
