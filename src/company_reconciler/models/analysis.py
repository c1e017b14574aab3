from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Read-only analytical views: duplicate groups and identifier gap reports.

Both are recomputed on demand and never written back as authoritative state.
"""

__all__ = [
    "ContactSummary",
    "DuplicateMember",
    "DuplicateGroup",
    "IdentifierGapReport",
    "IdChange",
]


@dataclass(frozen=True)
class ContactSummary:
    """One contact row of the company database, attached to tracker duplicate members."""
    contact_id: str  # "contact-<company id>-<row index>", stable while the sheet is unchanged
    row_number: int  # 1-based sheet row
    name: str = ""
    role: str = ""
    email: str = ""
    phone: str = ""
    remark: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "uniqueId": self.contact_id,
            "rowNumber": self.row_number,
            "name": self.name,
            "role": self.role,
            "email": self.email,
            "phone": self.phone,
            "remark": self.remark,
        }


@dataclass(frozen=True)
class DuplicateMember:
    id: str
    name: str  # name as first seen for this id
    rows: tuple[int, ...]  # 1-based sheet rows where this id was seen under the name
    status: str = ""
    assigned_to: str = ""
    remarks: str = ""
    contacts: tuple[ContactSummary, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "rows": list(self.rows),
            "status": self.status,
            "assignedTo": self.assigned_to,
            "remarks": self.remarks,
            "contacts": [c.to_dict() for c in self.contacts],
        }


@dataclass(frozen=True)
class DuplicateGroup:
    """Probable duplicate: one normalized name held by two or more distinct ids."""
    normalized_name: str
    members: tuple[DuplicateMember, ...]

    @property
    def ids(self) -> list[str]:
        return [m.id for m in self.members]

    def to_dict(self) -> dict[str, Any]:
        return {
            "normalizedName": self.normalized_name,
            "count": len(self.members),
            "members": [m.to_dict() for m in self.members],
        }


@dataclass(frozen=True)
class IdentifierGapReport:
    min_id: int
    max_id: int
    missing: list[str] = field(default_factory=list)
    total_known: int = 0  # distinct structured identifiers

    def to_dict(self) -> dict[str, Any]:
        return {
            "minId": self.min_id,
            "maxId": self.max_id,
            "missing": list(self.missing),
            "count": len(self.missing),
            "totalKnown": self.total_known,
        }


@dataclass(frozen=True)
class IdChange:
    old_id: str
    new_id: str

    def to_dict(self) -> dict[str, str]:
        return {"oldId": self.old_id, "newId": self.new_id}
