from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

"""TrackerRecord: the one-row-per-company projection written to the outreach tracker.

Column order of TRACKER_HEADER is the order the tracker sheet is written in; the
reader resolves columns by header name and only falls back to these positions when a
header cell is missing.
"""

__all__ = [
    "TrackerRecord",
    "TRACKER_FIELDS",
    "TRACKER_HEADER",
    "DEFAULT_STATUS",
]

DEFAULT_STATUS = "To Contact"

# (field name, tracker header, JSON key)
TRACKER_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("id", "Company ID", "id"),
    ("name", "Company Name", "name"),
    ("status", "Status", "status"),
    ("urgency_score", "Urgency Score", "urgencyScore"),
    ("previous_response", "Previous Response", "previousResponse"),
    ("assigned_to", "Assigned PIC", "assignedTo"),
    ("last_contact", "Last Contact", "lastContact"),
    ("follow_up_count", "Follow-up Count", "followUpCount"),
    ("sponsorship_tier", "Sponsorship Tier", "sponsorshipTier"),
    ("remarks", "Remarks", "remarks"),
    ("last_update", "Last Update", "lastUpdate"),
)

TRACKER_HEADER: list[str] = [header for _, header, _ in TRACKER_FIELDS]


@dataclass(frozen=True)
class TrackerRecord:
    """Canonical projection of one company (unique by id within a projection)."""
    id: str
    name: str
    status: str = DEFAULT_STATUS
    urgency_score: int = 0
    previous_response: str = ""
    assigned_to: str = ""
    last_contact: str = ""  # timestamp text as found in the store, or ""
    follow_up_count: int = 0
    sponsorship_tier: str = ""
    remarks: str = ""
    last_update: str = ""  # timestamp text; projection fills the run time when absent
    row_index: int | None = None  # position in the tracker sheet when read back

    def with_status(self, status: str) -> TrackerRecord:
        return replace(self, status=status)

    def to_row(self) -> list[Any]:
        """Values in TRACKER_HEADER order, ready for a sheet write."""
        return [getattr(self, attr) for attr, _, _ in TRACKER_FIELDS]

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, _, key in TRACKER_FIELDS}
