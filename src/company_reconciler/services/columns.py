from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from ..models.config_models import ColumnOverrides
from ..models.tracker_record import TRACKER_FIELDS

"""Column-name to semantic-field mapping.

Column positions are resolved once per sheet from its header row: a field maps to
the first header cell matching one of its aliases (case-insensitive, trimmed). Without
a header every field takes the fixed position of the layout. With one, an unmatched
field keeps its fixed position only while the header cell there is blank or absent;
otherwise it is unmapped (index -1) and reads as "".
"""

__all__ = [
    "ColumnLayout",
    "ColumnMap",
    "DATABASE_LAYOUT",
    "TRACKER_LAYOUT",
    "resolve_columns",
]


def _fold(text: str) -> str:
    return text.strip().casefold()


@dataclass(frozen=True)
class ColumnLayout:
    """Built-in layout: field -> (fallback position, header aliases)."""
    fields: dict[str, tuple[int, tuple[str, ...]]]

    def with_overrides(self, overrides: ColumnOverrides | None) -> ColumnLayout:
        if overrides is None:
            return self
        merged = dict(self.fields)
        for name in set(overrides.aliases) | set(overrides.positions):
            pos, aliases = merged.get(name, (-1, ()))
            merged[name] = (
                overrides.positions.get(name, pos),
                tuple(overrides.aliases.get(name, aliases)),
            )
        return ColumnLayout(fields=merged)


# Company database ("AUTOMATION ONLY" tab): one row per contact.
DATABASE_LAYOUT = ColumnLayout(
    fields={
        "identifier": (0, ("No.", "Company ID", "ID")),
        "name": (1, ("Company Name", "Company")),
        "discipline": (2, ("Discipline",)),
        "target_tier": (3, ("Target Sponsorship Tier", "Target Tier")),
        "previous_response": (4, ("Previous Response",)),
        "contact_name": (5, ("Contact Name", "Name")),
        "role": (6, ("Role", "Position")),
        "email": (7, ("Email",)),
        "phone": (8, ("Phone", "Phone Number")),
        "landline": (9, ("Landline",)),
        "linkedin": (10, ("LinkedIn",)),
        "remark": (12, ("Remark", "Remarks")),
        "assigned_to": (13, ("PIC", "Assigned PIC")),
        "last_updated": (14, ("Last Updated", "Last Update")),
        "status": (15, ("Status",)),
        "follow_ups": (16, ("Follow Ups Completed", "Follow-up Count")),
    }
)

TRACKER_LAYOUT = ColumnLayout(
    fields={attr: (pos, (header,)) for pos, (attr, header, _) in enumerate(TRACKER_FIELDS)}
)


@dataclass(frozen=True)
class ColumnMap:
    positions: dict[str, int]
    matched: frozenset[str] = field(default_factory=frozenset)  # fields resolved by header

    @property
    def from_header(self) -> bool:
        return bool(self.matched)

    def index(self, name: str) -> int:
        return self.positions.get(name, -1)

    def get(self, row: Sequence[str], name: str) -> str:
        idx = self.positions.get(name, -1)
        if 0 <= idx < len(row):
            value = row[idx]
            return value if isinstance(value, str) else str(value)
        return ""

    def extract(self, row: Sequence[str], exclude: Sequence[str] = ()) -> dict[str, str]:
        """All mapped fields of ``row`` with non-blank values, trimmed."""
        out: dict[str, str] = {}
        for name in self.positions:
            if name in exclude:
                continue
            value = self.get(row, name).strip()
            if value:
                out[name] = value
        return out


def resolve_columns(
    header: Sequence[str] | None,
    layout: ColumnLayout,
    overrides: ColumnOverrides | None = None,
) -> ColumnMap:
    layout = layout.with_overrides(overrides)
    positions: dict[str, int] = {}
    matched: set[str] = set()
    folded = [_fold(h) if isinstance(h, str) else "" for h in (header or [])]
    for name, (_, aliases) in layout.fields.items():
        for alias in aliases:
            key = _fold(alias)
            if key in folded:
                positions[name] = folded.index(key)
                matched.add(name)
                break

    claimed = set(positions.values())
    for name, (fallback, _) in layout.fields.items():
        if name in matched:
            continue
        if not matched:
            positions[name] = fallback
        elif fallback >= 0 and fallback not in claimed and (fallback >= len(folded) or not folded[fallback]):
            positions[name] = fallback
        else:
            positions[name] = -1
    return ColumnMap(positions=positions, matched=frozenset(matched))
