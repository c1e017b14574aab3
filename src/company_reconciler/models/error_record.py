from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""SkipRecord model for the skipped-row log.

Skipped rows (header, legend, empty) are not failures; each one is recorded with the
rule that matched so an operator can audit what the projection left out. Run-level
failures (missing source sheet, store unavailable) use row=-1.
"""

__all__ = [
    "SkipRecord",
    "utc_timestamp",
]


def utc_timestamp() -> str:
    """ISO8601 UTC timestamp with 'Z' suffix."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class SkipRecord:
    """Structured record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        sheet: Sheet tab the row was read from
        row: 1-based sheet row. Use -1 for run-level records
        kind: HEADER / LEGEND / EMPTY, or an UPPER_SNAKE failure kind
        reason: Matched rule or failure message
    """
    timestamp: str
    sheet: str
    row: int
    kind: str
    reason: str

    @staticmethod
    def create(sheet: str, row: int, kind: str, reason: str) -> SkipRecord:
        return SkipRecord(
            timestamp=utc_timestamp(),
            sheet=sheet,
            row=row,
            kind=kind,
            reason=reason,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
