from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .row_data import Classification, RowClass
from .tracker_record import TrackerRecord

"""Result models for projection and the operation runs built around it.

ProjectionResult is the pure output of the projection builder. RunResult wraps any
operation (projection, scans, migrations) with its counts and timing and renders the
JSON document handed to the dashboard.
"""


@dataclass(frozen=True)
class ProjectionResult:
    """One TrackerRecord per distinct id, plus the bookkeeping of how they were built."""
    companies: list[TrackerRecord]
    classifications: list[Classification]
    allocated: int  # identifiers handed out by the allocator
    next_identifier: int  # counter value after the last allocation
    unique_names: int  # distinct company names among candidate rows
    warnings: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return sum(1 for c in self.classifications if c.row_class is RowClass.CANDIDATE)

    @property
    def skipped(self) -> int:
        return sum(1 for c in self.classifications if c.row_class.skipped)

    def skipped_by_class(self) -> dict[str, int]:
        counts = {rc.value: 0 for rc in RowClass if rc.skipped}
        for c in self.classifications:
            if c.row_class.skipped:
                counts[c.row_class.value] += 1
        return counts

    @property
    def name_id_mismatch(self) -> bool:
        return self.unique_names != len(self.companies)


@dataclass(frozen=True)
class RunCounts:
    processed: int = 0
    skipped: int = 0
    allocated: int = 0
    changed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "skipped": self.skipped,
            "allocated": self.allocated,
            "changed": self.changed,
        }


@dataclass(frozen=True)
class RunResult:
    """Aggregated result of one CLI operation (success path only).

    payload holds the operation-specific JSON sections (companies, duplicates, gaps,
    changes) already converted to plain dicts/lists.
    """
    operation: str
    counts: RunCounts
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    payload: dict[str, Any] = field(default_factory=dict)
    dry_run: bool = False
    warnings: list[str] = field(default_factory=list)

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {
            "success": True,
            "operation": self.operation,
            "dryRun": self.dry_run,
            "counts": self.counts.to_dict(),
        }
        if self.warnings:
            doc["warnings"] = list(self.warnings)
        doc.update(self.payload)
        return doc


def failure_document(message: str) -> dict[str, Any]:
    """Single failure message; partial results are never reported."""
    return {"success": False, "message": message}
