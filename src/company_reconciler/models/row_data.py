from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

"""Row-level domain models for the company database sheet.

A RawRow is just ``list[str]`` (ordered cell text). Classifying a raw row yields a
Classification; rows that describe a company additionally carry a CandidateRecord.
"""

__all__ = [
    "RawRow",
    "RowClass",
    "CandidateRecord",
    "Classification",
]

RawRow = list[str]


class RowClass(Enum):
    """Outcome of row classification.

    Precedence when several rules match: EMPTY > HEADER > LEGEND > CANDIDATE.
    """
    HEADER = "header"
    LEGEND = "legend"
    EMPTY = "empty"
    CANDIDATE = "candidate"

    @property
    def skipped(self) -> bool:
        return self is not RowClass.CANDIDATE


@dataclass(frozen=True)
class CandidateRecord:
    """A row that names a company, before or after identifier allocation.

    row_index is the 0-based position in the sheet range that was read; it is kept
    for audit output (duplicate member rows, skip log) only.
    """
    identifier: str | None  # None until the allocator assigns one
    name: str  # trimmed, never empty
    row_index: int
    attributes: dict[str, str] = field(default_factory=dict)  # semantic field -> cell text
    allocated: bool = False  # True when identifier came from the allocator

    def with_identifier(self, identifier: str) -> CandidateRecord:
        return replace(self, identifier=identifier, allocated=True)

    def attribute(self, name: str) -> str:
        return self.attributes.get(name, "")


@dataclass(frozen=True)
class Classification:
    row_index: int
    row_class: RowClass
    reason: str  # rule name that matched, e.g. "legend marker in name"
    record: CandidateRecord | None = None
