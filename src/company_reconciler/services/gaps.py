from __future__ import annotations

from collections.abc import Iterable

from ..models.analysis import IdChange, IdentifierGapReport
from .allocator import format_structured_id, parse_structured_id

"""Identifier gap analysis and renumbering.

Only structured identifiers (``PREFIX-NNNN``) take part; free-form tokens are left
out of the analysis without being reported as errors.
"""

__all__ = [
    "scan_gaps",
    "plan_renumbering",
]


def scan_gaps(identifiers: Iterable[str], prefix: str = "ME", width: int = 4) -> IdentifierGapReport:
    numbers: set[int] = set()
    for token in identifiers:
        value = parse_structured_id(token, prefix, width)
        if value is not None:
            numbers.add(value)
    if not numbers:
        return IdentifierGapReport(min_id=0, max_id=0, missing=[], total_known=0)

    lo, hi = min(numbers), max(numbers)
    missing = [format_structured_id(n, prefix, width) for n in range(lo, hi + 1) if n not in numbers]
    return IdentifierGapReport(min_id=lo, max_id=hi, missing=missing, total_known=len(numbers))


def plan_renumbering(identifiers: Iterable[str], prefix: str = "ME", width: int = 4) -> list[IdChange]:
    """Map distinct identifiers onto ``PREFIX-0001..`` consecutively.

    Identifiers are ordered by their structured number; free-form tokens count as 0
    and therefore come first, in first-seen order. Only identifiers whose token changes
    are returned.
    """
    distinct: list[str] = []
    seen: set[str] = set()
    for raw in identifiers:
        token = raw.strip()
        if token and token not in seen:
            seen.add(token)
            distinct.append(token)

    ordered = sorted(distinct, key=lambda t: parse_structured_id(t, prefix, width) or 0)
    changes: list[IdChange] = []
    for position, old in enumerate(ordered, start=1):
        new = format_structured_id(position, prefix, width)
        if old != new:
            changes.append(IdChange(old_id=old, new_id=new))
    return changes
