from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from ..models.row_data import CandidateRecord

"""Identifier allocation for candidate records without an identifier.

The counter is an immutable value threaded through the computation: allocate() returns
the new token together with the advanced counter. It starts one past the highest
structured identifier observed anywhere in the source (legend and header rows
included) and skips any rendered token that was already observed, so an allocated
identifier never collides with an existing one.

This is a one-shot allocator. Re-running after the store has changed re-derives the
start value from the data; nothing is persisted between runs.
"""

__all__ = [
    "IdentifierCounter",
    "structured_pattern",
    "parse_structured_id",
    "format_structured_id",
    "scan_max_identifier",
    "allocate_missing",
]


def structured_pattern(prefix: str, width: int = 4) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}-(\d{{{width},}})$")


def parse_structured_id(token: str, prefix: str, width: int = 4) -> int | None:
    """Numeric part of ``PREFIX-NNNN``; None for free-form tokens or values below 1."""
    m = structured_pattern(prefix, width).match(token.strip())
    if not m:
        return None
    value = int(m.group(1))
    return value if value >= 1 else None


def format_structured_id(value: int, prefix: str, width: int = 4) -> str:
    return f"{prefix}-{value:0{width}d}"


@dataclass(frozen=True)
class IdentifierCounter:
    next_value: int
    prefix: str = "ME"
    width: int = 4
    reserved: frozenset[str] = field(default_factory=frozenset)  # every token seen in the source

    def allocate(self) -> tuple[str, IdentifierCounter]:
        value = self.next_value
        token = format_structured_id(value, self.prefix, self.width)
        while token in self.reserved:
            value += 1
            token = format_structured_id(value, self.prefix, self.width)
        return token, IdentifierCounter(
            next_value=value + 1,
            prefix=self.prefix,
            width=self.width,
            reserved=self.reserved,
        )


def scan_max_identifier(
    identifiers: Iterable[str],
    prefix: str = "ME",
    width: int = 4,
) -> IdentifierCounter:
    """Pre-pass: counter initialised from every identifier cell in the source."""
    seen: set[str] = set()
    highest = 0
    for raw in identifiers:
        token = raw.strip()
        if not token:
            continue
        seen.add(token)
        value = parse_structured_id(token, prefix, width)
        if value is not None and value > highest:
            highest = value
    return IdentifierCounter(
        next_value=max(highest + 1, 1),
        prefix=prefix,
        width=width,
        reserved=frozenset(seen),
    )


def allocate_missing(
    records: Sequence[CandidateRecord],
    counter: IdentifierCounter,
) -> tuple[list[CandidateRecord], IdentifierCounter]:
    """Give every record lacking an identifier a fresh one, in input order."""
    out: list[CandidateRecord] = []
    for record in records:
        if record.identifier:
            out.append(record)
            continue
        token, counter = counter.allocate()
        out.append(record.with_identifier(token))
    return out, counter
