from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Any

from ..models.config_models import ClassificationConfig, IdentifierConfig, ProjectionConfig
from ..models.error_record import utc_timestamp
from ..models.processing_result import ProjectionResult
from ..models.row_data import CandidateRecord, Classification, RowClass
from ..models.tracker_record import TrackerRecord
from .allocator import scan_max_identifier
from .classifier import build_rules, classify_row
from .columns import ColumnMap, DATABASE_LAYOUT, resolve_columns
from .duplicates import normalize_name

"""Tracker projection: many contact rows per company -> one TrackerRecord per id.

Rows are processed strictly in sheet order. The first candidate row seen for an id
seeds its TrackerRecord (first-write-wins). Fields listed in
ProjectionConfig.last_write_fields instead take the latest non-empty value within the
id group. Missing identifiers are allocated before grouping, so a nameless-id row never
merges into another company.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "build_projection",
    "parse_count",
]


def parse_count(text: str) -> int:
    """Lenient integer parse for counters typed by hand ("3", "3.0", "" -> 0)."""
    text = text.strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            return 0


def _row_values(record: CandidateRecord) -> dict[str, Any]:
    """TrackerRecord field values this row provides, without defaults ("" when absent)."""
    return {
        "status": record.attribute("status"),
        "previous_response": record.attribute("previous_response"),
        "assigned_to": record.attribute("assigned_to"),
        "last_contact": record.attribute("last_updated"),
        "follow_up_count": parse_count(record.attribute("follow_ups")),
        "remarks": record.attribute("remark"),
        "last_update": record.attribute("last_updated"),
    }


def _seed(record: CandidateRecord, cfg: ProjectionConfig, now: str) -> TrackerRecord:
    values = _row_values(record)
    return TrackerRecord(
        id=record.identifier or "",
        name=record.name,
        status=values["status"] or cfg.default_status,
        urgency_score=0,
        previous_response=values["previous_response"],
        assigned_to=values["assigned_to"],
        last_contact=values["last_contact"],
        follow_up_count=values["follow_up_count"],
        sponsorship_tier="",
        remarks=values["remarks"],
        last_update=values["last_update"] or now,
    )


def _merge_latest(existing: TrackerRecord, record: CandidateRecord, fields: Sequence[str]) -> TrackerRecord:
    values = _row_values(record)
    updates = {f: values[f] for f in fields if values.get(f)}
    return replace(existing, **updates) if updates else existing


def build_projection(
    rows: Sequence[Sequence[str]],
    classification: ClassificationConfig | None = None,
    projection: ProjectionConfig | None = None,
    identifier: IdentifierConfig | None = None,
    columns: ColumnMap | None = None,
    now: str | None = None,
    on_row: Callable[[Classification], None] | None = None,
) -> ProjectionResult:
    """Classify, allocate and collapse ``rows`` into TrackerRecords. Pure apart from logging.

    Args:
        rows: Raw rows of the company database, header row included
        columns: Column mapping; resolved from rows[0] when omitted
        now: Timestamp used for last_update when a company has none (default: current UTC)
        on_row: Called once per classified row (progress display)
    """
    classification = classification or ClassificationConfig()
    projection = projection or ProjectionConfig()
    identifier = identifier or IdentifierConfig()
    columns = columns or resolve_columns(rows[0] if rows else None, DATABASE_LAYOUT)
    now = now or utc_timestamp()
    last_write = tuple(f for f in projection.last_write_fields if f not in ("id", "name"))

    # Pre-pass over every row, skipped ones included.
    counter = scan_max_identifier(
        (columns.get(row, "identifier") for row in rows),
        prefix=identifier.prefix,
        width=identifier.width,
    )
    start_value = counter.next_value

    rules = build_rules(classification)
    classifications: list[Classification] = []
    companies: dict[str, TrackerRecord] = {}
    names: set[str] = set()
    allocated = 0

    for index, row in enumerate(rows):
        result = classify_row(row, index, rules, columns)
        record = result.record
        if result.row_class is RowClass.CANDIDATE and record is not None:
            if not record.identifier:
                token, counter = counter.allocate()
                record = record.with_identifier(token)
                result = replace(result, record=record)
                allocated += 1
                logger.debug("row=%d allocated id=%s name=%s", index + 1, token, record.name)

            names.add(normalize_name(record.name))
            company_id = record.identifier or ""
            if company_id not in companies:
                companies[company_id] = _seed(record, projection, now)
            elif last_write:
                companies[company_id] = _merge_latest(companies[company_id], record, last_write)
        else:
            logger.debug("row=%d skipped class=%s reason=%s", index + 1, result.row_class.value, result.reason)

        classifications.append(result)
        if on_row is not None:
            on_row(result)

    warnings: list[str] = []
    if len(names) != len(companies):
        warnings.append(
            f"company id count ({len(companies)}) differs from company name count ({len(names)})"
        )
        logger.warning(warnings[-1])

    logger.debug(
        "projection rows=%d companies=%d allocated=%d counter_start=%d counter_next=%d",
        len(rows), len(companies), allocated, start_value, counter.next_value,
    )
    return ProjectionResult(
        companies=list(companies.values()),
        classifications=classifications,
        allocated=allocated,
        next_identifier=counter.next_value,
        unique_names=len(names),
        warnings=warnings,
    )
