from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..excel.ranges import RangeRef, cell_ref
from ..excel.store import (
    MissingSourceError,
    ReconcileError,
    StoreUnavailableError,
    WorkbookStore,
    locate_sheet,
)
from ..excel.writer import CellUpdate
from ..logging.error_log import SkipLogBuffer, SkipRecord
from ..models.analysis import IdChange
from ..models.config_models import ReconcilerConfig, WorkbookConfig
from ..models.processing_result import ProjectionResult, RunCounts, RunResult
from ..models.row_data import CandidateRecord, Classification
from ..models.tracker_record import TRACKER_FIELDS, TRACKER_HEADER
from .classifier import classify_rows
from .columns import DATABASE_LAYOUT, TRACKER_LAYOUT, ColumnMap, resolve_columns
from .duplicates import contacts_by_company, entries_from_candidates, entries_from_tracker, group_duplicates
from .gaps import plan_renumbering, scan_gaps
from .progress import ProgressTracker
from .projection import build_projection
from .status_migration import plan_status_migration
from .tracker_sheet import parse_tracker_rows, to_sheet_rows
from .tracker_sync import SyncPlan, database_companies, entries_from_tracker_rows, plan_tracker_sync

"""Operation orchestration.

Each ``run_*`` function is one CLI command: read everything it needs from the
workbooks, compute with the pure services, and (for the writing commands) issue its
writes at the very end. A ReconcileError anywhere aborts the run before any write;
skipped rows and the run-level failure, if any, are flushed to the skip log once.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_TRACKER_SHEET",
    "run_projection",
    "run_duplicate_scan",
    "run_tracker_duplicate_scan",
    "run_gap_scan",
    "run_renumber",
    "run_status_migration",
    "run_tracker_sync",
]

DEFAULT_TRACKER_SHEET = "Outreach Tracker"

_FAILURE_KINDS = {
    MissingSourceError: "MISSING_SOURCE",
    StoreUnavailableError: "STORE_UNAVAILABLE",
}


@dataclass(frozen=True)
class _SheetData:
    """Rows of one located sheet plus where they sit in it."""
    store: WorkbookStore
    sheet: str
    origin: RangeRef  # range the rows were read from
    rows: list[list[str]]

    @property
    def first_row(self) -> int:
        """1-based sheet row of rows[0]."""
        return self.origin.min_row

    def cell(self, row_index: int, col_index: int) -> str:
        return cell_ref(self.sheet, row_index + self.origin.min_row - 1, col_index + self.origin.min_col - 1)


def _read_database(config: ReconcilerConfig) -> _SheetData:
    cfg = config.database
    store = WorkbookStore(cfg.workbook)
    sheet = locate_sheet(
        store.sheet_names(),
        sheet=cfg.sheet,
        marker=cfg.sheet_marker,
        fallback_to_first=cfg.fallback_to_first_sheet,
    )
    rows = store.read_rows(sheet, cfg.cells)
    logger.info(f"database: {store.path.name}!{sheet} rows={len(rows)}")
    return _SheetData(store, sheet, RangeRef.parse(cfg.cells, sheet=sheet), rows)


def _read_tracker(cfg: WorkbookConfig) -> _SheetData:
    store = WorkbookStore(cfg.workbook)
    sheet = locate_sheet(store.sheet_names(), sheet=cfg.sheet)
    rows = store.read_rows(sheet, cfg.cells)
    logger.info(f"tracker: {store.path.name}!{sheet} rows={len(rows)}")
    return _SheetData(store, sheet, RangeRef.parse(cfg.cells, sheet=sheet), rows)


def _tracker_target(cfg: WorkbookConfig) -> tuple[WorkbookStore, str]:
    """Tab the projection is written to; a missing workbook is created on write."""
    store = WorkbookStore(cfg.workbook)
    if cfg.sheet is not None:
        return store, cfg.sheet
    if store.exists:
        return store, locate_sheet(store.sheet_names())
    return store, DEFAULT_TRACKER_SHEET


def _database_columns(config: ReconcilerConfig, data: _SheetData) -> ColumnMap:
    return resolve_columns(data.rows[0] if data.rows else None, DATABASE_LAYOUT, config.database_columns)


def _record_skips(skip_log: SkipLogBuffer, data: _SheetData, classifications: list[Classification]) -> None:
    for c in classifications:
        if c.row_class.skipped:
            skip_log.append(
                SkipRecord.create(
                    sheet=data.sheet,
                    row=c.row_index + data.first_row,
                    kind=c.row_class.name,
                    reason=c.reason,
                )
            )


def _candidates(classifications: list[Classification]) -> list[CandidateRecord]:
    return [c.record for c in classifications if c.record is not None]


@contextmanager
def _skip_log(config: ReconcilerConfig) -> Iterator[SkipLogBuffer]:
    """Skip log for one run. A ReconcileError is recorded with row=-1 and re-raised."""
    buffer = SkipLogBuffer(config.log_directory)
    try:
        yield buffer
    except ReconcileError as e:
        kind = _FAILURE_KINDS.get(type(e), "RECONCILE_ERROR")
        buffer.append(SkipRecord.create(sheet="<RUN>", row=-1, kind=kind, reason=str(e)))
        raise
    finally:
        try:
            path = buffer.flush()
        except OSError as e:
            logger.warning(f"skip log not written: {e}")
        else:
            if path is not None:
                logger.info(f"skip log: {path}")


def _result(
    operation: str,
    start_time: datetime,
    counts: RunCounts,
    payload: dict[str, Any],
    *,
    dry_run: bool = False,
    warnings: list[str] | None = None,
) -> RunResult:
    end_time = datetime.now(UTC)
    return RunResult(
        operation=operation,
        counts=counts,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        payload=payload,
        dry_run=dry_run,
        warnings=list(warnings or []),
    )


def _project(config: ReconcilerConfig, data: _SheetData) -> ProjectionResult:
    with ProgressTracker(len(data.rows)) as progress:
        return build_projection(
            data.rows,
            classification=config.classification,
            projection=config.projection,
            identifier=config.identifier,
            columns=_database_columns(config, data),
            on_row=progress,
        )


def _projection_counts(result: ProjectionResult, changed: int = 0) -> RunCounts:
    return RunCounts(
        processed=result.processed,
        skipped=result.skipped,
        allocated=result.allocated,
        changed=changed,
    )


def run_projection(config: ReconcilerConfig, dry_run: bool = False) -> RunResult:
    """Rebuild the tracker from the company database.

    The tracker tab (columns A:K) is cleared and rewritten in one save. Allocated
    identifiers exist only in the tracker output; the company database is not touched.
    """
    start_time = datetime.now(UTC)
    with _skip_log(config) as skip_log:
        data = _read_database(config)
        result = _project(config, data)
        _record_skips(skip_log, data, result.classifications)
        logger.info(
            f"projection companies={len(result.companies)} allocated={result.allocated} "
            f"skipped={result.skipped_by_class()}"
        )

        store, sheet = _tracker_target(config.tracker)
        if dry_run:
            logger.info(f"dry-run: tracker {store.path.name}!{sheet} not written")
        else:
            tracker_columns = RangeRef(sheet=None, min_col=1, min_row=1, max_col=len(TRACKER_HEADER))
            written = store.write_rows(sheet, "A1", to_sheet_rows(result.companies), clear=tracker_columns.to_a1())
            logger.info(f"tracker written: {store.path.name}!{sheet} cells={written.cells_written}")

    return _result(
        "project",
        start_time,
        _projection_counts(result, changed=len(result.companies)),
        {"companies": [c.to_dict() for c in result.companies]},
        dry_run=dry_run,
        warnings=result.warnings,
    )


def run_duplicate_scan(config: ReconcilerConfig) -> RunResult:
    """Duplicate groups over the company database, allocated identifiers included."""
    start_time = datetime.now(UTC)
    with _skip_log(config) as skip_log:
        data = _read_database(config)
        result = _project(config, data)
        _record_skips(skip_log, data, result.classifications)
        groups = group_duplicates(entries_from_candidates(_candidates(result.classifications), data.first_row))
        logger.info(f"duplicate groups={len(groups)}")

    return _result(
        "duplicates",
        start_time,
        _projection_counts(result),
        {"duplicates": [g.to_dict() for g in groups]},
        warnings=result.warnings,
    )


def run_tracker_duplicate_scan(config: ReconcilerConfig) -> RunResult:
    """Duplicate groups over the tracker, each member with its database contacts."""
    start_time = datetime.now(UTC)
    with _skip_log(config):
        tracker = _read_tracker(config.tracker)
        records = parse_tracker_rows(tracker.rows, config.tracker_columns)
        database = _read_database(config)
        contacts = contacts_by_company(database.rows, _database_columns(config, database), database.first_row)
        groups = group_duplicates(entries_from_tracker(records, tracker.first_row), contacts)
        logger.info(f"tracker duplicate groups={len(groups)} companies={len(records)}")

    return _result(
        "tracker-duplicates",
        start_time,
        RunCounts(processed=len(records)),
        {"duplicates": [g.to_dict() for g in groups]},
    )


def run_gap_scan(config: ReconcilerConfig) -> RunResult:
    start_time = datetime.now(UTC)
    with _skip_log(config) as skip_log:
        data = _read_database(config)
        classifications = classify_rows(data.rows, config.classification, _database_columns(config, data))
        _record_skips(skip_log, data, classifications)
        candidates = _candidates(classifications)
        report = scan_gaps(
            (r.identifier for r in candidates if r.identifier),
            prefix=config.identifier.prefix,
            width=config.identifier.width,
        )
        logger.info(f"gaps min={report.min_id} max={report.max_id} missing={len(report.missing)}")

    return _result(
        "gaps",
        start_time,
        RunCounts(processed=len(candidates), skipped=len(classifications) - len(candidates)),
        {"gaps": report.to_dict()},
    )


def _id_updates(data: _SheetData, column: int, mapping: dict[str, str], row_indexes: list[int]) -> list[CellUpdate]:
    if column < 0:
        return []
    updates: list[CellUpdate] = []
    for index in row_indexes:
        row = data.rows[index]
        old = row[column].strip() if column < len(row) else ""
        if old in mapping:
            updates.append(CellUpdate(data.cell(index, column), mapping[old]))
    return updates


def run_renumber(config: ReconcilerConfig, dry_run: bool = False) -> RunResult:
    """Close identifier gaps: renumber the company database and the tracker.

    Blank identifiers are left blank (the projection allocates them). Each workbook
    gets a single batch update; nothing is written when no identifier changes.
    """
    start_time = datetime.now(UTC)
    warnings: list[str] = []
    with _skip_log(config) as skip_log:
        data = _read_database(config)
        columns = _database_columns(config, data)
        classifications = classify_rows(data.rows, config.classification, columns)
        _record_skips(skip_log, data, classifications)
        candidates = _candidates(classifications)
        identified = [r for r in candidates if r.identifier]

        changes: list[IdChange] = plan_renumbering(
            (r.identifier or "" for r in identified),
            prefix=config.identifier.prefix,
            width=config.identifier.width,
        )
        mapping = {c.old_id: c.new_id for c in changes}
        database_updates = _id_updates(data, columns.index("identifier"), mapping, [r.row_index for r in identified])

        tracker_updates: list[CellUpdate] = []
        tracker: _SheetData | None = None
        if WorkbookStore(config.tracker.workbook).exists:
            tracker = _read_tracker(config.tracker)
            tracker_columns = resolve_columns(tracker.rows[0] if tracker.rows else None, TRACKER_LAYOUT, config.tracker_columns)
            records = parse_tracker_rows(tracker.rows, config.tracker_columns)
            tracker_updates = _id_updates(
                tracker, tracker_columns.index("id"), mapping, [r.row_index for r in records if r.row_index is not None]
            )
        else:
            warnings.append(f"tracker workbook not found: {config.tracker.workbook}")
            logger.warning(warnings[-1])

        logger.info(
            f"renumber changes={len(changes)} database_cells={len(database_updates)} "
            f"tracker_cells={len(tracker_updates)}"
        )
        if not changes:
            logger.info("identifiers already consecutive; nothing to write")
        elif dry_run:
            logger.info("dry-run: no workbook written")
        else:
            if database_updates:
                data.store.batch_update(database_updates)
            if tracker is not None and tracker_updates:
                tracker.store.batch_update(tracker_updates)

    return _result(
        "renumber",
        start_time,
        RunCounts(
            processed=len(candidates),
            skipped=len(classifications) - len(candidates),
            changed=len(changes),
        ),
        {"changes": [c.to_dict() for c in changes]},
        dry_run=dry_run,
        warnings=warnings,
    )


def run_status_migration(config: ReconcilerConfig, dry_run: bool = False) -> RunResult:
    """Rewrite deprecated statuses on the tracker as one sparse batch update."""
    start_time = datetime.now(UTC)
    with _skip_log(config):
        tracker = _read_tracker(config.tracker)
        plan = plan_status_migration(
            tracker.rows,
            sheet=tracker.sheet,
            header_name=config.status_migration.header,
            fallback_column=config.status_migration.fallback_column,
            row_offset=tracker.origin.min_row - 1,
            col_offset=tracker.origin.min_col - 1,
        )
        if not plan.header_found:
            logger.warning(
                f"status header '{config.status_migration.header}' not found; "
                f"using column index {plan.status_column}"
            )
        logger.info(f"status migration changes={plan.changed}")
        if plan.changed and dry_run:
            logger.info("dry-run: tracker not written")
        elif plan.changed:
            tracker.store.batch_update(plan.updates)

    return _result(
        "migrate-statuses",
        start_time,
        RunCounts(processed=max(len(tracker.rows) - plan.start_row, 0), changed=plan.changed),
        {"changes": [c.to_dict() for c in plan.changes]},
        dry_run=dry_run,
    )


def _sync_updates(tracker: _SheetData, columns: ColumnMap, plan: SyncPlan) -> list[CellUpdate]:
    id_col, name_col = columns.index("id"), columns.index("name")
    if id_col < 0 or name_col < 0:
        raise MissingSourceError(f"tracker {tracker.sheet} has no Company ID / Company Name column")

    updates = [CellUpdate(tracker.cell(f.row_number - tracker.first_row, name_col), f.new_name) for f in plan.name_fixes]
    updates.extend(CellUpdate(tracker.cell(f.row_number - tracker.first_row, id_col), f.new_id) for f in plan.id_fixes)

    next_row = len(tracker.rows)
    appended = [r.to_row() for r in plan.added]
    if appended and next_row == 0:
        appended.insert(0, TRACKER_HEADER)
    for offset, values in enumerate(appended):
        for (attr, _, _), value in zip(TRACKER_FIELDS, values):
            column = columns.index(attr)
            if column >= 0:
                updates.append(CellUpdate(tracker.cell(next_row + offset, column), value))
    return updates


def run_tracker_sync(config: ReconcilerConfig, dry_run: bool = False) -> RunResult:
    """Bring an existing tracker in line with the company database without rewriting it.

    Ids and names of matched tracker rows are corrected and new companies appended
    below the last row, all in one batch update. Duplicate tracker rows and companies
    missing from the database are reported only.
    """
    start_time = datetime.now(UTC)
    with _skip_log(config) as skip_log:
        data = _read_database(config)
        classifications = classify_rows(data.rows, config.classification, _database_columns(config, data))
        _record_skips(skip_log, data, classifications)
        companies = database_companies(_candidates(classifications))

        tracker = _read_tracker(config.tracker)
        columns = resolve_columns(tracker.rows[0] if tracker.rows else None, TRACKER_LAYOUT, config.tracker_columns)
        plan = plan_tracker_sync(companies, entries_from_tracker_rows(tracker.rows, columns, tracker.first_row))
        updates = _sync_updates(tracker, columns, plan)
        logger.info(
            f"sync added={len(plan.added)} names={len(plan.name_fixes)} ids={len(plan.id_fixes)} "
            f"duplicates={len(plan.duplicate_rows)} missing_in_database={len(plan.missing_in_database)}"
        )
        if not updates:
            logger.info("tracker already in sync; nothing to write")
        elif dry_run:
            logger.info("dry-run: tracker not written")
        else:
            written = tracker.store.batch_update(updates)
            logger.info(f"tracker updated: {tracker.store.path.name}!{tracker.sheet} cells={written.cells_written}")

    return _result(
        "sync",
        start_time,
        RunCounts(
            processed=len(companies),
            skipped=sum(1 for c in classifications if c.row_class.skipped),
            changed=plan.changed,
        ),
        {"sync": plan.to_dict()},
        dry_run=dry_run,
    )
