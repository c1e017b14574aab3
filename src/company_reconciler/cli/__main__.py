from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from openpyxl.utils import get_column_letter

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..excel.ranges import RangeRef
from ..excel.store import ReconcileError, WorkbookStore, locate_sheet
from ..logging.init import log_summary, setup_logging
from ..models.config_models import ReconcilerConfig, WorkbookConfig
from ..models.processing_result import RunResult, failure_document
from ..services.orchestrator import (
    run_duplicate_scan,
    run_gap_scan,
    run_projection,
    run_renumber,
    run_status_migration,
    run_tracker_duplicate_scan,
    run_tracker_sync,
)
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow: load .env, load config, run one command, print the JSON result document
(stdout, or --output FILE), then the SUMMARY line. Any configuration problem or
run-level failure (missing source sheet, unreadable/unwritable workbook) exits 1
with a failure document; partial results are never reported.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1

_Runner = Callable[[ReconcilerConfig, argparse.Namespace], RunResult]

COMMANDS: dict[str, _Runner] = {
    "project": lambda cfg, args: run_projection(cfg, dry_run=args.dry_run),
    "duplicates": lambda cfg, args: run_duplicate_scan(cfg),
    "tracker-duplicates": lambda cfg, args: run_tracker_duplicate_scan(cfg),
    "gaps": lambda cfg, args: run_gap_scan(cfg),
    "renumber": lambda cfg, args: run_renumber(cfg, dry_run=args.dry_run),
    "migrate-statuses": lambda cfg, args: run_status_migration(cfg, dry_run=args.dry_run),
    "sync": lambda cfg, args: run_tracker_sync(cfg, dry_run=args.dry_run),
}


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; its values win over the inherited environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="company_reconciler",
        description="Company database reconciliation and outreach tracker projection",
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config (default: %(default)s)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--output", type=Path, help="Write the JSON result document to FILE instead of stdout")
    sub = p.add_subparsers(dest="command", required=True)

    project = sub.add_parser("project", help="Rebuild the tracker from the company database")
    project.add_argument("--dry-run", action="store_true", help="Compute only, do not write the tracker")
    sub.add_parser("duplicates", help="Duplicate company names in the company database")
    sub.add_parser("tracker-duplicates", help="Duplicate company names in the tracker, with contacts")
    sub.add_parser("gaps", help="Missing structured identifiers")
    renumber = sub.add_parser("renumber", help="Renumber identifiers consecutively in both workbooks")
    renumber.add_argument("--dry-run", action="store_true", help="Compute only, do not write")
    migrate = sub.add_parser("migrate-statuses", help="Rewrite deprecated tracker statuses")
    migrate.add_argument("--dry-run", action="store_true", help="Compute only, do not write the tracker")
    sync = sub.add_parser("sync", help="Correct tracker ids and names and append new companies in place")
    sync.add_argument("--dry-run", action="store_true", help="Preview the changes, do not write the tracker")
    inspect = sub.add_parser("inspect", help="Print sheet headers & first rows then exit")
    inspect.add_argument("--rows", type=int, default=3, help="Sample rows per sheet (default: %(default)s)")
    return p.parse_args(argv)


def _emit(document: dict[str, Any], output: Path | None) -> None:
    if output is None:
        print(json.dumps(document, ensure_ascii=False))
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(document, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


def _inspect_sheet(label: str, wb: WorkbookConfig, sample_rows: int) -> None:
    store = WorkbookStore(wb.workbook)
    names = store.sheet_names()
    sheet = locate_sheet(
        names,
        sheet=wb.sheet,
        marker=wb.sheet_marker,
        fallback_to_first=wb.fallback_to_first_sheet,
    )
    rows = store.read_rows(sheet, wb.cells)
    origin = RangeRef.parse(wb.cells, sheet=sheet)
    print(f"{label.upper()}: {store.path.name} SHEET: {sheet} rows={len(rows)} sheets={names}")
    header = rows[0] if rows else []
    for offset, cell in enumerate(header):
        print(f"  {get_column_letter(origin.min_col + offset)}: {cell}")
    print("    sample_rows=", rows[1:1 + sample_rows])


def _inspect_data(cfg: ReconcilerConfig, sample_rows: int) -> int:
    code = EXIT_SUCCESS
    for label, wb in (("database", cfg.database), ("tracker", cfg.tracker)):
        try:
            _inspect_sheet(label, wb, sample_rows)
        except ReconcileError as e:
            print(f"{label.upper()}: {wb.workbook} error={e}")
            code = EXIT_FATAL
    return code


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # argv=[] must not fall back to sys.argv (pytest's own arguments)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        setup_logging(debug=True)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        _emit(failure_document(f"config: {e}"), args.output)
        return EXIT_FATAL

    if args.command == "inspect":
        return _inspect_data(cfg, args.rows)

    logger.info(f"command={args.command} database={cfg.database.workbook} tracker={cfg.tracker.workbook}")
    try:
        result = COMMANDS[args.command](cfg, args)
    except ReconcileError as e:
        logger.error(f"{args.command}: {e}")
        _emit(failure_document(str(e)), args.output)
        return EXIT_FATAL

    _emit(result.to_document(), args.output)
    if args.output is not None:
        logger.info(f"result written: {args.output}")

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
