from __future__ import annotations

import os
import tempfile
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import openpyxl
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .ranges import RangeRef

"""Workbook writes via openpyxl.

Each public function loads the workbook, applies all of its changes in memory and
saves once through a temporary file that replaces the original, so a failed write
leaves the previous workbook untouched.
"""

__all__ = [
    "CellUpdate",
    "WriteResult",
    "write_block",
    "clear_range",
    "apply_cell_updates",
]


@dataclass(frozen=True)
class CellUpdate:
    """One sparse write: a single-cell A1 reference (``Sheet!C5``) and its new value."""
    ref: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"range": self.ref, "value": self.value}


@dataclass(frozen=True)
class WriteResult:
    path: Path
    cells_written: int
    cells_cleared: int = 0


def _load(path: Path, create: bool) -> Workbook:
    if path.exists():
        return openpyxl.load_workbook(path)
    if not create:
        raise FileNotFoundError(f"workbook not found: {path}")
    return openpyxl.Workbook()


def _sheet(wb: Workbook, name: str, create: bool, fresh: bool = False) -> Worksheet:
    if name in wb.sheetnames:
        return wb[name]
    if not create:
        raise KeyError(f"sheet not found: {name}")
    if fresh:
        # 新規ブック: 既定の空シートを流用
        ws = wb.active
        ws.title = name
        return ws
    return wb.create_sheet(title=name)


def _save_atomic(wb: Workbook, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.stem}-", suffix=".xlsx", dir=path.parent)
    os.close(fd)
    try:
        wb.save(tmp)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def _clear(ws: Worksheet, cells: RangeRef) -> int:
    max_row = cells.max_row or ws.max_row
    max_col = cells.max_col or ws.max_column
    cleared = 0
    for row in ws.iter_rows(min_row=cells.min_row, max_row=max_row, min_col=cells.min_col, max_col=max_col):
        for cell in row:
            if cell.value is not None:
                cell.value = None
                cleared += 1
    return cleared


def write_block(
    path: Path,
    sheet: str,
    top_left: RangeRef,
    values: Sequence[Sequence[Any]],
    clear: RangeRef | None = None,
    create: bool = True,
) -> WriteResult:
    """Overwrite a rectangular block starting at ``top_left``.

    clear: optional range emptied first in the same save (full-sheet rewrite).
    """
    fresh = not path.exists()
    wb = _load(path, create)
    ws = _sheet(wb, sheet, create, fresh=fresh)
    cleared = _clear(ws, clear) if clear is not None else 0
    written = 0
    for r_off, row in enumerate(values):
        for c_off, value in enumerate(row):
            ws.cell(row=top_left.min_row + r_off, column=top_left.min_col + c_off, value=value)
            written += 1
    _save_atomic(wb, path)
    return WriteResult(path=path, cells_written=written, cells_cleared=cleared)


def clear_range(path: Path, sheet: str, cells: RangeRef) -> WriteResult:
    wb = _load(path, create=False)
    ws = _sheet(wb, sheet, create=False)
    cleared = _clear(ws, cells)
    _save_atomic(wb, path)
    return WriteResult(path=path, cells_written=0, cells_cleared=cleared)


def apply_cell_updates(path: Path, updates: Iterable[CellUpdate], default_sheet: str | None = None) -> WriteResult:
    """Apply sparse single-cell updates and save once.

    Every reference is resolved before anything is written, so one bad reference
    fails the whole batch.
    """
    wb = _load(path, create=False)
    resolved: list[tuple[Worksheet, RangeRef, Any]] = []
    for upd in updates:
        ref = RangeRef.parse(upd.ref, sheet=default_sheet)
        if not ref.is_single_cell or ref.max_row is None or ref.max_col is None:
            raise ValueError(f"batch update expects single-cell ranges, got {upd.ref!r}")
        if ref.sheet is None:
            raise ValueError(f"batch update range has no sheet: {upd.ref!r}")
        resolved.append((_sheet(wb, ref.sheet, create=False), ref, upd.value))
    if not resolved:
        return WriteResult(path=path, cells_written=0)
    for ws, ref, value in resolved:
        ws.cell(row=ref.min_row, column=ref.min_col, value=value)
    _save_atomic(wb, path)
    return WriteResult(path=path, cells_written=len(resolved))
