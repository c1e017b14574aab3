from __future__ import annotations

import zipfile
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from openpyxl.utils.exceptions import InvalidFileException

from .ranges import RangeError, RangeRef
from .reader import list_sheet_names, read_sheet_rows
from .writer import CellUpdate, WriteResult, apply_cell_updates, clear_range, write_block

"""Tabular store boundary: one .xlsx workbook.

Only this module touches the filesystem for sheet data. Every failure of the
underlying read/write is re-raised as StoreUnavailableError (no retry here); a sheet
tab that cannot be found is MissingSourceError. Both abort the current run.
"""

__all__ = [
    "ReconcileError",
    "MissingSourceError",
    "StoreUnavailableError",
    "WorkbookStore",
    "locate_sheet",
]

_IO_ERRORS = (OSError, zipfile.BadZipFile, InvalidFileException, ValueError)

# characters Excel rejects in a sheet title
_TITLE_FORBIDDEN = str.maketrans("", "", "[]:*?/\\")


class ReconcileError(Exception):
    """Base exception for run-level failures."""


class MissingSourceError(ReconcileError):
    """The expected sheet tab cannot be located."""


class StoreUnavailableError(ReconcileError):
    """Reading from or writing to the workbook failed."""


def locate_sheet(
    sheet_names: Sequence[str],
    *,
    sheet: str | None = None,
    marker: str | None = None,
    fallback_to_first: bool = False,
) -> str:
    """Resolve the tab to use.

    Order: explicit ``sheet`` name; first tab whose title contains ``marker``; first tab
    when ``fallback_to_first`` is set (or when neither sheet nor marker is given).
    Characters a sheet title cannot hold are dropped from ``marker`` before matching,
    so "[AUTOMATION ONLY]" finds "Companies (AUTOMATION ONLY)".
    """
    if sheet is not None:
        if sheet in sheet_names:
            return sheet
        raise MissingSourceError(f"sheet '{sheet}' not found (available: {list(sheet_names)})")
    if marker is not None:
        needle = marker.translate(_TITLE_FORBIDDEN).strip()
        for name in sheet_names:
            if needle and needle in name:
                return name
        if not fallback_to_first:
            raise MissingSourceError(f"no sheet title contains marker '{marker}'")
    if not sheet_names:
        raise MissingSourceError("workbook has no sheets")
    return sheet_names[0]


class WorkbookStore:
    """Read/write access to the sheets of one workbook file."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:  # pragma: no cover (trivial)
        return f"WorkbookStore({str(self.path)!r})"

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def sheet_names(self) -> list[str]:
        try:
            return list_sheet_names(self.path)
        except _IO_ERRORS as e:
            raise StoreUnavailableError(f"cannot open workbook {self.path}: {e}") from e

    def read_rows(self, sheet: str, cells: str = "A1:Z") -> list[list[str]]:
        ref = RangeRef.parse(cells, sheet=sheet)
        names = self.sheet_names()
        if ref.sheet not in names:
            raise MissingSourceError(f"sheet '{ref.sheet}' not found in {self.path.name}")
        try:
            return read_sheet_rows(self.path, ref.sheet, ref)
        except _IO_ERRORS as e:
            raise StoreUnavailableError(f"read failed {self.path.name}!{cells}: {e}") from e

    def write_rows(
        self,
        sheet: str,
        top_left: str,
        values: Sequence[Sequence[Any]],
        clear: str | None = None,
    ) -> WriteResult:
        """Overwrite a block; ``clear`` empties a range first in the same save."""
        try:
            return write_block(
                self.path,
                sheet,
                RangeRef.parse(top_left, sheet=sheet),
                values,
                clear=RangeRef.parse(clear, sheet=sheet) if clear else None,
            )
        except RangeError:
            raise
        except (*_IO_ERRORS, KeyError) as e:
            raise StoreUnavailableError(f"write failed {self.path.name}!{top_left}: {e}") from e

    def clear(self, sheet: str, cells: str) -> WriteResult:
        try:
            return clear_range(self.path, sheet, RangeRef.parse(cells, sheet=sheet))
        except RangeError:
            raise
        except (*_IO_ERRORS, KeyError) as e:
            raise StoreUnavailableError(f"clear failed {self.path.name}!{cells}: {e}") from e

    def batch_update(self, updates: Iterable[CellUpdate]) -> WriteResult:
        """Apply all single-cell updates as one save (all or nothing)."""
        try:
            return apply_cell_updates(self.path, list(updates))
        except RangeError:
            raise
        except (*_IO_ERRORS, KeyError) as e:
            raise StoreUnavailableError(f"batch update failed {self.path.name}: {e}") from e
