from __future__ import annotations

import re
from dataclasses import dataclass

from openpyxl.utils import column_index_from_string, get_column_letter

"""A1-notation range references: ``Sheet!A2:Z``, ``A1``, ``A:K``.

Rows and columns are 1-based here, matching the sheet; bounds left open in the
reference (``A2:Z`` has no last row) are None.
"""

__all__ = [
    "RangeError",
    "RangeRef",
    "cell_ref",
]

_CELL_RE = re.compile(r"^\$?([A-Za-z]*)\$?([0-9]*)$")


class RangeError(ValueError):
    """Raised for a malformed A1 range reference."""


def _parse_cell(text: str) -> tuple[int | None, int | None]:
    m = _CELL_RE.match(text.strip())
    if not m or (not m.group(1) and not m.group(2)):
        raise RangeError(f"invalid cell reference: {text!r}")
    col = column_index_from_string(m.group(1).upper()) if m.group(1) else None
    row = int(m.group(2)) if m.group(2) else None
    if row == 0:
        raise RangeError(f"row numbers start at 1: {text!r}")
    return col, row


@dataclass(frozen=True)
class RangeRef:
    sheet: str | None
    min_col: int
    min_row: int
    max_col: int | None = None
    max_row: int | None = None

    @classmethod
    def parse(cls, ref: str, sheet: str | None = None) -> RangeRef:
        """Parse ``[Sheet!]START[:END]``. A sheet name in ``ref`` wins over ``sheet``."""
        text = ref.strip()
        if "!" in text:
            sheet_part, text = text.rsplit("!", 1)
            sheet = sheet_part.strip("'")
        start, _, end = text.partition(":")
        min_col, min_row = _parse_cell(start)
        if end:
            max_col, max_row = _parse_cell(end)
        else:
            max_col, max_row = min_col, min_row
        return cls(
            sheet=sheet,
            min_col=min_col or 1,
            min_row=min_row or 1,
            max_col=max_col,
            max_row=max_row,
        )

    @property
    def is_single_cell(self) -> bool:
        return self.min_col == self.max_col and self.min_row == self.max_row

    def to_a1(self) -> str:
        start = f"{get_column_letter(self.min_col)}{self.min_row}"
        end = ""
        if not self.is_single_cell:
            end_col = get_column_letter(self.max_col) if self.max_col else ""
            end_row = str(self.max_row) if self.max_row else ""
            end = f":{end_col}{end_row}"
        text = start + end
        return f"{self.sheet}!{text}" if self.sheet else text


def cell_ref(sheet: str | None, row_index: int, col_index: int) -> str:
    """Single-cell A1 reference from 0-based row/column indexes."""
    a1 = f"{get_column_letter(col_index + 1)}{row_index + 1}"
    return f"{sheet}!{a1}" if sheet else a1
