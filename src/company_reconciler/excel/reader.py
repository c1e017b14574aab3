from __future__ import annotations

import math
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from .ranges import RangeRef

"""Workbook reading via pandas.

Every cell is turned into text: the engine treats the store as untyped. Numbers that
Excel stores as floats but are integral (company numbers, follow-up counts) are
rendered without the trailing ".0"; empty cells and NaN become "". Trailing empty
cells are dropped so a short row reads as a row with trailing absent cells.
"""

__all__ = [
    "cell_text",
    "list_sheet_names",
    "read_sheet_rows",
]


def cell_text(value: Any) -> str:
    if value is None or value is pd.NaT or value is pd.NA:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _trim_trailing(cells: list[str]) -> list[str]:
    end = len(cells)
    while end > 0 and cells[end - 1].strip() == "":
        end -= 1
    return cells[:end]


def list_sheet_names(path: Path) -> list[str]:
    with pd.ExcelFile(path) as xls:
        return [str(name) for name in xls.sheet_names]


def read_sheet_rows(path: Path, sheet: str, cells: RangeRef) -> list[list[str]]:
    """Read a rectangular range of one sheet as text rows.

    Rows are returned in sheet order starting at ``cells.min_row``; a fully empty
    row inside the range is kept as ``[]`` so row positions stay addressable.
    Trailing empty rows are dropped.
    """
    with pd.ExcelFile(path) as xls:
        # 生読み: ヘッダ解釈も NA 変換もしない (keep_default_na=False で "NA" 等も文字列のまま)
        df = xls.parse(sheet, header=None, dtype=object, keep_default_na=False)

    start_row = cells.min_row - 1
    stop_row = cells.max_row if cells.max_row is not None else df.shape[0]
    start_col = cells.min_col - 1
    stop_col = cells.max_col if cells.max_col is not None else df.shape[1]

    rows: list[list[str]] = []
    for raw in df.iloc[start_row:stop_row, start_col:stop_col].itertuples(index=False, name=None):
        rows.append(_trim_trailing([cell_text(v) for v in raw]))

    while rows and not rows[-1]:
        rows.pop()
    return rows
