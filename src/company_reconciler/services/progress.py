from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

from ..models.row_data import Classification

"""Row progress display with tqdm (TTY only).

A single tqdm instance per run, disabled when stdout is not a TTY (CI, pipes,
--output redirection) so no ANSI control sequences end up in captured output.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    """Progress over the rows of one sheet.

    The instance is callable so it can be passed directly as the ``on_row`` hook of
    the projection builder.
    """

    def __init__(self, total_rows: int, *, description: str = "Classifying rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.current_row = 0
        self.skipped = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def __call__(self, result: Classification) -> None:
        self.current_row += 1
        if result.row_class.skipped:
            self.skipped += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            if self.current_row % 100 == 0 or self.current_row == self.total_rows:
                self.pbar.set_postfix(skipped=self.skipped)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
