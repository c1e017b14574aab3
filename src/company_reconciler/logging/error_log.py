from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import SkipRecord

"""Skipped-row log buffering.

- JSON Lines, fixed keys (timestamp, sheet, row, kind, reason)
- One ``skipped-YYYYMMDD-HHMMSS.log`` (UTC) per run, created on the first flush that
  has records to write
- Records are buffered in memory and appended in one go
"""

__all__ = [
    "SkipRecord",
    "SkipLogBuffer",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class SkipLogBuffer:
    """In-memory buffer for skip records. Flush writes JSON Lines.

    Serial use only; the file path is fixed on first access.
    """
    def __init__(self, log_dir: Path | str = "./logs") -> None:
        self.log_dir = Path(log_dir)
        self._records: list[SkipRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.log_dir / f"skipped-{stamp}.log"
        return self._file_path

    def append(self, record: SkipRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records; returns the file written, or None when empty."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
