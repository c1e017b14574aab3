from __future__ import annotations

from ..models.processing_result import RunResult

"""SUMMARY line rendering.

Format:
    SUMMARY op=<command> processed=N skipped=N allocated=N changed=N elapsed_sec=X
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for one operation run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from company_reconciler.models.processing_result import RunCounts
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = RunResult("gaps", RunCounts(processed=3), t, t, 1.5)
        >>> render_summary_line(r)
        'SUMMARY op=gaps processed=3 skipped=0 allocated=0 changed=0 elapsed_sec=1.5'
    """
    c = result.counts
    return (
        f"SUMMARY op={result.operation} "
        f"processed={c.processed} "
        f"skipped={c.skipped} "
        f"allocated={c.allocated} "
        f"changed={c.changed} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
