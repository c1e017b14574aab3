from __future__ import annotations

from unittest.mock import Mock, patch

from company_reconciler.models.row_data import Classification, RowClass
from company_reconciler.services.progress import ProgressTracker, is_tty_enabled


def _row(row_class: RowClass) -> Classification:
    return Classification(row_index=0, row_class=row_class, reason="")


def test_is_tty_enabled_returns_stdout_isatty():
    with patch('sys.stdout.isatty', return_value=True):
        assert is_tty_enabled() is True
    with patch('sys.stdout.isatty', return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    """ProgressTracker with and without a TTY."""

    def test_init_with_tty_enabled(self):
        with patch('company_reconciler.services.progress.is_tty_enabled', return_value=True), \
             patch('company_reconciler.services.progress.tqdm') as mock_tqdm:
            tracker = ProgressTracker(5, description="Rows")
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Rows",
                unit="row",
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch('company_reconciler.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(5)
            assert tracker.enabled is False
            assert tracker.pbar is None

    def test_call_counts_rows_and_skips(self):
        mock_pbar = Mock()
        with patch('company_reconciler.services.progress.is_tty_enabled', return_value=True), \
             patch('company_reconciler.services.progress.tqdm', return_value=mock_pbar):
            tracker = ProgressTracker(3)
            tracker(_row(RowClass.HEADER))
            tracker(_row(RowClass.CANDIDATE))
            tracker(_row(RowClass.EMPTY))

        assert tracker.current_row == 3
        assert tracker.skipped == 2
        assert mock_pbar.update.call_count == 3
        mock_pbar.set_postfix.assert_called_once_with(skipped=2)

    def test_call_without_tty_only_counts(self):
        with patch('company_reconciler.services.progress.is_tty_enabled', return_value=False):
            tracker = ProgressTracker(1)
            tracker(_row(RowClass.LEGEND))
        assert (tracker.current_row, tracker.skipped) == (1, 1)

    def test_context_manager_closes(self):
        mock_pbar = Mock()
        with patch('company_reconciler.services.progress.is_tty_enabled', return_value=True), \
             patch('company_reconciler.services.progress.tqdm', return_value=mock_pbar):
            with ProgressTracker(2) as tracker:
                pass
        mock_pbar.close.assert_called_once()
        assert tracker.pbar is None
