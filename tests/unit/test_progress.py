from __future__ import annotations

from unittest.mock import Mock, patch

from table_importer.services.progress import RowProgress, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True
    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


def test_progress_with_tty_creates_bar():
    with patch("table_importer.services.progress.is_tty_enabled", return_value=True), \
         patch("table_importer.services.progress.tqdm") as mock_tqdm:
        progress = RowProgress(7, description="Importing Users")
        mock_tqdm.assert_called_once_with(
            total=7,
            desc="Importing Users",
            unit="row",
            disable=False,
            leave=True,
            position=0,
            ncols=80,
            ascii=True,
        )
        progress.advance()
        progress.advance(2)
        assert progress.processed == 3
        assert mock_tqdm.return_value.update.call_count == 2


def test_progress_without_tty_is_silent():
    with patch("table_importer.services.progress.is_tty_enabled", return_value=False):
        with RowProgress(3) as progress:
            assert progress.pbar is None
            progress.advance()
            progress.set_postfix(accepted=1)
        assert progress.processed == 1


def test_context_manager_closes_bar():
    pbar = Mock()
    with patch("table_importer.services.progress.is_tty_enabled", return_value=True), \
         patch("table_importer.services.progress.tqdm", return_value=pbar):
        with RowProgress(1) as progress:
            progress.set_postfix(accepted=1, dropped=0)
        pbar.set_postfix.assert_called_once_with(accepted=1, dropped=0)
        pbar.close.assert_called_once()
        assert progress.pbar is None
