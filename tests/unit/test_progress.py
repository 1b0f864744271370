from __future__ import annotations

from unittest.mock import MagicMock, patch

from matka_chart.services.progress import ProgressTracker


def test_disabled_without_tty():
    with patch("matka_chart.services.progress.is_tty_enabled", return_value=False):
        with ProgressTracker(2) as p:
            p.start("kalyan_panel")
            p.finish()
            assert p.pbar is None
            assert p.current == 1


def test_tty_updates_bar():
    bar = MagicMock()
    with patch("matka_chart.services.progress.is_tty_enabled", return_value=True), \
            patch("matka_chart.services.progress.tqdm", return_value=bar) as tqdm_cls:
        p = ProgressTracker(3, description="Loading")
        p.start("milan_day")
        bar.set_description.assert_called_with("Loading (milan_day)")
        p.set_postfix(loaded=1)
        p.finish(success=True)
        bar.update.assert_called_once_with(1)
        p.close()
        bar.close.assert_called_once()
        assert p.pbar is None
    assert tqdm_cls.call_args.kwargs["total"] == 3
