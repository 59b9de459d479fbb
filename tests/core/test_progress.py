"""Tests for core/progress.py module.

Covers:
- status() and pluralize()
- page_progress() on non-TTY streams
- suppress_console_logs() / ConsoleSuppressingFilter interplay
"""

from __future__ import annotations

import logging
import sys
import threading
from io import StringIO

import pytest

from contract_index.core.logging import ConsoleSuppressingFilter
from contract_index.core.progress import (
    _STYLES,
    _is_tty,
    is_console_suppressed,
    page_progress,
    pluralize,
    suppress_console_logs,
)


class TestIsTty:
    def test_false_for_stringio(self) -> None:
        """Returns False for non-TTY stderr."""
        original = sys.stderr
        try:
            sys.stderr = StringIO()
            assert _is_tty() is False
        finally:
            sys.stderr = original


class TestStyles:
    def test_has_expected_styles(self) -> None:
        assert set(_STYLES.keys()) == {"success", "error", "info", "warning", "none"}


class TestPluralize:
    @pytest.mark.parametrize(
        ("count", "expected"),
        [
            (0, "0 contracts"),
            (1, "1 contract"),
            (2, "2 contracts"),
        ],
    )
    def test_default_plural(self, count: int, expected: str) -> None:
        assert pluralize(count, "contract") == expected

    def test_custom_plural(self) -> None:
        assert pluralize(3, "entry", "entries") == "3 entries"


class TestPageProgress:
    def test_non_tty_yields_noop_advance(self) -> None:
        """Without a terminal the advance callable accepts calls silently."""
        original = sys.stderr
        try:
            sys.stderr = StringIO()
            with page_progress(10, desc="Indexing") as advance:
                advance(5)
                advance(5)
        finally:
            sys.stderr = original

    def test_zero_total_yields_noop_advance(self) -> None:
        with page_progress(0) as advance:
            advance(1)


class TestConsoleSuppression:
    def test_suppression_is_scoped(self) -> None:
        assert is_console_suppressed() is False
        with suppress_console_logs():
            assert is_console_suppressed() is True
        assert is_console_suppressed() is False

    def test_suppression_visible_from_worker_threads(self) -> None:
        """Worker threads see the flag set by the thread driving the bar."""
        seen: list[bool] = []
        with suppress_console_logs():
            worker = threading.Thread(target=lambda: seen.append(is_console_suppressed()))
            worker.start()
            worker.join()

        assert seen == [True]

    def test_filter_blocks_records_while_suppressed(self) -> None:
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        console_filter = ConsoleSuppressingFilter()

        assert console_filter.filter(record) is True
        with suppress_console_logs():
            assert console_filter.filter(record) is False
