"""Tests for CLI status output helpers."""

import pytest

from axtrace.core.progress import (
    is_console_suppressed,
    pluralize,
    spinner,
    suppress_console_logs,
)


class TestPluralize:
    @pytest.mark.parametrize(
        ("count", "expected"),
        [(0, "0 files"), (1, "1 file"), (3, "3 files")],
    )
    def test_default_plural(self, count: int, expected: str) -> None:
        assert pluralize(count, "file") == expected

    def test_explicit_plural(self) -> None:
        assert pluralize(2, "entry", "entries") == "2 entries"


class TestSuppression:
    def test_suppress_is_scoped(self) -> None:
        assert not is_console_suppressed()
        with suppress_console_logs():
            assert is_console_suppressed()
        assert not is_console_suppressed()

    def test_spinner_runs_block_without_tty(self) -> None:
        ran = []
        with spinner("Indexing"):
            ran.append(True)
        assert ran == [True]
