"""Tests for sysgraph.canvas."""

from __future__ import annotations

import io

import pytest

from sysgraph.canvas import (
    CURSOR_HOME,
    RESET_SCREEN,
    CursorPosition,
    TerminalCanvas,
    move_to,
)


@pytest.fixture
def out() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def canvas(out: io.StringIO) -> TerminalCanvas:
    return TerminalCanvas(out)


def test_move_to() -> None:
    assert move_to(3, 14) == "\033[3;14H"


class TestCursorPosition:
    def test_one_based(self) -> None:
        with pytest.raises(ValueError):
            CursorPosition(0, 1)
        with pytest.raises(ValueError):
            CursorPosition(1, 0)


class TestPrimitives:
    def test_write_at(self, canvas: TerminalCanvas, out: io.StringIO) -> None:
        canvas.write_at(2, 5, "#")
        assert out.getvalue() == "\033[2;5H#"

    def test_clear_resets_layout(self, canvas: TerminalCanvas, out: io.StringIO) -> None:
        canvas.reserve_region(4)
        canvas.clear()
        assert out.getvalue() == RESET_SCREEN + CURSOR_HOME
        assert canvas.next_row == 1


class TestReserveRegion:
    def test_regions_stack_without_overlap(self, canvas: TerminalCanvas) -> None:
        first = canvas.reserve_region(3)
        second = canvas.reserve_region(2, gap=1)
        assert first == 1
        assert second == 5
        assert canvas.next_row == 7
        assert canvas.resting_position() == CursorPosition(7, 1)

    def test_rejects_empty_region(self, canvas: TerminalCanvas) -> None:
        with pytest.raises(ValueError):
            canvas.reserve_region(0)


class TestDrawAxis:
    def test_layout(self, canvas: TerminalCanvas, out: io.StringIO) -> None:
        axis = canvas.draw_axis("v CPU ", "100%", 11, "0%", samples=30, gap=0)
        text = out.getvalue()

        assert axis.readout == CursorPosition(1, 8)
        # Rule sits below the label row and the 11 bar rows
        assert axis.origin == CursorPosition(13, 10)
        assert axis.width == 30
        assert canvas.next_row == 14

        assert "\033[1;1Hv CPU " in text
        assert "\033[2;1H 100%" in text
        assert text.count("|") == 11
        for row in range(2, 13):
            assert f"\033[{row};9H|" in text
        assert "\033[13;5H 0%" in text
        assert "\033[13;9H" + "─" * 31 in text

    def test_minimum_rule_width(self, canvas: TerminalCanvas, out: io.StringIO) -> None:
        axis = canvas.draw_axis("v Memory ", "16 GB", 10, "0 GB", samples=5)
        assert axis.width == 20
        assert "─" * 21 in out.getvalue()
        assert "─" * 22 not in out.getvalue()

    def test_default_gap(self, canvas: TerminalCanvas) -> None:
        canvas.reserve_region(1)
        axis = canvas.draw_axis("v CPU ", "100%", 11, "0%", samples=20)
        assert axis.readout.row == 3
