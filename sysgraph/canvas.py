"""Cursor-addressed terminal canvas.

The terminal is treated as a 1-based (row, column) grid written with ANSI
escape sequences. Nothing is ever repainted: callers address a cell and write
just the characters that changed.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TextIO

# ── ANSI helpers ────────────────────────────────────────────────────────────

RESET_SCREEN = "\033c"
CURSOR_HOME = "\033[H"

AXIS_MARGIN = 8  # columns left of the vertical bar for the capacity label
MIN_AXIS_SAMPLES = 20
V_BAR = "|"
H_RULE = "─"


def move_to(row: int, column: int) -> str:
    return f"\033[{row};{column}H"


@dataclass(frozen=True)
class CursorPosition:
    row: int
    column: int

    def __post_init__(self) -> None:
        if self.row < 1 or self.column < 1:
            raise ValueError(f"cursor position must be 1-based, got ({self.row}, {self.column})")


@dataclass(frozen=True)
class Axis:
    """Where a drawn graph expects its live updates.

    readout: cell where the numeric reading is overwritten each sample.
    origin:  first plotting cell on the horizontal rule's row; glyphs go
             above it, one column per sample.
    """

    readout: CursorPosition
    origin: CursorPosition
    height: int
    width: int


class TerminalCanvas:
    """Owns layout state for one dashboard run.

    Regions are stacked top to bottom in the order they are reserved and never
    overlap. ``next_row`` is the first row not yet handed out.
    """

    def __init__(self, stream: TextIO | None = None, left_margin: int = 1) -> None:
        self.stream = stream if stream is not None else sys.stdout
        self.left_margin = left_margin
        self.next_row = 1

    # ── Primitives ──────────────────────────────────────────────────────

    def write(self, text: str) -> None:
        self.stream.write(text)
        self.stream.flush()

    def write_at(self, row: int, column: int, text: str) -> None:
        """Move the cursor and write, flushing so the cell shows up immediately."""
        self.write(move_to(row, column) + text)

    def move(self, pos: CursorPosition) -> None:
        self.write(move_to(pos.row, pos.column))

    def clear(self) -> None:
        """Reset the screen and home the cursor; layout starts over at row 1."""
        self.write(RESET_SCREEN + CURSOR_HOME)
        self.next_row = 1

    # ── Layout ──────────────────────────────────────────────────────────

    def reserve_region(self, height: int, gap: int = 0) -> int:
        """Hand out ``height`` rows after ``gap`` blank rows; return the first row."""
        if height < 1:
            raise ValueError(f"region height must be positive, got {height}")
        base = self.next_row + gap
        self.next_row = base + height
        return base

    def resting_position(self) -> CursorPosition:
        """First column of the row below everything reserved so far."""
        return CursorPosition(self.next_row, 1)

    # ── Graph scaffolding ───────────────────────────────────────────────

    def draw_axis(
        self,
        label: str,
        unit: str,
        height: int,
        baseline: str,
        samples: int,
        gap: int = 1,
    ) -> Axis:
        """Draw a graph frame and return where live updates belong.

        Layout (rows from the reserved base):
            0           label, readout right after it
            1..height   capacity label on row 1, ``|`` on every row
            height+1    baseline label, horizontal rule
        """
        width = max(samples, MIN_AXIS_SAMPLES)
        top = self.reserve_region(height + 2, gap=gap)
        left = self.left_margin
        bar_col = left + AXIS_MARGIN
        axis_row = top + height + 1

        self.write_at(top, left, label)
        self.write_at(top + 1, left, f" {unit}")
        for i in range(height):
            self.write_at(top + 1 + i, bar_col, V_BAR)

        self.write_at(axis_row, max(1, bar_col - len(baseline) - 2), f" {baseline}")
        self.write_at(axis_row, bar_col, H_RULE * (width + 1))

        return Axis(
            readout=CursorPosition(top, left + len(label) + 1),
            origin=CursorPosition(axis_row, bar_col + 1),
            height=height,
            width=width,
        )
