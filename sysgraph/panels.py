"""Dashboard panels: incrementally plotted graphs and the static cores grid."""

from __future__ import annotations

import math
from dataclasses import dataclass

from sysgraph.canvas import Axis, TerminalCanvas

READOUT_WIDTH = 14  # blanked before each readout so a shorter value leaves no digits behind

MEMORY_HEIGHT = 10
CPU_HEIGHT = 11  # 0%..100% in steps of 10
CPU_SCALE = 10.0

CORES_PER_ROW = 4
CORE_BOX_TOP = "+───+"
CORE_BOX_MIDDLE = "|   |"
CORE_COLUMN_STRIDE = 6
CORE_BOX_ROWS = 3


class PanelFull(Exception):
    """A graph panel received more samples than its axis can hold."""


class GraphPanel:
    """One metric's history, drawn one column per sample.

    The scale (units per row) is fixed at construction. Each push writes one
    glyph in the next free column and never touches earlier columns.
    """

    glyph = "*"
    unit_suffix = ""

    def __init__(
        self,
        canvas: TerminalCanvas,
        label: str,
        capacity_label: str,
        baseline: str,
        height: int,
        scale: float,
        samples: int,
    ) -> None:
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.canvas = canvas
        self.scale = scale
        self.axis: Axis = canvas.draw_axis(label, capacity_label, height, baseline, samples)
        self.write_column = self.axis.origin.column

    @property
    def height(self) -> int:
        return self.axis.height

    @property
    def max_samples(self) -> int:
        return self.axis.width

    @property
    def samples_drawn(self) -> int:
        return self.write_column - self.axis.origin.column

    def format_value(self, value: float) -> str:
        return f" {value:.2f} {self.unit_suffix}"

    def row_offset(self, value: float) -> int:
        """Rows above the baseline for ``value``.

        Values past the top of the scale are pinned to the top row rather
        than drawn outside the frame.
        """
        offset = int(value / self.scale)
        return min(max(offset, 0), self.height - 1)

    def push_sample(self, value: float) -> None:
        if self.samples_drawn >= self.max_samples:
            raise PanelFull(f"panel already holds {self.max_samples} samples")

        readout = self.axis.readout
        self.canvas.write_at(readout.row, readout.column, " " * READOUT_WIDTH)
        self.canvas.write_at(readout.row, readout.column, self.format_value(value))

        row = self.axis.origin.row - self.row_offset(value) - 1
        self.canvas.write_at(row, self.write_column, self.glyph)
        self.write_column += 1


class MemoryPanel(GraphPanel):
    """Used memory in GB; ten rows, each worth a tenth of total memory."""

    glyph = "#"
    unit_suffix = "GB"

    def __init__(self, canvas: TerminalCanvas, total_gb: float, samples: int) -> None:
        super().__init__(
            canvas,
            label="v Memory ",
            capacity_label=f"{total_gb:.0f} GB",
            baseline="0 GB",
            height=MEMORY_HEIGHT,
            scale=total_gb / MEMORY_HEIGHT,
            samples=samples,
        )


class CpuPanel(GraphPanel):
    """CPU utilization; row k holds readings in [10k, 10k + 10)."""

    glyph = ":"
    unit_suffix = "%"

    def __init__(self, canvas: TerminalCanvas, samples: int) -> None:
        super().__init__(
            canvas,
            label="v CPU ",
            capacity_label="100%",
            baseline="0%",
            height=CPU_HEIGHT,
            scale=CPU_SCALE,
            samples=samples,
        )


# ── Cores ───────────────────────────────────────────────────────────────────


def core_grid(core_count: int, per_row: int = CORES_PER_ROW) -> list[int]:
    """Boxes per grid row, e.g. 6 cores -> [4, 2]."""
    if core_count < 0:
        raise ValueError(f"core count cannot be negative, got {core_count}")
    rows = math.ceil(core_count / per_row)
    return [min(per_row, core_count - r * per_row) for r in range(rows)]


@dataclass(frozen=True)
class CoresPanel:
    core_count: int
    max_frequency_ghz: float

    @property
    def heading(self) -> str:
        return f"v Number of Cores: {self.core_count} @ {self.max_frequency_ghz:.2f} GHz"

    def render(self, canvas: TerminalCanvas) -> None:
        grid = core_grid(self.core_count)
        top = canvas.reserve_region(1 + CORE_BOX_ROWS * len(grid), gap=1)
        left = canvas.left_margin
        canvas.write_at(top, left, self.heading)

        for r, boxes in enumerate(grid):
            row = top + 1 + r * CORE_BOX_ROWS
            for c in range(boxes):
                col = left + c * CORE_COLUMN_STRIDE
                canvas.write_at(row, col, CORE_BOX_TOP)
                canvas.write_at(row + 1, col, CORE_BOX_MIDDLE)
                canvas.write_at(row + 2, col, CORE_BOX_TOP)
