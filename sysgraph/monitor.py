"""Live terminal graphs of memory and CPU usage.

Draws the enabled panels once, then for each sample overwrites the readouts
and adds one glyph per graph. The cores grid is drawn after the last sample.

Usage:
    sysgraph [samples [tdelay]] [--memory] [--cpu] [--cores]
             [--samples=N] [--tdelay=T] [--config=PATH]
"""

from __future__ import annotations

import logging
import sys
import time
from enum import Enum
from typing import Callable, Sequence

from sysgraph.canvas import CursorPosition, TerminalCanvas
from sysgraph.cli import build_run_config, parse_args
from sysgraph.config import ConfigError, RunConfig, load_config, setup_logging
from sysgraph.metrics import (
    CpuUtilizationTracker,
    FatalSourceError,
    MetricSource,
    SourceUnavailable,
)
from sysgraph.panels import CoresPanel, CpuPanel, MemoryPanel

log = logging.getLogger(__name__)


class LoopState(Enum):
    IDLE = "idle"
    SAMPLING = "sampling"
    DRAINING = "draining"
    DONE = "done"


class SamplingLoop:
    """Runs one dashboard from first frame to resting cursor.

    The sleep between samples is a fixed delay, not a deadline; drift across
    samples is accepted.
    """

    def __init__(
        self,
        config: RunConfig,
        canvas: TerminalCanvas,
        source: MetricSource | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.canvas = canvas
        self.source = source if source is not None else MetricSource()
        self.tracker = CpuUtilizationTracker(self.source)
        self._sleep = sleep

        self.state = LoopState.IDLE
        self.iterations = 0
        self.memory_panel: MemoryPanel | None = None
        self.cpu_panel: CpuPanel | None = None
        self.cores_panel: CoresPanel | None = None
        # Logged once the cursor is parked so stderr does not land mid-canvas
        self._deferred_warnings: list[str] = []

    # ── Setup ───────────────────────────────────────────────────────────

    def _draw_header(self) -> None:
        cfg = self.config
        self.canvas.clear()
        row = self.canvas.reserve_region(1)
        self.canvas.write_at(
            row,
            1,
            f"Nbr of samples: {cfg.samples} -- every {cfg.tdelay} microSecs "
            f"({cfg.delay_seconds:f} secs)",
        )

    def _open_panels(self) -> None:
        cfg = self.config
        if cfg.show_memory:
            try:
                total_gb = self.source.read_memory_stats().total_gb
            except SourceUnavailable as e:
                self._deferred_warnings.append(f"memory panel disabled: {e}")
            else:
                self.memory_panel = MemoryPanel(self.canvas, total_gb, cfg.samples)

        if cfg.show_cpu:
            self.cpu_panel = CpuPanel(self.canvas, cfg.samples)
            try:
                self.tracker.sample()
            except SourceUnavailable as e:
                log.info("could not prime CPU tracker: %s", e)

    # ── Per-sample work ─────────────────────────────────────────────────

    def _sample_memory(self) -> None:
        if self.memory_panel is None:
            return
        try:
            used_gb = self.source.read_memory_stats().used_gb
        except SourceUnavailable as e:
            log.info("sample %d: memory skipped: %s", self.iterations, e)
            return
        self.memory_panel.push_sample(used_gb)

    def _sample_cpu(self) -> None:
        if self.cpu_panel is None:
            return
        try:
            percent = self.tracker.sample()
        except SourceUnavailable as e:
            log.info("sample %d: cpu skipped: %s", self.iterations, e)
            return
        self.cpu_panel.push_sample(percent)

    def step(self) -> None:
        """One Sampling(i) -> Sampling(i+1) transition."""
        self._sample_memory()
        self._sample_cpu()
        self.iterations += 1
        self._sleep(self.config.delay_seconds)

    # ── Teardown ────────────────────────────────────────────────────────

    def _draw_cores(self) -> None:
        try:
            panel = CoresPanel(
                core_count=self.source.count_logical_cores(),
                max_frequency_ghz=self.source.read_max_frequency_ghz(),
            )
        except SourceUnavailable as e:
            self.canvas.move(self.canvas.resting_position())
            log.warning("cores panel skipped: %s", e)
            return
        panel.render(self.canvas)
        self.cores_panel = panel

    def run(self) -> CursorPosition:
        """Draw, sample ``config.samples`` times, then park the cursor.

        Returns the resting cursor position.
        """
        try:
            self._draw_header()
            self._open_panels()

            self.state = LoopState.SAMPLING
            for _ in range(self.config.samples):
                self.step()

            self.state = LoopState.DRAINING
            if self.config.show_cores:
                self._draw_cores()
        finally:
            resting = self.canvas.resting_position()
            self.canvas.move(resting)
            self.state = LoopState.DONE
            for message in self._deferred_warnings:
                log.warning("%s", message)
        return resting


# ── CLI entry point ────────────────────────────────────────────────────────


def main(argv: Sequence[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        parsed = parse_args(args)
        file_config = load_config(parsed.config_path)
        config = build_run_config(parsed, file_config)
        setup_logging(file_config)
    except ConfigError as e:
        print(f"sysgraph: error: {e}", file=sys.stderr)
        raise SystemExit(1) from e

    loop = SamplingLoop(config, TerminalCanvas(sys.stdout))
    try:
        loop.run()
    except KeyboardInterrupt:
        pass
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
