"""Host metric collection: raw kernel counters and CPU utilization deltas."""

from __future__ import annotations

import logging
from dataclasses import astuple, dataclass
from pathlib import Path

import psutil

log = logging.getLogger(__name__)

GIB = 1024**3

_CPU_FIELDS = 8  # user nice system idle iowait irq softirq steal


class SourceUnavailable(Exception):
    """A metric could not be read this tick."""


class FatalSourceError(SourceUnavailable):
    """A one-time required value is unavailable; the dependent panel aborts."""


# ── Data types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CpuSnapshot:
    """One read of the aggregate CPU time-accounting counters."""

    user: float = 0.0
    nice: float = 0.0
    system: float = 0.0
    idle: float = 0.0
    iowait: float = 0.0
    irq: float = 0.0
    softirq: float = 0.0
    steal: float = 0.0

    @property
    def total(self) -> float:
        return sum(astuple(self))

    @property
    def idle_total(self) -> float:
        return self.idle + self.iowait

    @property
    def busy(self) -> float:
        return self.total - self.idle_total


@dataclass(frozen=True)
class MemoryStats:
    total_bytes: int
    free_bytes: int

    @property
    def used_bytes(self) -> int:
        return self.total_bytes - self.free_bytes

    @property
    def total_gb(self) -> float:
        return self.total_bytes / GIB

    @property
    def used_gb(self) -> float:
        return self.used_bytes / GIB


# ── Metric source (reads /proc and /sys directly) ───────────────────────────


class MetricSource:
    """Reads raw OS counters. Every call opens and closes its own handle."""

    def __init__(self, proc_root: Path = Path("/proc"), sys_root: Path = Path("/sys")) -> None:
        self.proc_root = proc_root
        self.sys_root = sys_root

    @property
    def max_freq_path(self) -> Path:
        return self.sys_root / "devices/system/cpu/cpu0/cpufreq/cpuinfo_max_freq"

    def read_cpu_snapshot(self) -> CpuSnapshot:
        """Read the aggregate "cpu" line of /proc/stat."""
        path = self.proc_root / "stat"
        try:
            with open(path) as f:
                parts = f.readline().split()
        except OSError as e:
            raise SourceUnavailable(f"cannot read {path}: {e}") from e

        if not parts or parts[0] != "cpu" or len(parts) < 5:
            raise SourceUnavailable(f"unexpected CPU line in {path}: {' '.join(parts)!r}")
        try:
            values = [float(x) for x in parts[1 : _CPU_FIELDS + 1]]
        except ValueError as e:
            raise SourceUnavailable(f"unparseable CPU counters in {path}") from e
        if any(v < 0 for v in values):
            raise SourceUnavailable(f"negative CPU counter in {path}")

        # Older kernels omit the trailing fields
        values += [0.0] * (_CPU_FIELDS - len(values))
        return CpuSnapshot(*values)

    def read_memory_stats(self) -> MemoryStats:
        """Total and free system memory via psutil."""
        try:
            vm = psutil.virtual_memory()
        except (OSError, psutil.Error) as e:
            raise SourceUnavailable(f"cannot read memory totals: {e}") from e
        if vm.total <= 0:
            raise SourceUnavailable("total memory reported as zero")
        return MemoryStats(total_bytes=vm.total, free_bytes=vm.free)

    def count_logical_cores(self) -> int:
        """Count "processor" entries in /proc/cpuinfo."""
        path = self.proc_root / "cpuinfo"
        try:
            with open(path) as f:
                return sum(1 for line in f if line.startswith("processor"))
        except OSError as e:
            raise SourceUnavailable(f"cannot read {path}: {e}") from e

    def read_max_frequency_ghz(self) -> float:
        """Maximum clock frequency of cpu0 in GHz.

        Falls back to psutil when the cpufreq file is missing (VMs, containers).
        """
        path = self.max_freq_path
        try:
            with open(path) as f:
                khz = float(f.read().strip())
        except OSError:
            log.info("%s unavailable, asking psutil", path)
            return self._psutil_max_frequency_ghz()
        except ValueError as e:
            raise FatalSourceError(f"unparseable frequency in {path}") from e

        if khz <= 0:
            raise FatalSourceError(f"non-positive frequency in {path}")
        return khz / 1_000_000

    def _psutil_max_frequency_ghz(self) -> float:
        try:
            freq = psutil.cpu_freq()
        except (OSError, psutil.Error, NotImplementedError) as e:
            raise FatalSourceError(f"cannot read max CPU frequency: {e}") from e
        if freq is None or not freq.max:
            raise FatalSourceError("max CPU frequency unavailable")
        return freq.max / 1000


# ── CPU utilization ─────────────────────────────────────────────────────────


def calc_cpu_percent(prev: CpuSnapshot, curr: CpuSnapshot) -> float:
    """Utilization between two snapshots: Δbusy / Δtotal * 100, clamped to 0-100."""
    busy_delta = curr.busy - prev.busy
    total_delta = curr.total - prev.total
    if total_delta == 0 or busy_delta == 0:
        return 0.0
    return min(100.0, max(0.0, busy_delta / total_delta * 100.0))


class CpuUtilizationTracker:
    """Two-point sliding window over CPU snapshots.

    The first sample only records a baseline and returns 0.
    """

    def __init__(self, source: MetricSource) -> None:
        self._source = source
        self._prev: CpuSnapshot | None = None

    def sample(self) -> float:
        """Read a fresh snapshot and return utilization since the last one.

        Raises:
            SourceUnavailable: The counters could not be read; the stored
                snapshot is left untouched.
        """
        return self.update(self._source.read_cpu_snapshot())

    def update(self, snapshot: CpuSnapshot) -> float:
        prev, self._prev = self._prev, snapshot
        if prev is None:
            return 0.0
        return calc_cpu_percent(prev, snapshot)
