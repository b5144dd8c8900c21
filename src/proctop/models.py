"""Data models for proctop."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class SystemCounters:
    """Cumulative system-wide counters read at a single instant."""

    total_kb: int
    available_kb: int
    user: int
    nice: int
    system: int
    idle: int
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0

    @property
    def work_ticks(self) -> int:
        """Ticks spent doing work (user + nice + system)."""
        return self.user + self.nice + self.system

    @property
    def total_ticks(self) -> int:
        """Sum of all eight tick buckets."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )


@dataclass(slots=True, frozen=True)
class ProcessCounters:
    """Cumulative counters of one live process."""

    pid: int
    ppid: int
    name: str
    state: str  # 'R', 'S', 'Z', 'D', etc.
    rss_kb: int
    vms_kb: int
    uid: int
    utime: int  # Clock ticks
    stime: int  # Clock ticks
    start_tick: int  # Clock ticks since boot

    @property
    def cpu_ticks(self) -> int:
        """Total ticks consumed in user and kernel mode."""
        return self.utime + self.stime


@dataclass(slots=True, frozen=True)
class SystemMetrics:
    """System-wide utilization derived for one cycle."""

    cpu_percent: float
    total_kb: int
    available_kb: int
    memory_percent: float | None
    total_processes: int
    running_processes: int

    @property
    def used_kb(self) -> int:
        """Memory in use (total minus available)."""
        return max(self.total_kb - self.available_kb, 0)


@dataclass(slots=True, frozen=True)
class ProcessSnapshot:
    """Immutable snapshot of a process with its derived metrics.

    ``cpu_percent`` and ``memory_percent`` are None while unrated.
    """

    pid: int
    ppid: int
    name: str
    owner: str
    state: str
    cpu_percent: float | None  # 0.0 - 100.0 * core_count
    memory_percent: float | None
    rss_kb: int
    vms_kb: int

    @property
    def is_rated(self) -> bool:
        """True once both percentages are known."""
        return self.cpu_percent is not None and self.memory_percent is not None
