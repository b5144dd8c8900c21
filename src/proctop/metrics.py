"""Delta computation turning cumulative counters into utilization."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog

from proctop.models import ProcessCounters, ProcessSnapshot, SystemCounters, SystemMetrics
from proctop.owners import OwnerLookup

log = structlog.get_logger()


@dataclass(slots=True)
class CacheEntry:
    """Last seen cumulative ticks of one process."""

    cpu_ticks: int
    start_tick: int
    generation: int


class SampleCache:
    """
    Previous cycle's cumulative counters, keyed by pid.

    Every entry carries the generation it was last written in; ``sweep``
    evicts pids not observed for ``max_idle_cycles`` cycles so the cache
    stays bounded under pid churn.
    """

    def __init__(self, max_idle_cycles: int = 3) -> None:
        self._entries: dict[int, CacheEntry] = {}
        self._generation = 0
        self._max_idle_cycles = max(1, max_idle_cycles)
        self.prev_total_ticks: int | None = None
        self.prev_work_ticks: int | None = None

    @property
    def generation(self) -> int:
        """Get the current cycle generation."""
        return self._generation

    @property
    def max_idle_cycles(self) -> int:
        """Get the number of cycles an unseen pid is kept."""
        return self._max_idle_cycles

    @max_idle_cycles.setter
    def max_idle_cycles(self, value: int) -> None:
        """Set the number of cycles an unseen pid is kept."""
        self._max_idle_cycles = max(1, value)  # Minimum 1 cycle

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pid: object) -> bool:
        return pid in self._entries

    def begin_cycle(self) -> int:
        """Start a new generation and return it."""
        self._generation += 1
        return self._generation

    def get(self, pid: int) -> CacheEntry | None:
        """Get the previous entry for a pid, if any."""
        return self._entries.get(pid)

    def record(self, pid: int, cpu_ticks: int, start_tick: int) -> None:
        """Store the current cumulative ticks for a pid."""
        self._entries[pid] = CacheEntry(cpu_ticks, start_tick, self._generation)

    def sweep(self) -> int:
        """Evict pids not observed in the last ``max_idle_cycles`` cycles."""
        cutoff = self._generation - self._max_idle_cycles
        stale = [pid for pid, entry in self._entries.items() if entry.generation <= cutoff]
        for pid in stale:
            del self._entries[pid]
        return len(stale)


class MetricEngine:
    """
    Combines current counters with the SampleCache to produce percentages.

    The engine owns the cache and updates it as a side effect of each cycle.
    """

    def __init__(
        self,
        clock_ticks: int = 100,
        owner_lookup: Callable[[int], str] | None = None,
        cache: SampleCache | None = None,
    ) -> None:
        """
        Initialize the MetricEngine.

        Args:
            clock_ticks: Clock ticks per second of the sampled counters.
            owner_lookup: Maps a uid to a display name. Default: cached
                passwd lookup.
            cache: Previous-sample cache. Default: a new empty cache.
        """
        self._clock_ticks = clock_ticks
        self._owner_lookup = owner_lookup or OwnerLookup()
        self._cache = cache if cache is not None else SampleCache()

    @property
    def cache(self) -> SampleCache:
        """Get the previous-sample cache."""
        return self._cache

    @property
    def clock_ticks(self) -> int:
        """Get the clock rate used for per-process CPU%."""
        return self._clock_ticks

    def compute_system_metrics(
        self,
        current: SystemCounters,
        total_processes: int = 0,
        running_processes: int = 0,
    ) -> SystemMetrics:
        """
        Compute system CPU% and memory% and store the new baseline.

        The first call reports CPU% as 0.0. The result is clamped to
        [0, 100]; a non-positive total delta means a counter reset and
        reports 0.0.
        """
        cache = self._cache
        total_now = current.total_ticks
        work_now = current.work_ticks

        cpu_percent = 0.0
        if cache.prev_total_ticks is not None and cache.prev_work_ticks is not None:
            total_delta = total_now - cache.prev_total_ticks
            work_delta = work_now - cache.prev_work_ticks
            if total_delta > 0:
                cpu_percent = min(max(work_delta / total_delta * 100.0, 0.0), 100.0)
            else:
                log.debug("system_counters_reset", total_delta=total_delta)

        cache.prev_total_ticks = total_now
        cache.prev_work_ticks = work_now

        memory_percent = None
        if current.total_kb > 0:
            used = current.total_kb - current.available_kb
            memory_percent = used / current.total_kb * 100.0

        return SystemMetrics(
            cpu_percent=cpu_percent,
            total_kb=current.total_kb,
            available_kb=current.available_kb,
            memory_percent=memory_percent,
            total_processes=total_processes,
            running_processes=running_processes,
        )

    def compute_process_metrics(self, current: ProcessCounters, total_kb: int) -> ProcessSnapshot:
        """
        Rate one process against its cached previous sample.

        CPU% stays None when there is no previous sample, when the pid was
        recycled (start tick changed) or when the counters went backwards.
        """
        cpu_percent = None
        entry = self._cache.get(current.pid)
        if entry is not None and entry.start_tick == current.start_tick:
            delta = current.cpu_ticks - entry.cpu_ticks
            if delta >= 0:
                cpu_percent = delta / self._clock_ticks * 100.0

        memory_percent = None
        if total_kb > 0:
            memory_percent = current.rss_kb / total_kb * 100.0

        return ProcessSnapshot(
            pid=current.pid,
            ppid=current.ppid,
            name=current.name,
            owner=self._owner_lookup(current.uid),
            state=current.state,
            cpu_percent=cpu_percent,
            memory_percent=memory_percent,
            rss_kb=current.rss_kb,
            vms_kb=current.vms_kb,
        )

    def update_cache(self, current: ProcessCounters) -> None:
        """Remember the current cumulative ticks of a process."""
        self._cache.record(current.pid, current.cpu_ticks, current.start_tick)

    def process_cycle(
        self,
        system: SystemCounters,
        processes: Iterable[ProcessCounters],
    ) -> tuple[SystemMetrics, list[ProcessSnapshot]]:
        """
        Run one full metric pass.

        Returns the system metrics and the rated processes in enumeration
        order. Every sampled process is written to the cache, rated or not.
        """
        self._cache.begin_cycle()

        sampled = 0
        running = 0
        rated: list[ProcessSnapshot] = []
        for counters in processes:
            sampled += 1
            if counters.state == "R":
                running += 1
            snapshot = self.compute_process_metrics(counters, system.total_kb)
            self.update_cache(counters)
            if snapshot.is_rated:
                rated.append(snapshot)

        evicted = self._cache.sweep()
        if evicted:
            log.debug("sample_cache_evicted", count=evicted, size=len(self._cache))

        system_metrics = self.compute_system_metrics(system, sampled, running)
        return system_metrics, rated
