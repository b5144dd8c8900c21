"""Raw OS counter acquisition for proctop."""

import os
from collections.abc import Iterable

import psutil
import structlog

from proctop.errors import ProcessSampleError, ScanError
from proctop.models import ProcessCounters, SystemCounters

log = structlog.get_logger()

# psutil status strings mapped back to the kernel's single-character codes
STATUS_CODES: dict[str, str] = {
    psutil.STATUS_RUNNING: "R",
    psutil.STATUS_SLEEPING: "S",
    psutil.STATUS_DISK_SLEEP: "D",
    psutil.STATUS_STOPPED: "T",
    psutil.STATUS_TRACING_STOP: "t",
    psutil.STATUS_ZOMBIE: "Z",
    psutil.STATUS_DEAD: "X",
    "wake-kill": "K",  # not exported by psutil
    psutil.STATUS_WAKING: "W",
    psutil.STATUS_IDLE: "I",
    psutil.STATUS_LOCKED: "L",
    psutil.STATUS_WAITING: "W",
    psutil.STATUS_PARKED: "P",
}

CPU_BUCKETS = ("user", "nice", "system", "idle", "iowait", "irq", "softirq", "steal")


def clock_ticks_per_second() -> int:
    """Return the kernel clock rate (USER_HZ), 100 when it cannot be queried."""
    try:
        ticks = os.sysconf("SC_CLK_TCK")
    except (AttributeError, ValueError, OSError):
        return 100
    return ticks if ticks > 0 else 100


def status_code(status: str) -> str:
    """Convert a psutil status string to a single-character state code."""
    return STATUS_CODES.get(status, "?")


class CounterSource:
    """
    Reads cumulative system and per-process counters using psutil.

    psutil reports CPU times in seconds; they are converted back to clock
    ticks so deltas stay integral. Memory figures are reported in KB.
    """

    def __init__(self, clock_ticks: int | None = None) -> None:
        """
        Initialize the CounterSource.

        Args:
            clock_ticks: Clock ticks per second. Default: queried from the OS.
        """
        self._clock_ticks = clock_ticks or clock_ticks_per_second()
        self._boot_time = psutil.boot_time()

    @property
    def clock_ticks(self) -> int:
        """Get the clock rate used for tick conversion."""
        return self._clock_ticks

    def _to_ticks(self, seconds: float) -> int:
        return round(seconds * self._clock_ticks)

    def list_pids(self) -> list[int]:
        """
        List the ids of all live processes.

        Raises:
            ScanError: If the process table cannot be listed at all.
        """
        try:
            return sorted(pid for pid in psutil.pids() if pid > 0)
        except OSError as e:
            raise ScanError(f"cannot list processes: {e}") from e

    def sample_system(self) -> SystemCounters:
        """
        Read memory totals and the cumulative CPU tick buckets.

        Raises:
            ScanError: If the system counters cannot be read.
        """
        try:
            times = psutil.cpu_times()
            mem = psutil.virtual_memory()
        except OSError as e:
            raise ScanError(f"cannot read system counters: {e}") from e
        # Buckets not reported on this platform read as zero
        buckets = {name: self._to_ticks(getattr(times, name, 0.0)) for name in CPU_BUCKETS}
        return SystemCounters(
            total_kb=mem.total // 1024,
            available_kb=mem.available // 1024,
            **buckets,
        )

    def sample_process(self, pid: int) -> ProcessCounters:
        """
        Read the counters of a single process.

        Raises:
            ProcessSampleError: If the process vanished, is a zombie or its
                records are unreadable.
        """
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                name = proc.name()
                status = proc.status()
                ppid = proc.ppid()
                mem = proc.memory_info()
                uid = proc.uids().real
                times = proc.cpu_times()
                created = proc.create_time()
        except psutil.ZombieProcess as e:
            raise ProcessSampleError(pid, "zombie") from e
        except psutil.NoSuchProcess as e:
            raise ProcessSampleError(pid, "vanished") from e
        except psutil.AccessDenied as e:
            raise ProcessSampleError(pid, "access denied") from e
        except OSError as e:
            raise ProcessSampleError(pid, str(e)) from e

        if not name:
            raise ProcessSampleError(pid, "empty name")

        return ProcessCounters(
            pid=pid,
            ppid=ppid,
            name=name,
            state=status_code(status),
            rss_kb=mem.rss // 1024,
            vms_kb=mem.vms // 1024,
            uid=uid,
            utime=self._to_ticks(times.user),
            stime=self._to_ticks(times.system),
            start_tick=max(self._to_ticks(created - self._boot_time), 0),
        )

    def sample_processes(self, pids: Iterable[int] | None = None) -> list[ProcessCounters]:
        """
        Sample every live process, dropping the ones that fail.

        A process that disappears between enumeration and read is left out
        of the result; it never aborts the scan.

        Raises:
            ScanError: If ``pids`` is not given and the listing fails.
        """
        if pids is None:
            pids = self.list_pids()

        samples: list[ProcessCounters] = []
        for pid in pids:
            try:
                samples.append(self.sample_process(pid))
            except ProcessSampleError as e:
                log.debug("process_sample_dropped", pid=e.pid, reason=e.reason)
                continue
        return samples
