"""Shared fixtures for proctop tests."""

import pytest

from proctop.errors import ProcessSampleError, ScanError
from proctop.models import ProcessCounters, SystemCounters


def make_system(
    total_kb: int = 1_000_000,
    available_kb: int = 400_000,
    work: int = 0,
    idle: int = 0,
) -> SystemCounters:
    """Build SystemCounters with all work ticks in ``user``."""
    return SystemCounters(
        total_kb=total_kb,
        available_kb=available_kb,
        user=work,
        nice=0,
        system=0,
        idle=idle,
    )


def make_process(
    pid: int,
    ticks: int = 0,
    name: str | None = None,
    state: str = "S",
    rss_kb: int = 10_000,
    uid: int = 1000,
    start_tick: int = 500,
) -> ProcessCounters:
    """Build ProcessCounters with all CPU ticks in ``utime``."""
    return ProcessCounters(
        pid=pid,
        ppid=1,
        name=name or f"proc{pid}",
        state=state,
        rss_kb=rss_kb,
        vms_kb=rss_kb * 4,
        uid=uid,
        utime=ticks,
        stime=0,
        start_tick=start_tick,
    )


class FakeCounterSource:
    """Counter source replaying scripted cycles.

    Each entry of ``cycles`` is ``(system, processes)``; the last one
    repeats once the script runs out. Pids listed in ``vanished`` fail
    to sample.
    """

    def __init__(self, cycles, clock_ticks: int = 100) -> None:
        self.cycles = list(cycles)
        self.clock_ticks = clock_ticks
        self.vanished: set[int] = set()
        self.fail_listing = False
        self.calls = 0
        self._current = self.cycles[0]

    def list_pids(self) -> list[int]:
        if self.fail_listing:
            raise ScanError("cannot list processes: /proc unavailable")
        index = min(self.calls, len(self.cycles) - 1)
        self.calls += 1
        self._current = self.cycles[index]
        return [proc.pid for proc in self._current[1]]

    def sample_system(self) -> SystemCounters:
        return self._current[0]

    def sample_process(self, pid: int) -> ProcessCounters:
        if pid in self.vanished:
            raise ProcessSampleError(pid, "vanished")
        for proc in self._current[1]:
            if proc.pid == pid:
                return proc
        raise ProcessSampleError(pid, "vanished")

    def sample_processes(self, pids=None) -> list[ProcessCounters]:
        if pids is None:
            pids = self.list_pids()
        samples = []
        for pid in pids:
            try:
                samples.append(self.sample_process(pid))
            except ProcessSampleError:
                continue
        return samples


@pytest.fixture
def fake_source() -> FakeCounterSource:
    """Two-cycle source: pid 10 at 50% CPU, pid 20 idle, system 30% busy."""
    return FakeCounterSource(
        [
            (
                make_system(work=1000, idle=9000),
                [make_process(10, ticks=100), make_process(20, ticks=5)],
            ),
            (
                make_system(work=1300, idle=9700),
                [make_process(10, ticks=150, state="R"), make_process(20, ticks=5)],
            ),
        ]
    )
