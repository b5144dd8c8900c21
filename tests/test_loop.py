"""Tests for the main loop cycle and session state."""

import pytest

from conftest import FakeCounterSource, make_process, make_system
from proctop.commands import Command
from proctop.loop import Phase, Session, apply_command, run_cycle
from proctop.metrics import MetricEngine
from proctop.render import FIXED_HEADER_ROWS
from proctop.sorting import SortKey


def new_session() -> Session:
    return Session(MetricEngine(clock_ticks=100, owner_lookup=str))


def body(lines) -> list[int]:
    """Pids shown in the table body."""
    return [int(line.plain.split()[0]) for line in lines[FIXED_HEADER_ROWS:]]


class TestSession:
    """Tests for Session configuration."""

    def test_defaults(self):
        """Test a new session sorts by CPU and refreshes every second."""
        session = new_session()

        assert session.sort_state.key is SortKey.CPU
        assert session.refresh_interval == 1.0
        assert session.phase is Phase.SAMPLING
        assert not session.exiting

    def test_refresh_interval_minimum(self):
        """Test the refresh interval has a minimum value."""
        session = Session(MetricEngine(), refresh_interval=0.0)
        assert session.refresh_interval >= 0.1

        session.refresh_interval = 0.01
        assert session.refresh_interval >= 0.1


class TestRunCycle:
    """Tests for run_cycle."""

    def test_first_cycle_empty_table(self, fake_source):
        """Test nothing is listed until a second sample exists."""
        session = new_session()
        lines = run_cycle(session, fake_source, rows=24, cols=100)

        assert body(lines) == []
        assert "0.0%" in lines[0].plain
        assert session.phase is Phase.RENDERING

    def test_second_cycle_sorted_by_cpu(self, fake_source):
        """Test the second cycle lists rated processes, busiest first."""
        session = new_session()
        run_cycle(session, fake_source, rows=24, cols=100)
        lines = run_cycle(session, fake_source, rows=24, cols=100)

        assert body(lines) == [10, 20]
        assert "30.0%" in lines[0].plain
        assert session.processes[0].cpu_percent == pytest.approx(50.0)

    def test_process_vanishing_mid_scan(self, fake_source):
        """Test a process that fails to sample is dropped without error."""
        session = new_session()
        run_cycle(session, fake_source, rows=24, cols=100)
        fake_source.vanished.add(20)
        lines = run_cycle(session, fake_source, rows=24, cols=100)

        assert body(lines) == [10]

    def test_process_gone_next_cycle(self):
        """Test a process present in cycle 1 but not cycle 2 is not shown."""
        source = FakeCounterSource(
            [
                (make_system(), [make_process(1), make_process(2)]),
                (make_system(), [make_process(1)]),
            ]
        )
        session = new_session()
        run_cycle(session, source, rows=24, cols=100)
        lines = run_cycle(session, source, rows=24, cols=100)

        assert body(lines) == [1]

    def test_scan_failure_skips_cycle(self, fake_source):
        """Test a failed process listing shows a message and retries next cycle."""
        session = new_session()
        run_cycle(session, fake_source, rows=24, cols=100)

        fake_source.fail_listing = True
        lines = run_cycle(session, fake_source, rows=24, cols=100)
        assert "Scan failed" in lines[3].plain

        fake_source.fail_listing = False
        lines = run_cycle(session, fake_source, rows=24, cols=100)
        assert body(lines) == [10, 20]

    def test_small_terminal(self, fake_source):
        """Test a terminal smaller than the header renders the summary only."""
        session = new_session()
        run_cycle(session, fake_source, rows=24, cols=100)
        lines = run_cycle(session, fake_source, rows=2, cols=100)

        assert len(lines) == 1


class TestApplyCommand:
    """Tests for apply_command."""

    def test_quit(self):
        """Test quit ends the loop."""
        session = new_session()

        assert apply_command(session, Command.QUIT) is False
        assert session.phase is Phase.EXITING
        assert session.exiting

    def test_sort_commands(self):
        """Test sort commands change key and direction."""
        session = new_session()

        assert apply_command(session, Command.SORT_PID)
        assert session.sort_state.key is SortKey.PID
        assert not session.sort_state.descending

        apply_command(session, Command.TOGGLE_REVERSE)
        assert session.sort_state.descending

        apply_command(session, Command.SORT_PID)
        assert not session.sort_state.descending

    def test_sort_clears_message(self):
        """Test a new sort replaces the last operator message."""
        session = new_session()
        session.message = "Sent SIGTERM to 99"

        apply_command(session, Command.SORT_MEM)
        assert session.message == ""

    def test_reorder_applies_next_cycle(self, fake_source):
        """Test the table follows a sort command on the next cycle."""
        session = new_session()
        run_cycle(session, fake_source, rows=24, cols=100)
        apply_command(session, Command.SORT_PID)
        apply_command(session, Command.TOGGLE_REVERSE)
        lines = run_cycle(session, fake_source, rows=24, cols=100)

        assert body(lines) == [20, 10]
