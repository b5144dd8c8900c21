"""One sample -> compute -> sort -> render cycle, and the session it threads."""

from enum import Enum

import structlog
from rich.text import Text

from proctop.commands import SORT_COMMANDS, Command
from proctop.counters import CounterSource
from proctop.errors import ScanError
from proctop.metrics import MetricEngine
from proctop.models import ProcessSnapshot, SystemMetrics
from proctop.render import render
from proctop.sorting import SortState

log = structlog.get_logger()

MIN_REFRESH_INTERVAL = 0.1


class Phase(Enum):
    """States of the main loop."""

    SAMPLING = "sampling"
    COMPUTING = "computing"
    SORTING = "sorting"
    RENDERING = "rendering"
    AWAITING_INPUT = "awaiting-input"
    EXITING = "exiting"


class Session:
    """
    All state carried from one cycle to the next.

    Holds the sort state, the metric engine (which owns the previous-sample
    cache), the last operator message and the current loop phase.
    """

    def __init__(
        self,
        engine: MetricEngine,
        sort_state: SortState | None = None,
        refresh_interval: float = 1.0,
    ) -> None:
        """
        Initialize the Session.

        Args:
            engine: Metric engine used for every cycle.
            sort_state: Initial ordering. Default: CPU% descending.
            refresh_interval: Maximum wait for input between cycles (seconds).
        """
        self.engine = engine
        self.sort_state = sort_state or SortState()
        self.message = ""
        self.phase = Phase.SAMPLING
        self.processes: list[ProcessSnapshot] = []
        self.system: SystemMetrics | None = None
        self._refresh_interval = max(MIN_REFRESH_INTERVAL, refresh_interval)

    @property
    def refresh_interval(self) -> float:
        """Get the refresh interval."""
        return self._refresh_interval

    @refresh_interval.setter
    def refresh_interval(self, value: float) -> None:
        """Set the refresh interval."""
        self._refresh_interval = max(MIN_REFRESH_INTERVAL, value)  # Minimum 0.1 seconds

    @property
    def exiting(self) -> bool:
        """Whether the loop has been asked to stop."""
        return self.phase is Phase.EXITING


def empty_system_metrics() -> SystemMetrics:
    """System metrics shown before any successful scan."""
    return SystemMetrics(
        cpu_percent=0.0,
        total_kb=0,
        available_kb=0,
        memory_percent=None,
        total_processes=0,
        running_processes=0,
    )


def run_cycle(session: Session, source: CounterSource, rows: int, cols: int) -> list[Text]:
    """
    Sample, compute, sort and render one frame.

    If the process table cannot be listed the cycle is skipped: the last
    known metrics are rendered with an error message and the next cycle
    tries again.
    """
    session.phase = Phase.SAMPLING
    try:
        pids = source.list_pids()
        system_counters = source.sample_system()
    except ScanError as e:
        log.warning("scan_failed", error=str(e))
        session.phase = Phase.RENDERING
        return render(
            session.system or empty_system_metrics(),
            session.processes,
            rows,
            cols,
            session.sort_state,
            f"Scan failed: {e}",
        )
    process_counters = source.sample_processes(pids)

    session.phase = Phase.COMPUTING
    system, rated = session.engine.process_cycle(system_counters, process_counters)

    session.phase = Phase.SORTING
    session.system = system
    session.processes = session.sort_state.apply(rated)

    session.phase = Phase.RENDERING
    return render(system, session.processes, rows, cols, session.sort_state, session.message)


def apply_command(session: Session, command: Command) -> bool:
    """
    Apply a sort or quit command to the session.

    Returns False once the loop should exit. TERMINATE needs an interactive
    prompt and is left to the caller.
    """
    if command is Command.QUIT:
        session.phase = Phase.EXITING
        return False
    if command is Command.TOGGLE_REVERSE:
        session.sort_state.toggle()
        session.message = ""
    elif command in SORT_COMMANDS:
        session.sort_state.select(SORT_COMMANDS[command])
        session.message = ""
    return True
