"""proctop - Main Textual application."""

import os
from collections.abc import Callable
from pathlib import Path

import structlog
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label, Static

from proctop.commands import Command, InputController
from proctop.control import TerminateResult, terminate_process
from proctop.counters import CounterSource
from proctop.logconfig import configure
from proctop.loop import Phase, Session, apply_command, run_cycle
from proctop.metrics import MetricEngine

log = structlog.get_logger()


class TerminatePrompt(ModalScreen[int | None]):
    """Line-mode prompt asking for the pid to terminate."""

    DEFAULT_CSS = """
    TerminatePrompt {
        align: center middle;
    }

    #prompt {
        width: 44;
        height: auto;
        padding: 1 2;
        border: solid $warning;
        background: $surface;
    }
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def compose(self) -> ComposeResult:
        """Compose the prompt layout."""
        with Vertical(id="prompt"):
            yield Label("PID to terminate (Esc to cancel):")
            yield Input(placeholder="PID", type="integer", id="pid-input")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Dismiss with the entered pid, or None if it is not a number."""
        event.stop()
        try:
            pid = int(event.value)
        except ValueError:
            pid = None
        self.dismiss(pid)

    def action_cancel(self) -> None:
        """Dismiss without a pid."""
        self.dismiss(None)


class ProctopApp(App):
    """Main proctop application."""

    TITLE = "proctop"
    SUB_TITLE = "Process Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #dashboard {
        width: 1fr;
        height: 1fr;
        overflow: hidden;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "interrupt", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        source: CounterSource | None = None,
        terminate: Callable[[int], TerminateResult] = terminate_process,
        owner_lookup: Callable[[int], str] | None = None,
        refresh_interval: float = 1.0,
    ) -> None:
        """
        Initialize the ProctopApp.

        Args:
            source: Counter source to sample. Default: the local system.
            terminate: Sends the termination signal for a pid.
            owner_lookup: Maps a uid to a display name.
            refresh_interval: Maximum wait for input between cycles (seconds).
        """
        super().__init__()
        self._source = source or CounterSource()
        self._terminate = terminate
        self._input = InputController()
        self._session = Session(
            MetricEngine(self._source.clock_ticks, owner_lookup),
            refresh_interval=refresh_interval,
        )

    @property
    def session(self) -> Session:
        """Get the loop session state."""
        return self._session

    @property
    def input_controller(self) -> InputController:
        """Get the keyboard command queue."""
        return self._input

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(id="dashboard")

    def on_mount(self) -> None:
        """Start the main loop once the terminal is ready."""
        self.run_worker(self._main_loop(), name="main-loop", exclusive=True)

    def on_key(self, event: events.Key) -> None:
        """Queue the command bound to a key."""
        if self._input.feed_key(event.key) is not None:
            event.stop()

    async def _main_loop(self) -> None:
        """Cycle until a quit command arrives."""
        session = self._session
        log.info("main_loop_started", refresh_interval=session.refresh_interval)
        while not session.exiting:
            self._refresh_view()

            session.phase = Phase.AWAITING_INPUT
            command = await self._input.poll_command(session.refresh_interval)
            if command is Command.TERMINATE:
                await self._prompt_terminate()
            elif command is not None:
                apply_command(session, command)

        log.info("main_loop_stopped")
        self.exit()

    def _refresh_view(self) -> None:
        """Run one cycle and draw it."""
        lines = run_cycle(self._session, self._source, self.size.height, self.size.width)
        self.query_one("#dashboard", Static).update(Text("\n").join(lines))

    async def _prompt_terminate(self) -> None:
        """Ask for a pid, send the signal and report the outcome."""
        with self._input.prompt():
            pid = await self.push_screen_wait(TerminatePrompt())

        if pid is None:
            self._session.message = "Terminate cancelled"
            return
        result = self._terminate(pid)
        self._session.message = result.message

    def action_interrupt(self) -> None:
        """Leave immediately, even from inside a prompt."""
        self._session.phase = Phase.EXITING
        self.exit()


def main() -> None:
    """Entry point for proctop application."""
    log_file = os.environ.get("PROCTOP_LOG_FILE")
    configure(Path(log_file) if log_file else None)
    app = ProctopApp()
    app.run()


if __name__ == "__main__":
    main()
