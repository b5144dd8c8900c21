"""Keyboard command handling for proctop."""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

import structlog

from proctop.sorting import SortKey

log = structlog.get_logger()


class Command(Enum):
    """Commands the operator can issue from the keyboard."""

    QUIT = "quit"
    SORT_PID = "sort-pid"
    SORT_NAME = "sort-name"
    SORT_STATE = "sort-state"
    SORT_USER = "sort-user"
    SORT_CPU = "sort-cpu"
    SORT_MEM = "sort-mem"
    SORT_RSS = "sort-rss"
    TOGGLE_REVERSE = "toggle-reverse"
    TERMINATE = "terminate"


SORT_COMMANDS: dict[Command, SortKey] = {
    Command.SORT_PID: SortKey.PID,
    Command.SORT_NAME: SortKey.NAME,
    Command.SORT_STATE: SortKey.STATE,
    Command.SORT_USER: SortKey.USER,
    Command.SORT_CPU: SortKey.CPU,
    Command.SORT_MEM: SortKey.MEM,
    Command.SORT_RSS: SortKey.RSS,
}

KEYMAP: dict[str, Command] = {
    "q": Command.QUIT,
    "c": Command.SORT_CPU,
    "m": Command.SORT_MEM,
    "p": Command.SORT_PID,
    "n": Command.SORT_NAME,
    "u": Command.SORT_USER,
    "s": Command.SORT_STATE,
    "x": Command.SORT_RSS,
    "r": Command.TOGGLE_REVERSE,
    "k": Command.TERMINATE,
}

# Number keys pick a sort key in SortKey order: PID, NAME, STATE, USER, CPU, MEM, RSS
KEYMAP.update({str(i): command for i, command in enumerate(SORT_COMMANDS, start=1)})


def command_for_key(key: str) -> Command | None:
    """Translate a key name to a command, ignoring case."""
    return KEYMAP.get(key.lower())


class InputController:
    """
    Queue of pending keyboard commands.

    Keys are fed in by the terminal layer; the main loop waits for the next
    command with a bounded timeout. While a prompt is active keys are not
    treated as commands.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Command] = asyncio.Queue()
        self._prompting = False

    @property
    def prompting(self) -> bool:
        """Whether a line-mode prompt is currently active."""
        return self._prompting

    def feed_key(self, key: str) -> Command | None:
        """Translate a key and queue its command. Returns the command, if any."""
        if self._prompting:
            return None
        command = command_for_key(key)
        if command is not None:
            self._queue.put_nowait(command)
        return command

    async def poll_command(self, timeout: float) -> Command | None:
        """
        Wait up to ``timeout`` seconds for the next command.

        None means no input arrived; the caller should start the next cycle.
        """
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=max(timeout, 0.0))
        except asyncio.TimeoutError:
            return None

    def clear(self) -> None:
        """Discard any commands not yet polled."""
        while not self._queue.empty():
            self._queue.get_nowait()

    @contextmanager
    def prompt(self) -> Iterator[None]:
        """Suspend command keys for the duration of a line-mode prompt."""
        self.clear()
        self._prompting = True
        log.debug("prompt_mode_entered")
        try:
            yield
        finally:
            self._prompting = False
            self.clear()
            log.debug("prompt_mode_exited")
