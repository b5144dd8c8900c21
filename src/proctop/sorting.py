"""Process table ordering."""

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from proctop.models import ProcessSnapshot


class SortKey(Enum):
    """Sort keys for the process table, in column order."""

    PID = "pid"
    NAME = "name"
    STATE = "state"
    USER = "user"
    CPU = "cpu"
    MEM = "mem"
    RSS = "rss"


# Keys that start out descending when newly selected
DESCENDING_BY_DEFAULT = frozenset({SortKey.CPU, SortKey.MEM})

_KEY_FUNCS: dict[SortKey, Callable[[ProcessSnapshot], Any]] = {
    SortKey.PID: lambda p: p.pid,
    SortKey.NAME: lambda p: p.name,
    SortKey.STATE: lambda p: p.state,
    SortKey.USER: lambda p: p.owner,
    SortKey.CPU: lambda p: p.cpu_percent or 0.0,
    SortKey.MEM: lambda p: p.memory_percent or 0.0,
    SortKey.RSS: lambda p: p.rss_kb,
}


def sort_processes(
    processes: Iterable[ProcessSnapshot],
    key: SortKey,
    descending: bool = False,
) -> list[ProcessSnapshot]:
    """
    Sort processes by a key.

    Text compares by code point, which matches UTF-8 byte order. The sort is
    stable in both directions: ties keep their enumeration order.
    """
    return sorted(processes, key=_KEY_FUNCS[key], reverse=descending)


class SortState:
    """Current sort key and direction of the table."""

    def __init__(self, key: SortKey = SortKey.CPU, descending: bool | None = None) -> None:
        self._key = key
        self._descending = key in DESCENDING_BY_DEFAULT if descending is None else descending

    @property
    def key(self) -> SortKey:
        """Get current sort key."""
        return self._key

    @property
    def descending(self) -> bool:
        """Whether the current order is descending."""
        return self._descending

    def select(self, key: SortKey) -> SortKey:
        """
        Select a sort key.

        Selecting the active key flips the direction; a new key starts in
        its default direction.
        """
        if key is self._key:
            self._descending = not self._descending
        else:
            self._key = key
            self._descending = key in DESCENDING_BY_DEFAULT
        return self._key

    def toggle(self) -> bool:
        """Reverse the current direction and return it."""
        self._descending = not self._descending
        return self._descending

    def apply(self, processes: Iterable[ProcessSnapshot]) -> list[ProcessSnapshot]:
        """Sort processes by the current key and direction."""
        return sort_processes(processes, self._key, self._descending)
