"""Exceptions raised by proctop."""


class ProctopError(Exception):
    """Base class for proctop errors."""


class ScanError(ProctopError):
    """The list of live processes could not be read."""


class ProcessSampleError(ProctopError):
    """A single process could not be sampled (vanished, denied, zombie)."""

    def __init__(self, pid: int, reason: str) -> None:
        super().__init__(f"pid {pid}: {reason}")
        self.pid = pid
        self.reason = reason
