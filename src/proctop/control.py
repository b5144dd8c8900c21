"""Process control actions."""

from dataclasses import dataclass

import psutil
import structlog

log = structlog.get_logger()


@dataclass(slots=True, frozen=True)
class TerminateResult:
    """Outcome of a termination request."""

    pid: int
    ok: bool
    message: str


def terminate_process(pid: int) -> TerminateResult:
    """
    Send SIGTERM to a process.

    Reports only whether the OS accepted the signal; it does not wait for
    the process to exit.
    """
    if pid <= 0:
        return TerminateResult(pid, False, f"Invalid PID {pid}")
    try:
        psutil.Process(pid).terminate()
    except psutil.NoSuchProcess:
        log.info("terminate_failed", pid=pid, reason="no such process")
        return TerminateResult(pid, False, f"No such process: {pid}")
    except psutil.AccessDenied:
        log.info("terminate_failed", pid=pid, reason="access denied")
        return TerminateResult(pid, False, f"Permission denied: {pid}")
    except OSError as e:
        log.warning("terminate_failed", pid=pid, reason=str(e))
        return TerminateResult(pid, False, f"Failed to terminate {pid}: {e}")
    log.info("terminate_sent", pid=pid)
    return TerminateResult(pid, True, f"Sent SIGTERM to {pid}")
