"""Process termination."""

import logging

import psutil

logger = logging.getLogger(__name__)


class TerminationError(Exception):
    """Raised when a signal could not be delivered to a process."""


def _process(pid: int) -> psutil.Process:
    try:
        return psutil.Process(pid)
    except psutil.NoSuchProcess as exc:
        raise TerminationError(f"No process with PID {pid}") from exc


def terminate(pid: int) -> None:
    """
    Send SIGTERM to pid.

    Raises:
        TerminationError: If the process does not exist or cannot be signalled.
    """
    try:
        _process(pid).terminate()
    except psutil.NoSuchProcess as exc:
        raise TerminationError(f"Process {pid} already exited") from exc
    except psutil.AccessDenied as exc:
        raise TerminationError(f"SIGTERM to {pid} failed: permission denied") from exc
    logger.info("Sent SIGTERM to %d", pid)


def kill(pid: int) -> None:
    """
    Send SIGKILL to pid.

    Raises:
        TerminationError: If the process does not exist or cannot be signalled.
    """
    try:
        _process(pid).kill()
    except psutil.NoSuchProcess as exc:
        raise TerminationError(f"Process {pid} already exited") from exc
    except psutil.AccessDenied as exc:
        raise TerminationError(f"SIGKILL to {pid} failed: permission denied") from exc
    logger.info("Sent SIGKILL to %d", pid)
