"""System-wide values used to normalise per-process numbers."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import psutil

from pylpm.procfs import DEFAULT_PROC_ROOT

logger = logging.getLogger(__name__)

FALLBACK_CLOCK_TICKS = 100


@dataclass(slots=True, frozen=True)
class HostConfig:
    """Host constants resolved once at startup."""

    clock_ticks: int  # Scheduler ticks per second
    cpu_count: int

    @classmethod
    def detect(cls) -> "HostConfig":
        """Query the running host."""
        try:
            clock_ticks = os.sysconf("SC_CLK_TCK")
        except (ValueError, OSError):
            logger.warning("SC_CLK_TCK unavailable, assuming %d", FALLBACK_CLOCK_TICKS)
            clock_ticks = FALLBACK_CLOCK_TICKS
        return cls(clock_ticks=clock_ticks, cpu_count=psutil.cpu_count() or 1)


class SystemContext:
    """
    Reads total memory and uptime from the process-table root.

    Both values are re-read on every call. Unreadable records yield 0 so
    callers can skip normalisation instead of dividing by zero.
    """

    def __init__(self, root: Path | str = DEFAULT_PROC_ROOT) -> None:
        self._root = Path(root)

    def _first_line(self, record: str) -> str | None:
        path = self._root / record
        try:
            with open(path, encoding="utf-8") as handle:
                return handle.readline()
        except OSError as exc:
            logger.debug("Cannot read %s: %s", path, exc)
            return None

    def total_memory_kb(self) -> int:
        """Total memory in KB from the first meminfo line, or 0."""
        line = self._first_line("meminfo")
        if line is None:
            return 0
        try:
            # "MemTotal:       16318504 kB"
            return int(line.split()[1])
        except (IndexError, ValueError):
            logger.debug("Malformed meminfo line: %r", line)
            return 0

    def uptime_seconds(self) -> float:
        """Seconds since boot from the uptime record, or 0.0."""
        line = self._first_line("uptime")
        if line is None:
            return 0.0
        try:
            return float(line.split()[0])
        except (IndexError, ValueError):
            logger.debug("Malformed uptime line: %r", line)
            return 0.0
