"""Data models for pylpm."""

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

UNKNOWN_NAME = "N/A"
UNKNOWN_OWNER = "unknown"
UNKNOWN_STATE = "?"


@dataclass(slots=True, frozen=True)
class ProcessEntry:
    """Immutable view of one process at one sampling instant."""

    pid: int
    ppid: int = 0  # 0 when the parent is unknown
    name: str = UNKNOWN_NAME
    state: str = UNKNOWN_STATE  # 'R', 'S', 'Z', 'D', etc.
    priority: int = 0
    owner: str = UNKNOWN_OWNER
    utime: int = 0  # Clock ticks
    stime: int = 0  # Clock ticks
    rss_kb: int = 0
    start_time: int = 0  # Clock ticks since boot
    cpu_percent: float = 0.0  # Lifetime average, not capped at 100
    memory_percent: float = 0.0


@dataclass(slots=True)
class Snapshot:
    """
    One enumeration pass over the process table.

    Entries keep enumeration order until sorted. The only mutation allowed
    after construction is reordering; entries themselves are frozen.
    """

    entries: list[ProcessEntry] = field(default_factory=list)
    total_memory_kb: int = 0
    uptime_seconds: float = 0.0
    error: str | None = None  # Set when the process table could not be opened

    @property
    def ok(self) -> bool:
        """True unless enumeration failed outright."""
        return self.error is None

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ProcessEntry]:
        return iter(self.entries)

    def pids(self) -> list[int]:
        """Process ids in current order."""
        return [entry.pid for entry in self.entries]

    def sort(self, key: Callable[[ProcessEntry], Any], reverse: bool = False) -> None:
        """Reorder entries in place."""
        self.entries.sort(key=key, reverse=reverse)
