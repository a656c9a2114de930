"""Sort, filter, group and expand views over process entries."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pylpm.models import ProcessEntry


class SortKey(Enum):
    """Sort keys for the process list."""

    MEMORY = "memory"
    PRIORITY = "priority"
    PID = "pid"
    PPID = "ppid"
    NAME = "name"
    CPU = "cpu"


SORT_FUNCS: dict[SortKey, Callable[[ProcessEntry], Any]] = {
    SortKey.MEMORY: lambda p: p.memory_percent,
    SortKey.PRIORITY: lambda p: p.priority,
    SortKey.PID: lambda p: p.pid,
    SortKey.PPID: lambda p: p.ppid,
    SortKey.NAME: lambda p: p.name,
    SortKey.CPU: lambda p: p.cpu_percent,
}


class FilterKey(Enum):
    """Fields the process list can be filtered on."""

    MEMORY = "memory"
    PRIORITY = "priority"
    NAME = "name"
    OWNER = "owner"
    CPU = "cpu"


class GroupKey(Enum):
    """Fields the process list can be grouped by."""

    OWNER = "owner"
    PARENT = "parent"


def sort_entries(
    entries: Iterable[ProcessEntry], key: SortKey, descending: bool = False
) -> list[ProcessEntry]:
    """Return entries sorted by key."""
    return sorted(entries, key=SORT_FUNCS[key], reverse=descending)


def filter_entries(
    entries: Iterable[ProcessEntry], key: FilterKey, value: str
) -> list[ProcessEntry]:
    """
    Return entries matching a filter.

    Numeric keys keep entries strictly above the threshold; name and owner
    keep entries containing value.

    Raises:
        ValueError: If a numeric threshold cannot be parsed.
    """
    if key is FilterKey.NAME:
        return [p for p in entries if value in p.name]
    if key is FilterKey.OWNER:
        return [p for p in entries if value in p.owner]
    if key is FilterKey.PRIORITY:
        priority = int(value)
        return [p for p in entries if p.priority > priority]

    threshold = float(value)
    if key is FilterKey.MEMORY:
        return [p for p in entries if p.memory_percent > threshold]
    return [p for p in entries if p.cpu_percent > threshold]


def group_by_owner(entries: Iterable[ProcessEntry]) -> dict[str, list[ProcessEntry]]:
    """Group entries by owner name, keys sorted."""
    groups: dict[str, list[ProcessEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.owner, []).append(entry)
    return dict(sorted(groups.items()))


def group_by_parent(entries: Iterable[ProcessEntry]) -> dict[int, list[ProcessEntry]]:
    """Group entries by parent pid, keys sorted."""
    groups: dict[int, list[ProcessEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.ppid, []).append(entry)
    return dict(sorted(groups.items()))


def owned_by(entries: Iterable[ProcessEntry], owner: str) -> list[ProcessEntry]:
    """Entries whose owner is exactly owner."""
    return [p for p in entries if p.owner == owner]


def children_of(entries: Iterable[ProcessEntry], ppid: int) -> list[ProcessEntry]:
    """Entries whose parent is ppid."""
    return [p for p in entries if p.ppid == ppid]


@dataclass(slots=True)
class ViewState:
    """What the user is currently looking at: sort order, filter and expansion."""

    sort_key: SortKey | None = None
    descending: bool = False
    filter_key: FilterKey | None = None
    filter_value: str = ""
    expand_key: GroupKey | None = None
    expand_value: str = ""

    def set_sort(self, key: SortKey, descending: bool = False) -> None:
        self.sort_key = key
        self.descending = descending

    def cycle_sort(self) -> SortKey:
        """Move to the next sort key, numeric metrics descending by default."""
        keys = list(SortKey)
        if self.sort_key is None:
            next_key = keys[0]
        else:
            next_key = keys[(keys.index(self.sort_key) + 1) % len(keys)]
        self.set_sort(next_key, next_key in (SortKey.CPU, SortKey.MEMORY))
        return next_key

    def set_filter(self, key: FilterKey, value: str) -> None:
        """
        Set a filter after validating its value.

        Raises:
            ValueError: If value is not a valid threshold for key.
        """
        if key in (FilterKey.MEMORY, FilterKey.CPU):
            float(value)
        elif key is FilterKey.PRIORITY:
            int(value)
        self.filter_key = key
        self.filter_value = value

    def set_expand(self, key: GroupKey, value: str) -> None:
        if key is GroupKey.PARENT:
            int(value)
        self.expand_key = key
        self.expand_value = value

    def reset(self) -> None:
        """Drop filter and expansion, keep sort order."""
        self.filter_key = None
        self.filter_value = ""
        self.expand_key = None
        self.expand_value = ""

    def apply(self, entries: Iterable[ProcessEntry]) -> list[ProcessEntry]:
        """Return the visible rows for entries."""
        rows = list(entries)
        if self.expand_key is GroupKey.OWNER:
            rows = owned_by(rows, self.expand_value)
        elif self.expand_key is GroupKey.PARENT:
            rows = children_of(rows, int(self.expand_value))
        if self.filter_key is not None:
            rows = filter_entries(rows, self.filter_key, self.filter_value)
        if self.sort_key is not None:
            rows = sort_entries(rows, self.sort_key, self.descending)
        return rows

    def describe(self) -> str:
        """One-line summary of the active view."""
        parts = []
        if self.sort_key is not None:
            order = "desc" if self.descending else "asc"
            parts.append(f"sort: {self.sort_key.value} {order}")
        if self.filter_key is not None:
            parts.append(f"filter: {self.filter_key.value} {self.filter_value}")
        if self.expand_key is GroupKey.OWNER:
            parts.append(f"owner: {self.expand_value}")
        elif self.expand_key is GroupKey.PARENT:
            parts.append(f"children of: {self.expand_value}")
        return " | ".join(parts) if parts else "all processes"
