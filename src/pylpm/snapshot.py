"""Snapshot builder: enumerates processes and assembles entries."""

import logging
from pathlib import Path

from pylpm.identity import IdentityResolver
from pylpm.metrics import cpu_percent, memory_percent
from pylpm.models import ProcessEntry, Snapshot
from pylpm.procfs import DEFAULT_PROC_ROOT, ProcReader
from pylpm.system import HostConfig, SystemContext

logger = logging.getLogger(__name__)


class SnapshotBuilder:
    """
    Builds a Snapshot of every process under the process-table root.

    Per-process failures degrade to sentinel values and never remove an
    entry. Only an unreadable root is reported, through Snapshot.error.
    """

    def __init__(
        self,
        reader: ProcReader,
        context: SystemContext,
        resolver: IdentityResolver,
        host: HostConfig,
    ) -> None:
        self._reader = reader
        self._context = context
        self._resolver = resolver
        self._host = host

    @classmethod
    def for_root(
        cls,
        root: Path | str = DEFAULT_PROC_ROOT,
        host: HostConfig | None = None,
    ) -> "SnapshotBuilder":
        """Create a builder with default collaborators reading from root."""
        return cls(
            reader=ProcReader(root),
            context=SystemContext(root),
            resolver=IdentityResolver(),
            host=host or HostConfig.detect(),
        )

    @property
    def host(self) -> HostConfig:
        """Host constants used for normalisation."""
        return self._host

    def build(self) -> Snapshot:
        """Enumerate the process table and build one entry per process."""
        try:
            pids = self._reader.pids()
        except OSError as exc:
            message = f"Error opening {self._reader.root}: {exc}"
            logger.error(message)
            return Snapshot(error=message)

        self._resolver.clear()
        total_kb = self._context.total_memory_kb()
        uptime = self._context.uptime_seconds()

        entries = [self.build_entry(pid, total_kb, uptime) for pid in pids]
        logger.debug("Built snapshot with %d processes", len(entries))
        return Snapshot(entries=entries, total_memory_kb=total_kb, uptime_seconds=uptime)

    def build_entry(self, pid: int, total_kb: int, uptime: float) -> ProcessEntry:
        """
        Build the entry for one pid.

        A vanished or malformed record leaves the affected fields at their
        sentinel defaults.
        """
        fields: dict = {}

        stat = self._reader.read_stat(pid)
        if stat is not None:
            fields.update(
                name=stat.name,
                state=stat.state,
                ppid=stat.ppid,
                priority=stat.priority,
                utime=stat.utime,
                stime=stat.stime,
                start_time=stat.start_time,
                cpu_percent=cpu_percent(
                    stat.utime,
                    stat.stime,
                    stat.start_time,
                    uptime,
                    self._host.clock_ticks,
                ),
            )

        status = self._reader.read_status(pid)
        if status is not None:
            fields["owner"] = self._resolver.resolve_text(status.uid)
            if status.rss_kb is not None:
                fields["rss_kb"] = status.rss_kb
                fields["memory_percent"] = memory_percent(status.rss_kb, total_kb)

        return ProcessEntry(pid=pid, **fields)
