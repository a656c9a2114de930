"""Readers for the per-process records exposed under the process-table root."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PROC_ROOT = Path("/proc")

# Positions in the whitespace-separated tokens that follow the closing ")"
# of the process name in /proc/<pid>/stat.
STAT_FIELDS: dict[str, int] = {
    "state": 0,
    "ppid": 1,
    "utime": 11,
    "stime": 12,
    "priority": 16,
    "start_time": 19,
}
STAT_MIN_FIELDS = 22

STATUS_UID_KEY = "Uid:"
STATUS_RSS_KEY = "VmRSS:"


@dataclass(slots=True, frozen=True)
class StatRecord:
    """Fields taken from the compact stat line."""

    name: str
    state: str
    ppid: int
    utime: int
    stime: int
    priority: int
    start_time: int


@dataclass(slots=True, frozen=True)
class StatusRecord:
    """Fields taken from the key:value status block. None means not found."""

    uid: str | None = None
    rss_kb: int | None = None


def _int_field(tokens: list[str], field_name: str) -> int:
    token = tokens[STAT_FIELDS[field_name]]
    try:
        return int(token)
    except ValueError:
        logger.debug("Malformed stat field %s=%r", field_name, token)
        return 0


def parse_stat(line: str) -> StatRecord | None:
    """
    Parse one stat line.

    The process name sits between the first "(" and the last ")" and may
    itself contain parentheses or spaces. Returns None when the line has no
    name boundary or too few fields after it.
    """
    start = line.find("(")
    end = line.rfind(")")
    if start == -1 or end == -1 or end < start:
        return None

    name = line[start + 1 : end].replace(" ", "")
    tokens = line[end + 1 :].split()
    if len(tokens) < STAT_MIN_FIELDS:
        return None

    return StatRecord(
        name=name,
        state=tokens[STAT_FIELDS["state"]][0],
        ppid=_int_field(tokens, "ppid"),
        utime=_int_field(tokens, "utime"),
        stime=_int_field(tokens, "stime"),
        priority=_int_field(tokens, "priority"),
        start_time=_int_field(tokens, "start_time"),
    )


def _first_value(line: str, key: str) -> str | None:
    values = line[len(key) :].split()
    return values[0] if values else None


def parse_status(text: str) -> StatusRecord:
    """
    Parse the status block.

    Only the first id on the Uid line (the real uid) is kept. A malformed
    line leaves its field unset without affecting the others.
    """
    uid: str | None = None
    rss_kb: int | None = None

    for line in text.splitlines():
        if line.startswith(STATUS_UID_KEY):
            uid = _first_value(line, STATUS_UID_KEY)
        elif line.startswith(STATUS_RSS_KEY):
            value = _first_value(line, STATUS_RSS_KEY)
            try:
                rss_kb = int(value) if value is not None else None
            except ValueError:
                logger.debug("Malformed VmRSS line: %r", line)

    return StatusRecord(uid=uid, rss_kb=rss_kb)


class ProcReader:
    """Reads process records from a process-table root such as /proc."""

    def __init__(self, root: Path | str = DEFAULT_PROC_ROOT) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """The process-table root."""
        return self._root

    def pids(self) -> list[int]:
        """
        List process ids in directory enumeration order.

        Raises:
            OSError: If the root cannot be opened.
        """
        pids: list[int] = []
        with os.scandir(self._root) as entries:
            for entry in entries:
                name = entry.name
                if not (name.isascii() and name.isdigit()):
                    continue
                pid = int(name)
                if pid <= 0:
                    continue
                try:
                    if not entry.is_dir():
                        continue
                except OSError:
                    continue
                pids.append(pid)
        return pids

    def _read_text(self, pid: int, record: str) -> str | None:
        path = self._root / str(pid) / record
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            # Usually the process exited after enumeration
            logger.debug("Cannot read %s: %s", path, exc)
            return None

    def read_stat(self, pid: int) -> StatRecord | None:
        """Read and parse <root>/<pid>/stat, or None if unreadable."""
        text = self._read_text(pid, "stat")
        if not text:
            return None
        # One record per file; the name may hold any line-boundary character
        record = parse_stat(text.rstrip("\n"))
        if record is None:
            logger.debug("Short or malformed stat record for pid %d", pid)
        return record

    def read_status(self, pid: int) -> StatusRecord | None:
        """Read and parse <root>/<pid>/status, or None if unreadable."""
        text = self._read_text(pid, "status")
        if text is None:
            return None
        return parse_status(text)
