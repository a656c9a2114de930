"""Shared fixtures: a fake process-table root built under tmp_path."""

from pathlib import Path

import pytest

from pylpm.identity import IdentityResolver
from pylpm.procfs import ProcReader
from pylpm.snapshot import SnapshotBuilder
from pylpm.system import HostConfig, SystemContext

ACCOUNTS = {0: "root", 1000: "alice"}


def stat_line(
    pid: int,
    name: str,
    state: str = "S",
    ppid: int = 1,
    utime: int = 0,
    stime: int = 0,
    priority: int = 0,
    start_time: int = 0,
    extra: int = 30,
) -> str:
    """A stat line laid out like the kernel's, with `extra` trailing fields."""
    fields = [
        state, ppid, pid, pid, 0, -1, 4194560, 120, 0, 0, 0,
        utime, stime, 0, 0, 20, priority, 1, 0, start_time, 8192000, 512,
    ]
    fields += [0] * extra
    return f"{pid} ({name}) " + " ".join(str(f) for f in fields) + "\n"


def status_text(name: str, uid: str = "0", rss_kb: int | None = 1024) -> str:
    lines = [
        f"Name:\t{name}",
        "State:\tS (sleeping)",
        f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}",
        "Gid:\t0\t0\t0\t0",
    ]
    if rss_kb is not None:
        lines.append(f"VmRSS:\t{rss_kb:>8} kB")
    lines.append("Threads:\t1")
    return "\n".join(lines) + "\n"


class FakeProcFS:
    """Writes process and system records under a directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def add(
        self,
        pid: int,
        name: str = "proc",
        state: str = "S",
        ppid: int = 1,
        utime: int = 0,
        stime: int = 0,
        priority: int = 0,
        start_time: int = 0,
        uid: str = "0",
        rss_kb: int | None = 1024,
    ) -> Path:
        proc_dir = self.root / str(pid)
        proc_dir.mkdir(exist_ok=True)
        (proc_dir / "stat").write_text(
            stat_line(pid, name, state, ppid, utime, stime, priority, start_time)
        )
        (proc_dir / "status").write_text(status_text(name, uid, rss_kb))
        return proc_dir

    def write(self, pid: int, record: str, text: str) -> None:
        proc_dir = self.root / str(pid)
        proc_dir.mkdir(exist_ok=True)
        (proc_dir / record).write_text(text)

    def set_meminfo(self, total_kb: int) -> None:
        (self.root / "meminfo").write_text(
            f"MemTotal:       {total_kb} kB\nMemFree:         1000 kB\n"
        )

    def set_uptime(self, seconds: float) -> None:
        (self.root / "uptime").write_text(f"{seconds:.2f} 1234.56\n")


def fake_lookup(uid: int) -> str:
    return ACCOUNTS[uid]


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProcFS:
    """Fake /proc with 8 GiB of memory and 110 s of uptime."""
    fs = FakeProcFS(tmp_path / "proc")
    fs.set_meminfo(8388608)
    fs.set_uptime(110.0)
    return fs


@pytest.fixture
def host() -> HostConfig:
    return HostConfig(clock_ticks=100, cpu_count=4)


@pytest.fixture
def builder(fake_proc: FakeProcFS, host: HostConfig) -> SnapshotBuilder:
    return SnapshotBuilder(
        reader=ProcReader(fake_proc.root),
        context=SystemContext(fake_proc.root),
        resolver=IdentityResolver(lookup=fake_lookup),
        host=host,
    )
