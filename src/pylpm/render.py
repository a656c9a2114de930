"""Rich rendering helpers shared by the TUI and plain output."""

from collections.abc import Sequence

from rich.markup import escape
from rich.table import Table
from rich.text import Text

from pylpm.models import ProcessEntry, Snapshot

HIGHLIGHT_STYLE = "bold green"

COLUMNS: list[tuple[str, str, int]] = [
    # (label, key, width)
    ("PID", "pid", 8),
    ("PPID", "ppid", 8),
    ("Name", "name", 25),
    ("Owner", "owner", 12),
    ("Memory(%)", "mem", 12),
    ("CPU(%)", "cpu", 10),
    ("Status", "status", 8),
    ("Priority", "priority", 10),
]


def format_kb(size_kb: float) -> str:
    """Format a size in KB as a human-readable string."""
    for unit in ["K", "M", "G", "T"]:
        if size_kb < 1024:
            return f"{size_kb:.1f}{unit}"
        size_kb = size_kb / 1024
    return f"{size_kb:.1f}P"


def format_uptime(uptime: float) -> str:
    """Format seconds as 'N days, HH:MM:SS'."""
    days = int(uptime // 86400)
    hours = int((uptime % 86400) // 3600)
    minutes = int((uptime % 3600) // 60)
    seconds = int(uptime % 60)
    if days > 0:
        return f"{days} days, {hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def percent_cell(value: float, threshold: float) -> Text:
    """A percentage cell, highlighted when above threshold."""
    return Text(f"{value:.1f}", style=HIGHLIGHT_STYLE if value > threshold else "")


def row_cells(
    proc: ProcessEntry, high_cpu: float = 10.0, high_memory: float = 5.0
) -> tuple[str | Text, ...]:
    """Cells for one process row, in COLUMNS order."""
    return (
        str(proc.pid),
        str(proc.ppid),
        Text(proc.name[:24]),
        Text(proc.owner[:11]),
        percent_cell(proc.memory_percent, high_memory),
        percent_cell(proc.cpu_percent, high_cpu),
        Text(proc.state),
        str(proc.priority),
    )


def process_table(
    rows: Sequence[ProcessEntry], high_cpu: float = 10.0, high_memory: float = 5.0
) -> Table:
    """Build a Rich table of processes with a total in the caption."""
    table = Table(
        header_style="bold cyan",
        caption=f"Total Processes: {len(rows)}",
        caption_justify="left",
        box=None,
    )
    for label, _, width in COLUMNS:
        table.add_column(label, min_width=width, no_wrap=True)
    for proc in rows:
        table.add_row(*row_cells(proc, high_cpu, high_memory))
    return table


def summary_line(snapshot: Snapshot, cpu_count: int) -> str:
    """System line shown above the process list."""
    if not snapshot.ok:
        return f"[red]{escape(snapshot.error or '')}[/red]"
    return (
        f"Processes: {len(snapshot)}  "
        f"Memory: {format_kb(snapshot.total_memory_kb)}  "
        f"CPUs: {cpu_count}  "
        f"Uptime: {format_uptime(snapshot.uptime_seconds)}"
    )
