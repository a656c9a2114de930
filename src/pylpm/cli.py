"""Command-line entry point for pylpm."""

import argparse
import logging
import signal
import sys
import threading

from rich.console import Console

from pylpm.config import AppConfig, config_from_args, env_default
from pylpm.models import Snapshot
from pylpm.monitor import refresh_loop
from pylpm.render import process_table, summary_line
from pylpm.snapshot import SnapshotBuilder
from pylpm.views import SortKey, ViewState

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("pylpm")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="pylpm",
        description="Inspect Linux processes: CPU and memory usage read from /proc",
    )
    ap.add_argument(
        "--proc-root",
        default=env_default("PROC_ROOT", "/proc"),
        help="process table root (default: /proc, env PYLPM_PROC_ROOT)",
    )
    ap.add_argument(
        "--interval",
        type=float,
        default=env_default("INTERVAL", "2.0"),
        help="auto-refresh interval in seconds, minimum 1 (env PYLPM_INTERVAL)",
    )
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="print one snapshot and exit")
    mode.add_argument("--watch", action="store_true", help="reprint every interval until Ctrl+C")
    ap.add_argument("--sort", choices=[key.value for key in SortKey], default=None)
    ap.add_argument("--descending", action="store_true", help="sort in descending order")
    ap.add_argument("--high-cpu", type=float, default=10.0, help="highlight CPU%% above this")
    ap.add_argument("--high-memory", type=float, default=5.0, help="highlight memory%% above this")
    ap.add_argument(
        "--log-level",
        default=env_default("LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "debug", "info", "warning", "error"],
    )
    ap.add_argument("--log-file", default=env_default("LOG_FILE"), help="also log to this file")
    return ap


def configure_logging(config: AppConfig, tui: bool) -> None:
    """Route log records to stderr, or to Textual's log when the TUI owns the screen."""
    handlers: list[logging.Handler] = []
    if tui:
        from textual.logging import TextualHandler

        handlers.append(TextualHandler())
    else:
        handlers.append(logging.StreamHandler(sys.stderr))
    if config.log_file is not None:
        handlers.append(logging.FileHandler(config.log_file))

    logging.basicConfig(
        level=config.log_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=True,
    )


def print_snapshot(console: Console, snapshot: Snapshot, builder: SnapshotBuilder, config: AppConfig) -> None:
    """Print one snapshot as a table."""
    view = ViewState(sort_key=config.sort_key, descending=config.descending)
    console.print(summary_line(snapshot, builder.host.cpu_count))
    console.print(
        process_table(view.apply(snapshot.entries), config.high_cpu_percent, config.high_memory_percent)
    )


def cmd_once(config: AppConfig, builder: SnapshotBuilder, console: Console) -> int:
    """Print one snapshot; exit status 1 if nothing could be read."""
    snapshot = builder.build()
    if not snapshot.ok or not snapshot.entries:
        console.print("No processes found or error reading the process table.")
        return 1
    print_snapshot(console, snapshot, builder, config)
    return 0


def cmd_watch(config: AppConfig, builder: SnapshotBuilder, console: Console) -> int:
    """Reprint snapshots every interval until interrupted."""
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())

    def show(snapshot: Snapshot) -> None:
        console.clear()
        console.print(
            f"--- Auto-refreshing (every {config.interval:g}s) - Press Ctrl+C to stop ---"
        )
        print_snapshot(console, snapshot, builder, config)

    try:
        refresh_loop(builder, show, lambda: config.interval, cancel)
    finally:
        signal.signal(signal.SIGINT, previous)
    console.print("Auto-refresh stopped.")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for pylpm."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)
    tui = not (args.once or args.watch)
    configure_logging(config, tui)

    builder = SnapshotBuilder.for_root(config.proc_root)
    logger.debug("Using %s, clock ticks %d", config.proc_root, builder.host.clock_ticks)

    console = Console()
    if args.once:
        return cmd_once(config, builder, console)
    if args.watch:
        return cmd_watch(config, builder, console)

    from pylpm.app import run

    run(config, builder)
    return 0


if __name__ == "__main__":
    sys.exit(main())
