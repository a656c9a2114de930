"""Configuration for pylpm."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path

from pylpm.monitor import DEFAULT_INTERVAL, MIN_INTERVAL
from pylpm.procfs import DEFAULT_PROC_ROOT
from pylpm.views import SortKey

ENV_PREFIX = "PYLPM_"


@dataclass
class AppConfig:
    """Runtime configuration."""

    proc_root: Path = DEFAULT_PROC_ROOT
    interval: float = DEFAULT_INTERVAL  # seconds
    sort_key: SortKey | None = None
    descending: bool = False
    high_cpu_percent: float = 10.0
    high_memory_percent: float = 5.0
    log_level: str = "WARNING"
    log_file: Path | None = None

    def __post_init__(self) -> None:
        self.proc_root = Path(self.proc_root)
        self.interval = max(MIN_INTERVAL, float(self.interval))
        if self.log_file is not None:
            self.log_file = Path(self.log_file)


def env_default(name: str, default: str | None = None) -> str | None:
    """Read PYLPM_<name> from the environment."""
    return os.environ.get(ENV_PREFIX + name, default)


def config_from_args(args: argparse.Namespace) -> AppConfig:
    """Build an AppConfig from parsed command-line arguments."""
    return AppConfig(
        proc_root=Path(args.proc_root),
        interval=args.interval,
        sort_key=SortKey(args.sort) if args.sort else None,
        descending=bool(args.descending),
        high_cpu_percent=args.high_cpu,
        high_memory_percent=args.high_memory,
        log_level=args.log_level.upper(),
        log_file=Path(args.log_file) if args.log_file else None,
    )
