"""Derived per-process metrics."""


def memory_percent(rss_kb: int, total_kb: int) -> float:
    """Resident memory as a percentage of total memory, 0.0 if total is unknown."""
    if total_kb <= 0:
        return 0.0
    return rss_kb / total_kb * 100.0


def process_age_seconds(uptime_seconds: float, start_ticks: int, clock_ticks: int) -> float:
    """Wall-clock age of a process from its start tick relative to boot."""
    return uptime_seconds - start_ticks / clock_ticks


def cpu_percent(
    utime: int,
    stime: int,
    start_ticks: int,
    uptime_seconds: float,
    clock_ticks: int,
) -> float:
    """
    Lifetime-average CPU usage.

    Total CPU time consumed divided by the process's age. This is not a
    recent-window measurement, and it is not capped at 100 on multi-core
    hosts.

    Returns 0.0 when the age is not positive or the inputs cannot be
    normalised (no uptime, no tick rate).
    """
    if clock_ticks <= 0 or uptime_seconds <= 0:
        return 0.0
    age = process_age_seconds(uptime_seconds, start_ticks, clock_ticks)
    if age <= 0:
        return 0.0
    return 100.0 * ((utime + stime) / clock_ticks) / age
