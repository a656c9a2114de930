"""Auto-refresh engine for pylpm."""

import logging
import threading
from collections.abc import Callable
from queue import Queue

from pylpm.models import Snapshot
from pylpm.snapshot import SnapshotBuilder

logger = logging.getLogger(__name__)

MIN_INTERVAL = 1.0
DEFAULT_INTERVAL = 2.0


def refresh_loop(
    builder: SnapshotBuilder,
    publish: Callable[[Snapshot], None],
    interval: Callable[[], float],
    cancel: threading.Event,
    wake: threading.Event | None = None,
) -> None:
    """
    Build and publish snapshots until cancel is set.

    Cancellation is checked once per iteration; a build in progress always
    completes. Setting wake skips the rest of the current wait.

    Args:
        builder: Source of snapshots.
        publish: Receives each completed snapshot.
        interval: Returns the current wait between builds, in seconds.
        cancel: Cancellation token.
        wake: Optional event requesting an immediate rebuild.
    """
    while not cancel.is_set():
        try:
            publish(builder.build())
        except Exception:
            logger.exception("Snapshot refresh failed")

        if wake is None:
            cancel.wait(timeout=interval())
        else:
            wake.wait(timeout=interval())
            wake.clear()


class SnapshotMonitor:
    """
    Runs the refresh loop in a daemon thread.

    Completed snapshots are pushed to a thread-safe Queue; the consumer
    replaces its current snapshot with whatever it takes off the queue.
    """

    def __init__(
        self,
        builder: SnapshotBuilder,
        update_queue: Queue[Snapshot],
        poll_rate: float = DEFAULT_INTERVAL,
    ) -> None:
        """
        Initialize the SnapshotMonitor.

        Args:
            builder: Snapshot builder to run on each refresh.
            update_queue: Thread-safe queue to push snapshots to.
            poll_rate: Seconds between refreshes, at least MIN_INTERVAL.
        """
        self._builder = builder
        self._queue = update_queue
        self._poll_rate = max(MIN_INTERVAL, poll_rate)
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(MIN_INTERVAL, value)

    @property
    def is_running(self) -> bool:
        """Check if the monitor thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the monitoring thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._wake_event.clear()
        self._thread = threading.Thread(
            target=refresh_loop,
            args=(
                self._builder,
                self._queue.put,
                lambda: self._poll_rate,
                self._stop_event,
                self._wake_event,
            ),
            daemon=True,
            name="SnapshotMonitor",
        )
        self._thread.start()
        logger.debug("Auto-refresh started every %.1fs", self._poll_rate)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the monitoring thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        self._wake_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.debug("Auto-refresh stopped")

    def refresh(self) -> None:
        """Request an immediate rebuild from the running loop."""
        self._wake_event.set()
