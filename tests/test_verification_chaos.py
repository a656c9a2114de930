"""Verification Test: Chaos Monkey - process churn during enumeration.

Processes that exit between discovery and reading must never crash a build
or drop unrelated entries; they are read as placeholders or simply missed.
"""

import multiprocessing
import os
import random
import sys
import time
from queue import Empty, Queue

import pytest

from pylpm.models import Snapshot
from pylpm.monitor import SnapshotMonitor
from pylpm.snapshot import SnapshotBuilder
from pylpm.system import HostConfig

pytestmark = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs /proc")


def dummy_worker(duration: float = 60.0) -> None:
    """A dummy worker process that sleeps for a given duration."""
    try:
        time.sleep(duration)
    except (KeyboardInterrupt, SystemExit):
        pass


@pytest.fixture
def live_builder() -> SnapshotBuilder:
    return SnapshotBuilder.for_root("/proc", host=HostConfig.detect())


class TestChaosMonkey:
    """Chaos Monkey verification suite tests."""

    def test_builds_survive_process_termination(self, live_builder):
        """
        Kill processes while snapshots are being built.

        Every build must succeed and still contain the test process itself.
        """
        processes = []
        for _ in range(30):
            p = multiprocessing.Process(target=dummy_worker, args=(60.0,))
            p.start()
            processes.append(p)

        try:
            first = live_builder.build()
            assert first.ok
            assert {p.pid for p in processes} <= set(first.pids())

            for p in random.sample(processes, 15):
                p.terminate()
                snapshot = live_builder.build()
                assert snapshot.ok
                assert os.getpid() in snapshot.pids()
        finally:
            for p in processes:
                if p.is_alive():
                    p.terminate()
            for p in processes:
                p.join(timeout=1.0)

    def test_monitor_survives_rapid_churn(self, live_builder):
        """
        Test monitor stability during rapid process churn.

        Processes are created and destroyed continuously while the monitor
        publishes snapshots.
        """
        queue: Queue[Snapshot] = Queue()
        monitor = SnapshotMonitor(live_builder, queue, poll_rate=1.0)
        processes = []

        try:
            monitor.start()
            start_time = time.time()
            while time.time() - start_time < 3.0:
                for _ in range(5):
                    p = multiprocessing.Process(target=dummy_worker, args=(10.0,))
                    p.start()
                    processes.append(p)

                alive = [p for p in processes if p.is_alive()]
                if len(alive) > 10:
                    for p in random.sample(alive, 3):
                        p.terminate()

                monitor.refresh()
                time.sleep(0.1)

            snapshots = 0
            while True:
                try:
                    snapshot = queue.get(timeout=1.0)
                except Empty:
                    break
                assert snapshot.ok
                assert len(snapshot) > 0
                snapshots += 1
                if snapshots >= 3:
                    break

            assert snapshots >= 3
            assert monitor.is_running, "Monitor should still be running after chaos"
        finally:
            monitor.stop()
            for p in processes:
                if p.is_alive():
                    p.terminate()
            for p in processes:
                p.join(timeout=1.0)
