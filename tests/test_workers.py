"""Tests for the shared worker pool."""

import threading
import time

import pytest

from akharvest.core.workers import WorkerPool


class TestWorkerPool:
    """Test queue draining and the final barrier."""

    def test_processes_every_item_once(self):
        """Test all items are handed out exactly once."""
        seen = []
        lock = threading.Lock()

        def process(task):
            with lock:
                seen.append(task.item)

        count = WorkerPool(4).run(range(20), process)

        assert count == 20
        assert sorted(seen) == list(range(20))

    def test_progress_counter_and_worker_ids(self):
        """Test counts are 1..total and worker ids are 1..workers."""
        tasks = []
        lock = threading.Lock()

        def process(task):
            with lock:
                tasks.append(task)

        WorkerPool(3).run(["a", "b", "c", "d", "e"], process)

        assert sorted(t.count for t in tasks) == [1, 2, 3, 4, 5]
        assert all(t.total == 5 for t in tasks)
        assert all(1 <= t.worker_id <= 3 for t in tasks)

    def test_fifo_with_single_worker(self):
        """Test one worker sees items in queue order."""
        order = []
        WorkerPool(1).run(["x", "y", "z"], lambda task: order.append(task.item))
        assert order == ["x", "y", "z"]

    def test_worker_count_floor(self):
        """Test zero or negative worker counts still run one worker."""
        assert WorkerPool(0).workers == 1
        assert WorkerPool(-3).workers == 1

    def test_empty_queue(self):
        """Test no items returns immediately."""
        assert WorkerPool(2).run([], lambda task: None) == 0

    def test_error_surfaces_after_siblings_drain(self):
        """Test a failing item does not stop other workers, then re-raises."""
        done = []
        lock = threading.Lock()

        def process(task):
            if task.item == 3:
                raise ValueError("item 3 failed")
            time.sleep(0.01)
            with lock:
                done.append(task.item)

        with pytest.raises(ValueError, match="item 3 failed"):
            WorkerPool(3).run(range(10), process)

        assert sorted(done) == [0, 1, 2, 4, 5, 6, 7, 8, 9]

    def test_in_flight_work_finishes_before_raise(self):
        """Test a slow item started before the failure still completes."""
        finished = threading.Event()

        def process(task):
            if task.item == "slow":
                time.sleep(0.1)
                finished.set()
            else:
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            WorkerPool(2).run(["slow", "fail"], process)

        assert finished.is_set()
