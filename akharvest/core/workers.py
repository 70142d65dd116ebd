# ==============================================================================
# WORKER POOL MODULE
# ==============================================================================
# Fixed-size pool of worker threads draining one shared FIFO queue.
#
# Used by the download stage and the asset extraction stage:
#   - every worker pops the next item and bumps the progress counter under
#     one lock, then processes the item outside the lock
#   - a worker whose item raises stops; the others keep draining
#   - run() returns only after every worker has exited, then re-raises the
#     first recorded error
#
# Usage:
#   pool = WorkerPool(workers=8)
#   pool.run(items, lambda task: download(task.item))
# ==============================================================================

import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Deque, Iterable, List, Optional


@dataclass(frozen=True)
class WorkItem:
    """
    An item handed to a worker.

    Attributes:
        worker_id (int): 1-based id of the worker processing the item
        count (int):     Position of the item in dequeue order (1-based)
        total (int):     Number of items queued for the stage
        item (Any):      The queued value
    """
    worker_id: int
    count: int
    total: int
    item: Any


class WorkerPool:
    """
    Shared-queue worker pool with a final barrier.

    Attributes:
        workers (int): Number of worker threads (at least 1)
        name (str):    Thread name prefix, shows up in tracebacks
    """

    def __init__(self, workers: int, name: str = "worker"):
        self.workers = max(1, int(workers))
        self.name = name
        self._lock = threading.Lock()
        self._pending: Deque[Any] = deque()
        self._count = 0
        self._total = 0
        self._errors: List[BaseException] = []

    def _next(self, worker_id: int) -> Optional[WorkItem]:
        with self._lock:
            if not self._pending:
                return None
            item = self._pending.popleft()
            self._count += 1
            return WorkItem(worker_id, self._count, self._total, item)

    def _drain(self, worker_id: int, process: Callable[[WorkItem], None]):
        while True:
            task = self._next(worker_id)
            if task is None:
                return
            try:
                process(task)
            except Exception as e:
                print(f"[ERROR] [Worker {worker_id}] Failed on {task.item}: {e}")
                with self._lock:
                    self._errors.append(e)
                raise

    def run(self, items: Iterable[Any], process: Callable[[WorkItem], None]) -> int:
        """
        Process every item with the pool and wait for all workers.

        Args:
            items: Values to queue, processed in FIFO order
            process: Called once per item with a WorkItem

        Returns:
            Number of items dequeued

        Raises:
            Exception: The first error raised by any worker, after all
                       workers have exited
        """
        with self._lock:
            self._pending = deque(items)
            self._count = 0
            self._total = len(self._pending)
            self._errors = []

        if self._total == 0:
            return 0

        with ThreadPoolExecutor(max_workers=self.workers,
                                thread_name_prefix=self.name) as executor:
            futures = [
                executor.submit(self._drain, worker_id, process)
                for worker_id in range(1, self.workers + 1)
            ]
            wait(futures)

        # errors are kept in the order they happened
        errors = list(self._errors)
        if errors:
            if len(errors) > 1:
                print(f"[ERROR] {len(errors)} workers failed, raising the first error")
            raise errors[0]

        return self._count
