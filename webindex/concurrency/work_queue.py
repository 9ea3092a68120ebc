"""
Fixed-size worker thread pool with recursive completion tracking.
"""

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from ..utils.monitoring import IndexMonitor


class WorkQueueShutdownError(RuntimeError):
    """Raised when work is submitted to a queue that has been shut down."""
    pass


class WorkQueue:
    """
    Runs submitted callables on a fixed number of worker threads.

    Every submission increments a pending-work counter before the task is
    visible to the workers, and the counter is only decremented once the task
    has returned or raised. ``await_completion`` waits for the counter to reach
    zero, so work submitted by running tasks (directory walks, crawl fan-out)
    is always accounted for before it returns.
    """

    def __init__(self, num_threads: int = 5, name: str = "worker",
                 monitor: Optional[IndexMonitor] = None):
        if num_threads < 1:
            raise ValueError("num_threads must be at least 1")

        self.num_threads = num_threads
        self.monitor = monitor
        self.logger = logging.getLogger(__name__)

        self._tasks: Deque[Tuple[Callable[..., Any], tuple, dict]] = deque()
        self._queue_condition = threading.Condition(threading.Lock())
        self._is_shutdown = False

        self._pending = 0
        self._pending_condition = threading.Condition(threading.Lock())

        self.stats = {
            'submitted': 0,
            'completed': 0,
            'failed': 0
        }

        self.workers: List[threading.Thread] = []
        for i in range(num_threads):
            worker = threading.Thread(
                target=self._worker,
                name=f"{name}-{i}",
                daemon=True
            )
            self.workers.append(worker)
            worker.start()

        self.logger.debug(f"Started work queue with {num_threads} workers")

    def __enter__(self) -> 'WorkQueue':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    @property
    def pending(self) -> int:
        """Number of submitted tasks that have not finished yet."""
        with self._pending_condition:
            return self._pending

    @property
    def is_shutdown(self) -> bool:
        with self._queue_condition:
            return self._is_shutdown

    def submit(self, task: Callable[..., Any], *args, **kwargs):
        """
        Queue ``task(*args, **kwargs)`` for execution and return immediately.

        Raises:
            WorkQueueShutdownError: if ``shutdown`` has already been called
        """
        with self._queue_condition:
            if self._is_shutdown:
                raise WorkQueueShutdownError("Cannot submit work to a queue that has been shut down")

            # Counted before a worker can see it
            with self._pending_condition:
                self._pending += 1
                self.stats['submitted'] += 1
                if self.monitor:
                    self.monitor.update_pending_tasks(self._pending)

            self._tasks.append((task, args, kwargs))
            self._queue_condition.notify()

    def await_completion(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every submitted task, including tasks submitted by other
        tasks, has finished.

        Args:
            timeout: Maximum number of seconds to wait (None waits forever)

        Returns:
            True once all work has completed, False if the timeout elapsed first
        """
        if threading.current_thread() in self.workers:
            raise RuntimeError("await_completion() cannot be called from a worker thread")

        with self._pending_condition:
            return self._pending_condition.wait_for(lambda: self._pending == 0, timeout)

    def shutdown(self, wait: bool = True):
        """
        Stop accepting work and let the workers exit once the queued tasks have
        been run.

        Args:
            wait: Join the worker threads before returning
        """
        with self._queue_condition:
            if not self._is_shutdown:
                self._is_shutdown = True
                self._queue_condition.notify_all()
                self.logger.debug("Work queue shutting down")

        if wait:
            current = threading.current_thread()
            for worker in self.workers:
                if worker is not current:
                    worker.join()

    def get_stats(self) -> Dict[str, int]:
        """Get task statistics."""
        with self._pending_condition:
            stats = self.stats.copy()
            stats['pending'] = self._pending
        return stats

    def _worker(self):
        """Worker loop: take the next task, run it, account for it."""
        while True:
            with self._queue_condition:
                while not self._tasks and not self._is_shutdown:
                    self._queue_condition.wait()

                if not self._tasks:
                    # Shut down and fully drained
                    break

                task, args, kwargs = self._tasks.popleft()

            failed = False
            try:
                task(*args, **kwargs)
            except Exception as e:
                failed = True
                self.logger.error(f"Task {getattr(task, '__name__', task)!s} failed: {e}", exc_info=True)
            finally:
                self._finish_task(failed)

        self.logger.debug(f"{threading.current_thread().name} finished")

    def _finish_task(self, failed: bool):
        with self._pending_condition:
            self._pending -= 1
            if failed:
                self.stats['failed'] += 1
            else:
                self.stats['completed'] += 1
            if self.monitor:
                # Updated under the lock so the gauge never goes back to a stale count
                self.monitor.record_task_finished(failed)
                self.monitor.update_pending_tasks(self._pending)
            if self._pending == 0:
                self._pending_condition.notify_all()
