"""
=============================================================================
BOUNDED THREAD POOL
=============================================================================

An opt-in alternative to thread-per-connection. The default server spawns
one thread per accepted connection with no upper bound; with a pool the
number of connections handled at once is capped at the number of workers,
and at most queue_size more may wait.

    accept thread                      workers
    ─────────────                      ───────

    submit(handler, conn) ──► ┌───────────────────────────┐
                              │ queue.Queue(queue_size)   │ ──► Worker 0
    full? submit() returns    │ (handler, conn) (h, c) .. │ ──► Worker 1
    False, nothing blocks     └───────────────────────────┘ ──► Worker N-1

Shutdown queues one None per worker; a worker that takes None exits.

=============================================================================
"""

import threading
import queue
import logging
import time
from typing import Callable, Optional, Any


logger = logging.getLogger(__name__)


class Worker(threading.Thread):
    """Takes (func, args) jobs off the queue until it gets None."""

    def __init__(self, jobs: queue.Queue, pool: "ThreadPool", index: int):
        # daemon=True: a worker stuck on a silent client must not block exit
        super().__init__(name=f"Pool-{index}", daemon=True)
        self.jobs = jobs
        self.pool = pool

    def run(self):
        while True:
            job = self.jobs.get()
            try:
                if job is None:
                    return
                func, args = job
                self.pool._run(func, args)
            finally:
                self.jobs.task_done()


class ThreadPool:
    """
    Fixed number of workers fed from a bounded queue.

    Usage:
        pool = ThreadPool(workers=8, queue_size=64)
        pool.start()

        if not pool.submit(handler, conn):
            conn.abort()  # queue full

        pool.shutdown()
    """

    def __init__(self, workers: int = 8, queue_size: int = 64):
        self.workers = workers
        self.queue_size = queue_size

        self._jobs: queue.Queue = queue.Queue(maxsize=queue_size)
        self._threads: list = []
        self._lock = threading.Lock()
        self._running = False

        self.active = 0
        self.completed = 0
        self.failed = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending(self) -> int:
        """Jobs waiting for a free worker."""
        return self._jobs.qsize()

    def start(self):
        """Start the workers. A second call does nothing."""
        with self._lock:
            if self._running:
                return
            self._threads = [Worker(self._jobs, self, i) for i in range(self.workers)]
            for thread in self._threads:
                thread.start()
            self._running = True

        logger.info(f"Thread pool started with {self.workers} workers, queue size {self.queue_size}")

    def submit(self, func: Callable[..., Any], *args) -> bool:
        """
        Queue func(*args) without blocking.

        Returns:
            False if the queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._running:
            raise RuntimeError("Thread pool is not running")

        try:
            self._jobs.put_nowait((func, args))
        except queue.Full:
            return False
        return True

    def _run(self, func: Callable[..., Any], args: tuple):
        with self._lock:
            self.active += 1
        try:
            func(*args)
        except Exception as e:
            logger.exception(f"Pool job {getattr(func, '__name__', func)!r} failed: {e}")
            with self._lock:
                self.failed += 1
        else:
            with self._lock:
                self.completed += 1
        finally:
            with self._lock:
                self.active -= 1

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the workers.

        Args:
            wait: Let queued jobs run first.
            timeout: Stop waiting for queued jobs after this many seconds.
        """
        with self._lock:
            if not self._running:
                return
            self._running = False

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            while self._jobs.unfinished_tasks:
                if deadline is not None and time.monotonic() > deadline:
                    logger.warning(f"Abandoning {self.pending} queued jobs")
                    break
                time.sleep(0.05)

        for _ in self._threads:
            try:
                self._jobs.put(None, timeout=1.0)
            except queue.Full:
                break  # workers are wedged; they are daemons

        for thread in self._threads:
            thread.join(timeout=2.0)
        self._threads = []

        logger.info(f"Thread pool stopped ({self.completed} completed, {self.failed} failed)")
