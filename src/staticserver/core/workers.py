"""
=============================================================================
WORKER THREADS
=============================================================================

One thread per accepted connection. The accept loop never does request
work itself; it spawns a worker and goes straight back to accept().

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         Spawn Per Connection                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   accept() ──► spawn(func, conn) ──► Worker-1  (reads, responds)     │
    │   accept() ──► spawn(func, conn) ──► Worker-2  (idle client...)      │
    │   accept() ──► spawn(func, conn) ──► Worker-3  (reads, responds)     │
    │                                                                      │
    │   A slow or idle client only ever blocks its own worker.             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Workers share nothing but read-only configuration. The registry of live
workers is the only structure behind a lock, and it is touched only by
spawn(), by a worker finishing, and by shutdown().

=============================================================================
BOUNDING
=============================================================================

max_workers=None means unbounded. With a bound, spawn() refuses work when
that many workers are alive and returns False; the caller decides what to
do with the connection. The same holds when the OS refuses to start
another thread.

=============================================================================
"""

import threading
import time
import logging
from itertools import count
from typing import Any, Callable, Optional, Set


logger = logging.getLogger(__name__)


class Worker(threading.Thread):
    """
    A daemon thread that runs exactly one task.

    Exceptions escaping the task are logged with their traceback and never
    propagate: a failing connection must not take anything else down.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        worker_id: int = 0,
        on_done: Optional[Callable[["Worker"], None]] = None,
    ):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.func = func
        self.args = args
        self.worker_id = worker_id
        self._on_done = on_done

    def run(self):
        try:
            self.func(*self.args)
        except Exception as e:
            logger.exception(f"Worker {self.worker_id} error: {e}")
        finally:
            if self._on_done is not None:
                self._on_done(self)


class WorkerGroup:
    """
    Spawns and tracks per-connection worker threads.

    Usage:
        group = WorkerGroup(max_workers=64)

        if not group.spawn(handle, args=(conn,)):
            conn.close()  # at capacity

        group.shutdown(wait=True, timeout=5.0)
    """

    def __init__(self, max_workers: Optional[int] = None):
        """
        Args:
            max_workers: Upper bound on live workers. None = unbounded.
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self.max_workers = max_workers

        self._workers: Set[Worker] = set()
        self._lock = threading.Lock()
        self._ids = count(1)
        self._closed = False

        self.tasks_spawned = 0
        self.tasks_rejected = 0
        self.start_failures = 0

    @property
    def closed(self) -> bool:
        """True once shutdown() has been called."""
        return self._closed

    @property
    def is_full(self) -> bool:
        """True when max_workers workers are alive."""
        with self._lock:
            return self._at_capacity()

    def _at_capacity(self) -> bool:
        return self.max_workers is not None and len(self._workers) >= self.max_workers

    @property
    def active_count(self) -> int:
        """Number of workers still running."""
        with self._lock:
            return len(self._workers)

    def spawn(self, func: Callable[..., Any], args: tuple = ()) -> bool:
        """
        Run `func(*args)` on a new worker thread.

        Returns:
            True if a worker was started. False if the group is at
            capacity, shut down, or the thread could not be started; the
            caller still owns whatever it meant to hand over.
        """
        with self._lock:
            if self._closed:
                self.tasks_rejected += 1
                return False

            if self._at_capacity():
                self.tasks_rejected += 1
                return False

            worker = Worker(func, args, worker_id=next(self._ids), on_done=self._finished)
            self._workers.add(worker)
            self.tasks_spawned += 1

        try:
            worker.start()
        except RuntimeError as e:
            # "can't start new thread": out of threads or memory
            with self._lock:
                self._workers.discard(worker)
                self.tasks_spawned -= 1
                self.start_failures += 1
            logger.error(f"Could not start worker {worker.worker_id}: {e}")
            return False
        return True

    def _finished(self, worker: Worker) -> None:
        with self._lock:
            self._workers.discard(worker)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop accepting work and optionally wait for live workers.

        Args:
            wait: Join running workers.
            timeout: Total seconds to wait for all of them. None = forever.
                     Workers still running afterwards are daemons and are
                     abandoned at interpreter exit.
        """
        with self._lock:
            self._closed = True
            workers = list(self._workers)

        if not wait:
            return

        logger.info(f"Waiting for {len(workers)} active connection(s)...")
        deadline = None if timeout is None else time.monotonic() + timeout

        for worker in workers:
            if worker.ident is None:
                continue  # never started
            remaining = None
            if deadline is not None:
                remaining = max(0.0, deadline - time.monotonic())
            worker.join(remaining)

        still_running = self.active_count
        if still_running:
            logger.warning(f"{still_running} worker(s) still running after shutdown timeout")

    def stats(self) -> dict:
        """Counters for diagnostics."""
        return {
            "active": self.active_count,
            "max_workers": self.max_workers,
            "spawned": self.tasks_spawned,
            "rejected": self.tasks_rejected,
            "start_failures": self.start_failures,
        }
