"""Background write queue for session data.

All file writes of a session are executed by a single worker thread that
consumes a FIFO queue, so job N has completed before job N+1 starts and
the foreground (experiment control) thread is never blocked by disk I/O.
"""

import logging
import queue
import threading
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

Job = Callable[[], None]

# Queue item that tells the worker thread to exit
_STOP = object()


class _Barrier:
    """Queue item released once every item queued before it has run."""

    def __init__(self) -> None:
        self.event = threading.Event()


class PersistenceWorker:
    """Ordered, off-thread executor for write jobs.

    Jobs are zero-argument callables. They must only capture data that the
    foreground thread will not mutate afterwards (copy before submitting).

    A job that raises is logged and recorded in ``errors``; the worker keeps
    running and later jobs still execute. Failed jobs are never retried.

    Usage:
        worker = PersistenceWorker()
        worker.begin()
        worker.submit(lambda: path.write_text(text))
        worker.end()  # blocks until every submitted job has run
    """

    def __init__(self, name: str = "persistence-worker") -> None:
        """Initialize an inactive worker.

        Args:
            name: Thread name, shown in log records
        """
        self._name = name
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._errors: List[BaseException] = []
        self._jobs_completed = 0

    @property
    def is_active(self) -> bool:
        """Return True if the worker thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def errors(self) -> List[BaseException]:
        """Return exceptions raised by failed jobs, in order."""
        return list(self._errors)

    @property
    def jobs_completed(self) -> int:
        """Return the number of jobs that ran (successfully or not)."""
        return self._jobs_completed

    @property
    def pending(self) -> int:
        """Return the approximate number of queued jobs."""
        return self._queue.qsize()

    def begin(self) -> None:
        """Start the worker thread. Does nothing if already active."""
        if self.is_active:
            return

        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()
        logger.info(f"Started {self._name}")

    def submit(self, job: Job) -> None:
        """Queue a job for execution on the worker thread.

        Args:
            job: Zero-argument callable

        Raises:
            RuntimeError: If the worker has not been started
        """
        if not self.is_active:
            raise RuntimeError(f"{self._name} is not active. Call begin() first.")
        self._queue.put(job)

    def drain(self, timeout: Optional[float] = None) -> bool:
        """Block until every job submitted before this call has completed.

        Jobs submitted by other threads after this call are not waited for.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely

        Returns:
            True if the queue drained, False if the timeout expired

        Raises:
            RuntimeError: If called from the worker thread itself
        """
        if not self.is_active:
            return True
        if threading.current_thread() is self._thread:
            raise RuntimeError("drain() cannot be called from a job")

        barrier = _Barrier()
        self._queue.put(barrier)
        return barrier.event.wait(timeout)

    def end(self) -> None:
        """Drain all queued jobs, then stop the worker thread.

        Blocks the caller until all writes have completed.
        """
        if not self.is_active:
            return

        self.drain()
        self._queue.put(_STOP)
        self._thread.join()
        self._thread = None
        logger.info(
            f"Stopped {self._name} ({self._jobs_completed} jobs, {len(self._errors)} failed)"
        )

    def _run(self) -> None:
        """Worker loop: execute jobs in submission order until stopped."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if isinstance(item, _Barrier):
                    item.event.set()
                    continue
                self._execute(item)
            finally:
                self._queue.task_done()

    def _execute(self, job: Job) -> None:
        try:
            job()
        except Exception as e:
            logger.exception(f"Error in {self._name} job: {e}")
            self._errors.append(e)
        finally:
            self._jobs_completed += 1
