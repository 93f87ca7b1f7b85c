"""A fixed-size pool of worker threads fed from a FIFO queue."""

from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import Future
from typing import Any, Callable


class ThreadPool:
    """Runs submitted callables on a fixed set of worker threads.

    On shutdown the workers finish every queued task before exiting.
    """

    def __init__(self, threads_num: int, logger: Any) -> None:
        if threads_num < 0:
            raise ValueError(f"threads_num must not be negative: {threads_num}")
        self._logger = logger
        self._tasks: deque[tuple[Future, Callable[..., Any], tuple[Any, ...]]] = deque()
        self._cv = threading.Condition()
        self._stopping = False

        logger.debug(f"Thread pool initializing with {threads_num} threads")
        self._workers = [
            threading.Thread(target=self._work, name=f"pool-worker-{n}", daemon=True)
            for n in range(threads_num)
        ]
        for worker in self._workers:
            worker.start()
        logger.info(f"Thread pool initialized with {threads_num} threads")

    def __enter__(self) -> ThreadPool:
        return self

    def __exit__(self, *args: object) -> None:
        self.shutdown()

    def _work(self) -> None:
        ident = threading.get_ident()
        self._logger.debug(f"Worker thread {ident} started")
        while True:
            with self._cv:
                self._cv.wait_for(lambda: self._stopping or bool(self._tasks))
                if not self._tasks:
                    self._logger.debug(
                        f"Worker thread {ident} stopping (no more tasks and stop requested)"
                    )
                    return
                future, func, args = self._tasks.popleft()

            if not future.set_running_or_notify_cancel():
                continue
            self._logger.debug("Worker thread executing a task")
            try:
                result = func(*args)
            except Exception as exc:
                future.set_exception(exc)
            else:
                future.set_result(result)

    def submit(self, func: Callable[..., Any], *args: Any) -> Future:
        """Queue ``func(*args)`` and return a future for its result."""
        future: Future = Future()
        with self._cv:
            if self._stopping:
                raise RuntimeError("Thread pool is shut down")
            self._tasks.append((future, func, args))
            self._cv.notify()
        return future

    def shutdown(self) -> None:
        """Stop accepting tasks, let workers drain the queue, and join them."""
        with self._cv:
            if self._stopping:
                return
            self._logger.debug("Thread pool destruction started, requesting stop for all workers")
            self._stopping = True
            self._cv.notify_all()
        self._logger.debug("Notified all workers to wake up and stop")

        current = threading.current_thread()
        for worker in self._workers:
            if worker is not current:
                worker.join()
        self._logger.info("Thread pool destroyed")