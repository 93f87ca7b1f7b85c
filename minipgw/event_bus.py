"""Publish/subscribe bus that runs handlers on a thread pool."""

from __future__ import annotations

import threading
from collections import defaultdict
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable


class Event(Enum):
    """Events carried by the bus, each with the number of arguments it takes."""

    CREATE_SESSION = ("create_session_event", 1)
    DELETE_SESSION = ("delete_session_event", 1)
    REJECT_SESSION = ("reject_session_event", 1)
    GRACEFUL_SHUTDOWN = ("graceful_shutdown_event", 0)

    @property
    def arity(self) -> int:
        return self.value[1]


class EventBus:
    """Delivers each published event to its subscribers on the thread pool."""

    def __init__(self, thread_pool: Any, logger: Any) -> None:
        self._thread_pool = thread_pool
        self._logger = logger
        self._handlers: dict[Event, list[Callable[..., Any]]] = defaultdict(list)
        self._lock = threading.Lock()
        logger.info("Event bus initialized")

    def subscribe(self, event: Event, handler: Callable[..., Any]) -> None:
        """Register ``handler`` to be called with the event's arguments."""
        with self._lock:
            self._handlers[event].append(handler)

    def publish(self, event: Event, *args: Any) -> list[Future]:
        """Schedule every handler of ``event``; return their futures."""
        if len(args) != event.arity:
            raise TypeError(f"{event.name} takes {event.arity} argument(s), got {len(args)}")
        pool = self._thread_pool
        if pool is None:
            raise RuntimeError("Event bus is stopped")
        with self._lock:
            handlers = list(self._handlers[event])
        return [pool.submit(handler, *args) for handler in handlers]

    def stop(self) -> None:
        """Release the thread pool; later publishes raise ``RuntimeError``."""
        if self._thread_pool is not None:
            self._thread_pool = None
            self._logger.info("Event bus destroyed")