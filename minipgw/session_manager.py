"""Tracking of active subscriber sessions."""

from __future__ import annotations

import threading
import time
from typing import Any

from minipgw.event_bus import Event
from minipgw.session import Session


class SessionManager:
    """Holds the active sessions and the blacklist of rejected IMSIs.

    A created session expires after the configured timeout. A graceful
    shutdown removes every session at the configured rate.
    """

    def __init__(self, config: Any, event_bus: Any, logger: Any) -> None:
        if config.blacklist is None:
            raise ValueError("Blacklist not specified in config")
        self._config = config
        self._event_bus = event_bus
        self._logger = logger
        self._blacklist = frozenset(config.blacklist)
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._shutdown_lock = threading.Lock()
        self._shutdown_requested = False

        logger.info(
            f"Session manager initialized with {len(self._blacklist)} blacklisted IMSIs"
        )
        self._setup_event_handlers()

    def _setup_event_handlers(self) -> None:
        self._logger.info("Setting up session manager event handlers")
        self._event_bus.subscribe(Event.CREATE_SESSION, self._expire_session)
        self._event_bus.subscribe(Event.GRACEFUL_SHUTDOWN, self.graceful_shutdown)
        self._logger.info("Session manager setup of event handlers is completed")

    def _expire_session(self, imsi: str) -> None:
        self._logger.debug(f"Scheduling session deletion for IMSI: {imsi}")
        timeout = self._config.session_timeout_sec
        if timeout is None:
            raise ValueError("Session timeout not specified in config")
        self._logger.debug(f"Session for IMSI {imsi} will expire in {timeout} seconds")
        time.sleep(timeout)

        self.delete_session(imsi)
        self._logger.info(f"Session expired for IMSI: {imsi}")
        self._event_bus.publish(Event.DELETE_SESSION, imsi)

    def create_session(self, imsi: str) -> Session | None:
        """Create a session for ``imsi``; return ``None`` if one already exists."""
        with self._lock:
            if imsi in self._sessions:
                self._logger.debug(f"Session creation failed - IMSI already exists: {imsi}")
                return None
            session = Session(imsi)
            self._sessions[imsi] = session
            self._logger.debug(
                f"Session created successfully for IMSI: {imsi} "
                f"(total sessions: {len(self._sessions)})"
            )
            return session

    def delete_session(self, imsi: str) -> None:
        """Remove the session for ``imsi``, logging a warning if there is none."""
        with self._lock:
            if self._sessions.pop(imsi, None) is not None:
                self._logger.debug(
                    f"Session deleted for IMSI: {imsi} "
                    f"(remaining sessions: {len(self._sessions)})"
                )
            else:
                self._logger.warning(f"Attempted to delete non-existent session for IMSI: {imsi}")

    def is_blacklisted(self, imsi: str) -> bool:
        """Whether ``imsi`` is on the blacklist."""
        listed = imsi in self._blacklist
        if listed:
            self._logger.debug(f"IMSI {imsi} found in blacklist")
        return listed

    def has_active_session(self, imsi: str) -> bool:
        """Whether ``imsi`` has an active session."""
        with self._lock:
            active = imsi in self._sessions
        if active:
            self._logger.debug(f"IMSI {imsi} is active")
        return active

    def graceful_shutdown(self) -> None:
        """Remove all sessions one by one at the configured rate per second.

        A second request while one has already been made is ignored.
        """
        with self._shutdown_lock:
            already = self._shutdown_requested
            self._shutdown_requested = True
        if already:
            self._logger.warning("Graceful shutdown already requested, ignoring duplicate request")
            return

        self._logger.info("Starting graceful shutdown worker")
        rate = self._config.graceful_shutdown_rate
        if rate is None:
            raise ValueError("Graceful shutdown rate not specified in config")
        if rate == 0:
            raise ValueError("Graceful shutdown rate must be positive")
        delay = (1000 // rate) / 1000
        self._logger.info(f"Graceful shutdown rate: {rate} sessions per second")

        while True:
            with self._lock:
                if not self._sessions:
                    self._logger.info("All sessions have been gracefully removed")
                    break
                imsi = next(iter(self._sessions))

            self.delete_session(imsi)
            self._logger.info(f"Gracefully removed session for IMSI: {imsi}")
            self._event_bus.publish(Event.DELETE_SESSION, imsi)
            time.sleep(delay)

        self._logger.info("Graceful shutdown completed - all sessions removed")