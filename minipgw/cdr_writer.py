"""Writing of call detail records to an append-only file."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any

from minipgw.event_bus import Event
from minipgw.utility import current_timestamp


class CdrAction(Enum):
    """What happened to a session."""

    CREATED = "created"
    DELETED = "deleted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class CdrRecord:
    """One line of the CDR file."""

    timestamp: str
    imsi: str
    action: CdrAction


class CdrWriterError(Exception):
    """Raised when the CDR file cannot be opened or written."""


_EVENT_ACTIONS = {
    Event.CREATE_SESSION: CdrAction.CREATED,
    Event.DELETE_SESSION: CdrAction.DELETED,
    Event.REJECT_SESSION: CdrAction.REJECTED,
}


class CdrWriter:
    """Appends ``timestamp, imsi, action`` lines for session events."""

    def __init__(self, config: Any, event_bus: Any, logger: Any) -> None:
        self._logger = logger
        self._lock = threading.Lock()
        logger.debug("Setting up CDR writer")

        path = config.cdr_file
        if path is None:
            logger.error("Unable to get CDR file path from config.json")
            raise CdrWriterError("Unable to get CDR file path in config.json")
        try:
            self._file = open(path, "a", encoding="utf-8")
        except OSError as exc:
            logger.error(f"Cannot open CDR file: {path}")
            raise CdrWriterError(f"Cannot open CDR file: {path}") from exc
        logger.info(f"CDR file opened successfully: {path}")

        for event, action in _EVENT_ACTIONS.items():
            event_bus.subscribe(event, self._handler_for(event, action))

        logger.debug("CDR writer setup completed")
        logger.info("CDR writer initialized")

    def _handler_for(self, event: Event, action: CdrAction):
        def handle(imsi: str) -> None:
            self._logger.debug(f"Received {event.value[0]} for IMSI: {imsi}")
            self.write_record(CdrRecord(current_timestamp(), imsi, action))

        return handle

    def __enter__(self) -> CdrWriter:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def write_record(self, record: CdrRecord) -> None:
        """Append ``record`` to the file and flush it."""
        with self._lock:
            if self._file.closed:
                self._logger.error("Attempted to write to closed CDR file")
                raise CdrWriterError("File is not open for writing")
            self._file.write(f"{record.timestamp}, {record.imsi}, {record.action.value}\n")
            self._file.flush()
        self._logger.debug(f"CDR record written: {record.imsi} - {record.action.value}")

    def close(self) -> None:
        """Close the CDR file; later writes raise ``CdrWriterError``."""
        with self._lock:
            if self._file.closed:
                return
            self._logger.info("Closing CDR file")
            self._file.close()
        self._logger.info("CDR writer destroyed")