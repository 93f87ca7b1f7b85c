"""Turning incoming packets into session decisions."""

from __future__ import annotations

from typing import Any

from minipgw.event_bus import Event
from minipgw.utility import ImsiParseError, ParseError, parse_imsi_from_bcd


class PacketParsingError(ValueError):
    """Raised when a packet does not carry a valid IMSI."""

    code = "packet_parsing_failed"

    def __init__(self, error: ParseError) -> None:
        super().__init__(self.code)
        self.error = error


class PacketManager:
    """Creates or rejects a session for the IMSI carried in each packet."""

    def __init__(self, config: Any, event_bus: Any, session_manager: Any, logger: Any) -> None:
        self._config = config
        self._event_bus = event_bus
        self._session_manager = session_manager
        self._logger = logger
        logger.info("Packet manager initialized")

    def handle_packet(self, packet: bytes) -> str:
        """Return ``"created"`` or ``"rejected"``; raise ``PacketParsingError``."""
        self._logger.debug(f"Handling packet of size: {len(packet)}")
        try:
            imsi = parse_imsi_from_bcd(packet)
        except ImsiParseError as exc:
            self._logger.warning(f"Failed to parse IMSI: {exc.error.value}")
            raise PacketParsingError(exc.error) from exc

        self._logger.debug(f"Extracted IMSI: {imsi}")

        if self._session_manager.is_blacklisted(imsi):
            self._logger.info(f"IMSI {imsi} is in blacklist, rejecting session")
            self._event_bus.publish(Event.REJECT_SESSION, imsi)
            return "rejected"

        if self._session_manager.create_session(imsi) is not None:
            self._logger.info(f"Session created for IMSI: {imsi}")
            self._event_bus.publish(Event.CREATE_SESSION, imsi)
            return "created"

        self._logger.warning(
            f"Failed to create session for IMSI: {imsi} (session already exists)"
        )
        self._event_bus.publish(Event.REJECT_SESSION, imsi)
        return "rejected"