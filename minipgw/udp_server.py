"""Non-blocking UDP front end that answers session requests."""

from __future__ import annotations

import selectors
import socket
from collections import deque
from typing import Any

from minipgw.event_bus import Event
from minipgw.packet_manager import PacketParsingError

_BUFFER_SIZE = 1024
_MAX_BATCH = 10


class UdpServerError(Exception):
    """Raised when the UDP server cannot be set up."""


class UdpServer:
    """Receives IMSI packets over UDP and replies with the session decision.

    Requests are handled in batches between polls of the socket; replies
    are sent as the socket becomes writable. ``stop`` may be called from
    any thread, and a graceful-shutdown event on the bus calls it too.
    """

    def __init__(self, config: Any, packet_manager: Any, logger: Any, event_bus: Any) -> None:
        self._packet_manager = packet_manager
        self._logger = logger
        self._requests: deque[tuple[bytes, Any]] = deque()
        self._responses: deque[tuple[bytes, Any]] = deque()
        self._running = False
        self._closed = False

        ip, port = config.ip, config.port
        if ip is None:
            logger.fatal("UDP server IP not specified in config")
            raise UdpServerError("UDP server IP not specified in config")
        if port is None:
            logger.fatal("UDP server port not specified in config")
            raise UdpServerError("UDP server port not specified in config")

        logger.debug(f"Initializing UDP server on {ip}:{port}")
        self._socket = self._open_socket(ip, port)
        self._selector = selectors.DefaultSelector()
        self._selector.register(self._socket, selectors.EVENT_READ)
        self._setup_stop_event()
        self._setup_event_handlers(event_bus)
        logger.info(f"Initialized UDP server on {ip}:{port}")

    def _open_socket(self, ip: str, port: int) -> socket.socket:
        self._logger.debug("Creating UDP socket")
        try:
            socket.inet_pton(socket.AF_INET, ip)
        except OSError:
            self._logger.fatal(f"Invalid IP address: {ip}")
            raise UdpServerError("Invalid IP address") from None

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        except OSError as exc:
            self._logger.fatal("Failed to create socket")
            raise UdpServerError("Failed to create socket") from exc

        self._logger.debug("Binding socket to address")
        try:
            sock.bind((ip, port))
        except (OSError, OverflowError) as exc:
            sock.close()
            self._logger.fatal(f"Failed to bind socket to {ip}:{port}")
            raise UdpServerError("Failed to bind socket") from exc

        self._logger.debug("Setting socket to non-blocking mode")
        sock.setblocking(False)
        self._logger.debug("UDP server socket setup completed successfully")
        return sock

    def _setup_stop_event(self) -> None:
        self._logger.debug("Creating stop event channel")
        try:
            self._wake_reader, self._wake_writer = socket.socketpair()
        except OSError as exc:
            self._socket.close()
            self._selector.close()
            self._logger.fatal("Failed to create stop event channel")
            raise UdpServerError("Failed to create stop event channel") from exc
        self._wake_reader.setblocking(False)
        self._wake_writer.setblocking(False)
        self._selector.register(self._wake_reader, selectors.EVENT_READ)
        self._logger.debug("Stop event channel setup completed")

    def _setup_event_handlers(self, event_bus: Any) -> None:
        self._logger.debug("Setting up udp_server event handlers")
        event_bus.subscribe(Event.GRACEFUL_SHUTDOWN, self._on_graceful_shutdown)
        self._logger.debug("UDP server event handlers setup completed")

    def _on_graceful_shutdown(self) -> None:
        self._logger.debug("Scheduling graceful shutdown for udp server")
        self.stop()

    def __enter__(self) -> UdpServer:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def run(self) -> None:
        """Serve until stopped, then answer everything still queued."""
        self._logger.info("Starting UDP server main loop")
        self._running = True

        while self._running:
            self._logger.debug("Waiting for events...")
            try:
                ready = self._selector.select()
            except InterruptedError:
                self._logger.debug("select interrupted by signal")
                continue
            except OSError as exc:
                self._logger.error(f"select error: {exc}")
                break

            self._logger.debug(f"Received {len(ready)} events")
            for key, mask in ready:
                if key.fileobj is self._wake_reader:
                    self._logger.info("Received stop signal")
                    self._running = False
                    self._drain_stop_event()
                    break
                if mask & selectors.EVENT_READ:
                    self._read_packets()
                if mask & selectors.EVENT_WRITE and self._responses:
                    self._send_pending_responses()

            self._process_requests()

        self._logger.info("Processing remaining requests before shutdown...")
        while self._requests:
            self._process_requests()

        self._logger.info("Sending remaining responses before shutdown...")
        while self._responses:
            self._send_pending_responses()

        self._logger.info("UDP server main loop exited gracefully")

    def _drain_stop_event(self) -> None:
        try:
            while self._wake_reader.recv(64):
                pass
        except BlockingIOError:
            pass
        except OSError as exc:
            self._logger.error(f"Failed to read from stop event channel: {exc}")

    def _read_packets(self) -> None:
        while True:
            try:
                data, client = self._socket.recvfrom(_BUFFER_SIZE)
            except BlockingIOError:
                break
            except OSError as exc:
                self._logger.error(f"recvfrom error: {exc}")
                break

            if not data:
                self._logger.debug("Received empty packet, ignoring")
                continue

            client_ip, client_port = client[0], client[1]
            self._logger.debug(f"Received {len(data)} bytes from {client_ip}:{client_port}")
            self._requests.append((data, client))
            self._logger.debug(f"Queued packet ({len(data)} bytes)")

    def _send_pending_responses(self) -> None:
        sent = 0
        while self._responses:
            data, client = self._responses[0]
            try:
                self._socket.sendto(data, client)
            except BlockingIOError:
                break
            except OSError as exc:
                self._logger.error(f"sendto error: {exc}")
                self._responses.popleft()
                continue
            self._responses.popleft()
            sent += 1

        if not self._responses:
            self._watch(selectors.EVENT_READ)
            self._logger.debug("Disabled write watching, now only monitoring reads on socket")

        if sent:
            self._logger.debug(f"Sent {sent} responses")

    def _process_requests(self) -> None:
        processed = 0
        while self._requests and processed < _MAX_BATCH:
            data, client = self._requests.popleft()
            try:
                response = self._packet_manager.handle_packet(data)
            except PacketParsingError as exc:
                response = f"Error: {exc.code}"
            self._responses.append((response.encode("utf-8"), client))
            processed += 1

        if processed:
            self._logger.debug(f"Processed {processed} requests")
            if self._responses:
                self._watch(selectors.EVENT_READ | selectors.EVENT_WRITE)
                self._logger.debug("Enabled write watching on socket")

    def _watch(self, events: int) -> None:
        try:
            self._selector.modify(self._socket, events)
        except (KeyError, ValueError, OSError) as exc:
            self._logger.error(f"Failed to change watched socket events: {exc}")

    def stop(self) -> None:
        """Ask the main loop to finish; safe to call from any thread."""
        self._logger.info("Stopping UDP server...")
        self._running = False
        try:
            self._wake_writer.send(b"\x01")
        except BlockingIOError:
            pass
        except OSError as exc:
            self._logger.error(f"Failed to write to stop event channel: {exc}")

    def close(self) -> None:
        """Release the socket and the stop channel."""
        if self._closed:
            return
        self._closed = True
        self._logger.info("Shutting down UDP server")
        self._selector.close()
        self._socket.close()
        self._logger.debug("Socket closed")
        self._wake_reader.close()
        self._wake_writer.close()
        self._logger.debug("Stop event channel closed")
        self._logger.info("Udp server destroyed")