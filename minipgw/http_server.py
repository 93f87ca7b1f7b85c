"""HTTP API for subscriber lookups and graceful shutdown."""

from __future__ import annotations

import re
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from minipgw.event_bus import Event

_MIN_IMSI_DIGITS = 6
_MAX_IMSI_DIGITS = 15
_DIGITS = re.compile(r"[0-9]+")


class HttpServerError(Exception):
    """Raised when the HTTP server cannot be configured or started."""


class _Server(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], owner: HttpServer) -> None:
        self.owner = owner
        super().__init__(address, _Handler)


class _Handler(BaseHTTPRequestHandler):
    server: _Server

    def _reply(self, status: int, body: str) -> None:
        payload = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def _not_found(self, path: str) -> None:
        self.server.owner._logger.warning(f"Unknown HTTP endpoint: {self.command} {path}")
        self._reply(404, "Not Found")

    def do_GET(self) -> None:
        parts = urlsplit(self.path)
        if parts.path != "/check_subscriber":
            self._not_found(parts.path)
            return
        owner = self.server.owner
        owner._logger.debug(
            f"Received check_subscriber request from {self.client_address[0]}"
        )
        params = parse_qs(parts.query, keep_blank_values=True)
        values = params.get("imsi")
        self._reply(*owner.check_subscriber(values[0] if values else None))

    def do_POST(self) -> None:
        parts = urlsplit(self.path)
        if parts.path != "/stop":
            self._not_found(parts.path)
            return
        owner = self.server.owner
        owner._logger.info(f"Received graceful shutdown request from {self.client_address[0]}")
        self._reply(*owner.request_stop())

    def do_PUT(self) -> None:
        self._not_found(urlsplit(self.path).path)

    def do_DELETE(self) -> None:
        self._not_found(urlsplit(self.path).path)

    def log_message(self, format: str, *args: Any) -> None:
        self.server.owner._logger.debug(format % args)


class HttpServer:
    """Serves ``GET /check_subscriber?imsi=...`` and ``POST /stop``."""

    def __init__(self, config: Any, session_manager: Any, event_bus: Any, logger: Any) -> None:
        self._session_manager = session_manager
        self._event_bus = event_bus
        self._logger = logger
        self._server: _Server | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

        if config.ip is None:
            logger.fatal("HTTP server IP not specified in config")
            raise HttpServerError("HTTP server IP not specified in config")
        if config.http_port is None:
            logger.fatal("HTTP server port not specified in config")
            raise HttpServerError("HTTP server port not specified in config")

        self._ip: str = config.ip
        self._port: int = config.http_port
        logger.info(f"Initializing HTTP server on {self._ip}:{self._port}")

    def __enter__(self) -> HttpServer:
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self._server is not None

    @property
    def address(self) -> tuple[str, int]:
        """The bound address while running, otherwise the configured one."""
        if self._server is not None:
            host, port = self._server.server_address[:2]
            return str(host), int(port)
        return self._ip, self._port

    def check_subscriber(self, imsi: str | None) -> tuple[int, str]:
        """Return the status code and body answering a subscriber lookup."""
        if imsi is None:
            self._logger.warning("Missing 'imsi' parameter in check_subscriber request")
            return 400, "Bad Request: 'imsi' parameter is required"
        if not imsi:
            self._logger.warning("Empty IMSI parameter in check_subscriber request")
            return 400, "Bad Request: 'imsi' parameter cannot be empty"

        try:
            if not _MIN_IMSI_DIGITS <= len(imsi) <= _MAX_IMSI_DIGITS:
                self._logger.warning(f"Invalid IMSI length: {imsi}")
                return 400, "Bad Request: IMSI length must be between 6 and 15 digits"
            if not _DIGITS.fullmatch(imsi):
                self._logger.warning(f"Invalid IMSI format: {imsi}")
                return 400, "Bad Request: IMSI must contain only digits"

            self._logger.debug(f"Checking session status for IMSI: {imsi}")
            response = "active" if self._session_manager.has_active_session(imsi) else "not active"
            self._logger.info(f"Session status for IMSI {imsi}: {response}")
            return 200, response
        except Exception as exc:
            self._logger.error(f"Error processing check_subscriber request: {exc}")
            return 500, "Internal Server Error"

    def request_stop(self) -> tuple[int, str]:
        """Publish a graceful-shutdown event; return the status code and body."""
        try:
            self._logger.info("Initiating graceful shutdown via HTTP API")
            self._event_bus.publish(Event.GRACEFUL_SHUTDOWN)
            self._logger.info("Graceful shutdown request processed successfully")
            return 200, "Graceful shutdown initiated"
        except Exception as exc:
            self._logger.error(f"Error processing stop request: {exc}")
            return 500, "Internal Server Error"

    def start(self) -> None:
        """Bind the listening socket and serve on a background thread."""
        with self._lock:
            if self._server is not None:
                self._logger.warning("HTTP server is already running")
                return
            self._logger.info("Starting HTTP server...")
            try:
                server = _Server((self._ip, self._port), self)
            except (OSError, OverflowError) as exc:
                self._logger.fatal(f"Failed to start HTTP server on {self._ip}:{self._port}")
                raise HttpServerError("HTTP server failed to start") from exc
            self._server = server
            self._thread = threading.Thread(
                target=self._serve, args=(server,), name="http-server", daemon=True
            )
            self._thread.start()
        host, port = self.address
        self._logger.info(f"HTTP server started successfully on {host}:{port}")

    def _serve(self, server: _Server) -> None:
        self._logger.info("HTTP server thread started")
        server.serve_forever()
        self._logger.info("HTTP server stopped")

    def stop(self) -> None:
        """Stop serving and wait for the server thread; harmless if not running."""
        with self._lock:
            server, thread = self._server, self._thread
            if server is None:
                return
            self._server = None
            self._thread = None
        self._logger.info("Stopping HTTP server...")
        server.shutdown()
        server.server_close()
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._logger.info("HTTP server stopped successfully")