"""Command-line entry point that wires the gateway together and runs it."""

from __future__ import annotations

import argparse
import os
import sys
from contextlib import ExitStack

from minipgw.cdr_writer import CdrWriter
from minipgw.config import ConfigError, load_config
from minipgw.event_bus import EventBus
from minipgw.http_server import HttpServer, HttpServerError
from minipgw.logger import Logger
from minipgw.packet_manager import PacketManager
from minipgw.session_manager import SessionManager
from minipgw.thread_pool import ThreadPool
from minipgw.udp_server import UdpServer, UdpServerError

EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2
EXIT_UDP_ERROR = 3
EXIT_HTTP_ERROR = 4


def _serve(config_path: str) -> None:
    config = load_config(config_path)
    with ExitStack() as stack:
        logger = stack.enter_context(Logger(config))
        pool = ThreadPool(os.cpu_count() or 1, logger)
        stack.callback(pool.shutdown)
        event_bus = EventBus(pool, logger)
        stack.callback(event_bus.stop)
        session_manager = SessionManager(config, event_bus, logger)
        stack.enter_context(CdrWriter(config, event_bus, logger))
        # Drain pending handlers before the CDR file is closed.
        stack.callback(pool.shutdown)
        packet_manager = PacketManager(config, event_bus, session_manager, logger)
        http_server = stack.enter_context(
            HttpServer(config, session_manager, event_bus, logger)
        )
        udp_server = stack.enter_context(UdpServer(config, packet_manager, logger, event_bus))

        http_server.start()
        udp_server.run()


def main(argv: list[str] | None = None) -> int:
    """Run the gateway until a graceful shutdown; return the exit status."""
    parser = argparse.ArgumentParser(prog="minipgw", description="Minimal packet gateway.")
    parser.add_argument(
        "config", nargs="?", default="config.json", help="path of the JSON configuration file"
    )
    args = parser.parse_args(argv)

    try:
        _serve(args.config)
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except UdpServerError as exc:
        print(exc, file=sys.stderr)
        return EXIT_UDP_ERROR
    except HttpServerError as exc:
        print(exc, file=sys.stderr)
        return EXIT_HTTP_ERROR
    except Exception as exc:
        print(exc, file=sys.stderr)
        return EXIT_FAILURE
    return 0


if __name__ == "__main__":
    sys.exit(main())