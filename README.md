# minipgw

A small packet gateway server. It accepts UDP packets that carry a
BCD-encoded IMSI. For each new subscriber it opens a session and answers
`created`. Otherwise it answers `rejected`. Sessions expire after a set
timeout. Every session event is written to a CDR file. A small HTTP API
reports subscriber status and starts a graceful shutdown.

It has no third-party dependencies.

## Installation

```
pip install .
```

To run the tests, install the `test` extra and run `pytest`:

```
pip install .[test]
pytest
```

## Configuration

The server reads a JSON file. By default this is `config.json` in the current directory:

```json
{
  "server_ip": "127.0.0.1",
  "server_port": 9000,
  "http_port": 8080,
  "session_timeout_sec": 30,
  "cdr_file": "cdr.log",
  "graceful_shutdown_rate": 10,
  "log_file": "pgw.log",
  "log_level": "info",
  "blacklist": ["001010123456789", "001010000000001"]
}
```

- `server_ip`: the IPv4 address that both the UDP and the HTTP server bind to.
- `server_port`: the UDP port.
- `http_port`: the HTTP port.
- `session_timeout_sec`: how long a session lives after it is created.
- `cdr_file`: the file that CDR lines are appended to.
- `graceful_shutdown_rate`: how many sessions are removed per second during shutdown.
- `log_file`: the file that log lines are appended to.
- `log_level`: one of `debug`, `info`, `warning`, `error` or `fatal`, in any case.
- `blacklist`: IMSIs whose sessions are always rejected.

A key that is missing or `null` is treated as unset.

- The file may not be readable, or it may not be valid JSON. Either one is a configuration error.
- A value may have the wrong type, for example a port that is not an unsigned
  32-bit integer. That raises an ordinary error.

## Running

```
minipgw [CONFIG]
```

`CONFIG` is the path of the configuration file. It defaults to `config.json`.

The server answers UDP requests until a graceful shutdown is requested. Log
lines have the form `[timestamp] [level] message`. They go to the log file and
to standard error.

Exit codes:

| code | meaning |
|------|---------|
| `0` | clean shutdown |
| `1` | any other failure, such as a bad log level, a missing setting or a bad value type |
| `2` | configuration error: the file cannot be read or is not valid JSON |
| `3` | UDP server error, such as an invalid IP address or a port that cannot be bound |
| `4` | HTTP server error, such as a missing HTTP port or a port that cannot be bound |

## UDP protocol

A request packet has this layout:

| byte | meaning |
|------|---------|
| 0 | IMSI type, which must be `1` |
| 1–2 | big-endian length |
| 3 | reserved |
| 4… | IMSI digits in BCD, low nibble first; a high nibble of `0xF` ends the digits |

The packet must be at least 4 bytes long and at least `3 + length` bytes long.
The IMSI must have 6 to 15 digits.

The reply is one of:

- `created`: a new session was opened.
- `rejected`: the IMSI is blacklisted, or it already has a session.
- `Error: packet_parsing_failed`: the packet did not hold a valid IMSI.

Requests are handled in batches of up to 10 between polls of the socket.

## HTTP API

- `GET /check_subscriber?imsi=<digits>` returns `active` or `not active`.
  It returns `400` if the IMSI is missing, is empty, is not 6–15 characters
  long, or is not all digits.
- `POST /stop` starts a graceful shutdown. It answers
  `Graceful shutdown initiated`. The UDP server then stops and answers the
  requests it has already queued. All sessions are removed at the configured
  rate, and each removal is recorded as `deleted`.
- Any other `GET`, `POST`, `PUT` or `DELETE` path returns `404 Not Found`.

## CDR format

The CDR file gets one line per event:

```
2024-01-01 12:00:00.000123, 001010123456789, created
```

The time is local time. The part after the dot is milliseconds, padded to six
digits. The action is `created`, `deleted` or `rejected`.

## How it works

Event handlers run on a pool of worker threads, one per CPU. These handlers do
three things:

- write CDR lines,
- expire sessions,
- carry out a graceful shutdown.

A session's expiry holds a worker thread for the whole timeout. On shutdown the
program waits until every queued handler has finished before it exits. This
includes expiries that are still pending.

## Library use

The parts can be used on their own:

- `minipgw.utility`
  - `parse_imsi_from_bcd` raises `ImsiParseError`, which carries a `ParseError` reason.
  - `current_timestamp`.
- `minipgw.config`: `load_config` returns a frozen `Config`, or raises `ConfigError`.
- `minipgw.logger`: `Logger`, `LogLevel`, `parse_log_level`.
- `minipgw.thread_pool`: `ThreadPool.submit` returns a `concurrent.futures.Future`.
- `minipgw.event_bus`: `EventBus` and `Event`.
- `minipgw.session_manager`: `SessionManager`.
- `minipgw.cdr_writer`: `CdrWriter`, `CdrRecord`, `CdrAction`.
- `minipgw.packet_manager`: `PacketManager.handle_packet` raises `PacketParsingError`.
- `minipgw.udp_server`: `UdpServer`.
- `minipgw.http_server`: `HttpServer`.
- `minipgw.app`: `main`.

For example:

```python
from minipgw.utility import parse_imsi_from_bcd

parse_imsi_from_bcd(bytes([1, 0, 5, 0, 0x21, 0x43, 0x65, 0xF7]))  # "1234567"
```

## Limitations

- Sessions are kept in memory only. Nothing is restored after a restart.
- The servers bind to IPv4 addresses only.
- The HTTP API has no authentication or TLS. Anyone who can reach it can stop the server.