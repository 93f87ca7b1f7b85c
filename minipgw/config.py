"""Server configuration loaded from a JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

_UINT32_LIMIT = 2**32


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or parsed."""


@dataclass(frozen=True)
class Config:
    """Server settings; a setting absent from the file is ``None``."""

    ip: str | None = None
    port: int | None = None
    http_port: int | None = None
    session_timeout_sec: int | None = None
    cdr_file: Path | None = None
    graceful_shutdown_rate: int | None = None
    log_file: Path | None = None
    log_level: str | None = None
    blacklist: frozenset[str] | None = None


def _as_str(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _as_uint32(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"'{key}' must be an unsigned integer, got {type(value).__name__}")
    if not 0 <= value < _UINT32_LIMIT:
        raise ValueError(f"'{key}' is out of the unsigned 32-bit range: {value}")
    return value


def _as_path(key: str, value: Any) -> Path:
    return Path(_as_str(key, value))


def _as_str_set(key: str, value: Any) -> frozenset[str]:
    if not isinstance(value, list):
        raise TypeError(f"'{key}' must be an array of strings, got {type(value).__name__}")
    return frozenset(_as_str(key, item) for item in value)


_FIELDS: dict[str, tuple[str, Callable[[str, Any], Any]]] = {
    "ip": ("server_ip", _as_str),
    "port": ("server_port", _as_uint32),
    "http_port": ("http_port", _as_uint32),
    "session_timeout_sec": ("session_timeout_sec", _as_uint32),
    "cdr_file": ("cdr_file", _as_path),
    "graceful_shutdown_rate": ("graceful_shutdown_rate", _as_uint32),
    "log_file": ("log_file", _as_path),
    "log_level": ("log_level", _as_str),
    "blacklist": ("blacklist", _as_str_set),
}


def load_config(path: str | Path) -> Config:
    """Read a JSON configuration file.

    Keys that are missing or null become ``None``. A value of the wrong
    type raises ``TypeError`` or ``ValueError``.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as stream:
            text = stream.read()
    except OSError as exc:
        raise ConfigError(f"Cannot open config file: {path}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        data = {}

    values = {}
    for field_name, (key, convert) in _FIELDS.items():
        raw = data.get(key)
        values[field_name] = None if raw is None else convert(key, raw)
    return Config(**values)