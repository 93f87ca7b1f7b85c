import json

import pytest

from minipgw.config import Config, ConfigError, load_config

FULL = {
    "server_ip": "0.0.0.0",
    "server_port": 9000,
    "http_port": 8080,
    "session_timeout_sec": 30,
    "cdr_file": "cdr.log",
    "graceful_shutdown_rate": 10,
    "log_file": "pgw.log",
    "log_level": "INFO",
    "blacklist": ["001010123456789", "001010000000001"],
}


def _write(tmp_path, payload):
    path = tmp_path / "config.json"
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
    return path


def test_full_config_is_loaded(tmp_path):
    cfg = load_config(_write(tmp_path, FULL))
    assert cfg.ip == FULL["server_ip"]
    assert cfg.port == FULL["server_port"]
    assert cfg.http_port == FULL["http_port"]
    assert cfg.session_timeout_sec == FULL["session_timeout_sec"]
    assert str(cfg.cdr_file) == FULL["cdr_file"]
    assert cfg.graceful_shutdown_rate == FULL["graceful_shutdown_rate"]
    assert str(cfg.log_file) == FULL["log_file"]
    assert cfg.log_level == FULL["log_level"]
    assert cfg.blacklist == frozenset(FULL["blacklist"])


def test_missing_and_null_keys_are_none(tmp_path):
    cfg = load_config(_write(tmp_path, {"server_ip": None, "http_port": 8080}))
    assert cfg.ip is None
    assert cfg.port is None
    assert cfg.blacklist is None
    assert cfg.http_port == 8080


def test_empty_object_gives_default_config(tmp_path):
    assert load_config(_write(tmp_path, {})) == Config()


def test_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="Cannot open config file"):
        load_config(tmp_path / "absent.json")


def test_invalid_json_raises(tmp_path):
    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(_write(tmp_path, "{not json"))


@pytest.mark.parametrize(
    "payload",
    [
        {"server_port": "9000"},
        {"server_ip": 12},
        {"blacklist": "001010123456789"},
        {"blacklist": [1, 2]},
        {"http_port": True},
    ],
)
def test_wrong_types_raise_type_error(tmp_path, payload):
    with pytest.raises(TypeError):
        load_config(_write(tmp_path, payload))


def test_negative_port_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, {"server_port": -1}))