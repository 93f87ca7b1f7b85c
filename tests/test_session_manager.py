import pytest

from minipgw.config import Config
from minipgw.event_bus import Event
from minipgw.session import Session
from minipgw.session_manager import SessionManager


class FakeLogger:
    def __init__(self):
        self.records = []

    def _add(self, level, message):
        self.records.append((level, message))

    def debug(self, message):
        self._add("debug", message)

    def info(self, message):
        self._add("info", message)

    def warning(self, message):
        self._add("warning", message)

    def error(self, message):
        self._add("error", message)

    def fatal(self, message):
        self._add("fatal", message)


class FakeBus:
    def __init__(self):
        self.handlers = {}
        self.published = []

    def subscribe(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def publish(self, event, *args):
        self.published.append((event, args))
        return []


def make(blacklist=("111111",), timeout=0, rate=1000):
    config = Config(
        blacklist=None if blacklist is None else frozenset(blacklist),
        session_timeout_sec=timeout,
        graceful_shutdown_rate=rate,
    )
    bus = FakeBus()
    logger = FakeLogger()
    return SessionManager(config, bus, logger), bus, logger


def test_missing_blacklist_raises():
    with pytest.raises(ValueError):
        make(blacklist=None)


def test_subscribes_to_create_and_shutdown():
    _, bus, _ = make()
    assert set(bus.handlers) == {Event.CREATE_SESSION, Event.GRACEFUL_SHUTDOWN}


def test_create_session_returns_session():
    manager, _, _ = make()
    assert manager.create_session("123456") == Session("123456")
    assert manager.has_active_session("123456")


def test_duplicate_session_returns_none():
    manager, _, _ = make()
    manager.create_session("123456")
    assert manager.create_session("123456") is None


def test_delete_session():
    manager, _, _ = make()
    manager.create_session("123456")
    manager.delete_session("123456")
    assert not manager.has_active_session("123456")


def test_delete_missing_session_warns():
    manager, _, logger = make()
    manager.delete_session("999999")
    assert any(level == "warning" and "999999" in msg for level, msg in logger.records)


def test_blacklist_lookup():
    manager, _, _ = make(blacklist=("111111", "222222"))
    assert manager.is_blacklisted("222222")
    assert not manager.is_blacklisted("333333")


def test_expiry_handler_deletes_and_publishes():
    manager, bus, _ = make(timeout=0)
    manager.create_session("123456")
    (handler,) = bus.handlers[Event.CREATE_SESSION]
    handler("123456")
    assert not manager.has_active_session("123456")
    assert bus.published == [(Event.DELETE_SESSION, ("123456",))]


def test_expiry_without_timeout_raises():
    manager, bus, _ = make(timeout=None)
    manager.create_session("123456")
    (handler,) = bus.handlers[Event.CREATE_SESSION]
    with pytest.raises(ValueError):
        handler("123456")
    assert manager.has_active_session("123456")


def test_graceful_shutdown_removes_all_in_order():
    manager, bus, _ = make(rate=1000)
    imsis = ["100000", "200000", "300000"]
    for imsi in imsis:
        manager.create_session(imsi)
    manager.graceful_shutdown()
    assert not any(manager.has_active_session(imsi) for imsi in imsis)
    assert bus.published == [(Event.DELETE_SESSION, (imsi,)) for imsi in imsis]


def test_graceful_shutdown_only_once():
    manager, bus, logger = make(rate=1000)
    manager.graceful_shutdown()
    manager.create_session("123456")
    manager.graceful_shutdown()
    assert manager.has_active_session("123456")
    assert bus.published == []
    assert any(level == "warning" for level, _ in logger.records)


def test_graceful_shutdown_via_handler():
    manager, bus, _ = make(rate=1000)
    manager.create_session("123456")
    (handler,) = bus.handlers[Event.GRACEFUL_SHUTDOWN]
    handler()
    assert not manager.has_active_session("123456")


def test_graceful_shutdown_zero_rate_raises():
    manager, _, _ = make(rate=0)
    with pytest.raises(ValueError):
        manager.graceful_shutdown()