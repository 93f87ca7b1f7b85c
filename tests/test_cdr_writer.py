import re

import pytest

from minipgw.cdr_writer import CdrAction, CdrRecord, CdrWriter, CdrWriterError
from minipgw.config import Config
from minipgw.event_bus import Event, EventBus
from minipgw.thread_pool import ThreadPool


class FakeLogger:
    def __init__(self):
        self.records = []

    def debug(self, message):
        self.records.append(("debug", message))

    def info(self, message):
        self.records.append(("info", message))

    def warning(self, message):
        self.records.append(("warning", message))

    def error(self, message):
        self.records.append(("error", message))

    def fatal(self, message):
        self.records.append(("fatal", message))


class FakeBus:
    def __init__(self):
        self.handlers = {}

    def subscribe(self, event, handler):
        self.handlers.setdefault(event, []).append(handler)

    def publish(self, event, *args):
        return []


LINE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\.\d{6}, (\d+), (\w+)$")


def test_missing_path_raises():
    with pytest.raises(CdrWriterError):
        CdrWriter(Config(), FakeBus(), FakeLogger())


def test_unopenable_path_raises(tmp_path):
    with pytest.raises(CdrWriterError):
        CdrWriter(Config(cdr_file=tmp_path), FakeBus(), FakeLogger())


def test_write_record_format(tmp_path):
    path = tmp_path / "cdr.log"
    with CdrWriter(Config(cdr_file=path), FakeBus(), FakeLogger()) as writer:
        writer.write_record(CdrRecord("2024-01-02 03:04:05.000006", "123456", CdrAction.CREATED))
    assert path.read_text() == "2024-01-02 03:04:05.000006, 123456, created\n"


def test_appends_to_existing_file(tmp_path):
    path = tmp_path / "cdr.log"
    path.write_text("old\n")
    with CdrWriter(Config(cdr_file=path), FakeBus(), FakeLogger()) as writer:
        writer.write_record(CdrRecord("t", "123456", CdrAction.DELETED))
    assert path.read_text().splitlines() == ["old", "t, 123456, deleted"]


def test_write_after_close_raises(tmp_path):
    writer = CdrWriter(Config(cdr_file=tmp_path / "cdr.log"), FakeBus(), FakeLogger())
    writer.close()
    with pytest.raises(CdrWriterError):
        writer.write_record(CdrRecord("t", "123456", CdrAction.REJECTED))


@pytest.mark.parametrize(
    "event, action",
    [
        (Event.CREATE_SESSION, "created"),
        (Event.DELETE_SESSION, "deleted"),
        (Event.REJECT_SESSION, "rejected"),
    ],
)
def test_event_handlers_write_lines(tmp_path, event, action):
    path = tmp_path / "cdr.log"
    bus = FakeBus()
    with CdrWriter(Config(cdr_file=path), bus, FakeLogger()):
        (handler,) = bus.handlers[event]
        handler("250990000000001")
    match = LINE.match(path.read_text().rstrip("\n"))
    assert match is not None
    assert match.groups() == ("250990000000001", action)


def test_through_real_event_bus(tmp_path):
    path = tmp_path / "cdr.log"
    logger = FakeLogger()
    pool = ThreadPool(2, logger)
    bus = EventBus(pool, logger)
    with CdrWriter(Config(cdr_file=path), bus, logger):
        futures = bus.publish(Event.REJECT_SESSION, "123456")
        for future in futures:
            future.result(timeout=5)
    pool.shutdown()
    assert path.read_text().endswith(", 123456, rejected\n")