from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from lib_log_gelf.adapters.stdlib import GelfHandler, event_from_record
from lib_log_gelf.application.use_cases.translate import translate
from lib_log_gelf.domain.context import MdcBinder
from lib_log_gelf.domain.events import LogEvent
from lib_log_gelf.domain.levels import LogLevel
from lib_log_gelf.domain.settings import AppenderConfig


class ListSink:
    def __init__(self) -> None:
        self.events: list[LogEvent] = []

    def append(self, event: LogEvent | None) -> None:
        if event is not None:
            self.events.append(event)


@pytest.fixture
def sink() -> ListSink:
    return ListSink()


@pytest.fixture
def mdc() -> MdcBinder:
    return MdcBinder()


@pytest.fixture
def app_logger(sink: ListSink, mdc: MdcBinder) -> Iterator[logging.Logger]:
    logger = logging.getLogger("tests.stdlib.app")
    handler = GelfHandler(sink, mdc=mdc)
    logger.addHandler(handler)
    logger.setLevel(1)
    logger.propagate = False
    try:
        yield logger
    finally:
        logger.removeHandler(handler)
        logger.propagate = True


def test_handler_converts_records_to_events(app_logger: logging.Logger, sink: ListSink) -> None:
    app_logger.warning("disk %s at %d%%", "sda", 91)

    event = sink.events[0]
    assert event.formatted_message == "disk sda at 91%"
    assert event.level is LogLevel.WARNING
    assert event.logger_name == "tests.stdlib.app"
    assert event.thread_name
    assert event.caller is not None
    assert event.caller.file_name == "test_stdlib_handler.py"
    assert event.caller.method_name == "test_handler_converts_records_to_events"
    assert event.caller.class_name == "test_stdlib_handler"
    assert event.caller.line_number and event.caller.line_number > 0


def test_handler_merges_bound_mdc_with_extra(app_logger: logging.Logger, sink: ListSink, mdc: MdcBinder) -> None:
    with mdc.bind(request_id="r-1", tenant="acme"):
        app_logger.info("hello", extra={"mdc": {"tenant": "override"}, "marker": "AUDIT"})

    event = sink.events[0]
    assert dict(event.mdc) == {"request_id": "r-1", "tenant": "override"}
    assert event.marker == "AUDIT"


def test_exc_info_becomes_throwable_and_gelf_exception_fields(app_logger: logging.Logger, sink: ListSink) -> None:
    try:
        raise ValueError("bad input")
    except ValueError:
        app_logger.exception("request failed")

    event = sink.events[0]
    assert event.throwable is not None
    assert event.throwable.class_name == "ValueError"
    assert event.throwable.message == "bad input"
    assert "Traceback (most recent call last)" in event.throwable.stack_trace

    record = translate(event, AppenderConfig(), host="box")
    assert record.short_message == "request failed"
    assert record.additional_fields["exceptionClass"] == "ValueError"
    assert record.full_message is not None
    assert record.full_message.startswith("request failed\n\nTraceback")
    assert "Traceback" not in record.short_message


def test_custom_exception_class_name_is_qualified() -> None:
    class QuotaExceeded(Exception):
        pass

    try:
        raise QuotaExceeded("limit")
    except QuotaExceeded:
        import sys

        record = logging.LogRecord("app", logging.ERROR, __file__, 1, "quota", (), sys.exc_info())

    event = event_from_record(record)

    assert event.throwable is not None
    assert event.throwable.class_name.endswith("QuotaExceeded")
    assert "." in event.throwable.class_name


def test_mapping_args_are_kept_for_named_placeholders() -> None:
    record = logging.LogRecord("app", logging.INFO, __file__, 1, "%(user)s in", ({"user": "ada"},), None)

    assert event_from_record(record).formatted_message == "ada in"


def test_custom_levels_resolve_to_nearest_lower_level(app_logger: logging.Logger, sink: ListSink) -> None:
    app_logger.log(25, "notice-ish")
    app_logger.log(5, "very chatty")

    assert [event.level for event in sink.events] == [LogLevel.INFO, LogLevel.TRACE]


def test_timestamp_is_taken_from_record_created() -> None:
    record = logging.makeLogRecord({"name": "app", "msg": "x", "levelno": 20, "created": 1_700_000_000.4567})

    assert event_from_record(record).timestamp_ms == 1_700_000_000_457


def test_own_loggers_are_ignored(sink: ListSink) -> None:
    handler = GelfHandler(sink)

    for name in ("lib_log_gelf", "lib_log_gelf.adapters.gelf.transport"):
        handler.handle(logging.makeLogRecord({"name": name, "msg": "internal", "levelno": 30}))
    handler.handle(logging.makeLogRecord({"name": "lib_log_gelfish", "msg": "external", "levelno": 30}))

    assert [event.message for event in sink.events] == ["external"]


def test_sink_errors_are_routed_to_handle_error(monkeypatch: pytest.MonkeyPatch) -> None:
    class ExplodingSink:
        def append(self, _event: LogEvent | None) -> None:
            raise RuntimeError("sink broke")

    handler = GelfHandler(ExplodingSink())
    errors: list[logging.LogRecord] = []
    monkeypatch.setattr(handler, "handleError", errors.append)

    handler.handle(logging.makeLogRecord({"name": "app", "msg": "x", "levelno": 30}))

    assert len(errors) == 1


def test_reentrant_emit_is_suppressed(sink: ListSink) -> None:
    class ReentrantSink:
        def __init__(self) -> None:
            self.handler: GelfHandler | None = None
            self.calls = 0

        def append(self, event: LogEvent | None) -> None:
            self.calls += 1
            assert self.handler is not None
            self.handler.handle(logging.makeLogRecord({"name": "app", "msg": "nested", "levelno": 30}))

    reentrant = ReentrantSink()
    handler = GelfHandler(reentrant)
    reentrant.handler = handler

    handler.handle(logging.makeLogRecord({"name": "app", "msg": "outer", "levelno": 30}))

    assert reentrant.calls == 1
