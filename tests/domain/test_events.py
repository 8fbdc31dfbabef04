from __future__ import annotations

import pytest

from lib_log_gelf.domain.events import CallerFrame, LogEvent, ThrowableInfo
from lib_log_gelf.domain.levels import LogLevel


@pytest.fixture
def full_event() -> LogEvent:
    return LogEvent(
        timestamp_ms=1_700_000_000_123,
        level=LogLevel.ERROR,
        message="order %s failed",
        logger_name="shop.orders",
        thread_name="worker-1",
        arguments=("A-17",),
        marker="AUDIT",
        mdc={"requestId": "r-1", "attempt": 2},
        caller=CallerFrame("orders.py", "submit", "OrderService", 42),
        throwable=ThrowableInfo("RuntimeError", "boom", "Traceback...\nRuntimeError: boom"),
    )


def test_formatted_message_applies_positional_arguments(full_event: LogEvent) -> None:
    assert full_event.formatted_message == "order A-17 failed"


def test_formatted_message_supports_mapping_arguments() -> None:
    event = LogEvent(0, LogLevel.INFO, "%(user)s logged in", "auth", "main", arguments=({"user": "ada"},))

    assert event.formatted_message == "ada logged in"


def test_formatted_message_without_arguments_keeps_percent_signs() -> None:
    event = LogEvent(0, LogLevel.INFO, "100% done", "job", "main")

    assert event.formatted_message == "100% done"


def test_formatted_message_never_raises_on_mismatch() -> None:
    event = LogEvent(0, LogLevel.INFO, "%s and %s", "job", "main", arguments=("one",))

    assert event.formatted_message == "%s and %s ('one',)"


def test_mdc_is_frozen_and_stringified(full_event: LogEvent) -> None:
    assert dict(full_event.mdc) == {"requestId": "r-1", "attempt": "2"}
    with pytest.raises(TypeError):
        full_event.mdc["other"] = "x"  # type: ignore[index]


def test_without_throwable_drops_context_but_keeps_message_parts(full_event: LogEvent) -> None:
    redacted = full_event.without_throwable()

    assert redacted.throwable is None
    assert redacted.caller is None
    assert redacted.marker is None
    assert dict(redacted.mdc) == {}
    assert redacted.formatted_message == full_event.formatted_message
    assert (redacted.level, redacted.logger_name, redacted.thread_name, redacted.timestamp_ms) == (
        full_event.level,
        full_event.logger_name,
        full_event.thread_name,
        full_event.timestamp_ms,
    )


def test_to_dict_and_from_dict_preserve_the_event(full_event: LogEvent) -> None:
    restored = LogEvent.from_dict(full_event.to_dict())

    assert restored == full_event


def test_replace_returns_a_modified_copy(full_event: LogEvent) -> None:
    quieter = full_event.replace(level=LogLevel.INFO)

    assert quieter.level is LogLevel.INFO
    assert full_event.level is LogLevel.ERROR
