"""Bridge from :mod:`logging` records to :class:`LogEvent` objects.

Purpose
-------
Let applications using the standard library ship logs to GELF by attaching a
:class:`GelfHandler` to any logger. The handler converts each ``LogRecord``
into a framework-independent :class:`LogEvent` and hands it to a
:class:`~lib_log_gelf.application.ports.sink.LogSink`.

Contents
--------
* :func:`event_from_record` - ``LogRecord`` to ``LogEvent`` conversion.
* :class:`GelfHandler` - ``logging.Handler`` feeding a sink.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any

from lib_log_gelf.adapters.layout import format_exception_text
from lib_log_gelf.application.ports.sink import LogSink
from lib_log_gelf.domain.context import MdcBinder
from lib_log_gelf.domain.events import CallerFrame, LogEvent, ThrowableInfo
from lib_log_gelf.domain.levels import LogLevel

INTERNAL_LOGGER_PREFIX = "lib_log_gelf"


def _qualified_name(exc_type: type[BaseException]) -> str:
    module = exc_type.__module__
    if module in (None, "builtins"):
        return exc_type.__qualname__
    return f"{module}.{exc_type.__qualname__}"


def _throwable_from(record: logging.LogRecord) -> ThrowableInfo | None:
    exc_info = record.exc_info
    if not exc_info or exc_info[0] is None:
        return None
    exc_type, exc_value = exc_info[0], exc_info[1]
    return ThrowableInfo(
        class_name=_qualified_name(exc_type),
        message=str(exc_value) if exc_value is not None else None,
        stack_trace=record.exc_text or format_exception_text(exc_info),
    )


def event_from_record(record: logging.LogRecord, *, mdc: Mapping[str, Any] | None = None) -> LogEvent:
    """Convert ``record`` into a :class:`LogEvent`.

    ``extra={"marker": ...}`` becomes the marker and ``extra={"mdc": {...}}``
    is merged over ``mdc``.

    Examples
    --------
    >>> record = logging.makeLogRecord({"name": "app", "msg": "hi %s", "args": ("bob",), "levelno": 20, "created": 1.25})
    >>> event = event_from_record(record)
    >>> event.formatted_message, event.level.name, event.timestamp_ms
    ('hi bob', 'INFO', 1250)
    """

    args = record.args
    if isinstance(args, Mapping):
        arguments: tuple[Any, ...] = (args,) if args else ()
    else:
        arguments = tuple(args or ())

    merged_mdc = dict(mdc or {})
    record_mdc = getattr(record, "mdc", None)
    if isinstance(record_mdc, Mapping):
        merged_mdc.update(record_mdc)

    marker = getattr(record, "marker", None)

    return LogEvent(
        timestamp_ms=int(round(record.created * 1000)),
        level=LogLevel.from_python_level(record.levelno),
        message=str(record.msg),
        logger_name=record.name,
        thread_name=record.threadName or str(record.thread or ""),
        arguments=arguments,
        marker=str(marker) if marker is not None else None,
        mdc=merged_mdc,
        caller=CallerFrame(
            file_name=record.filename or None,
            method_name=record.funcName or None,
            class_name=record.module or None,
            line_number=record.lineno,
        ),
        throwable=_throwable_from(record),
    )


class GelfHandler(logging.Handler):
    """``logging.Handler`` forwarding records to a :class:`LogSink`.

    Records emitted by this package's own loggers are skipped so transport
    warnings cannot feed back into the queue they report on.
    """

    def __init__(self, sink: LogSink, *, mdc: MdcBinder | None = None, level: int = logging.NOTSET) -> None:
        super().__init__(level=level)
        self._sink = sink
        self._mdc = mdc
        self._local = threading.local()

    @property
    def sink(self) -> LogSink:
        return self._sink

    def emit(self, record: logging.LogRecord) -> None:
        if record.name == INTERNAL_LOGGER_PREFIX or record.name.startswith(INTERNAL_LOGGER_PREFIX + "."):
            return
        if getattr(self._local, "active", False):
            return
        self._local.active = True
        try:
            snapshot = self._mdc.snapshot() if self._mdc is not None else None
            self._sink.append(event_from_record(record, mdc=snapshot))
        except Exception:  # noqa: BLE001
            self.handleError(record)
        finally:
            self._local.active = False


__all__ = ["GelfHandler", "INTERNAL_LOGGER_PREFIX", "event_from_record"]
