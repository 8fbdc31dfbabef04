"""Use case shipping one log event: translate, then offer to the transport.

Purpose
-------
Keep the error policy of ``append`` in one place: nothing raised while
translating or enqueueing reaches the host application. Failures are reported
on the module logger and through the optional diagnostic hook.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from lib_log_gelf.application.ports.transport import TransportPort
from lib_log_gelf.domain.events import LogEvent
from lib_log_gelf.domain.record import GelfRecord

logger = logging.getLogger(__name__)

DiagnosticHook = Callable[[str, dict[str, Any]], None] | None
AppendCallable = Callable[[LogEvent | None], bool]

SEND_FAILURE_MESSAGE = "Failed to write log event to the GELF server using try_send"


def create_append(
    *,
    translator: Callable[[], Callable[[LogEvent], GelfRecord]],
    transport: TransportPort,
    diagnostic: DiagnosticHook = None,
) -> AppendCallable:
    """Return the ``append`` callable bound to ``transport``.

    ``translator`` is a zero-argument accessor so the appender can swap the
    active translation snapshot without rebuilding this callable. The returned
    function reports whether the record was accepted by the transport.

    Examples
    --------
    >>> from lib_log_gelf.domain.levels import LogLevel
    >>> from lib_log_gelf.domain.settings import AppenderConfig
    >>> from lib_log_gelf.application.use_cases.translate import create_translator
    >>> class ListTransport:
    ...     def __init__(self):
    ...         self.records = []
    ...     def start(self): ...
    ...     def stop(self, timeout=None): return True
    ...     def try_send(self, record):
    ...         self.records.append(record)
    ...         return True
    >>> transport = ListTransport()
    >>> snapshot = create_translator(AppenderConfig(), host="box")
    >>> append = create_append(translator=lambda: snapshot, transport=transport)
    >>> append(LogEvent(0, LogLevel.INFO, "hi", "app", "main"))
    True
    >>> transport.records[0].short_message
    'hi'
    >>> append(None)
    False
    """

    emit = _build_diagnostic_emitter(diagnostic)

    def append(event: LogEvent | None) -> bool:
        if event is None:
            return False
        try:
            record = translator()(event)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to translate log event from %s", getattr(event, "logger_name", "?"), exc_info=exc)
            emit("translate_error", {"logger": getattr(event, "logger_name", None), "exception": repr(exc)})
            return False
        try:
            accepted = transport.try_send(record)
        except Exception as exc:  # noqa: BLE001
            logger.error(SEND_FAILURE_MESSAGE, exc_info=exc)
            emit("send_error", {"logger": event.logger_name, "exception": repr(exc)})
            return False
        if not accepted:
            logger.error(SEND_FAILURE_MESSAGE)
            emit("dropped", {"logger": event.logger_name, "level": event.level.name})
            return False
        emit("queued", {"logger": event.logger_name, "level": event.level.name})
        return True

    return append


def _build_diagnostic_emitter(diagnostic: DiagnosticHook) -> Callable[[str, dict[str, Any]], None]:
    def emit(name: str, payload: dict[str, Any]) -> None:
        if diagnostic is None:
            return
        try:
            diagnostic(name, payload)
        except Exception as exc:  # noqa: BLE001
            logger.error("Diagnostic hook raised while reporting %s", name, exc_info=exc)

    return emit


__all__ = ["AppendCallable", "DiagnosticHook", "SEND_FAILURE_MESSAGE", "create_append"]
