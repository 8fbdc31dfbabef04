"""Event translator turning a :class:`LogEvent` into a :class:`GelfRecord`.

Purpose
-------
Own the one mandatory transformation of the shipper: mapping severities,
timestamps, and context into GELF fields while keeping stack traces out of
``short_message``.

Contents
--------
* :func:`translate` - pure translation of one event.
* :func:`create_translator` - freeze a configuration into a per-event callable.
* :func:`resolve_host_name` - host-name override/fallback rules.

System Role
-----------
Runs synchronously on the thread that logs. Malformed events never raise:
missing caller or throwable data simply omits the corresponding fields.
"""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable
from typing import Any

from lib_log_gelf.application.ports.rendering import Renderer, StackTraceRenderer
from lib_log_gelf.domain.events import LogEvent
from lib_log_gelf.domain.levels import GELF_LEVEL_TABLE
from lib_log_gelf.domain.record import GelfRecord, sanitize_field_name
from lib_log_gelf.domain.settings import AppenderConfig

logger = logging.getLogger(__name__)

FALLBACK_HOST = "localhost"
_EMPTY_SHORT_MESSAGE = "-"

Translator = Callable[[LogEvent], GelfRecord]


def resolve_host_name(override: str | None = None) -> str:
    """Return ``override`` when set, otherwise the local host name.

    Resolution failures and empty results fall back to ``"localhost"``.

    Examples
    --------
    >>> resolve_host_name("api-01")
    'api-01'
    """

    if override is not None and override.strip():
        return override
    try:
        resolved = socket.gethostname()
    except OSError:
        return FALLBACK_HOST
    return resolved or FALLBACK_HOST


def render_message(event: LogEvent) -> str:
    """Default layout: the formatted message without trailing whitespace."""

    return event.formatted_message.rstrip()


def render_stack_trace(event: LogEvent) -> str:
    """Default stack renderer: the text captured on the throwable."""

    if event.throwable is None:
        return ""
    return event.throwable.stack_trace.rstrip("\n")


def translate(
    event: LogEvent,
    config: AppenderConfig,
    *,
    host: str | None = None,
    stack_renderer: StackTraceRenderer | None = None,
) -> GelfRecord:
    """Build the GELF record for ``event``.

    Parameters
    ----------
    event:
        Event handed to the appender.
    config:
        Translation switches, static fields, and the ``short_message`` layout.
    host:
        Pre-resolved host name; ``None`` resolves it from ``config.host_name``.
    stack_renderer:
        Renders the throwable; defaults to the captured stack text.

    Examples
    --------
    >>> from lib_log_gelf.domain.events import ThrowableInfo
    >>> from lib_log_gelf.domain.levels import LogLevel
    >>> event = LogEvent(1700000000123, LogLevel.ERROR, "boom", "app", "main",
    ...                  throwable=ThrowableInfo("RuntimeException", "x", "at A\\nat B"))
    >>> record = translate(event, AppenderConfig(), host="box")
    >>> record.short_message, record.full_message, record.level, record.timestamp
    ('boom', 'boom\\n\\nat A\\nat B', 3, 1700000000.123)
    """

    renderer: Renderer = config.layout or render_message
    stacks: StackTraceRenderer = stack_renderer or render_stack_trace
    formatted = event.formatted_message

    fields: dict[str, Any] = {}
    _put(fields, "loggerName", event.logger_name)
    _put(fields, "threadName", event.thread_name)
    if event.marker is not None:
        _put(fields, "marker", event.marker)

    if config.include_mdc:
        for key, value in event.mdc.items():
            _put(fields, key, value)

    caller = event.caller
    if config.include_source and caller is not None:
        _put(fields, "sourceFileName", caller.file_name)
        _put(fields, "sourceMethodName", caller.method_name)
        _put(fields, "sourceClassName", caller.class_name)
        _put(fields, "sourceLineNumber", caller.line_number)

    full_message = formatted
    throwable = event.throwable
    if config.include_stack_trace and throwable is not None:
        stack_text = _render_stack(stacks, event)
        _put(fields, "exceptionClass", throwable.class_name)
        _put(fields, "exceptionMessage", throwable.message)
        _put(fields, "exceptionStackTrace", stack_text)
        full_message = f"{formatted}\n\n{stack_text}"

    if config.include_level_name:
        _put(fields, "levelName", event.level.name)

    for key, value in config.additional_fields.items():
        _put(fields, key, value)

    return GelfRecord(
        short_message=_short_message(renderer, event, formatted),
        full_message=full_message,
        timestamp=event.timestamp_ms / 1000,
        level=int(GELF_LEVEL_TABLE[event.level]),
        host=host if host else resolve_host_name(config.host_name),
        additional_fields=fields,
    )


def create_translator(
    config: AppenderConfig,
    *,
    host: str | None = None,
    stack_renderer: StackTraceRenderer | None = None,
) -> Translator:
    """Freeze ``config`` and the resolved host into a one-argument translator."""

    resolved_host = host or resolve_host_name(config.host_name)

    def _translate(event: LogEvent) -> GelfRecord:
        return translate(event, config, host=resolved_host, stack_renderer=stack_renderer)

    return _translate


def _put(fields: dict[str, Any], key: str, value: Any) -> None:
    if value is None:
        return
    name = sanitize_field_name(key)
    if name is None:
        logger.debug("Skipping GELF additional field with unusable name %r", key)
        return
    fields[name] = value


def _short_message(renderer: Renderer, event: LogEvent, formatted: str) -> str:
    # Renderers only see the event without its throwable.
    try:
        rendered = renderer(event.without_throwable())
    except Exception as exc:  # noqa: BLE001
        logger.warning("GELF layout raised; using the formatted message instead", exc_info=exc)
        rendered = ""
    for candidate in (rendered, formatted):
        if candidate and candidate.strip():
            return candidate
    return _EMPTY_SHORT_MESSAGE


def _render_stack(stacks: StackTraceRenderer, event: LogEvent) -> str:
    try:
        return stacks(event)
    except Exception as exc:  # noqa: BLE001
        logger.warning("GELF stack-trace renderer raised; using the captured text", exc_info=exc)
        return render_stack_trace(event)


__all__ = [
    "FALLBACK_HOST",
    "Translator",
    "create_translator",
    "render_message",
    "render_stack_trace",
    "resolve_host_name",
    "translate",
]
