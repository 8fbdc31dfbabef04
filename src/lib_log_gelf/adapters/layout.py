"""Layouts rendering log events into ``short_message`` text.

Why
---
The translator treats the layout as an opaque ``render(event) -> str``
function. This module supplies a ``str.format`` template layout and the
traceback renderer used for Python exceptions.

Contents
--------
* :func:`build_format_payload` - placeholder values exposed to templates.
* :class:`TemplateLayout` - ``str.format`` based layout.
* :func:`format_exception_text` - render ``exc_info`` tuples.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any

from lib_log_gelf.domain.events import LogEvent
from lib_log_gelf.domain.levels import LogLevel

DEFAULT_TEMPLATE = "{message}"

PRESETS: dict[str, str] = {
    "message": "{message}",
    "short": "{hh}:{mm}:{ss} {LEVEL:<8} {logger_name}: {message}",
    "full": "{timestamp} {LEVEL:<8} [{thread_name}] {logger_name}: {message}",
}
#: Named templates accepted by :meth:`TemplateLayout.from_preset`.


def build_format_payload(event: LogEvent) -> dict[str, Any]:
    """Return the mapping of placeholders exposed to format templates.

    Only fields that survive the translator's redacted copy are offered, so a
    template cannot pull exception data into ``short_message``.

    Examples
    --------
    >>> from lib_log_gelf.domain.levels import LogLevel
    >>> event = LogEvent(1_700_000_000_000, LogLevel.WARNING, "disk %s", "app.io", "main", arguments=("full",))
    >>> payload = build_format_payload(event)
    >>> payload["message"], payload["LEVEL"], payload["YYYY"]
    ('disk full', 'WARNING', '2023')
    """

    moment = datetime.fromtimestamp(event.timestamp_ms / 1000, tz=timezone.utc)
    level_text = event.level.name

    return {
        "timestamp": moment.isoformat(),
        "timestamp_ms": event.timestamp_ms,
        "YYYY": f"{moment.year:04d}",
        "MM": f"{moment.month:02d}",
        "DD": f"{moment.day:02d}",
        "hh": f"{moment.hour:02d}",
        "mm": f"{moment.minute:02d}",
        "ss": f"{moment.second:02d}",
        "level": event.level.severity,
        "LEVEL": level_text,
        "level_name": level_text,
        "level_value": event.level.value,
        "logger_name": event.logger_name,
        "thread_name": event.thread_name,
        "message": event.formatted_message,
        "raw_message": event.message,
    }


class TemplateLayout:
    """Render events with a ``str.format`` template.

    Examples
    --------
    >>> from lib_log_gelf.domain.levels import LogLevel
    >>> layout = TemplateLayout("{LEVEL} {logger_name} - {message}")
    >>> layout(LogEvent(0, LogLevel.INFO, "ready", "svc", "main"))
    'INFO svc - ready'
    """

    def __init__(self, template: str = DEFAULT_TEMPLATE) -> None:
        # Fail at configuration time instead of on the first event.
        try:
            template.format(**_sample_payload())
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid layout template {template!r}: {exc}") from exc
        self._template = template

    @classmethod
    def from_preset(cls, name: str) -> "TemplateLayout":
        try:
            return cls(PRESETS[name.strip().lower()])
        except KeyError as exc:
            raise ValueError(f"Unknown layout preset: {name!r}") from exc

    @property
    def template(self) -> str:
        return self._template

    def __call__(self, event: LogEvent) -> str:
        return self._template.format(**build_format_payload(event)).rstrip()

    def __repr__(self) -> str:
        return f"TemplateLayout({self._template!r})"


def _sample_payload() -> dict[str, Any]:
    return build_format_payload(LogEvent(0, LogLevel.INFO, "sample", "sample", "sample"))


def format_exception_text(exc_info: Any) -> str:
    """Render an ``exc_info`` tuple (or exception) to traceback text."""

    if isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)
    return "".join(traceback.format_exception(*exc_info)).rstrip("\n")


__all__ = [
    "DEFAULT_TEMPLATE",
    "PRESETS",
    "TemplateLayout",
    "build_format_payload",
    "format_exception_text",
]
