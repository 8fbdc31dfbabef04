"""Callable contracts for the injected message and stack-trace renderers."""

from __future__ import annotations

from collections.abc import Callable

from lib_log_gelf.domain.events import LogEvent

Renderer = Callable[[LogEvent], str]
#: Render an event to human-readable text (``short_message`` layout).

StackTraceRenderer = Callable[[LogEvent], str]
#: Render the throwable attached to an event; only called when one is present.


__all__ = ["Renderer", "StackTraceRenderer"]
