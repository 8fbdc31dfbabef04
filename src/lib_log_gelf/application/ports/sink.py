"""Port describing the single capability the shipper offers to hosts."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_gelf.domain.events import LogEvent


@runtime_checkable
class LogSink(Protocol):
    """Receive log events from the host logging pipeline."""

    def append(self, event: LogEvent | None) -> None:
        """Accept ``event``; never raises into the caller."""


__all__ = ["LogSink"]
