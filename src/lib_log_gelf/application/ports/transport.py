"""Port describing the GELF transport used by the appender."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lib_log_gelf.domain.record import GelfRecord


@runtime_checkable
class TransportPort(Protocol):
    """Deliver GELF records to a collector without blocking producers."""

    def start(self) -> None:
        """Create the queue and start background workers."""

    def try_send(self, record: GelfRecord) -> bool:
        """Enqueue ``record``; return ``False`` when it was not accepted."""

    def stop(self, timeout: float | None = None) -> bool:
        """Drain on a best-effort basis, then release sockets and threads."""


__all__ = ["TransportPort"]
