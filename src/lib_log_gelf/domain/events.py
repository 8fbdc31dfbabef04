"""Domain event describing a log message handed to the shipper.

Purpose
-------
Provide an immutable snapshot of one log event as produced by the host logging
pipeline, independent of :mod:`logging` or any other framework.

Contents
--------
* :class:`CallerFrame` - source location of the logging call.
* :class:`ThrowableInfo` - exception data captured with the event.
* :class:`LogEvent` - the event itself with formatting and redaction helpers.

System Role
-----------
Sits in the domain layer; the translator reads it, the stdlib bridge builds it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from .levels import LogLevel


@dataclass(slots=True, frozen=True)
class CallerFrame:
    """Source location where the event was logged."""

    file_name: str | None
    method_name: str | None
    class_name: str | None
    line_number: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_name": self.file_name,
            "method_name": self.method_name,
            "class_name": self.class_name,
            "line_number": self.line_number,
        }


@dataclass(slots=True, frozen=True)
class ThrowableInfo:
    """Exception attached to an event.

    Attributes
    ----------
    class_name:
        Qualified exception type name (``builtins.ValueError`` style or the
        plain type name, whatever the producer supplies).
    message:
        ``str(exception)``; may be empty.
    stack_trace:
        Fully rendered stack trace text.
    """

    class_name: str
    message: str | None
    stack_trace: str

    def to_dict(self) -> dict[str, Any]:
        return {"class_name": self.class_name, "message": self.message, "stack_trace": self.stack_trace}


def _freeze_mdc(values: Mapping[str, Any] | None) -> Mapping[str, str]:
    if not values:
        return MappingProxyType({})
    return MappingProxyType({str(key): str(value) for key, value in values.items()})


@dataclass(slots=True, frozen=True)
class LogEvent:
    """Immutable log event delivered to :meth:`LogSink.append`.

    Attributes
    ----------
    timestamp_ms:
        Milliseconds since the Unix epoch.
    level:
        :class:`LogLevel` severity associated with the event.
    message:
        Raw message, possibly containing ``%`` placeholders.
    arguments:
        Positional arguments applied to ``message`` on formatting.
    logger_name, thread_name:
        Origin of the event.
    marker:
        Optional marker name attached by the producer.
    mdc:
        Read-only copy of the mapped diagnostic context.
    caller:
        Optional :class:`CallerFrame`.
    throwable:
        Optional :class:`ThrowableInfo`.
    """

    timestamp_ms: int
    level: LogLevel
    message: str
    logger_name: str
    thread_name: str
    arguments: tuple[Any, ...] = ()
    marker: str | None = None
    mdc: Mapping[str, str] = field(default_factory=dict)
    caller: CallerFrame | None = None
    throwable: ThrowableInfo | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments or ()))
        object.__setattr__(self, "mdc", _freeze_mdc(self.mdc))

    @property
    def formatted_message(self) -> str:
        """Return ``message`` with ``arguments`` applied the way :mod:`logging` does.

        A single mapping argument is used for named placeholders. Formatting
        errors never raise; the raw message and arguments are joined instead.

        Examples
        --------
        >>> event = LogEvent(0, LogLevel.INFO, "hello %s", "app", "main", arguments=("world",))
        >>> event.formatted_message
        'hello world'
        >>> LogEvent(0, LogLevel.INFO, "broken %d", "app", "main", arguments=("x",)).formatted_message
        "broken %d ('x',)"
        """

        message = str(self.message)
        if not self.arguments:
            return message
        args: Any = self.arguments
        if len(args) == 1 and isinstance(args[0], Mapping) and args[0]:
            args = args[0]
        try:
            return message % args
        except (TypeError, ValueError, KeyError):
            return f"{message} {self.arguments!r}"

    def without_throwable(self) -> "LogEvent":
        """Return the redacted copy handed to layouts for ``short_message``.

        Only message, arguments, level, logger, thread, and timestamp survive.
        """

        return LogEvent(
            timestamp_ms=self.timestamp_ms,
            level=self.level,
            message=self.message,
            logger_name=self.logger_name,
            thread_name=self.thread_name,
            arguments=self.arguments,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the event to plain Python types."""

        data: dict[str, Any] = {
            "timestamp_ms": self.timestamp_ms,
            "level": self.level.name,
            "message": self.message,
            "arguments": list(self.arguments),
            "logger_name": self.logger_name,
            "thread_name": self.thread_name,
            "marker": self.marker,
            "mdc": dict(self.mdc),
            "caller": self.caller.to_dict() if self.caller is not None else None,
            "throwable": self.throwable.to_dict() if self.throwable is not None else None,
        }
        return data

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LogEvent":
        """Reconstruct an event from :meth:`to_dict` output."""

        caller = payload.get("caller")
        throwable = payload.get("throwable")
        return cls(
            timestamp_ms=int(payload["timestamp_ms"]),
            level=LogLevel.from_name(payload["level"]),
            message=payload["message"],
            logger_name=payload["logger_name"],
            thread_name=payload["thread_name"],
            arguments=tuple(payload.get("arguments") or ()),
            marker=payload.get("marker"),
            mdc=payload.get("mdc") or {},
            caller=CallerFrame(**caller) if caller else None,
            throwable=ThrowableInfo(**throwable) if throwable else None,
        )

    def replace(self, **changes: Any) -> "LogEvent":
        """Return a copied event with ``changes`` applied."""

        return replace(self, **changes)


__all__ = ["CallerFrame", "LogEvent", "ThrowableInfo"]
