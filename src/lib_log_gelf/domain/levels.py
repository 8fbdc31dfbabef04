"""Severity abstractions and the fixed application-to-GELF level table.

Purpose
-------
Offer a domain-specific representation of application log severities and of
the syslog-style numeric levels GELF transports on the wire.

Contents
--------
* :class:`LogLevel` enum with conversion helpers.
* :class:`GelfLevel` enum with the eight GELF/syslog severities.
* :data:`GELF_LEVEL_TABLE` lookup table mapping every :class:`LogLevel` to a
  :class:`GelfLevel`.

System Role
-----------
Used by the translator to fill the ``level`` field of each GELF record and by
the stdlib bridge to interpret :mod:`logging` numeric levels.
"""

from __future__ import annotations

import logging
from enum import Enum, IntEnum
from types import MappingProxyType


class LogLevel(Enum):
    """Enumerated application severities, ordered by their numeric value."""

    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def severity(self) -> str:
        """Return the lowercase severity name for structured payloads."""

        return self.name.lower()

    @property
    def gelf_level(self) -> "GelfLevel":
        """Return the GELF severity this level maps to."""

        return GELF_LEVEL_TABLE[self]

    def to_python_level(self) -> int:
        """Return the :mod:`logging` numeric level matching this level.

        ``TRACE`` has no stdlib constant and keeps its own value (5).
        """

        return getattr(logging, self.name, self.value)

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Resolve a case-insensitive level name, accepting ``WARN`` and ``FATAL``.

        Examples
        --------
        >>> LogLevel.from_name("warn") is LogLevel.WARNING
        True
        >>> LogLevel.from_name(" Error ") is LogLevel.ERROR
        True
        """

        normalized = name.strip().upper()
        normalized = _NAME_ALIASES.get(normalized, normalized)
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc

    @classmethod
    def from_numeric(cls, level: int) -> "LogLevel":
        """Return the :class:`LogLevel` whose value equals ``level`` exactly."""
        try:
            return cls(level)
        except ValueError as exc:
            raise ValueError(f"Unsupported log level numeric: {level}") from exc

    @classmethod
    def from_python_level(cls, level: int) -> "LogLevel":
        """Translate any stdlib logging level integer into :class:`LogLevel`.

        Custom numeric levels resolve to the nearest defined level at or below
        them; anything below ``TRACE`` resolves to ``TRACE``.

        Examples
        --------
        >>> LogLevel.from_python_level(logging.WARNING) is LogLevel.WARNING
        True
        >>> LogLevel.from_python_level(25) is LogLevel.INFO
        True
        >>> LogLevel.from_python_level(0) is LogLevel.TRACE
        True
        """
        resolved = cls.TRACE
        for candidate in cls:
            if candidate.value <= level:
                resolved = candidate
        return resolved


class GelfLevel(IntEnum):
    """Syslog severities used by GELF's numeric ``level`` field."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFORMATIONAL = 6
    DEBUG = 7


_NAME_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}

GELF_LEVEL_TABLE = MappingProxyType(
    {
        LogLevel.TRACE: GelfLevel.DEBUG,
        LogLevel.DEBUG: GelfLevel.DEBUG,
        LogLevel.INFO: GelfLevel.INFORMATIONAL,
        LogLevel.WARNING: GelfLevel.WARNING,
        LogLevel.ERROR: GelfLevel.ERROR,
        LogLevel.CRITICAL: GelfLevel.CRITICAL,
    }
)
#: Fixed mapping from application severities to GELF numeric levels.


__all__ = ["GELF_LEVEL_TABLE", "GelfLevel", "LogLevel"]
