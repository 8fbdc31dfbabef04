"""Domain entities and value objects used by the GELF shipper."""

from __future__ import annotations

from .context import MdcBinder
from .events import CallerFrame, LogEvent, ThrowableInfo
from .levels import GELF_LEVEL_TABLE, GelfLevel, LogLevel
from .record import RESERVED_FIELD_NAMES, GelfRecord, is_valid_field_name, sanitize_field_name
from .settings import AppenderConfig, Protocol, TransportConfig, parse_additional_fields

__all__ = [
    "AppenderConfig",
    "CallerFrame",
    "GELF_LEVEL_TABLE",
    "GelfLevel",
    "GelfRecord",
    "LogEvent",
    "LogLevel",
    "MdcBinder",
    "Protocol",
    "RESERVED_FIELD_NAMES",
    "ThrowableInfo",
    "TransportConfig",
    "is_valid_field_name",
    "parse_additional_fields",
    "sanitize_field_name",
]
