"""Immutable configuration values for the appender and its transport.

Purpose
-------
Capture every setting once at startup. Neither object is mutated afterwards;
the ``with_*`` helpers return new instances so a live appender can be rebuilt
and swapped instead of changed in place.

Contents
--------
* :class:`Protocol` - UDP/TCP selector with lenient parsing.
* :class:`TransportConfig` - socket and queue settings.
* :class:`AppenderConfig` - translation switches, static fields, layout.
* :func:`parse_additional_fields` - ``key=value,key2=value2`` parser.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any

from .events import LogEvent
from .record import sanitize_field_name

LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 12201
WAN_CHUNK = 1420
LAN_CHUNK = 8154
#: Chunk sizes commonly used by GELF UDP clients (graypy).


class Protocol(Enum):
    """Transport protocol used to reach the GELF collector."""

    UDP = "UDP"
    TCP = "TCP"

    @classmethod
    def parse(cls, value: "str | Protocol | None") -> "Protocol":
        """Return the protocol for ``value``; anything unrecognised means UDP.

        Examples
        --------
        >>> Protocol.parse("tcp"), Protocol.parse("foo"), Protocol.parse(None)
        (<Protocol.TCP: 'TCP'>, <Protocol.UDP: 'UDP'>, <Protocol.UDP: 'UDP'>)
        """

        if isinstance(value, Protocol):
            return value
        normalized = (value or "").strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            LOGGER.debug("Unknown GELF protocol %r, falling back to UDP", value)
            return cls.UDP


@dataclass(slots=True, frozen=True)
class TransportConfig:
    """Settings for :class:`~lib_log_gelf.adapters.gelf.transport.GelfTransport`.

    Durations follow the collector conventions: ``connect_timeout`` and
    ``reconnect_delay`` are milliseconds, ``stop_timeout`` is seconds.
    """

    server: str = "localhost"
    port: int = DEFAULT_PORT
    protocol: Protocol = Protocol.UDP
    queue_size: int = 512
    connect_timeout: int = 1000
    reconnect_delay: int = 500
    send_buffer_size: int = -1
    tcp_no_delay: bool = False
    tcp_keep_alive: bool = False
    max_chunk_size: int = WAN_CHUNK
    workers: int = 1
    stop_timeout: float = 5.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "protocol", Protocol.parse(self.protocol))
        if not self.server or not str(self.server).strip():
            raise ValueError("server must not be empty")
        if not 0 < int(self.port) < 65536:
            raise ValueError(f"port must be between 1 and 65535, got {self.port!r}")
        if self.queue_size < 1:
            raise ValueError("queue_size must be positive")
        if self.workers < 1:
            raise ValueError("workers must be positive")
        if self.max_chunk_size < 13:
            raise ValueError("max_chunk_size must leave room for the chunk header")

    @property
    def address(self) -> tuple[str, int]:
        return (self.server, int(self.port))

    def replace(self, **changes: Any) -> "TransportConfig":
        """Return a copied configuration with ``changes`` applied."""

        return replace(self, **changes)


Layout = Callable[[LogEvent], str]


@dataclass(slots=True, frozen=True)
class AppenderConfig:
    """Switches controlling how events become GELF records.

    Attributes
    ----------
    host_name:
        Override for the ``host`` field; ``None`` or blank resolves the local
        machine name.
    include_source, include_mdc, include_stack_trace, include_level_name:
        Toggle the corresponding groups of additional fields.
    additional_fields:
        Static fields merged into every record last, winning on collisions.
    layout:
        Render function producing ``short_message``; ``None`` selects the
        default message layout.
    """

    host_name: str | None = None
    include_source: bool = True
    include_mdc: bool = True
    include_stack_trace: bool = True
    include_level_name: bool = False
    additional_fields: Mapping[str, Any] = field(default_factory=dict)
    layout: Layout | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "additional_fields", MappingProxyType(dict(self.additional_fields)))
        for key in self.additional_fields:
            name = sanitize_field_name(key)
            if name is None:
                LOGGER.warning("Static GELF field %r has no usable name and will not be sent", key)
            elif name != key:
                LOGGER.warning("Static GELF field %r will be sent as %r", key, name)

    def with_additional_field(self, key: str, value: Any) -> "AppenderConfig":
        """Return a copy carrying one more static field."""

        if not key or not str(key).strip():
            LOGGER.warning("Failed to add additional field: empty key for value %r", value)
            return self
        merged = dict(self.additional_fields)
        merged[str(key).strip()] = value
        return replace(self, additional_fields=merged)

    def with_additional_fields(self, raw: str | None) -> "AppenderConfig":
        """Return a copy with the fields parsed from ``key=value,...`` added."""

        parsed = parse_additional_fields(raw)
        if not parsed:
            return self
        return replace(self, additional_fields={**self.additional_fields, **parsed})

    def replace(self, **changes: Any) -> "AppenderConfig":
        return replace(self, **changes)


def parse_additional_fields(raw: str | None) -> dict[str, str]:
    """Parse ``key=value`` pairs separated by commas.

    Malformed entries (no ``=`` or an empty key) are logged as warnings and
    skipped; the remaining entries still apply. Only the first ``=`` splits,
    so values may contain ``=``.

    Examples
    --------
    >>> parse_additional_fields("app=shop, env = prod")
    {'app': 'shop', 'env': 'prod'}
    >>> parse_additional_fields("broken,app=shop")
    {'app': 'shop'}
    >>> parse_additional_fields(None)
    {}
    """

    if not raw:
        return {}
    result: dict[str, str] = {}
    for chunk in raw.split(","):
        if not chunk.strip():
            continue
        if "=" not in chunk:
            LOGGER.warning("Failed to read additional field %r: expected key=value", chunk.strip())
            continue
        key, value = chunk.split("=", 1)
        key = key.strip()
        if not key:
            LOGGER.warning("Failed to read additional field %r: empty key", chunk.strip())
            continue
        result[key] = value.strip()
    return result


__all__ = [
    "AppenderConfig",
    "DEFAULT_PORT",
    "LAN_CHUNK",
    "Layout",
    "Protocol",
    "TransportConfig",
    "WAN_CHUNK",
    "parse_additional_fields",
]
