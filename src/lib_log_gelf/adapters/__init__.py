"""Adapters implementing the application ports."""

from __future__ import annotations

from .gelf import (
    ChunkAssembler,
    ConnectionState,
    GelfEncoder,
    GelfReceiver,
    GelfTcpTransport,
    GelfTransport,
    GelfUdpTransport,
    create_transport,
)
from .layout import TemplateLayout, build_format_payload, format_exception_text
from .queue import QueueAdapter
from .stdlib import GelfHandler, event_from_record

__all__ = [
    "ChunkAssembler",
    "ConnectionState",
    "GelfEncoder",
    "GelfHandler",
    "GelfReceiver",
    "GelfTcpTransport",
    "GelfTransport",
    "GelfUdpTransport",
    "QueueAdapter",
    "TemplateLayout",
    "build_format_payload",
    "create_transport",
    "event_from_record",
    "format_exception_text",
]
