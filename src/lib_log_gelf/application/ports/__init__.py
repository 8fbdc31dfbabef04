"""Ports (interfaces) connecting the application layer to adapters."""

from __future__ import annotations

from .rendering import Renderer, StackTraceRenderer
from .sink import LogSink
from .transport import TransportPort

__all__ = ["LogSink", "Renderer", "StackTraceRenderer", "TransportPort"]
