"""GELF wire codec and network transports."""

from __future__ import annotations

from .encoder import ChunkAssembler, GelfEncoder, PayloadTooLargeError, chunk_payload
from .receiver import GelfReceiver
from .transport import ConnectionState, GelfTcpTransport, GelfTransport, GelfUdpTransport, create_transport

__all__ = [
    "ChunkAssembler",
    "ConnectionState",
    "GelfEncoder",
    "GelfReceiver",
    "GelfTcpTransport",
    "GelfTransport",
    "GelfUdpTransport",
    "PayloadTooLargeError",
    "chunk_payload",
    "create_transport",
]
