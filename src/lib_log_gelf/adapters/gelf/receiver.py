"""Minimal GELF receivers for local debugging and integration tests.

Purpose
-------
Accept GELF over UDP (chunked or not) or NUL-delimited TCP and hand decoded
:class:`GelfRecord` objects to a callback. Not a Graylog replacement: one
thread, no compression, no persistence.
"""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable

from lib_log_gelf.domain.record import GelfRecord
from lib_log_gelf.domain.settings import Protocol

from .encoder import TCP_DELIMITER, ChunkAssembler, GelfEncoder

LOGGER = logging.getLogger(__name__)

RecordCallback = Callable[[GelfRecord], None]
_MAX_DATAGRAM = 65535


class GelfReceiver:
    """Bind a socket and decode incoming GELF messages.

    Parameters
    ----------
    protocol:
        ``Protocol.UDP`` or ``Protocol.TCP``.
    host, port:
        Bind address; port ``0`` picks a free port (see :attr:`port`).
    """

    def __init__(self, protocol: Protocol = Protocol.UDP, host: str = "127.0.0.1", port: int = 0) -> None:
        self._protocol = Protocol.parse(protocol)
        kind = socket.SOCK_DGRAM if self._protocol is Protocol.UDP else socket.SOCK_STREAM
        family, _kind, _proto, _canonname, address = socket.getaddrinfo(host, port, type=kind, flags=socket.AI_PASSIVE)[0]
        self._sock = socket.socket(family, kind)
        self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._sock.bind(address)
        if self._protocol is Protocol.TCP:
            self._sock.listen(5)
        self._encoder = GelfEncoder()
        self._assembler = ChunkAssembler()
        self._closed = threading.Event()

    @property
    def port(self) -> int:
        return self._sock.getsockname()[1]

    @property
    def protocol(self) -> Protocol:
        return self._protocol

    def serve(self, callback: RecordCallback, *, max_messages: int | None = None) -> int:
        """Receive until closed or ``max_messages`` were decoded; return the count."""

        if self._protocol is Protocol.UDP:
            return self._serve_udp(callback, max_messages)
        return self._serve_tcp(callback, max_messages)

    def close(self) -> None:
        self._closed.set()
        try:
            self._sock.close()
        except OSError:
            pass

    def __enter__(self) -> "GelfReceiver":
        return self

    def __exit__(self, *_exc_info: object) -> None:
        self.close()

    def _serve_udp(self, callback: RecordCallback, max_messages: int | None) -> int:
        received = 0
        while not self._closed.is_set() and (max_messages is None or received < max_messages):
            try:
                datagram, _ = self._sock.recvfrom(_MAX_DATAGRAM)
            except OSError:
                break
            if self._dispatch(self._assembler.feed, datagram, callback):
                received += 1
        return received

    def _serve_tcp(self, callback: RecordCallback, max_messages: int | None) -> int:
        received = 0
        while not self._closed.is_set() and (max_messages is None or received < max_messages):
            try:
                conn, _ = self._sock.accept()
            except OSError:
                break
            with conn:
                buffer = b""
                while max_messages is None or received < max_messages:
                    try:
                        data = conn.recv(4096)
                    except OSError:
                        break
                    if not data:
                        break
                    buffer += data
                    *frames, buffer = buffer.split(TCP_DELIMITER)
                    for frame in frames:
                        if frame and self._dispatch(lambda raw: raw, frame, callback):
                            received += 1
        return received

    def _dispatch(self, unwrap: Callable[[bytes], bytes | None], data: bytes, callback: RecordCallback) -> bool:
        try:
            payload = unwrap(data)
            if payload is None:
                return False
            record = self._encoder.decode(payload)
        except ValueError as exc:
            LOGGER.warning("Discarding malformed GELF message: %s", exc)
            return False
        callback(record)
        return True


__all__ = ["GelfReceiver", "RecordCallback"]
