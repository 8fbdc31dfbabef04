"""GELF 1.1 wire encoding, TCP framing, and UDP chunking.

Purpose
-------
Turn :class:`GelfRecord` objects into the bytes a Graylog input understands and
back again, so the transports and the bundled receiver share one codec.

Contents
--------
* :class:`GelfEncoder` - JSON payload encoding/decoding and TCP framing.
* :func:`chunk_payload` - split an oversized UDP payload into GELF chunks.
* :class:`ChunkAssembler` - receiver-side reassembly of chunked datagrams.

Wire format notes
-----------------
Additional fields carry a leading underscore on the wire only. TCP messages are
terminated by a NUL byte. A chunk starts with the magic bytes ``0x1e 0x0f``,
an 8-byte message id, a 1-byte sequence number and a 1-byte sequence count;
GELF receivers accept at most 128 chunks per message.
"""

from __future__ import annotations

import json
import os
import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from lib_log_gelf.domain.record import GelfRecord

GELF_VERSION = "1.1"
TCP_DELIMITER = b"\x00"
CHUNK_MAGIC = b"\x1e\x0f"
CHUNK_HEADER_SIZE = 12
MAX_CHUNKS = 128

_SCALARS = (str, int, float, bool)


class PayloadTooLargeError(ValueError):
    """Raised when a payload needs more than :data:`MAX_CHUNKS` chunks."""


class GelfEncoder:
    """Encode and decode GELF JSON payloads.

    Examples
    --------
    >>> record = GelfRecord("hello", "box", 1.5, 6, additional_fields={"loggerName": "app"})
    >>> encoder = GelfEncoder()
    >>> payload = encoder.to_payload(record)
    >>> payload["version"], payload["_loggerName"]
    ('1.1', 'app')
    >>> encoder.decode(encoder.encode(record)) == record
    True
    """

    def to_payload(self, record: GelfRecord) -> dict[str, Any]:
        """Return the GELF dictionary for ``record`` (underscore-prefixed fields)."""

        payload: dict[str, Any] = {
            "version": GELF_VERSION,
            "host": record.host,
            "short_message": record.short_message,
            "timestamp": record.timestamp,
            "level": record.level,
        }
        if record.full_message is not None:
            payload["full_message"] = record.full_message
        for key, value in record.additional_fields.items():
            payload[f"_{key}"] = _scalar(value)
        return payload

    def encode(self, record: GelfRecord) -> bytes:
        """Serialize ``record`` to compact UTF-8 JSON."""

        return json.dumps(self.to_payload(record), ensure_ascii=False, separators=(",", ":")).encode("utf-8")

    def frame(self, record: GelfRecord) -> bytes:
        """Return the NUL-terminated frame written to TCP streams."""

        return self.encode(record) + TCP_DELIMITER

    def decode(self, data: bytes | str) -> GelfRecord:
        """Parse one GELF JSON payload back into a :class:`GelfRecord`.

        Trailing NUL delimiters are ignored. Raises :class:`ValueError` for
        payloads that are not GELF objects.
        """

        if isinstance(data, bytes):
            data = data.rstrip(TCP_DELIMITER).decode("utf-8")
        payload = json.loads(data)
        if not isinstance(payload, Mapping):
            raise ValueError("GELF payload must be a JSON object")
        return self.from_payload(payload)

    def from_payload(self, payload: Mapping[str, Any]) -> GelfRecord:
        fields = {key[1:]: value for key, value in payload.items() if key.startswith("_") and key not in ("_id",)}
        try:
            return GelfRecord(
                short_message=payload["short_message"],
                host=payload["host"],
                timestamp=payload.get("timestamp", time.time()),
                level=payload.get("level", 1),
                full_message=payload.get("full_message"),
                additional_fields=fields,
            )
        except KeyError as exc:
            raise ValueError(f"GELF payload is missing {exc.args[0]!r}") from exc


def _scalar(value: Any) -> Any:
    if value is None or isinstance(value, _SCALARS):
        return value
    return str(value)


def new_message_id() -> bytes:
    """Return a random 8-byte GELF chunk message id."""

    return os.urandom(8)


def chunk_payload(payload: bytes, max_chunk_size: int, *, message_id: bytes | None = None) -> list[bytes]:
    """Split ``payload`` into datagrams no larger than ``max_chunk_size``.

    Payloads that already fit are returned unchanged as a single datagram.

    Examples
    --------
    >>> chunks = chunk_payload(b"x" * 30, 22, message_id=b"12345678")
    >>> len(chunks), chunks[0][:2], chunks[1][10:12]
    (3, b'\\x1e\\x0f', b'\\x01\\x03')
    >>> chunk_payload(b"small", 1420)
    [b'small']
    """

    if len(payload) <= max_chunk_size:
        return [payload]
    body_size = max_chunk_size - CHUNK_HEADER_SIZE
    if body_size <= 0:
        raise ValueError("max_chunk_size must exceed the chunk header size")
    count = -(-len(payload) // body_size)
    if count > MAX_CHUNKS:
        raise PayloadTooLargeError(f"payload of {len(payload)} bytes needs {count} chunks (max {MAX_CHUNKS})")
    ident = message_id if message_id is not None else new_message_id()
    if len(ident) != 8:
        raise ValueError("message_id must be exactly 8 bytes")
    return [
        CHUNK_MAGIC + ident + bytes((sequence, count)) + payload[sequence * body_size : (sequence + 1) * body_size]
        for sequence in range(count)
    ]


@dataclass
class _PendingMessage:
    count: int
    started: float
    parts: dict[int, bytes] = field(default_factory=dict)


class ChunkAssembler:
    """Reassemble chunked GELF datagrams on the receiving side.

    Incomplete messages older than ``expire_after`` seconds are discarded, as
    Graylog does.

    Examples
    --------
    >>> assembler = ChunkAssembler()
    >>> results = [assembler.feed(part) for part in chunk_payload(b"y" * 40, 20)]
    >>> results[:-1] == [None] * (len(results) - 1), results[-1] == b"y" * 40
    (True, True)
    """

    def __init__(self, *, expire_after: float = 5.0) -> None:
        self._expire_after = expire_after
        self._pending: dict[bytes, _PendingMessage] = {}
        self._lock = threading.Lock()

    def feed(self, datagram: bytes) -> bytes | None:
        """Return the complete payload once all chunks arrived, else ``None``.

        Datagrams without the chunk magic are complete payloads already.
        """

        if not datagram.startswith(CHUNK_MAGIC):
            return datagram
        if len(datagram) < CHUNK_HEADER_SIZE:
            raise ValueError("truncated GELF chunk header")
        ident = datagram[2:10]
        sequence, count = datagram[10], datagram[11]
        if count == 0 or count > MAX_CHUNKS or sequence >= count:
            raise ValueError(f"invalid GELF chunk {sequence}/{count}")
        now = time.monotonic()
        with self._lock:
            self._expire(now)
            pending = self._pending.setdefault(ident, _PendingMessage(count=count, started=now))
            pending.parts[sequence] = datagram[CHUNK_HEADER_SIZE:]
            if len(pending.parts) < pending.count:
                return None
            del self._pending[ident]
        return b"".join(pending.parts[index] for index in range(pending.count))

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def _expire(self, now: float) -> None:
        stale = [ident for ident, message in self._pending.items() if now - message.started > self._expire_after]
        for ident in stale:
            del self._pending[ident]


__all__ = [
    "CHUNK_HEADER_SIZE",
    "CHUNK_MAGIC",
    "ChunkAssembler",
    "GELF_VERSION",
    "GelfEncoder",
    "MAX_CHUNKS",
    "PayloadTooLargeError",
    "TCP_DELIMITER",
    "chunk_payload",
    "new_message_id",
]
