from __future__ import annotations

import json
import random
from types import SimpleNamespace

import pytest

import lib_log_gelf.adapters.gelf.encoder as encoder_module
from lib_log_gelf.adapters.gelf.encoder import (
    CHUNK_HEADER_SIZE,
    CHUNK_MAGIC,
    MAX_CHUNKS,
    TCP_DELIMITER,
    ChunkAssembler,
    GelfEncoder,
    PayloadTooLargeError,
    chunk_payload,
)
from lib_log_gelf.application.use_cases.translate import translate
from lib_log_gelf.domain.events import CallerFrame, LogEvent, ThrowableInfo
from lib_log_gelf.domain.levels import LogLevel
from lib_log_gelf.domain.record import GelfRecord
from lib_log_gelf.domain.settings import LAN_CHUNK, WAN_CHUNK, AppenderConfig


@pytest.fixture
def encoder() -> GelfEncoder:
    return GelfEncoder()


def test_payload_has_gelf_envelope_and_prefixed_fields(encoder: GelfEncoder) -> None:
    record = GelfRecord("hi", "box", 1.5, 6, full_message="hi there", additional_fields={"loggerName": "app", "line": 3})

    payload = json.loads(encoder.encode(record))

    assert payload == {
        "version": "1.1",
        "host": "box",
        "short_message": "hi",
        "full_message": "hi there",
        "timestamp": 1.5,
        "level": 6,
        "_loggerName": "app",
        "_line": 3,
    }


def test_full_message_omitted_when_absent(encoder: GelfEncoder) -> None:
    payload = encoder.to_payload(GelfRecord("hi", "box", 0, 6))

    assert "full_message" not in payload


def test_non_scalar_values_are_stringified(encoder: GelfEncoder) -> None:
    record = GelfRecord("hi", "box", 0, 6, additional_fields={"tags": ["a", "b"], "flag": True, "none": None})

    payload = encoder.to_payload(record)

    assert payload["_tags"] == "['a', 'b']"
    assert payload["_flag"] is True
    assert payload["_none"] is None


def test_encoding_is_utf8_and_compact(encoder: GelfEncoder) -> None:
    data = encoder.encode(GelfRecord("grüße", "box", 0, 6))

    assert "grüße".encode("utf-8") in data
    assert b": " not in data


def test_tcp_frame_is_nul_terminated(encoder: GelfEncoder) -> None:
    frame = encoder.frame(GelfRecord("hi", "box", 0, 6))

    assert frame.endswith(TCP_DELIMITER)
    assert frame.count(TCP_DELIMITER) == 1


def test_decode_rejects_non_objects(encoder: GelfEncoder) -> None:
    with pytest.raises(ValueError):
        encoder.decode(b"[1, 2]")
    with pytest.raises(ValueError):
        encoder.decode(b'{"host": "box"}')
    with pytest.raises(ValueError):
        encoder.decode(b"not json")


def test_decode_strips_underscore_and_ignores_id(encoder: GelfEncoder) -> None:
    record = encoder.decode(b'{"version":"1.1","host":"box","short_message":"hi","timestamp":2,"_id":"x","_app":"shop"}\x00')

    assert dict(record.additional_fields) == {"app": "shop"}
    assert record.level == 1


def test_translated_record_survives_the_wire(encoder: GelfEncoder) -> None:
    event = LogEvent(
        1_700_000_000_123,
        LogLevel.WARNING,
        "disk %s at %d%%",
        "storage",
        "io-1",
        arguments=("sda", 93),
        marker="OPS",
        mdc={"requestId": "r-9"},
        caller=CallerFrame("disk.py", "check", "DiskMonitor", 88),
        throwable=ThrowableInfo("OSError", "full", "at check\nat run"),
    )
    record = translate(event, AppenderConfig(additional_fields={"app": "shop"}, include_level_name=True), host="node-1")

    decoded = encoder.decode(encoder.frame(record))

    assert decoded.host == record.host
    assert decoded.level == record.level
    assert decoded.timestamp == record.timestamp
    assert dict(decoded.additional_fields) == dict(record.additional_fields)
    assert decoded == record


def test_small_payload_is_not_chunked() -> None:
    assert chunk_payload(b"x" * WAN_CHUNK, WAN_CHUNK) == [b"x" * WAN_CHUNK]


def test_chunks_respect_size_and_header_layout() -> None:
    payload = bytes(random.Random(7).getrandbits(8) for _ in range(5000))

    chunks = chunk_payload(payload, WAN_CHUNK, message_id=b"ABCDEFGH")

    assert len(chunks) == 4
    for index, chunk in enumerate(chunks):
        assert len(chunk) <= WAN_CHUNK
        assert chunk[:2] == CHUNK_MAGIC
        assert chunk[2:10] == b"ABCDEFGH"
        assert chunk[10] == index
        assert chunk[11] == len(chunks)
    assert b"".join(chunk[CHUNK_HEADER_SIZE:] for chunk in chunks) == payload


def test_lan_chunk_size_produces_fewer_chunks() -> None:
    payload = b"y" * 20_000

    assert len(chunk_payload(payload, LAN_CHUNK)) < len(chunk_payload(payload, WAN_CHUNK))


def test_payload_needing_too_many_chunks_is_rejected() -> None:
    body = 100 - CHUNK_HEADER_SIZE

    with pytest.raises(PayloadTooLargeError):
        chunk_payload(b"z" * (body * MAX_CHUNKS + 1), 100)
    assert len(chunk_payload(b"z" * (body * MAX_CHUNKS), 100)) == MAX_CHUNKS


def test_assembler_handles_out_of_order_chunks() -> None:
    payload = b"".join(str(index).encode() for index in range(2000))
    chunks = chunk_payload(payload, 200)
    shuffled = list(reversed(chunks))
    assembler = ChunkAssembler()

    results = [assembler.feed(chunk) for chunk in shuffled]

    assert results[:-1] == [None] * (len(chunks) - 1)
    assert results[-1] == payload
    assert assembler.pending() == 0


def test_assembler_passes_plain_datagrams_through() -> None:
    assert ChunkAssembler().feed(b'{"short_message":"hi"}') == b'{"short_message":"hi"}'


def test_assembler_expires_incomplete_messages(monkeypatch: pytest.MonkeyPatch) -> None:
    clock = {"now": 100.0}
    monkeypatch.setattr(encoder_module, "time", SimpleNamespace(monotonic=lambda: clock["now"]))
    assembler = ChunkAssembler(expire_after=5.0)
    first, second = chunk_payload(b"q" * 30, 25, message_id=b"11111111")[:2]
    other = chunk_payload(b"r" * 30, 25, message_id=b"22222222")[0]

    assert assembler.feed(first) is None
    clock["now"] += 6.0
    assert assembler.feed(other) is None

    assert assembler.pending() == 1
    assert assembler.feed(second) is None


@pytest.mark.parametrize("datagram", [CHUNK_MAGIC + b"short", CHUNK_MAGIC + b"12345678" + bytes((3, 2)), CHUNK_MAGIC + b"12345678" + bytes((0, 0))])
def test_assembler_rejects_broken_chunk_headers(datagram: bytes) -> None:
    with pytest.raises(ValueError):
        ChunkAssembler().feed(datagram)
