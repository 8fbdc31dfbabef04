from __future__ import annotations

from lib_log_gelf.adapters.gelf.transport import GelfTcpTransport, GelfUdpTransport
from lib_log_gelf.adapters.stdlib import GelfHandler
from lib_log_gelf.application.ports.sink import LogSink
from lib_log_gelf.application.ports.transport import TransportPort
from lib_log_gelf.appender import GelfAppender
from lib_log_gelf.domain.events import LogEvent
from lib_log_gelf.domain.record import GelfRecord
from lib_log_gelf.domain.settings import Protocol, TransportConfig


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def record(self, name: str, **payload) -> None:
        self.calls.append((name, payload))


class _FakeTransport(TransportPort):
    def __init__(self, recorder: _Recorder) -> None:
        self.recorder = recorder

    def start(self) -> None:
        self.recorder.record("start")

    def try_send(self, record: GelfRecord) -> bool:
        self.recorder.record("try_send", record=record)
        return True

    def stop(self, timeout: float | None = None) -> bool:
        self.recorder.record("stop", timeout=timeout)
        return True


class _FakeSink(LogSink):
    def __init__(self, recorder: _Recorder) -> None:
        self.recorder = recorder

    def append(self, event: LogEvent | None) -> None:
        self.recorder.record("append", event=event)


def test_fakes_satisfy_the_ports() -> None:
    recorder = _Recorder()

    assert isinstance(_FakeTransport(recorder), TransportPort)
    assert isinstance(_FakeSink(recorder), LogSink)


def test_concrete_transports_satisfy_transport_port() -> None:
    assert isinstance(GelfUdpTransport(TransportConfig()), TransportPort)
    assert isinstance(GelfTcpTransport(TransportConfig(protocol=Protocol.TCP)), TransportPort)


def test_appender_satisfies_log_sink() -> None:
    assert isinstance(GelfAppender(), LogSink)


def test_handler_accepts_any_log_sink() -> None:
    recorder = _Recorder()
    handler = GelfHandler(_FakeSink(recorder))

    assert handler.sink is not None
    assert recorder.calls == []
