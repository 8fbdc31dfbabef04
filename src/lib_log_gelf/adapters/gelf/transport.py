"""UDP and TCP transports delivering GELF records from a bounded queue.

Purpose
-------
Implement :class:`~lib_log_gelf.application.ports.transport.TransportPort`:
``try_send`` only enqueues, background workers do the network I/O.

Contents
--------
* :class:`ConnectionState` - TCP connection states.
* :class:`GelfTransport` - shared queue/lifecycle handling.
* :class:`GelfUdpTransport` - fire-and-forget datagrams with chunking.
* :class:`GelfTcpTransport` - NUL-framed stream with reconnect loop.
* :func:`create_transport` - factory selecting the transport by protocol.

System Role
-----------
Owns the only shared mutable resources of the shipper: the queue and the
socket. Failures are logged here and never surfaced per record; callers only
observe ``try_send`` returning ``False`` once the queue backs up.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from enum import Enum
from typing import Any, Callable

from lib_log_gelf.adapters.queue import QueueAdapter
from lib_log_gelf.domain.record import GelfRecord
from lib_log_gelf.domain.settings import Protocol, TransportConfig

from .encoder import GelfEncoder, PayloadTooLargeError, chunk_payload

LOGGER = logging.getLogger(__name__)

Diagnostic = Callable[[str, dict[str, Any]], None] | None


class ConnectionState(Enum):
    """Lifecycle of a TCP connection to the collector."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class GelfTransport:
    """Queue-backed transport base class.

    Subclasses implement :meth:`_deliver` (called on worker threads) and
    :meth:`_close_socket`.
    """

    def __init__(
        self,
        config: TransportConfig,
        *,
        encoder: GelfEncoder | None = None,
        diagnostic: Diagnostic = None,
    ) -> None:
        self._config = config
        self._encoder = encoder or GelfEncoder()
        self._diagnostic = diagnostic
        self._stopping = threading.Event()
        self._dropped = 0
        self._dropped_lock = threading.Lock()
        self._queue: QueueAdapter[GelfRecord] = QueueAdapter(
            worker=self._deliver,
            maxsize=config.queue_size,
            workers=config.workers,
            on_drop=self._count_drop,
            stop_timeout=config.stop_timeout,
            interrupt=self._interrupt,
            diagnostic=diagnostic,
            name=f"gelf-{config.protocol.value.lower()}",
        )

    @property
    def config(self) -> TransportConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._queue.running

    @property
    def dropped(self) -> int:
        """Number of records discarded during shutdown or on send errors."""

        return self._dropped

    def start(self) -> None:
        """Start the worker threads; returns immediately."""

        if self._queue.running:
            return
        self._stopping.clear()
        self._queue.start()
        LOGGER.debug("GELF %s transport started for %s:%s", self._config.protocol.value, *self._config.address)

    def try_send(self, record: GelfRecord) -> bool:
        """Enqueue ``record`` without blocking.

        Returns ``False`` when the queue is full or the transport is not running.
        """

        return self._queue.offer(record)

    def stop(self, timeout: float | None = None) -> bool:
        """Drain within the grace period, force-close the socket, join workers.

        Safe to call repeatedly; never raises.
        """

        drained = self._queue.stop(timeout=timeout)
        self._stopping.set()
        self._close_socket()
        return drained

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until every queued record was handed to the socket."""

        return self._queue.wait_until_idle(timeout)

    def _interrupt(self) -> None:
        self._stopping.set()
        self._close_socket()

    def _count_drop(self, _record: GelfRecord) -> None:
        with self._dropped_lock:
            self._dropped += 1

    def _deliver(self, record: GelfRecord) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    def _close_socket(self) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    def _emit_diagnostic(self, name: str, payload: dict[str, Any]) -> None:
        if self._diagnostic is None:
            return
        try:
            self._diagnostic(name, payload)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("GELF diagnostic hook raised while reporting %s", name, exc_info=exc)


class GelfUdpTransport(GelfTransport):
    """Send each record as one datagram, chunked when it exceeds the chunk size.

    The server name is resolved once, when the socket is created, and the
    socket family follows the resolved address so IPv6 collectors work. A
    failed lookup is retried after ``reconnect_delay``; records arriving in
    between are dropped.
    """

    def __init__(self, config: TransportConfig, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self._sock: socket.socket | None = None
        self._sockaddr: Any = None
        self._sock_lock = threading.Lock()
        self._retry_at = 0.0
        self._unresolved = False

    def _deliver(self, record: GelfRecord) -> None:
        payload = self._encoder.encode(record)
        try:
            datagrams = chunk_payload(payload, self._config.max_chunk_size)
        except PayloadTooLargeError as exc:
            LOGGER.warning("Dropping GELF record that cannot be chunked: %s", exc)
            self._count_drop(record)
            return
        target = self._target()
        if target is None:
            self._count_drop(record)
            return
        sock, sockaddr = target
        try:
            for datagram in datagrams:
                sock.sendto(datagram, sockaddr)
        except OSError as exc:
            if self._stopping.is_set():
                return
            LOGGER.warning("Failed to send GELF datagram to %s:%s: %s", *self._config.address, exc)
            self._count_drop(record)
            self._emit_diagnostic("udp_send_error", {"exception": repr(exc)})

    def _target(self) -> tuple[socket.socket, Any] | None:
        """Return the socket and resolved address, or ``None`` while unresolvable."""

        with self._sock_lock:
            if self._sock is not None:
                return self._sock, self._sockaddr
            now = time.monotonic()
            if now < self._retry_at:
                return None
            try:
                family, kind, proto, _canonname, sockaddr = socket.getaddrinfo(*self._config.address, type=socket.SOCK_DGRAM)[0]
                sock = socket.socket(family, kind, proto)
            except OSError as exc:
                self._retry_at = now + self._config.reconnect_delay / 1000
                self._report_unresolved(exc)
                return None
            if self._config.send_buffer_size > 0:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, self._config.send_buffer_size)
            if self._unresolved:
                LOGGER.info("GELF server %s:%s resolved again", *self._config.address)
                self._unresolved = False
            self._sock, self._sockaddr = sock, sockaddr
            return sock, sockaddr

    def _report_unresolved(self, exc: OSError) -> None:
        if self._unresolved:
            LOGGER.debug("GELF server %s:%s still unresolvable: %s", *self._config.address, exc)
        else:
            LOGGER.warning(
                "Cannot resolve GELF server %s:%s, dropping records and retrying every %dms: %s",
                *self._config.address,
                self._config.reconnect_delay,
                exc,
            )
            self._unresolved = True
        self._emit_diagnostic("udp_resolve_error", {"exception": repr(exc)})

    def _close_socket(self) -> None:
        with self._sock_lock:
            sock, self._sock = self._sock, None
            self._sockaddr = None
            self._retry_at = 0.0
        if sock is not None:
            sock.close()


class GelfTcpTransport(GelfTransport):
    """Write NUL-terminated frames over one TCP connection, reconnecting on failure.

    State machine::

        DISCONNECTED -> CONNECTING -> CONNECTED
              ^                          |
              +-- wait reconnect_delay <-+ (I/O error)

    The record being written when the connection fails is retried on the
    next connection until it is sent or the transport stops.
    """

    def __init__(self, config: TransportConfig, **kwargs: Any) -> None:
        super().__init__(config, **kwargs)
        self._conn: socket.socket | None = None
        self._conn_lock = threading.RLock()
        self._state = ConnectionState.DISCONNECTED
        self._connector: threading.Thread | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    def start(self) -> None:
        if self.running:
            return
        super().start()
        # Connect eagerly on the worker side so the first record does not pay for it.
        self._connector = threading.Thread(target=self._warm_up, name="gelf-tcp-connect", daemon=True)
        self._connector.start()

    def stop(self, timeout: float | None = None) -> bool:
        budget = timeout if timeout is not None else self._config.stop_timeout
        deadline = time.monotonic() + budget
        drained = super().stop(timeout)
        connector, self._connector = self._connector, None
        if connector is None:
            return drained
        connector.join(max(deadline - time.monotonic(), 0.05))
        if connector.is_alive():
            LOGGER.warning("GELF TCP connect thread did not stop within %.2fs", budget)
            return False
        return drained

    def _warm_up(self) -> None:
        with self._conn_lock:
            if self._conn is None and not self._stopping.is_set():
                self._try_connect()
            # stop() may have closed the socket while the connect was in flight.
            if self._stopping.is_set():
                self._disconnect()

    def _deliver(self, record: GelfRecord) -> None:
        frame = self._encoder.frame(record)
        while not self._stopping.is_set():
            with self._conn_lock:
                conn = self._conn if self._conn is not None else self._try_connect()
                if conn is not None:
                    try:
                        conn.sendall(frame)
                        return
                    except OSError as exc:
                        if self._stopping.is_set():
                            break
                        LOGGER.warning("GELF TCP write to %s:%s failed: %s", *self._config.address, exc)
                        self._emit_diagnostic("tcp_write_error", {"exception": repr(exc)})
                        self._disconnect()
            if self._stopping.wait(self._config.reconnect_delay / 1000):
                break
        self._count_drop(record)

    def _try_connect(self) -> socket.socket | None:
        """Open the connection; return ``None`` (state DISCONNECTED) on failure."""

        self._state = ConnectionState.CONNECTING
        try:
            conn = socket.create_connection(self._config.address, timeout=self._config.connect_timeout / 1000)
        except OSError as exc:
            self._state = ConnectionState.DISCONNECTED
            LOGGER.warning("Could not connect to GELF server %s:%s: %s", *self._config.address, exc)
            self._emit_diagnostic("tcp_connect_error", {"exception": repr(exc)})
            return None
        try:
            self._apply_options(conn)
        except OSError as exc:
            LOGGER.debug("Could not apply GELF TCP socket options: %s", exc)
        self._conn = conn
        self._state = ConnectionState.CONNECTED
        LOGGER.debug("Connected to GELF server %s:%s", *self._config.address)
        return conn

    def _apply_options(self, conn: socket.socket) -> None:
        # Writes block without a timeout; stop() unblocks them by closing the socket.
        conn.settimeout(None)
        if self._config.tcp_no_delay:
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        if self._config.tcp_keep_alive:
            conn.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        if self._config.send_buffer_size > 0:
            conn.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, self._config.send_buffer_size)

    def _disconnect(self) -> None:
        conn, self._conn = self._conn, None
        self._state = ConnectionState.DISCONNECTED
        if conn is not None:
            try:
                conn.close()
            except OSError:
                pass

    def _close_socket(self) -> None:
        # Called from the stopping thread while a worker may hold the lock inside sendall.
        conn = self._conn
        if conn is not None:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        if self._conn_lock.acquire(timeout=1.0):
            try:
                self._disconnect()
            finally:
                self._conn_lock.release()
        elif conn is not None:
            conn.close()


def create_transport(config: TransportConfig, **kwargs: Any) -> GelfTransport:
    """Return the transport matching ``config.protocol``."""

    if config.protocol is Protocol.TCP:
        return GelfTcpTransport(config, **kwargs)
    return GelfUdpTransport(config, **kwargs)


__all__ = [
    "ConnectionState",
    "GelfTcpTransport",
    "GelfTransport",
    "GelfUdpTransport",
    "create_transport",
]
