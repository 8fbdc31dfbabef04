"""GELF appender: the :class:`LogSink` host applications plug in.

Purpose
-------
Compose the translator, the transport, and the append/shutdown use cases into
one object with a start/append/stop lifecycle.

Contents
--------
* :class:`GelfAppender` - the sink.

System Role
-----------
Outer shell of the shipper. ``append`` runs on the logging thread and never
raises; everything that can fail is reported through :mod:`logging`.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from lib_log_gelf.adapters.gelf.transport import create_transport
from lib_log_gelf.application.ports.rendering import StackTraceRenderer
from lib_log_gelf.application.ports.transport import TransportPort
from lib_log_gelf.application.use_cases.append import AppendCallable, DiagnosticHook, create_append
from lib_log_gelf.application.use_cases.shutdown import create_shutdown
from lib_log_gelf.application.use_cases.translate import Translator, create_translator, resolve_host_name
from lib_log_gelf.domain.events import LogEvent
from lib_log_gelf.domain.settings import AppenderConfig, TransportConfig

LOGGER = logging.getLogger(__name__)


class GelfAppender:
    """Ship :class:`LogEvent` objects to a GELF collector.

    Examples
    --------
    >>> from lib_log_gelf.domain.levels import LogLevel
    >>> class ListTransport:
    ...     def __init__(self):
    ...         self.records = []
    ...     def start(self): ...
    ...     def stop(self, timeout=None): return True
    ...     def try_send(self, record):
    ...         self.records.append(record)
    ...         return True
    >>> transport = ListTransport()
    >>> with GelfAppender(AppenderConfig(host_name="box"), transport=transport) as appender:
    ...     appender.append(LogEvent(0, LogLevel.WARNING, "careful", "app", "main"))
    >>> transport.records[0].level, transport.records[0].host
    (4, 'box')
    """

    def __init__(
        self,
        config: AppenderConfig | None = None,
        transport_config: TransportConfig | None = None,
        *,
        transport: TransportPort | None = None,
        stack_renderer: StackTraceRenderer | None = None,
        diagnostic: DiagnosticHook = None,
    ) -> None:
        self._config = config or AppenderConfig()
        self._transport_config = transport_config or TransportConfig()
        self._transport = transport
        self._stack_renderer = stack_renderer
        self._diagnostic = diagnostic
        self._lock = threading.Lock()
        self._translator: Translator | None = None
        self._append: AppendCallable | None = None
        self._started = False
        self._not_started_reported = False

    @property
    def config(self) -> AppenderConfig:
        return self._config

    @property
    def transport_config(self) -> TransportConfig:
        return self._transport_config

    @property
    def transport(self) -> TransportPort | None:
        return self._transport

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def dropped(self) -> int:
        """Records the transport discarded; 0 for transports that do not count."""

        return int(getattr(self._transport, "dropped", 0))

    def start(self) -> None:
        """Resolve the host name, create the transport, and start it."""

        with self._lock:
            if self._started:
                return
            self._translator = self._build_translator(self._config)
            if self._transport is None:
                self._transport = create_transport(self._transport_config, diagnostic=self._diagnostic)
            self._transport.start()
            self._append = create_append(
                translator=self._current_translator,
                transport=self._transport,
                diagnostic=self._diagnostic,
            )
            self._not_started_reported = False
            self._started = True
        LOGGER.debug(
            "GELF appender started (%s %s:%s)",
            self._transport_config.protocol.value,
            *self._transport_config.address,
        )

    def append(self, event: LogEvent | None) -> None:
        """Translate and enqueue ``event``; failures are logged, never raised."""

        if event is None:
            return
        append = self._append
        if not self._started or append is None:
            if not self._not_started_reported:
                self._not_started_reported = True
                LOGGER.error("GELF appender is not started; dropping log events")
            return
        append(event)

    def stop(self) -> bool:
        """Stop the transport; idempotent. Returns ``True`` when fully drained."""

        with self._lock:
            if not self._started:
                return True
            self._started = False
            self._append = None
            transport = self._transport
        return create_shutdown(transport=transport)()

    def reconfigure(self, config: AppenderConfig) -> None:
        """Swap in a new translation configuration without touching the transport."""

        translator = self._build_translator(config)
        with self._lock:
            self._config = config
            self._translator = translator

    def __enter__(self) -> "GelfAppender":
        self.start()
        return self

    def __exit__(self, *_exc_info: Any) -> None:
        self.stop()

    def _current_translator(self) -> Translator:
        translator = self._translator
        if translator is None:
            raise RuntimeError("GELF appender has no active translator")
        return translator

    def _build_translator(self, config: AppenderConfig) -> Translator:
        return create_translator(config, host=resolve_host_name(config.host_name), stack_renderer=self._stack_renderer)


__all__ = ["GelfAppender"]
