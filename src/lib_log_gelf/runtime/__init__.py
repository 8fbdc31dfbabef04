"""Runtime façade installing a process-wide GELF appender.

Purpose
-------
Expose a small entry point (``init``, ``shutdown``, ``bind_mdc``) so host
applications can ship their :mod:`logging` output to Graylog with one call,
instead of wiring configs, appender, and handler themselves.

Contents
--------
* :func:`init` - composition root for configs, appender, and stdlib handler.
* :func:`shutdown` - deterministic teardown.
* :func:`bind_mdc` - MDC scope for the current thread/task.
* :func:`inspect_runtime` - read-only snapshot of the active settings.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from lib_log_gelf.adapters.stdlib import GelfHandler
from lib_log_gelf.appender import GelfAppender
from lib_log_gelf.application.use_cases.append import DiagnosticHook
from lib_log_gelf.config import load_appender_config, load_transport_config
from lib_log_gelf.domain import MdcBinder, Protocol
from lib_log_gelf.domain.settings import Layout

from ._state import GelfRuntime, clear_runtime, current_runtime, is_initialised, set_runtime

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuntimeSnapshot:
    """Immutable view over the active runtime."""

    server: str
    port: int
    protocol: Protocol
    host_name: str | None
    queue_size: int
    additional_fields: Mapping[str, Any]
    handler_attached: bool


def init(
    *,
    server: str = "localhost",
    port: int = 12201,
    protocol: str | Protocol = Protocol.UDP,
    host_name: str | None = None,
    include_source: bool = True,
    include_mdc: bool = True,
    include_stack_trace: bool = True,
    include_level_name: bool = False,
    additional_fields: str | dict[str, Any] | None = None,
    layout: Layout | str | None = None,
    queue_size: int = 512,
    connect_timeout: int = 1000,
    reconnect_delay: int = 500,
    send_buffer_size: int = -1,
    tcp_no_delay: bool = False,
    tcp_keep_alive: bool = False,
    stop_timeout: float = 5.0,
    attach_to: str | None = "",
    level: int | str = logging.NOTSET,
    diagnostic_hook: DiagnosticHook = None,
) -> GelfAppender:
    """Compose and start the GELF shipper.

    Parameters
    ----------
    server, port, protocol, queue_size, connect_timeout, reconnect_delay, send_buffer_size, tcp_no_delay, tcp_keep_alive, stop_timeout:
        Transport settings; each honours its ``GELF_*`` environment override.
    host_name, include_source, include_mdc, include_stack_trace, include_level_name, additional_fields, layout:
        Translation settings; each honours its ``GELF_*`` environment override.
    attach_to:
        Name of the stdlib logger receiving a :class:`GelfHandler` (``""`` is
        the root logger). ``None`` skips the handler; call
        :meth:`GelfAppender.append` directly instead.
    level:
        Threshold of the attached handler.
    diagnostic_hook:
        Callback receiving ``(name, payload)`` telemetry such as ``queued`` or
        ``dropped``. Exceptions raised by the hook are logged and swallowed.

    Raises
    ------
    RuntimeError
        When the runtime is already initialised.

    Examples
    --------
    >>> import lib_log_gelf as gelf  # doctest: +SKIP
    >>> gelf.init(server="graylog.local", protocol="tcp")  # doctest: +SKIP
    >>> logging.getLogger("app").warning("disk almost full")  # doctest: +SKIP
    >>> gelf.shutdown()  # doctest: +SKIP
    """

    if is_initialised():
        raise RuntimeError("lib_log_gelf is already initialised; call shutdown() first")

    transport_config = load_transport_config(
        server=server,
        port=port,
        protocol=protocol,
        queue_size=queue_size,
        connect_timeout=connect_timeout,
        reconnect_delay=reconnect_delay,
        send_buffer_size=send_buffer_size,
        tcp_no_delay=tcp_no_delay,
        tcp_keep_alive=tcp_keep_alive,
        stop_timeout=stop_timeout,
    )
    appender_config = load_appender_config(
        host_name=host_name,
        include_source=include_source,
        include_mdc=include_mdc,
        include_stack_trace=include_stack_trace,
        include_level_name=include_level_name,
        additional_fields=additional_fields,
        layout=layout,
    )

    appender = GelfAppender(appender_config, transport_config, diagnostic=diagnostic_hook)
    appender.start()

    mdc = MdcBinder()
    handler: GelfHandler | None = None
    target: logging.Logger | None = None
    if attach_to is not None:
        handler = GelfHandler(appender, mdc=mdc, level=_coerce_level(level))
        target = logging.getLogger(attach_to or None)
        target.addHandler(handler)

    set_runtime(GelfRuntime(appender=appender, mdc=mdc, handler=handler, logger=target))
    return appender


def shutdown() -> bool:
    """Detach the handler, stop the appender, and clear the runtime.

    Returns ``True`` when every queued record was written. Calling it without
    an active runtime is a no-op returning ``True``.
    """

    runtime = clear_runtime()
    if runtime is None:
        return True
    if runtime.handler is not None and runtime.logger is not None:
        runtime.logger.removeHandler(runtime.handler)
        runtime.handler.close()
    return runtime.appender.stop()


@contextmanager
def bind_mdc(**fields: Any) -> Iterator[Mapping[str, str]]:
    """Bind MDC entries for records logged inside the ``with`` block."""

    with current_runtime().mdc.bind(**fields) as snapshot:
        yield snapshot


def inspect_runtime() -> RuntimeSnapshot:
    """Return a read-only snapshot of the current runtime settings."""

    runtime = current_runtime()
    transport = runtime.appender.transport_config
    config = runtime.appender.config
    return RuntimeSnapshot(
        server=transport.server,
        port=transport.port,
        protocol=transport.protocol,
        host_name=config.host_name,
        queue_size=transport.queue_size,
        additional_fields=config.additional_fields,
        handler_attached=runtime.handler is not None,
    )


def _coerce_level(level: int | str) -> int:
    """Normalise a handler level given as a name or number.

    Examples
    --------
    >>> _coerce_level("warning"), _coerce_level(10)
    (30, 10)
    """

    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return resolved


__all__ = [
    "RuntimeSnapshot",
    "bind_mdc",
    "current_runtime",
    "init",
    "inspect_runtime",
    "is_initialised",
    "shutdown",
]
