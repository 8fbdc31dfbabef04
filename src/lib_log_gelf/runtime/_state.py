"""Runtime state container and access helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock

from lib_log_gelf.adapters.stdlib import GelfHandler
from lib_log_gelf.appender import GelfAppender
from lib_log_gelf.domain import MdcBinder


@dataclass(slots=True)
class GelfRuntime:
    """Aggregate of live collaborators assembled by :func:`lib_log_gelf.init`."""

    appender: GelfAppender
    mdc: MdcBinder
    handler: GelfHandler | None
    logger: logging.Logger | None


_STATE: GelfRuntime | None = None
_STATE_LOCK = RLock()


def set_runtime(runtime: GelfRuntime) -> None:
    """Install ``runtime`` as the active singleton."""

    with _STATE_LOCK:
        global _STATE
        _STATE = runtime


def clear_runtime() -> GelfRuntime | None:
    """Remove and return the active runtime if present."""

    with _STATE_LOCK:
        global _STATE
        runtime, _STATE = _STATE, None
        return runtime


def current_runtime() -> GelfRuntime:
    """Return the active runtime or raise when uninitialised."""

    with _STATE_LOCK:
        if _STATE is None:
            raise RuntimeError("lib_log_gelf.init() must be called before using the runtime API")
        return _STATE


def is_initialised() -> bool:
    """Return ``True`` when :func:`lib_log_gelf.init` has been called."""

    with _STATE_LOCK:
        return _STATE is not None


__all__ = [
    "GelfRuntime",
    "clear_runtime",
    "current_runtime",
    "is_initialised",
    "set_runtime",
]
