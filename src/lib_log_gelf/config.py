"""Configuration loading: ``GELF_*`` environment variables and ``.env`` files.

Purpose
-------
Translate keyword arguments plus environment overrides into the immutable
:class:`TransportConfig` and :class:`AppenderConfig` values, and optionally
seed the environment from the nearest ``.env`` file via python-dotenv.

Contents
--------
* :func:`enable_dotenv` / :func:`should_use_dotenv` - ``.env`` support.
* :func:`load_transport_config` / :func:`load_appender_config` - builders.
* ``_env_*`` helpers shared by the CLI and the runtime façade.

Precedence
----------
Environment variables win over keyword arguments, which win over defaults,
mirroring how ``init`` treats its inputs. Invalid values are logged and ignored.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, TypeVar

from dotenv import find_dotenv, load_dotenv

from lib_log_gelf.adapters.layout import PRESETS, TemplateLayout
from lib_log_gelf.domain.settings import (
    DEFAULT_PORT,
    WAN_CHUNK,
    AppenderConfig,
    Layout,
    Protocol,
    TransportConfig,
    parse_additional_fields,
)

LOGGER = logging.getLogger(__name__)

ENV_PREFIX = "GELF_"
DOTENV_ENV_VAR = "GELF_USE_DOTENV"
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}

T = TypeVar("T")

_DOTENV_LOADED: Path | None = None
_DOTENV_ATTEMPTED = False


def enable_dotenv(*, search_from: Path | None = None) -> Path | None:
    """Load the nearest ``.env`` file into :data:`os.environ` once per process.

    Existing environment variables keep precedence. Returns the resolved path
    of the loaded file or ``None`` when no file was found.
    """

    global _DOTENV_LOADED, _DOTENV_ATTEMPTED
    if _DOTENV_ATTEMPTED:
        return _DOTENV_LOADED
    _DOTENV_ATTEMPTED = True
    if search_from is not None:
        candidate = _search_upwards(search_from)
    else:
        found = find_dotenv(usecwd=True)
        candidate = Path(found).resolve() if found else None
    if candidate is None:
        LOGGER.debug("No .env file found")
        return None
    load_dotenv(candidate, override=False)
    _DOTENV_LOADED = candidate
    LOGGER.debug("Loaded environment from %s", candidate)
    return candidate


def _search_upwards(start: Path) -> Path | None:
    start = start.resolve()
    for directory in (start, *start.parents):
        candidate = directory / ".env"
        if candidate.is_file():
            return candidate
    return None


def should_use_dotenv(*, explicit: bool | None = None, env_value: str | None = None) -> bool:
    """Decide whether ``.env`` loading is enabled.

    An explicit CLI flag wins; otherwise ``GELF_USE_DOTENV`` decides.

    Examples
    --------
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    >>> should_use_dotenv(env_value="yes")
    True
    >>> should_use_dotenv()
    False
    """

    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    return env_value.strip().lower() in _TRUTHY


def _reset_dotenv_state_for_testing() -> None:
    global _DOTENV_LOADED, _DOTENV_ATTEMPTED
    _DOTENV_LOADED = None
    _DOTENV_ATTEMPTED = False


def _env(name: str) -> str | None:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_bool(name: str, default: bool) -> bool:
    """Return the boolean value of ``GELF_<name>`` with fallback.

    Examples
    --------
    >>> _ = os.environ.pop('GELF_EXAMPLE_BOOL', None)
    >>> _env_bool('EXAMPLE_BOOL', default=True)
    True
    >>> os.environ['GELF_EXAMPLE_BOOL'] = 'off'
    >>> _env_bool('EXAMPLE_BOOL', default=True)
    False
    >>> _ = os.environ.pop('GELF_EXAMPLE_BOOL')
    """
    value = _env(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    LOGGER.warning("Ignoring %s%s=%r: expected a boolean", ENV_PREFIX, name, value)
    return default


def _env_number(name: str, default: T, convert: Callable[[str], T]) -> T:
    value = _env(name)
    if value is None:
        return default
    try:
        return convert(value)
    except ValueError:
        LOGGER.warning("Ignoring %s%s=%r: expected a number", ENV_PREFIX, name, value)
        return default


def load_transport_config(
    *,
    server: str = "localhost",
    port: int = DEFAULT_PORT,
    protocol: str | Protocol = Protocol.UDP,
    queue_size: int = 512,
    connect_timeout: int = 1000,
    reconnect_delay: int = 500,
    send_buffer_size: int = -1,
    tcp_no_delay: bool = False,
    tcp_keep_alive: bool = False,
    max_chunk_size: int = WAN_CHUNK,
    workers: int = 1,
    stop_timeout: float = 5.0,
) -> TransportConfig:
    """Build a :class:`TransportConfig` from arguments and ``GELF_*`` overrides.

    Examples
    --------
    >>> load_transport_config(protocol="foo").protocol
    <Protocol.UDP: 'UDP'>
    """

    return TransportConfig(
        server=_env("SERVER") or server,
        port=_env_number("PORT", port, int),
        protocol=Protocol.parse(_env("PROTOCOL") or protocol),
        queue_size=_env_number("QUEUE_SIZE", queue_size, int),
        connect_timeout=_env_number("CONNECT_TIMEOUT", connect_timeout, int),
        reconnect_delay=_env_number("RECONNECT_DELAY", reconnect_delay, int),
        send_buffer_size=_env_number("SEND_BUFFER_SIZE", send_buffer_size, int),
        tcp_no_delay=_env_bool("TCP_NO_DELAY", tcp_no_delay),
        tcp_keep_alive=_env_bool("TCP_KEEP_ALIVE", tcp_keep_alive),
        max_chunk_size=_env_number("MAX_CHUNK_SIZE", max_chunk_size, int),
        workers=_env_number("WORKERS", workers, int),
        stop_timeout=_env_number("STOP_TIMEOUT", stop_timeout, float),
    )


def load_appender_config(
    *,
    host_name: str | None = None,
    include_source: bool = True,
    include_mdc: bool = True,
    include_stack_trace: bool = True,
    include_level_name: bool = False,
    additional_fields: str | dict[str, Any] | None = None,
    layout: Layout | str | None = None,
) -> AppenderConfig:
    """Build an :class:`AppenderConfig` from arguments and ``GELF_*`` overrides.

    ``additional_fields`` accepts a mapping or a ``key=value,...`` string; the
    ``GELF_ADDITIONAL_FIELDS`` entries are merged on top. A string ``layout``
    (or ``GELF_LAYOUT_TEMPLATE``) becomes a :class:`TemplateLayout`.
    """

    if isinstance(additional_fields, str):
        fields: dict[str, Any] = parse_additional_fields(additional_fields)
    else:
        fields = dict(additional_fields or {})
    fields.update(parse_additional_fields(_env("ADDITIONAL_FIELDS")))

    return AppenderConfig(
        host_name=_env("HOST_NAME") or host_name,
        include_source=_env_bool("INCLUDE_SOURCE", include_source),
        include_mdc=_env_bool("INCLUDE_MDC", include_mdc),
        include_stack_trace=_env_bool("INCLUDE_STACK_TRACE", include_stack_trace),
        include_level_name=_env_bool("INCLUDE_LEVEL_NAME", include_level_name),
        additional_fields=fields,
        layout=_coerce_layout(_env("LAYOUT_TEMPLATE") or layout),
    )


def _coerce_layout(layout: Layout | str | None) -> Layout | None:
    if layout is None or callable(layout):
        return layout
    try:
        if layout.strip().lower() in PRESETS:
            return TemplateLayout.from_preset(layout)
        return TemplateLayout(layout)
    except ValueError as exc:
        LOGGER.warning("Ignoring layout %r, using the message layout: %s", layout, exc)
        return None


__all__ = [
    "DOTENV_ENV_VAR",
    "ENV_PREFIX",
    "enable_dotenv",
    "load_appender_config",
    "load_transport_config",
    "should_use_dotenv",
]
