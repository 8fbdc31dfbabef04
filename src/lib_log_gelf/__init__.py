"""Public package surface for the GELF log shipper.

``import lib_log_gelf`` gives host applications the runtime façade
(:func:`init`, :func:`shutdown`, :func:`bind_mdc`) plus the building blocks
for manual wiring: :class:`GelfAppender`, :class:`GelfHandler`, the config
value objects, and the translator.
"""

from __future__ import annotations

from .adapters.gelf import GelfEncoder, GelfReceiver, create_transport
from .adapters.layout import TemplateLayout
from .adapters.stdlib import GelfHandler, event_from_record
from .appender import GelfAppender
from .application.use_cases.translate import create_translator, resolve_host_name, translate
from .config import enable_dotenv, load_appender_config, load_transport_config
from .domain import (
    AppenderConfig,
    CallerFrame,
    GelfLevel,
    GelfRecord,
    LogEvent,
    LogLevel,
    MdcBinder,
    Protocol,
    ThrowableInfo,
    TransportConfig,
)
from .runtime import RuntimeSnapshot, bind_mdc, current_runtime, init, inspect_runtime, is_initialised, shutdown

__all__ = [
    "AppenderConfig",
    "CallerFrame",
    "GelfAppender",
    "GelfEncoder",
    "GelfHandler",
    "GelfLevel",
    "GelfReceiver",
    "GelfRecord",
    "LogEvent",
    "LogLevel",
    "MdcBinder",
    "Protocol",
    "RuntimeSnapshot",
    "TemplateLayout",
    "ThrowableInfo",
    "TransportConfig",
    "bind_mdc",
    "create_transport",
    "create_translator",
    "current_runtime",
    "enable_dotenv",
    "event_from_record",
    "init",
    "inspect_runtime",
    "is_initialised",
    "load_appender_config",
    "load_transport_config",
    "resolve_host_name",
    "shutdown",
    "translate",
]
