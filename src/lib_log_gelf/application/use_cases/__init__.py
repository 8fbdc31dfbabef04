"""Use cases orchestrating translation, delivery, and shutdown."""

from __future__ import annotations

from .append import AppendCallable, DiagnosticHook, create_append
from .shutdown import create_shutdown
from .translate import Translator, create_translator, resolve_host_name, translate

__all__ = [
    "AppendCallable",
    "DiagnosticHook",
    "Translator",
    "create_append",
    "create_shutdown",
    "create_translator",
    "resolve_host_name",
    "translate",
]
