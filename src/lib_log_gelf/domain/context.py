"""Mapped diagnostic context built atop :mod:`contextvars`.

Purpose
-------
Give Python code an MDC: string key/value pairs bound to the current thread or
asyncio task and copied onto every log event emitted inside the scope.

Contents
--------
* :class:`MdcBinder` - stack-free binder with ``bind``/``put``/``remove``/``snapshot``.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any


class MdcBinder:
    """Manage MDC entries bound to the current execution flow.

    Examples
    --------
    >>> mdc = MdcBinder()
    >>> with mdc.bind(request_id="r-1"):
    ...     dict(mdc.snapshot())
    {'request_id': 'r-1'}
    >>> dict(mdc.snapshot())
    {}
    """

    _var: contextvars.ContextVar[Mapping[str, str]]

    def __init__(self, name: str = "lib_log_gelf_mdc") -> None:
        self._var = contextvars.ContextVar(name, default=MappingProxyType({}))

    @contextmanager
    def bind(self, **fields: Any) -> Iterator[Mapping[str, str]]:
        """Bind ``fields`` on top of the current MDC for the ``with`` scope.

        ``None`` values remove an inherited key inside the scope.
        """

        merged = dict(self._var.get())
        for key, value in fields.items():
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = str(value)
        frozen = MappingProxyType(merged)
        token = self._var.set(frozen)
        try:
            yield frozen
        finally:
            self._var.reset(token)

    def put(self, key: str, value: Any) -> None:
        """Set ``key`` in the current context until removed or cleared."""

        merged = dict(self._var.get())
        merged[key] = str(value)
        self._var.set(MappingProxyType(merged))

    def remove(self, key: str) -> None:
        merged = dict(self._var.get())
        merged.pop(key, None)
        self._var.set(MappingProxyType(merged))

    def snapshot(self) -> Mapping[str, str]:
        """Return the read-only MDC visible in the current context."""

        return self._var.get()

    def clear(self) -> None:
        self._var.set(MappingProxyType({}))


__all__ = ["MdcBinder"]
