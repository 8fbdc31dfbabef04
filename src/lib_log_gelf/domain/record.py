"""GELF message value object.

Purpose
-------
Represent one GELF message between the translator and the wire encoder. The
underscore prefix of additional fields is a serialization detail and does not
appear here.

Contents
--------
* :class:`GelfRecord` dataclass.
* :data:`RESERVED_FIELD_NAMES`, :func:`is_valid_field_name` and :func:`sanitize_field_name`.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

RESERVED_FIELD_NAMES = frozenset({"id"})
#: Additional-field names GELF servers refuse (``_id`` clashes with the storage key).

_FIELD_NAME_RE = re.compile(r"^[\w.\-]+$")
_INVALID_CHAR_RE = re.compile(r"[^\w.\-]")


def is_valid_field_name(name: object) -> bool:
    """Return ``True`` when ``name`` may be used as a GELF additional field.

    Examples
    --------
    >>> is_valid_field_name("loggerName"), is_valid_field_name("id"), is_valid_field_name("a b")
    (True, False, False)
    """

    return isinstance(name, str) and name not in RESERVED_FIELD_NAMES and bool(_FIELD_NAME_RE.match(name))


def sanitize_field_name(name: object) -> str | None:
    """Return a usable field name for ``name``, or ``None`` when there is none.

    Characters outside ``[\\w.-]`` become ``_``; reserved and empty names have
    no usable form.

    Examples
    --------
    >>> sanitize_field_name("user id"), sanitize_field_name("a/b"), sanitize_field_name("id"), sanitize_field_name(" ")
    ('user_id', 'a_b', None, None)
    """

    text = str(name).strip() if name is not None else ""
    if not text:
        return None
    cleaned = _INVALID_CHAR_RE.sub("_", text)
    return cleaned if is_valid_field_name(cleaned) else None



@dataclass(slots=True, frozen=True)
class GelfRecord:
    """Immutable GELF message ready for encoding.

    Attributes
    ----------
    short_message:
        Concise message; never contains a stack trace.
    host:
        Name of the host that produced the event.
    timestamp:
        Seconds since the epoch with fractional milliseconds.
    level:
        GELF numeric severity (0-7).
    full_message:
        Optional detailed message, including the stack trace when present.
    additional_fields:
        Read-only mapping of user fields, without the wire ``_`` prefix.
    """

    short_message: str
    host: str
    timestamp: float
    level: int
    full_message: str | None = None
    additional_fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.short_message or not self.short_message.strip():
            raise ValueError("short_message must not be empty")
        if not self.host or not self.host.strip():
            raise ValueError("host must not be empty")
        level = int(self.level)
        if not 0 <= level <= 7:
            raise ValueError(f"level must be between 0 and 7, got {self.level!r}")
        object.__setattr__(self, "level", level)
        object.__setattr__(self, "timestamp", float(self.timestamp))
        fields = dict(self.additional_fields)
        invalid = sorted(key for key in fields if not is_valid_field_name(key))
        if invalid:
            raise ValueError(f"invalid additional field names: {', '.join(map(repr, invalid))}")
        object.__setattr__(self, "additional_fields", MappingProxyType(fields))

    def with_fields(self, **fields: Any) -> "GelfRecord":
        """Return a copy with ``fields`` merged into ``additional_fields``."""

        merged = {**self.additional_fields, **fields}
        return replace(self, additional_fields=merged)


__all__ = ["GelfRecord", "RESERVED_FIELD_NAMES", "is_valid_field_name", "sanitize_field_name"]
