"""Static package metadata surfaced by the CLI banner.

Keep these values in sync with ``pyproject.toml``.
"""

from __future__ import annotations

from typing import Callable

name = "lib_log_gelf"
title = "Asynchronous GELF log shipper for Graylog over UDP and TCP"
version = "0.1.0"
author = "lib_log_gelf maintainers"
shell_command = "lib_log_gelf"


def print_info(writer: Callable[[str], object] | None = None) -> None:
    """Write the metadata banner line by line.

    Examples
    --------
    >>> print_info()  # doctest: +ELLIPSIS
    Info for lib_log_gelf:
    <BLANKLINE>
        Asynchronous GELF log shipper ...
    <BLANKLINE>
        name          = lib_log_gelf
        version       = 0.1.0
        author        = lib_log_gelf maintainers
        shell_command = lib_log_gelf
    """

    emit = writer or (lambda text: print(text, end=""))
    fields = (("name", name), ("version", version), ("author", author), ("shell_command", shell_command))
    pad = max(len(key) for key, _ in fields)
    emit(f"Info for {name}:\n\n")
    emit(f"    {title}\n\n")
    for key, value in fields:
        emit(f"    {key.ljust(pad)} = {value}\n")
