from __future__ import annotations

import logging

import pytest

from lib_log_gelf.domain.levels import GELF_LEVEL_TABLE, GelfLevel, LogLevel


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (LogLevel.TRACE, 7),
        (LogLevel.DEBUG, 7),
        (LogLevel.INFO, 6),
        (LogLevel.WARNING, 4),
        (LogLevel.ERROR, 3),
        (LogLevel.CRITICAL, 2),
    ],
)
def test_gelf_level_table_matches_syslog_severities(level: LogLevel, expected: int) -> None:
    assert GELF_LEVEL_TABLE[level] == expected
    assert level.gelf_level is GELF_LEVEL_TABLE[level]


def test_gelf_level_table_covers_every_level_and_is_read_only() -> None:
    assert set(GELF_LEVEL_TABLE) == set(LogLevel)
    with pytest.raises(TypeError):
        GELF_LEVEL_TABLE[LogLevel.INFO] = GelfLevel.NOTICE  # type: ignore[index]


def test_log_level_from_name_accepts_aliases_and_case() -> None:
    assert LogLevel.from_name("warn") is LogLevel.WARNING
    assert LogLevel.from_name("FATAL") is LogLevel.CRITICAL
    assert LogLevel.from_name("  trace ") is LogLevel.TRACE


def test_log_level_from_name_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        LogLevel.from_name("verbose")


def test_log_level_from_numeric_requires_exact_value() -> None:
    assert LogLevel.from_numeric(40) is LogLevel.ERROR
    with pytest.raises(ValueError, match="Unsupported log level numeric"):
        LogLevel.from_numeric(41)


@pytest.mark.parametrize(
    ("numeric", "expected"),
    [
        (logging.NOTSET, LogLevel.TRACE),
        (5, LogLevel.TRACE),
        (logging.DEBUG, LogLevel.DEBUG),
        (15, LogLevel.DEBUG),
        (logging.INFO, LogLevel.INFO),
        (logging.WARNING, LogLevel.WARNING),
        (logging.ERROR, LogLevel.ERROR),
        (logging.CRITICAL, LogLevel.CRITICAL),
        (99, LogLevel.CRITICAL),
    ],
)
def test_log_level_from_python_level_rounds_down(numeric: int, expected: LogLevel) -> None:
    assert LogLevel.from_python_level(numeric) is expected


def test_log_level_round_trips_python_levels() -> None:
    assert LogLevel.WARNING.to_python_level() == logging.WARNING
    assert LogLevel.TRACE.to_python_level() == 5
    assert LogLevel.ERROR.severity == "error"
