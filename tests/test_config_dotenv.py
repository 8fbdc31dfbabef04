from __future__ import annotations

import os
from pathlib import Path

import pytest
from click.testing import CliRunner

from lib_log_gelf import cli as cli_module
from lib_log_gelf import config as gelf_config


@pytest.fixture(autouse=True)
def _reset_dotenv_state() -> None:
    """Reset shared dotenv state around each test."""

    gelf_config._reset_dotenv_state_for_testing()
    yield
    gelf_config._reset_dotenv_state_for_testing()


def test_enable_dotenv_populates_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Loading the nearest .env injects GELF_* values."""

    nested = tmp_path / "nested"
    nested.mkdir()
    env_file = tmp_path / ".env"
    env_file.write_text("GELF_SERVER=dotenv.example\n")
    monkeypatch.chdir(nested)
    monkeypatch.delenv("GELF_SERVER", raising=False)

    loaded = gelf_config.enable_dotenv()

    assert loaded == env_file.resolve()
    assert os.environ["GELF_SERVER"] == "dotenv.example"
    assert gelf_config.load_transport_config().server == "dotenv.example"

    os.environ.pop("GELF_SERVER", None)


def test_enable_dotenv_respects_existing_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Existing environment variables keep precedence over .env entries."""

    nested = tmp_path / "nested"
    nested.mkdir()
    (tmp_path / ".env").write_text("GELF_SERVER=dotenv.example\n")
    monkeypatch.chdir(nested)
    monkeypatch.setenv("GELF_SERVER", "real.example")

    result = gelf_config.enable_dotenv()

    assert result is not None
    assert os.environ["GELF_SERVER"] == "real.example"


def test_enable_dotenv_searches_from_given_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    project = tmp_path / "project"
    deep = project / "src" / "pkg"
    deep.mkdir(parents=True)
    env_file = project / ".env"
    env_file.write_text("GELF_PORT=5514\n")
    monkeypatch.delenv("GELF_PORT", raising=False)

    assert gelf_config.enable_dotenv(search_from=deep) == env_file.resolve()
    assert os.environ["GELF_PORT"] == "5514"

    os.environ.pop("GELF_PORT", None)


def test_enable_dotenv_loads_only_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (first / ".env").write_text("GELF_HOST_NAME=first\n")
    (second / ".env").write_text("GELF_HOST_NAME=second\n")
    monkeypatch.delenv("GELF_HOST_NAME", raising=False)

    loaded = gelf_config.enable_dotenv(search_from=first)
    again = gelf_config.enable_dotenv(search_from=second)

    assert loaded == again == (first / ".env").resolve()
    assert os.environ["GELF_HOST_NAME"] == "first"

    os.environ.pop("GELF_HOST_NAME", None)


def test_cli_dotenv_toggle_precedence(monkeypatch: pytest.MonkeyPatch) -> None:
    """CLI flag wins over environment toggle when deciding whether to load .env."""

    runner = CliRunner()

    calls: list[tuple[tuple[object, ...], dict[str, object]]] = []

    def record_enable(*args: object, **kwargs: object) -> None:
        calls.append((args, kwargs))

    monkeypatch.setattr(gelf_config, "enable_dotenv", record_enable)
    monkeypatch.delenv(gelf_config.DOTENV_ENV_VAR, raising=False)

    result = runner.invoke(cli_module.cli, ["--use-dotenv", "info"])
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    env = {gelf_config.DOTENV_ENV_VAR: "1"}
    result = runner.invoke(cli_module.cli, ["info"], env=env)
    assert result.exit_code == 0
    assert len(calls) == 1

    calls.clear()
    env = {gelf_config.DOTENV_ENV_VAR: "1"}
    result = runner.invoke(cli_module.cli, ["--no-use-dotenv", "info"], env=env)
    assert result.exit_code == 0
    assert calls == []
