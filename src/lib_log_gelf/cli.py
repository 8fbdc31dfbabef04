"""rich-click command line adapter for the GELF shipper.

Purpose
-------
Give operators a quick way to see what a record looks like on the wire, fire
a single message at a Graylog input, or run a throwaway receiver while
debugging a collector setup.

Contents
--------
* :func:`cli` - command group with the ``--traceback`` and ``--use-dotenv`` toggles.
* ``info`` / ``preview`` / ``send`` / ``listen`` subcommands.
* :func:`main` - ``lib_cli_exit_tools`` entry point used by ``__main__`` and the console script.

System Role
-----------
Presentation layer only: every command delegates to the appender, the
translator, or the receiver and renders the outcome with :mod:`rich`.
"""

from __future__ import annotations

import json
import os
import threading
import time
from typing import Sequence

import lib_cli_exit_tools
import rich_click as click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __init__conf__
from . import config as gelf_config
from .adapters.gelf.encoder import GelfEncoder
from .adapters.gelf.receiver import GelfReceiver
from .adapters.layout import format_exception_text
from .appender import GelfAppender
from .application.use_cases.translate import resolve_host_name, translate
from .domain import GelfRecord, LogEvent, LogLevel, Protocol, ThrowableInfo

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_LEVEL_CHOICE = click.Choice([level.name for level in LogLevel], case_sensitive=False)
_PROTOCOL_CHOICE = click.Choice([protocol.value for protocol in Protocol], case_sensitive=False)
_DEFAULT_MESSAGE = "Hello from lib_log_gelf"


def summary_info() -> str:
    """Return the metadata banner printed by ``info``.

    Examples
    --------
    >>> "version" in summary_info()
    True
    """

    lines: list[str] = []
    __init__conf__.print_info(writer=lines.append)
    return "".join(lines)


def _sample_event(message: str, level: str, logger_name: str, *, with_exception: bool = False) -> LogEvent:
    throwable = None
    if with_exception:
        try:
            raise RuntimeError("sample failure")
        except RuntimeError as exc:
            throwable = ThrowableInfo(class_name="RuntimeError", message=str(exc), stack_trace=format_exception_text(exc))
    return LogEvent(
        timestamp_ms=int(time.time() * 1000),
        level=LogLevel.from_name(level),
        message=message,
        logger_name=logger_name,
        thread_name=threading.current_thread().name,
        throwable=throwable,
    )


def _record_table(record: GelfRecord) -> Table:
    table = Table(title=escape(f"{record.host} (level {record.level})"), show_header=False)
    table.add_row("short_message", escape(record.short_message))
    table.add_row("timestamp", f"{record.timestamp:.3f}")
    if record.full_message and record.full_message != record.short_message:
        table.add_row("full_message", escape(record.full_message))
    for key, value in sorted(record.additional_fields.items()):
        table.add_row(f"_{key}", escape(str(value)))
    return table


@click.group(help=__init__conf__.title, context_settings=CLICK_CONTEXT_SETTINGS, invoke_without_command=True)
@click.version_option(version=__init__conf__.version, prog_name=__init__conf__.shell_command, message="%(version)s")
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python tracebacks on errors.",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load GELF_* settings from the nearest .env file (default: ${gelf_config.DOTENV_ENV_VAR}).",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool | None) -> None:
    """Root command storing global flags for the subcommands."""

    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    if gelf_config.should_use_dotenv(explicit=use_dotenv, env_value=os.getenv(gelf_config.DOTENV_ENV_VAR)):
        gelf_config.enable_dotenv()
    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print package metadata."""

    click.echo(summary_info(), nl=False)


@cli.command("preview", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--message", "-m", default=_DEFAULT_MESSAGE, show_default=True, help="Message of the sample event.")
@click.option("--level", "-l", type=_LEVEL_CHOICE, default="INFO", show_default=True)
@click.option("--logger", "logger_name", default="demo", show_default=True, help="Logger name of the sample event.")
@click.option("--host-name", default=None, help="Override the host field ($GELF_HOST_NAME).")
@click.option("--additional-fields", "-f", default=None, help="Static fields as key=value,key2=value2.")
@click.option("--include-level-name", is_flag=True, default=False, help="Add the _levelName field.")
@click.option("--with-exception", is_flag=True, default=False, help="Attach a sample exception.")
@click.option("--compact", is_flag=True, default=False, help="Print the exact single-line wire payload.")
def cli_preview(
    message: str,
    level: str,
    logger_name: str,
    host_name: str | None,
    additional_fields: str | None,
    include_level_name: bool,
    with_exception: bool,
    compact: bool,
) -> None:
    """Print the GELF payload a sample event translates to."""

    config = gelf_config.load_appender_config(
        host_name=host_name,
        additional_fields=additional_fields,
        include_level_name=include_level_name,
    )
    event = _sample_event(message, level, logger_name, with_exception=with_exception)
    record = translate(event, config, host=resolve_host_name(config.host_name))
    encoder = GelfEncoder()
    if compact:
        click.echo(encoder.encode(record).decode("utf-8"))
        return
    Console().print_json(json.dumps(encoder.to_payload(record)))


@cli.command("send", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--server", "-s", default="localhost", show_default=True, help="GELF input host ($GELF_SERVER).")
@click.option("--port", "-p", type=int, default=12201, show_default=True, help="GELF input port ($GELF_PORT).")
@click.option("--protocol", type=_PROTOCOL_CHOICE, default="UDP", show_default=True, help="Transport ($GELF_PROTOCOL).")
@click.option("--message", "-m", default=_DEFAULT_MESSAGE, show_default=True)
@click.option("--level", "-l", type=_LEVEL_CHOICE, default="INFO", show_default=True)
@click.option("--logger", "logger_name", default="lib_log_gelf.cli", show_default=True)
@click.option("--host-name", default=None, help="Override the host field ($GELF_HOST_NAME).")
@click.option("--additional-fields", "-f", default=None, help="Static fields as key=value,key2=value2.")
@click.option("--timeout", type=float, default=5.0, show_default=True, help="Seconds to wait for delivery.")
def cli_send(
    server: str,
    port: int,
    protocol: str,
    message: str,
    level: str,
    logger_name: str,
    host_name: str | None,
    additional_fields: str | None,
    timeout: float,
) -> None:
    """Ship one message to a GELF collector and wait for delivery."""

    transport_config = gelf_config.load_transport_config(server=server, port=port, protocol=protocol, stop_timeout=timeout)
    appender_config = gelf_config.load_appender_config(host_name=host_name, additional_fields=additional_fields)
    appender = GelfAppender(appender_config, transport_config)
    appender.start()
    appender.append(_sample_event(message, level, logger_name))
    delivered = appender.stop()
    target = f"{transport_config.server}:{transport_config.port}"
    if appender.dropped:
        raise click.ClickException(f"message not delivered to {target}; see the log for the cause")
    if not delivered:
        raise click.ClickException(f"message not delivered to {target} within {timeout}s")
    Console().print(
        f"[green]sent[/green] via {transport_config.protocol.value} to {transport_config.server}:{transport_config.port}",
        highlight=False,
    )


@cli.command("listen", context_settings=CLICK_CONTEXT_SETTINGS)
@click.option("--bind", "-b", "bind_host", default="127.0.0.1", show_default=True, help="Address to bind.")
@click.option("--port", "-p", type=int, default=12201, show_default=True)
@click.option("--protocol", type=_PROTOCOL_CHOICE, default="UDP", show_default=True)
@click.option("--count", "-n", type=int, default=0, show_default=True, help="Stop after N messages (0 = forever).")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print each payload as JSON instead of a table.")
def cli_listen(bind_host: str, port: int, protocol: str, count: int, as_json: bool) -> None:
    """Run a local GELF receiver and print decoded records."""

    console = Console()
    encoder = GelfEncoder()

    def _show(record: GelfRecord) -> None:
        if as_json:
            click.echo(encoder.encode(record).decode("utf-8"))
        else:
            console.print(_record_table(record))

    receiver = GelfReceiver(Protocol.parse(protocol), host=bind_host, port=port)
    console.print(f"listening for GELF/{receiver.protocol.value} on {bind_host}:{receiver.port}", highlight=False)
    try:
        received = receiver.serve(_show, max_messages=count or None)
    except KeyboardInterrupt:
        received = None
    finally:
        receiver.close()
    if received is not None:
        console.print(f"received {received} message(s)", highlight=False)


def main(argv: Sequence[str] | None = None, *, restore_traceback: bool = True) -> int:
    """Run the CLI through ``lib_cli_exit_tools`` and return the exit code.

    The traceback preferences toggled by ``--traceback`` are process-global;
    they are restored afterwards unless ``restore_traceback`` is ``False``.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main", "summary_info"]
