"""pg-meta main entry point and command registration."""

from __future__ import annotations

import atexit
from pathlib import Path  # noqa: TC003
from typing import Annotated

import sentry_sdk
import typer

from pg_meta.__about__ import __version__
from pg_meta.cli.commands.catalog import (
    attributes_command,
    constraints_command,
    count_command,
    databases_command,
    relations_command,
)
from pg_meta.cli.commands.config import config_app
from pg_meta.cli.commands.types import types_command
from pg_meta.cli.output import OutputFormat  # noqa: TC001
from pg_meta.core.exceptions import PgMetaError
from pg_meta.core.logging import setup_logging
from pg_meta.core.monitoring import setup_sentry

_CONNECTION = "Connection"
_OUTPUT = "Output"

app = typer.Typer(
    help="pg-meta - PostgreSQL system catalog reader",
    no_args_is_help=True,
)

app.add_typer(config_app, name="config")
app.command("databases")(databases_command)
app.command("relations")(relations_command)
app.command("attributes")(attributes_command)
app.command("constraints")(constraints_command)
app.command("count")(count_command)
app.command("types")(types_command)


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pg-meta {__version__}")
        raise typer.Exit()


def _start_transaction(name: str) -> None:
    """Wrap the whole command in a Sentry transaction, finished at exit."""
    transaction = sentry_sdk.start_transaction(op="cli", name=name)
    transaction.__enter__()

    def finish() -> None:
        transaction.__exit__(None, None, None)
        sentry_sdk.flush(timeout=2)

    atexit.register(finish)


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Print the version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log connections and statements to stderr"),
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Config file (default ~/.config/pg-meta/config.toml)"),
    ] = None,
    profile: Annotated[
        str | None,
        typer.Option(
            "--profile", "-P", help="Profile from the config file", rich_help_panel=_CONNECTION
        ),
    ] = None,
    dsn: Annotated[
        str | None,
        typer.Option("--dsn", help="postgresql:// connection URL", rich_help_panel=_CONNECTION),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", "-H", help="Server host", rich_help_panel=_CONNECTION),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-p", help="Server port", rich_help_panel=_CONNECTION),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option("--database", "-d", help="Database to inspect", rich_help_panel=_CONNECTION),
    ] = None,
    user: Annotated[
        str | None,
        typer.Option("--user", "-U", help="Role to connect as", rich_help_panel=_CONNECTION),
    ] = None,
    password: Annotated[
        str | None,
        typer.Option("--password", "-W", help="Role password", rich_help_panel=_CONNECTION),
    ] = None,
    sslmode: Annotated[
        str | None,
        typer.Option(
            "--sslmode",
            help="libpq sslmode (disable, require, verify-full...)",
            rich_help_panel=_CONNECTION,
        ),
    ] = None,
    ssl: Annotated[
        bool | None,
        typer.Option(
            "--ssl/--no-ssl",
            help="Shorthand for --sslmode require / disable",
            rich_help_panel=_CONNECTION,
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            help="Server-side statement timeout in seconds",
            rich_help_panel=_CONNECTION,
        ),
    ] = None,
    format: Annotated[
        OutputFormat | None,
        typer.Option(
            "--format",
            "-f",
            help="table, json or csv (default: table on a terminal, csv otherwise)",
            rich_help_panel=_OUTPUT,
        ),
    ] = None,
    table: Annotated[
        bool,
        typer.Option("--table", help="Same as --format table", rich_help_panel=_OUTPUT),
    ] = False,
    compact: Annotated[
        bool,
        typer.Option("--compact", help="Single-line JSON", rich_help_panel=_OUTPUT),
    ] = False,
    width: Annotated[
        int,
        typer.Option("--width", help="Truncate table cells to this width", rich_help_panel=_OUTPUT),
    ] = 40,
    no_header: Annotated[
        bool,
        typer.Option("--no-header", help="Omit the CSV header row", rich_help_panel=_OUTPUT),
    ] = False,
) -> None:
    """pg-meta - PostgreSQL system catalog reader."""
    setup_logging(verbose)
    if setup_sentry():
        _start_transaction(ctx.invoked_subcommand or "pg-meta")

    # Subcommands read connection and output settings back from ctx.obj.
    ctx.ensure_object(dict).update(
        verbose=verbose,
        config_file=config_file,
        profile=profile,
        dsn=dsn,
        host=host,
        port=port,
        database=database,
        user=user,
        password=password,
        sslmode=sslmode,
        ssl=ssl,
        timeout=timeout,
        format="table" if table else (format.value if format else None),
        compact=compact,
        width=width,
        no_header=no_header,
    )


def run() -> None:
    """Console script entry point: map PgMetaError to its exit code."""
    try:
        app()
    except PgMetaError as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e.message}", err=True)
        raise SystemExit(e.exit_code) from None
    except SystemExit:
        raise
    except KeyboardInterrupt:
        raise SystemExit(130) from None
    except Exception as e:
        sentry_sdk.capture_exception(e)
        typer.echo(f"Error: {e}", err=True)
        raise SystemExit(1) from None
