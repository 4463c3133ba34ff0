"""``pg-meta config``: inspect the resolved configuration and profiles."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import typer

from pg_meta.cli.commands._shared import get_config
from pg_meta.core.config import DEFAULT_CONFIG_PATH, load_config

if TYPE_CHECKING:
    from pathlib import Path

config_app = typer.Typer(help="Configuration management commands")

# (label, field) pairs in display order
_CONNECTION_FIELDS = [
    ("host", "host"),
    ("port", "port"),
    ("database", "dbname"),
    ("user", "user"),
    ("password", "password"),  # pragma: allowlist secret
    ("sslmode", "sslmode"),
    ("connect_timeout", "connect_timeout"),
]


@config_app.callback(invoke_without_command=True)
def config_callback(ctx: typer.Context) -> None:
    if not ctx.invoked_subcommand:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def _display(field: str, value: Any) -> str:
    if field == "password":
        return "not set" if value is None else "***"
    if value is None:
        return "not set"
    if field == "connect_timeout":
        return f"{value}s"
    return str(value)


def _config_path(ctx: typer.Context) -> Path:
    return ctx.obj.get("config_file") or DEFAULT_CONFIG_PATH


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Display resolved connection configuration with source attribution."""
    resolved = get_config(ctx)
    sources = resolved.sources

    def source(field: str) -> str:
        return sources.get(field, "default")

    typer.echo("Connection Settings (resolved):")
    for label, field in _CONNECTION_FIELDS:
        value = _display(field, getattr(resolved, field))
        typer.echo(f"  {label}: {value} ({source(field)})")

    timeout = resolved.statement_timeout
    typer.echo("")
    typer.echo("General:")
    typer.echo(
        f"  statement_timeout: {'none' if timeout is None else f'{timeout}s'} "
        f"({source('statement_timeout')})"
    )
    typer.echo(
        f"  format: {resolved.default_format or 'auto'} ({source('default_format')})"
    )

    typer.echo("")
    typer.echo(f"Active Profile: {resolved.active_profile or 'none'}")
    typer.echo(f"Config File: {_config_path(ctx)}")


@config_app.command("profiles")
def config_profiles(ctx: typer.Context) -> None:
    """List the profiles in the config file and the fields each one sets."""
    app_config = load_config(ctx.obj.get("config_file"))
    if not app_config.profiles:
        typer.echo("No profiles configured.")
        typer.echo(f"Add profiles to: {_config_path(ctx)}")
        return

    active = ctx.obj.get("profile") or app_config.default_profile
    typer.echo("Available Profiles:")
    typer.echo("")
    for name, profile in sorted(app_config.profiles.items()):
        if name == active:
            typer.echo(f"* {name} (active)")
        else:
            typer.echo(f"  {name}")
        for label, field in _CONNECTION_FIELDS:
            if field in profile.model_fields_set:
                typer.echo(f"      {label}: {_display(field, getattr(profile, field))}")
        typer.echo("")
