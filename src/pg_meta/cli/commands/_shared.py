"""Shared CLI plumbing for command modules.

Config resolution, format-option handling, record-to-table conversion
and output helpers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

import typer

from pg_meta.cli.output import OutputFormat, get_formatter, resolve_format, write_output
from pg_meta.core import catalog
from pg_meta.core.config import load_config, resolve_config
from pg_meta.core.exceptions import InputError
from pg_meta.core.models import ColumnMeta, QueryResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pydantic import BaseModel

    from pg_meta.core.config import ResolvedConfig

FormatOption = Annotated[
    OutputFormat | None,
    typer.Option("--format", "-f", help="Output format: table|json|csv"),
]
TableOption = Annotated[
    bool,
    typer.Option("--table", help="Shorthand for --format table"),
]
CompactOption = Annotated[
    bool,
    typer.Option("--compact", help="Compact JSON output (no indentation)"),
]
WidthOption = Annotated[
    int | None,
    typer.Option("--width", help="Column width for table format"),
]
NoHeaderOption = Annotated[
    bool,
    typer.Option("--no-header", help="Suppress header row in CSV output"),
]

# Column type names follow the regtype table.
_TYPE_OIDS: dict[str, int] = {
    "boolean": 16,
    "bigint": 20,
    "smallint": 21,
    "integer": 23,
    "text": 25,
    "oid": 26,
    "jsonb": 3802,
}


def get_config(ctx: typer.Context, timeout: float | None = None) -> ResolvedConfig:
    obj = ctx.ensure_object(dict)
    config = load_config(obj.get("config_file"))

    cli_overrides: dict[str, Any] = {}
    for key in ("host", "port", "database", "user", "password", "sslmode", "ssl"):
        val = obj.get(key)
        if val is not None:
            cli_overrides[key] = val
    if timeout is None:
        timeout = obj.get("timeout")
    if timeout is not None:
        cli_overrides["timeout"] = timeout

    return resolve_config(
        config,
        profile_name=obj.get("profile"),
        dsn=obj.get("dsn"),
        **cli_overrides,
    )


def apply_local_format_options(
    ctx: typer.Context,
    *,
    format: OutputFormat | None = None,
    table: bool = False,
    compact: bool = False,
    width: int | None = None,
    no_header: bool = False,
) -> None:
    obj = ctx.ensure_object(dict)
    if format is not None:
        obj["format"] = format.value
    if table:
        obj["format"] = "table"
    if compact:
        obj["compact"] = compact
    if width is not None:
        obj["width"] = width
    if no_header:
        obj["no_header"] = no_header


def effective_format(ctx: typer.Context, config: ResolvedConfig) -> str:
    obj = ctx.ensure_object(dict)
    return resolve_format(obj.get("format"), config.default_format)


def output_result(
    ctx: typer.Context,
    result: QueryResult,
    config: ResolvedConfig,
    *,
    title: str | None = None,
) -> None:
    obj = ctx.ensure_object(dict)
    formatter = get_formatter(
        obj.get("format"),
        configured=config.default_format,
        compact=obj.get("compact", False),
        width=obj.get("width", 40),
        no_header=obj.get("no_header", False),
        title=title,
    )
    write_output(formatter, result)


def records_result(
    records: Sequence[BaseModel],
    columns: Sequence[tuple[str, str]],
    *,
    row: Any = None,
) -> QueryResult:
    """Tabulate catalog records.

    ``columns`` is a list of (field name, type name) pairs. ``row``
    optionally maps a record to its cell tuple; by default the named
    fields are read off the record.
    """
    if row is None:
        names = [name for name, _ in columns]

        def row(rec: BaseModel) -> tuple[Any, ...]:
            return tuple(getattr(rec, name) for name in names)

    rows = [row(rec) for rec in records]
    return QueryResult(
        columns=[
            ColumnMeta(name=name, type_oid=_TYPE_OIDS.get(type_name, 0), type_name=type_name)
            for name, type_name in columns
        ],
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )


def resolve_relid(config: ResolvedConfig, ref: str) -> int:
    """Accept a numeric relid or a relation name (``name`` or ``schema.name``)."""
    if ref.strip().isascii() and ref.strip().isdigit():
        return int(ref)
    parts = catalog.split_qualified_name(ref)
    matches = [
        rel
        for rel in catalog.relations(config)
        if rel.relname == parts[-1] and (len(parts) == 1 or rel.relnamespace == parts[0])
    ]
    if not matches:
        raise InputError(f"Relation not found: {ref}")
    if len(matches) > 1:
        candidates = ", ".join(f"{r.relnamespace}.{r.relname}" for r in matches)
        raise InputError(f"Ambiguous relation name {ref!r}; candidates: {candidates}")
    return matches[0].relid
