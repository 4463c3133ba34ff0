"""Catalog commands: databases, relations, attributes, constraints, count."""

from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any

import typer

from pg_meta.cli.commands._shared import (
    CompactOption,
    FormatOption,
    NoHeaderOption,
    TableOption,
    WidthOption,
    apply_local_format_options,
    effective_format,
    get_config,
    output_result,
    records_result,
    resolve_relid,
)
from pg_meta.core import catalog

if TYPE_CHECKING:
    from pg_meta.core.models import Relation

_ATTRIBUTE_COLUMNS = [
    ("attnum", "smallint"),
    ("attname", "text"),
    ("atttypfmt", "text"),
    ("attnotnull", "boolean"),
    ("adsrc", "text"),
]

_CONSTRAINT_COLUMNS = [
    ("conname", "text"),
    ("contype", "text"),
    ("conkey", "text"),
    ("confrelname", "text"),
    ("fkeyattnames", "text"),
]


def databases_command(
    ctx: typer.Context,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """
    List all databases on the server, ordered by name.
    """
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    config = get_config(ctx)
    dbs = catalog.databases(config)
    result = records_result(
        dbs,
        [
            ("oid", "oid"),
            ("datname", "text"),
            ("owner", "text"),
            ("encoding", "text"),
            ("datcollate", "text"),
            ("datistemplate", "boolean"),
            ("datallowconn", "boolean"),
            ("datconnlimit", "integer"),
        ],
    )
    output_result(ctx, result, config)


def relations_command(
    ctx: typer.Context,
    schema: Annotated[
        str | None,
        typer.Option("--schema", "-s", help="Only relations in this schema"),
    ] = None,
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """
    List user relations with their columns and constraints.

    System namespaces (pg_catalog, information_schema, pg_toast...) are
    excluded. JSON output nests full attribute and constraint records;
    table and CSV output list their names.
    """
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    config = get_config(ctx)
    rels = catalog.relations(config)
    if schema is not None:
        rels = [r for r in rels if r.relnamespace == schema]

    nested = effective_format(ctx, config) == "json"
    columns = [
        ("relid", "oid"),
        ("relnamespace", "text"),
        ("relname", "text"),
        ("relowner", "text"),
        ("relkind", "text"),
        ("attributes", "jsonb" if nested else "text"),
        ("constraints", "jsonb" if nested else "text"),
    ]

    def row(rel: Relation) -> tuple[Any, ...]:
        head = (rel.relid, rel.relnamespace, rel.relname, rel.relowner, rel.relkind)
        if nested:
            return (*head, rel.attributes, rel.constraints)
        return (
            *head,
            [a.attname for a in rel.attributes],
            [c.conname for c in rel.constraints],
        )

    result = records_result(rels, columns, row=row)
    output_result(ctx, result, config, title=f"Relations of: {config.dbname}")


def attributes_command(
    ctx: typer.Context,
    relation: Annotated[
        str,
        typer.Argument(help="Relation id (oid) or name (name or schema.name)"),
    ],
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """
    List the live columns of one relation in ordinal order.
    """
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    config = get_config(ctx)
    relid = resolve_relid(config, relation)
    result = records_result(catalog.attributes(config, relid), _ATTRIBUTE_COLUMNS)
    output_result(ctx, result, config, title=f"Columns of: {relation}")


def constraints_command(
    ctx: typer.Context,
    relation: Annotated[
        str,
        typer.Argument(help="Relation id (oid) or name (name or schema.name)"),
    ],
    format: FormatOption = None,
    table: TableOption = False,
    compact: CompactOption = False,
    width: WidthOption = None,
    no_header: NoHeaderOption = False,
) -> None:
    """
    List the constraints of one relation.
    """
    apply_local_format_options(
        ctx, format=format, table=table, compact=compact, width=width, no_header=no_header
    )
    config = get_config(ctx)
    relid = resolve_relid(config, relation)
    result = records_result(catalog.constraints(config, relid), _CONSTRAINT_COLUMNS)
    output_result(ctx, result, config, title=f"Constraints of: {relation}")


def count_command(
    ctx: typer.Context,
    relation: Annotated[
        str,
        typer.Argument(help="Table name (name or schema.name)"),
    ],
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", "-t", help="Statement timeout in seconds"),
    ] = None,
) -> None:
    """
    Count the rows of a table.

    The name is validated and quoted as an SQL identifier.
    """
    config = get_config(ctx, timeout=timeout)
    typer.echo(catalog.count(config, relation))
