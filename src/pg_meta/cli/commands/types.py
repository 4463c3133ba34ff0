"""Built-in type table commands."""

from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer

from pg_meta.cli.commands._shared import (
    FormatOption,
    apply_local_format_options,
    get_config,
    output_result,
)
from pg_meta.core import catalog, regtype
from pg_meta.core.models import ColumnMeta, QueryResult


def types_command(
    ctx: typer.Context,
    dump: Annotated[
        Path | None,
        typer.Option("--dump", help="Write the OID table as JSON to this path"),
    ] = None,
    bundled: Annotated[
        bool,
        typer.Option("--bundled", help="Show the bundled table instead of querying"),
    ] = False,
    format: FormatOption = None,
) -> None:
    """
    Show the built-in OID to type-name table.

    Reads pg_type (oid < 10000) from the server. With --dump, writes the
    table in the layout of the bundled data file.
    """
    apply_local_format_options(ctx, format=format)
    config = get_config(ctx)
    table = regtype.regtype_table() if bundled else catalog.regtypes(config)

    if dump is not None:
        regtype.dump_table(table, dump)
        typer.echo(f"Wrote {len(table)} types to {dump}", err=True)
        return

    rows = [(oid, name) for oid, name in sorted(table.items())]
    result = QueryResult(
        columns=[
            ColumnMeta(name="oid", type_oid=26, type_name="oid"),
            ColumnMeta(name="regtype", type_oid=25, type_name="text"),
        ],
        rows=rows,
        row_count=len(rows),
        status_message=f"SELECT {len(rows)}",
    )
    output_result(ctx, result, config)
