"""Rich table formatter."""

from __future__ import annotations

import shutil
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table
from rich.text import Text

from pg_meta.formatters.base import cell_text, registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pg_meta.core.models import QueryResult

_NO_RESULTS = "No results"


def _truncate(value: str, width: int) -> str:
    if len(value) <= width:
        return value
    return value[: width - 1] + "…"


class TableFormatter:
    def __init__(self, width: int = 40, title: str | None = None) -> None:
        self.width = width
        self.title = title

    def format(self, result: QueryResult) -> Iterator[str]:
        if not result.rows:
            yield _NO_RESULTS
            return

        table = Table(title=self.title, show_edge=True, pad_edge=True)
        for col in result.columns:
            justify = "right" if col.type_name in _NUMERIC_TYPES else "left"
            table.add_column(col.name, no_wrap=True, justify=justify)

        for row in result.rows:
            # Defaults such as ARRAY[b] must not be read as rich markup.
            table.add_row(*(Text(_truncate(cell_text(v), self.width)) for v in row))

        buf = StringIO()
        term_width = shutil.get_terminal_size((120, 24)).columns
        console = Console(file=buf, force_terminal=True, width=term_width)
        console.print(table)
        yield buf.getvalue().rstrip("\n")


_NUMERIC_TYPES = frozenset(
    {"smallint", "integer", "bigint", "oid", "real", "double precision", "numeric"}
)

registry.register("table", TableFormatter)
