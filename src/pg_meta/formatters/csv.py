"""CSV formatter (RFC 4180)."""

from __future__ import annotations

import csv
from io import StringIO
from typing import TYPE_CHECKING

from pg_meta.formatters.base import cell_text, registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pg_meta.core.models import QueryResult


def _csv_line(values: list[str]) -> str:
    buf = StringIO()
    csv.writer(buf, lineterminator="\n").writerow(values)
    return buf.getvalue()[:-1]


class CSVFormatter:
    def __init__(self, no_header: bool = False) -> None:
        self.no_header = no_header

    def format(self, result: QueryResult) -> Iterator[str]:
        if not self.no_header:
            yield _csv_line([col.name for col in result.columns])
        for row in result.rows:
            yield _csv_line([cell_text(v) for v in row])


registry.register("csv", CSVFormatter)
