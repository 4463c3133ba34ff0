"""JSON formatter: one array of objects keyed by column name."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from pg_meta.formatters.base import plain_value, registry

if TYPE_CHECKING:
    from collections.abc import Iterator

    from pg_meta.core.models import QueryResult


class JSONFormatter:
    def __init__(self, compact: bool = False) -> None:
        self.compact = compact

    def format(self, result: QueryResult) -> Iterator[str]:
        objects = [
            {col.name: plain_value(val) for col, val in zip(result.columns, row, strict=True)}
            for row in result.rows
        ]
        if self.compact:
            yield json.dumps(objects, separators=(",", ":"))
        else:
            yield json.dumps(objects, indent=2)


registry.register("json", JSONFormatter)
