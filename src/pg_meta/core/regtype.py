"""OID to type-name table for built-in PostgreSQL types.

The table lives in data/regtype.json and is generated from a live server
with ``pg-meta types --dump`` (see catalog.regtypes). It is used to
label result columns without an extra round trip.
"""

from __future__ import annotations

import json
from functools import cache
from importlib import resources
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

REGTYPE_SQL = """
SELECT oid, oid::regtype::text AS regtype
FROM pg_catalog.pg_type
WHERE oid < 10000
ORDER BY oid ASC
"""

UNKNOWN = "unknown"


@cache
def regtype_table() -> dict[int, str]:
    raw = resources.files("pg_meta.data").joinpath("regtype.json").read_text()
    return {int(oid): name for oid, name in json.loads(raw).items()}


def lookup(oid: int) -> str:
    """Return the display name of a built-in type, or "unknown"."""
    return regtype_table().get(oid, UNKNOWN)


def dump_table(table: Mapping[int, str], path: Path) -> None:
    """Write an OID table in the data-file layout (string keys, ascending OID)."""
    ordered = {str(oid): table[oid] for oid in sorted(table)}
    path.write_text(json.dumps(ordered, indent=2) + "\n")
