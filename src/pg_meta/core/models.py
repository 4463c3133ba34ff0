"""Result models for pg-meta.

QueryResult/ColumnMeta describe a raw statement result from PgClient.
Database, Relation, Attribute and Constraint are the typed catalog
records returned by pg_meta.core.catalog; they are frozen snapshots of
catalog state at query time.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from pg_meta.core.labels import ConstraintKind, RelationKind  # noqa: TC001


class ColumnMeta(BaseModel):
    """Metadata for a single result column."""

    name: str
    type_oid: int
    type_name: str


class QueryResult(BaseModel):
    """Result of a SQL query execution."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    columns: list[ColumnMeta]
    rows: list[tuple[Any, ...]]
    row_count: int
    status_message: str

    def records(self) -> list[dict[str, Any]]:
        """Rows keyed by column name."""
        names = [col.name for col in self.columns]
        return [dict(zip(names, row, strict=True)) for row in self.rows]


class CatalogRecord(BaseModel):
    model_config = ConfigDict(frozen=True)


class Database(CatalogRecord):
    oid: int
    datname: str
    owner: str
    encoding: str
    datcollate: str | None = None
    datctype: str | None = None
    datistemplate: bool
    datallowconn: bool
    datconnlimit: int


class Attribute(CatalogRecord):
    """A live column of a relation.

    attnum is always positive: system columns and dropped columns
    are filtered out server-side.
    """

    attrelid: int
    attname: str
    attnum: int
    atttypid: int
    atttypmod: int
    atttypfmt: str
    attnotnull: bool
    adsrc: str | None = None


class Constraint(CatalogRecord):
    """A constraint on a relation.

    conkey holds the 1-based attnums of the constrained columns. For
    foreign keys, confrelname names the referenced relation and
    fkeyattnames the referenced columns as one comma-joined string.
    """

    conname: str
    contype: ConstraintKind | None = None
    conkey: list[int] | None = None
    confrelname: str | None = None
    fkeyattnames: str | None = None

    @property
    def fkey_attnames(self) -> list[str]:
        if not self.fkeyattnames:
            return []
        return self.fkeyattnames.split(",")


class Relation(CatalogRecord):
    relid: int
    relname: str
    relnamespace: str
    relowner: str
    relkind: RelationKind | None = None
    attributes: list[Attribute] = []
    constraints: list[Constraint] = []

    @field_validator("attributes", "constraints", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        # LEFT JOIN against the aggregates yields NULL for relations without rows.
        return [] if v is None else v
