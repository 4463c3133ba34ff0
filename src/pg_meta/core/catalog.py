"""System catalog introspection operations.

Each operation opens its own connection, runs one fixed statement against
pg_catalog and maps the rows onto frozen pydantic records. Nothing is
cached: every call re-reads the server.
"""

from __future__ import annotations

import re
import string
from typing import TYPE_CHECKING

from psycopg import sql

from pg_meta.core.client import query
from pg_meta.core.exceptions import InputError
from pg_meta.core.labels import CONTYPE_LABELS, RELKIND_LABELS, case_expression
from pg_meta.core.models import Attribute, Constraint, Database, Relation
from pg_meta.core.regtype import REGTYPE_SQL

if TYPE_CHECKING:
    from pg_meta.core.config import ResolvedConfig

SYSTEM_NAMESPACES: tuple[str, ...] = (
    "pg_toast",
    "pg_temp_1",
    "pg_toast_temp_1",
    "pg_catalog",
    "information_schema",
)

_DATABASES_SQL = """
SELECT
    d.oid,
    d.datname,
    pg_catalog.pg_get_userbyid(d.datdba) AS owner,
    pg_catalog.pg_encoding_to_char(d.encoding) AS encoding,
    d.datcollate,
    d.datctype,
    d.datistemplate,
    d.datallowconn,
    d.datconnlimit
FROM pg_catalog.pg_database d
ORDER BY d.datname
"""

# format_type() is more informative than atttypid::regtype for
# parameterized types such as varchar(n).
_ATTRIBUTE_COLUMNS = sql.SQL("""
    SELECT attrelid, attname, attnum, atttypid, atttypmod, attnotnull,
        pg_catalog.pg_get_expr(adbin, adrelid) AS adsrc,
        pg_catalog.format_type(atttypid, atttypmod) AS atttypfmt
    FROM pg_catalog.pg_attribute
        LEFT OUTER JOIN pg_catalog.pg_attrdef ON adrelid = attrelid AND adnum = attnum
    WHERE attnum > 0
      AND NOT attisdropped
""")

_CONSTRAINT_COLUMNS = sql.SQL("""
    SELECT conrelid,
        conname,
        {contype} AS contype,
        conkey,
        CASE WHEN confrelid = 0 THEN NULL
            ELSE pg_catalog.regclassout(confrelid)::text END AS confrelname,
        string_agg(fkeyatt.attname, ','
            ORDER BY pg_catalog.array_position(confkey, fkeyatt.attnum)) AS fkeyattnames
    FROM pg_catalog.pg_constraint
        LEFT OUTER JOIN pg_catalog.pg_attribute AS fkeyatt
            ON fkeyatt.attrelid = confrelid AND fkeyatt.attnum = ANY(confkey)
""").format(contype=case_expression("contype", CONTYPE_LABELS))

_CONSTRAINT_GROUP_BY = sql.SQL(
    "GROUP BY pg_constraint.oid, conrelid, conname, contype, confrelid, conkey"
)

_RELATIONS_SQL = sql.SQL("""
WITH attributes AS (
    {attribute_columns}
), attributes_agg AS (
    SELECT attrelid, jsonb_agg(to_jsonb(attributes.*) ORDER BY attnum) AS attributes
    FROM attributes
    GROUP BY attrelid
), constraints AS (
    {constraint_columns}
    {constraint_group_by}
), constraints_agg AS (
    SELECT conrelid, jsonb_agg(to_jsonb(constraints.*) - 'conrelid') AS constraints
    FROM constraints
    GROUP BY conrelid
), relations AS (
    SELECT pg_class.oid AS relid,
        relname,
        pg_namespace.nspname AS relnamespace,
        pg_catalog.pg_get_userbyid(relowner) AS relowner,
        {relkind} AS relkind
    FROM pg_catalog.pg_class
        INNER JOIN pg_catalog.pg_namespace ON pg_namespace.oid = pg_class.relnamespace
    WHERE pg_namespace.nspname <> ALL(%s)
)
SELECT relations.*,
    attributes_agg.attributes,
    constraints_agg.constraints
FROM relations
    LEFT JOIN attributes_agg ON attributes_agg.attrelid = relations.relid
    LEFT JOIN constraints_agg ON constraints_agg.conrelid = relations.relid
ORDER BY relid
""").format(
    attribute_columns=_ATTRIBUTE_COLUMNS,
    constraint_columns=_CONSTRAINT_COLUMNS,
    constraint_group_by=_CONSTRAINT_GROUP_BY,
    relkind=case_expression("relkind", RELKIND_LABELS),
)

_ATTRIBUTES_SQL = sql.SQL("{columns} AND attrelid = %s::oid ORDER BY attnum").format(
    columns=_ATTRIBUTE_COLUMNS
)

_CONSTRAINTS_SQL = sql.SQL("{columns} WHERE conrelid = %s::oid {group_by}").format(
    columns=_CONSTRAINT_COLUMNS, group_by=_CONSTRAINT_GROUP_BY
)

# Unquoted identifier, or a double-quoted one with "" escapes.
_IDENT_PART = r'(?:[^\W\d][\w$]*|"(?:[^"\x00]|"")+")'
_QUALIFIED_NAME = re.compile(rf"^({_IDENT_PART})(?:\.({_IDENT_PART}))?$")

# The server folds only ASCII letters in unquoted identifiers.
_ASCII_FOLD = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def databases(config: ResolvedConfig) -> list[Database]:
    """Return every database on the server, ordered by name."""
    result = query(config, _DATABASES_SQL)
    return [Database.model_validate(rec) for rec in result.records()]


def relations(config: ResolvedConfig) -> list[Relation]:
    """Return all user-visible relations with their attributes and constraints.

    Relations in SYSTEM_NAMESPACES are excluded. The result is ordered by
    relid; attributes within a relation by attnum.
    """
    result = query(config, _RELATIONS_SQL, [list(SYSTEM_NAMESPACES)])
    return [Relation.model_validate(rec) for rec in result.records()]


def attributes(config: ResolvedConfig, relid: int | str) -> list[Attribute]:
    """Return the live columns of one relation, ordered by attnum."""
    result = query(config, _ATTRIBUTES_SQL, [_oid(relid)])
    return [Attribute.model_validate(rec) for rec in result.records()]


def constraints(config: ResolvedConfig, relid: int | str) -> list[Constraint]:
    """Get the constraints of the relation designated by relid.

    Each constraint has a conkey list naming the attnums it depends on.
    """
    result = query(config, _CONSTRAINTS_SQL, [_oid(relid)])
    return [Constraint.model_validate(rec) for rec in result.records()]


def count(config: ResolvedConfig, table: str) -> int:
    """Count rows of ``table`` (``name`` or ``schema.name``).

    The name is validated and quoted as an identifier; it is never
    spliced into the statement as raw text.
    """
    stmt = sql.SQL("SELECT count(*) FROM {}").format(
        sql.Identifier(*split_qualified_name(table))
    )
    result = query(config, stmt)
    return int(result.rows[0][0])


def regtypes(config: ResolvedConfig) -> dict[int, str]:
    """Read the built-in OID to type-name table from a live server."""
    result = query(config, REGTYPE_SQL)
    return {int(oid): name for oid, name in result.rows}


def split_qualified_name(name: str) -> tuple[str, ...]:
    """Split ``schema.table`` into identifier parts.

    Unquoted parts follow PostgreSQL case folding; double-quoted parts
    are taken literally. Raises InputError for anything else.
    """
    match = _QUALIFIED_NAME.match(name.strip())
    if match is None:
        raise InputError(f"Invalid table name: {name!r}")
    return tuple(_unquote(part) for part in match.groups() if part is not None)


def _unquote(part: str) -> str:
    if part.startswith('"'):
        return part[1:-1].replace('""', '"')
    return part.translate(_ASCII_FOLD)


def _oid(relid: int | str) -> int:
    # Non-negative whole numbers only; floats and bools are rejected.
    if isinstance(relid, str) and relid.strip().isascii() and relid.strip().isdigit():
        return int(relid)
    if isinstance(relid, int) and not isinstance(relid, bool) and relid >= 0:
        return relid
    raise InputError(f"Invalid relation id: {relid!r}")
