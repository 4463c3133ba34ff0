"""Human-readable labels for single-character catalog codes.

pg_class.relkind and pg_constraint.contype store one-letter codes.
Codes missing from these tables (partitioned tables, partitioned
indexes, not-null constraints on newer servers) have no label.
"""

from __future__ import annotations

from enum import StrEnum

from psycopg import sql


class RelationKind(StrEnum):
    ORDINARY_TABLE = "ordinary table"
    INDEX = "index"
    SEQUENCE = "sequence"
    VIEW = "view"
    MATERIALIZED_VIEW = "materialized view"
    COMPOSITE_TYPE = "composite type"
    TOAST_TABLE = "TOAST table"
    FOREIGN_TABLE = "foreign table"


class ConstraintKind(StrEnum):
    CHECK = "check constraint"
    FOREIGN_KEY = "foreign key constraint"
    PRIMARY_KEY = "primary key constraint"
    UNIQUE = "unique constraint"
    TRIGGER = "constraint trigger"
    EXCLUSION = "exclusion constraint"


RELKIND_LABELS: dict[str, RelationKind] = {
    "r": RelationKind.ORDINARY_TABLE,
    "i": RelationKind.INDEX,
    "S": RelationKind.SEQUENCE,
    "v": RelationKind.VIEW,
    "m": RelationKind.MATERIALIZED_VIEW,
    "c": RelationKind.COMPOSITE_TYPE,
    "t": RelationKind.TOAST_TABLE,
    "f": RelationKind.FOREIGN_TABLE,
}

CONTYPE_LABELS: dict[str, ConstraintKind] = {
    "c": ConstraintKind.CHECK,
    "f": ConstraintKind.FOREIGN_KEY,
    "p": ConstraintKind.PRIMARY_KEY,
    "u": ConstraintKind.UNIQUE,
    "t": ConstraintKind.TRIGGER,
    "x": ConstraintKind.EXCLUSION,
}


def case_expression(column: str, labels: dict[str, StrEnum]) -> sql.Composed:
    """Build ``CASE <column> WHEN <code> THEN <label> ... END`` from a label table.

    No ELSE branch: unmapped codes come back as NULL.
    """
    branches = [
        sql.SQL("WHEN {} THEN {}").format(sql.Literal(code), sql.Literal(label.value))
        for code, label in labels.items()
    ]
    return sql.SQL("CASE {} {} END").format(
        sql.Identifier(column), sql.SQL(" ").join(branches)
    )
