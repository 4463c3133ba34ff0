"""pg-meta: typed PostgreSQL system catalog reader."""

from pg_meta.__about__ import __version__
from pg_meta.core.catalog import (
    SYSTEM_NAMESPACES,
    attributes,
    constraints,
    count,
    databases,
    regtypes,
    relations,
)
from pg_meta.core.client import PgClient, query
from pg_meta.core.config import ResolvedConfig, load_config, resolve_config
from pg_meta.core.exceptions import (
    ConfigError,
    ConnectionError,
    InputError,
    PgMetaError,
    QueryError,
    TimeoutError,
)
from pg_meta.core.labels import ConstraintKind, RelationKind
from pg_meta.core.models import (
    Attribute,
    ColumnMeta,
    Constraint,
    Database,
    QueryResult,
    Relation,
)

__all__ = [
    "SYSTEM_NAMESPACES",
    "Attribute",
    "ColumnMeta",
    "ConfigError",
    "ConnectionError",
    "Constraint",
    "ConstraintKind",
    "Database",
    "InputError",
    "PgClient",
    "PgMetaError",
    "QueryError",
    "QueryResult",
    "Relation",
    "RelationKind",
    "ResolvedConfig",
    "TimeoutError",
    "__version__",
    "attributes",
    "constraints",
    "count",
    "databases",
    "load_config",
    "query",
    "regtypes",
    "relations",
    "resolve_config",
]
