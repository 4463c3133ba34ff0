"""Statement executor for pg-meta.

PgClient owns at most one psycopg v3 connection and closes it on every
exit path of its ``with`` block. query() is the one-shot form used by
the catalog operations: connect, run exactly one statement, fetch every
row, disconnect. psycopg errors are mapped onto the PgMetaError
hierarchy with the original exception chained as ``__cause__``.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import psycopg
import psycopg.errors
import sentry_sdk
from psycopg import sql as pgsql

from pg_meta.core import regtype
from pg_meta.core.exceptions import ConnectionError, QueryError, TimeoutError
from pg_meta.core.logging import get_logger
from pg_meta.core.models import ColumnMeta, QueryResult

if TYPE_CHECKING:
    from pg_meta.core.config import ResolvedConfig

Params = Sequence[Any] | Mapping[str, Any]
Statement = str | pgsql.Composable


def _session_options(config: ResolvedConfig) -> str | None:
    # Sent in the startup packet, so no SET statement is needed.
    if config.statement_timeout is None:
        return None
    # 0 disables the timeout on the server, so never round down to it.
    milliseconds = max(1, round(config.statement_timeout * 1000))
    return f"-c statement_timeout={milliseconds}"


def _describe(description: Sequence[Any]) -> list[ColumnMeta]:
    return [
        ColumnMeta(
            name=col.name,
            type_oid=col.type_code,
            type_name=regtype.lookup(col.type_code),
        )
        for col in description
    ]


class PgClient:
    """Synchronous PostgreSQL client using psycopg v3."""

    def __init__(self, config: ResolvedConfig) -> None:
        self.config = config
        self._connection: psycopg.Connection[Any] | None = None

    def __enter__(self) -> PgClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def _target(self) -> str:
        return f"{self.config.host}:{self.config.port} database '{self.config.dbname}'"

    def _connect(self) -> psycopg.Connection[Any]:
        if self._connection is not None and not self._connection.closed:
            return self._connection

        log = get_logger("client")
        log.debug(
            "connecting",
            host=self.config.host,
            port=self.config.port,
            dbname=self.config.dbname,
            sslmode=self.config.sslmode,
        )
        try:
            self._connection = psycopg.connect(
                host=self.config.host,
                port=self.config.port,
                dbname=self.config.dbname,
                user=self.config.user,
                password=self.config.password,
                sslmode=self.config.sslmode,
                connect_timeout=self.config.connect_timeout,
                application_name=self.config.application_name,
                options=_session_options(self.config),
                autocommit=True,
            )
        except psycopg.OperationalError as e:
            log.error("connection failed", target=self._target, error=str(e))
            raise ConnectionError(f"Connection failed to {self._target}: {e}") from e
        return self._connection

    def execute_query(self, sql: Statement, params: Params | None = None) -> QueryResult:
        """Run one statement and return all of its rows.

        ``sql`` is plain text or a psycopg.sql composition; ``params`` are
        bound server-side, never interpolated.
        """
        log = get_logger("client")
        conn = self._connect()
        text = " ".join((sql if isinstance(sql, str) else sql.as_string(conn)).split())
        log.debug("executing query", sql=text, params=params)

        with sentry_sdk.start_span(op="db.query", name=text[:100]) as span:
            started = time.monotonic()
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    columns = _describe(cur.description) if cur.description else []
                    rows: list[tuple[Any, ...]] = cur.fetchall() if columns else []
                    status = cur.statusmessage or ""
            except psycopg.errors.QueryCanceled as e:
                elapsed_ms = (time.monotonic() - started) * 1000
                span.set_data("duration_ms", elapsed_ms)
                span.set_status("deadline_exceeded")
                log.error("query timeout", sql=text, duration_ms=f"{elapsed_ms:.1f}")
                msg = f"Query timed out after {self.config.statement_timeout}s: {e}"
                raise TimeoutError(msg) from e
            except psycopg.OperationalError as e:
                span.set_status("unavailable")
                log.error("database error", sql=text, error=str(e))
                raise ConnectionError(f"Database error: {e}") from e
            except psycopg.Error as e:
                span.set_status("invalid_argument")
                log.error("query rejected", sql=text, error=str(e))
                raise QueryError(f"SQL error: {e}") from e

            elapsed_ms = (time.monotonic() - started) * 1000
            span.set_data("row_count", len(rows))
            span.set_data("duration_ms", elapsed_ms)
            log.debug("query complete", duration_ms=f"{elapsed_ms:.1f}", row_count=len(rows))

        return QueryResult(
            columns=columns, rows=rows, row_count=len(rows), status_message=status
        )

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None


def query(config: ResolvedConfig, sql: Statement, params: Params | None = None) -> QueryResult:
    """Open a connection, run one statement, close the connection."""
    with PgClient(config) as client:
        return client.execute_query(sql, params)
