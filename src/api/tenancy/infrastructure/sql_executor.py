"""psycopg2-backed execution of composed tenant statements."""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Sequence

import psycopg2
from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from infrastructure.database.exceptions import QueryError
from tenancy.infrastructure.observability import (
    DefaultSqlExecutorProbe,
    SqlExecutorProbe,
)
from tenancy.ports.protocols import ExecutableStatement

if TYPE_CHECKING:
    from psycopg2.extensions import connection as PsycopgConnection

    from infrastructure.database.connection_pool import ConnectionPool


class PostgresSqlExecutor:
    """Executes statements on connections borrowed from the shared pool.

    Every call runs in its own transaction: commit on success, rollback and
    ``QueryError`` on any driver error. The connection always goes back to
    the pool. No retries are attempted.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        probe: SqlExecutorProbe | None = None,
    ):
        self._pool = pool
        self._probe = probe or DefaultSqlExecutorProbe()

    @contextmanager
    def _transaction(self) -> Iterator[PsycopgConnection]:
        conn = self._pool.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            if not conn.closed:
                conn.rollback()
            raise
        finally:
            self._pool.return_connection(conn)

    def fetch_all(self, statement: ExecutableStatement) -> list[dict[str, Any]]:
        """Execute a statement and return its rows as dictionaries.

        Raises:
            QueryError: If the driver rejects or fails the statement.
        """
        try:
            with self._transaction() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(statement.query, statement.params or None)
                    if cursor.description is None:
                        return []
                    return [dict(row) for row in cursor.fetchall()]
        except psycopg2.Error as e:
            self._probe.statement_failed(error=e)
            raise QueryError(
                f"Statement execution failed: {e}", query=repr(statement.query)
            ) from e

    def execute(self, statement: ExecutableStatement) -> int:
        """Execute a statement and return the affected row count.

        Raises:
            QueryError: If the driver rejects or fails the statement.
        """
        try:
            with self._transaction() as conn:
                with conn.cursor() as cursor:
                    cursor.execute(statement.query, statement.params or None)
                    return cursor.rowcount
        except psycopg2.Error as e:
            self._probe.statement_failed(error=e)
            raise QueryError(
                f"Statement execution failed: {e}", query=repr(statement.query)
            ) from e

    def execute_batch(
        self,
        statements: Sequence[sql.Composable],
        timeout_ms: int | None = None,
    ) -> None:
        """Execute DDL statements as one round trip in one transaction.

        Args:
            statements: Parameterless statements, run in order.
            timeout_ms: Statement timeout applied with ``SET LOCAL`` so it
                ends with the transaction.

        Raises:
            QueryError: If any statement fails; nothing of the batch is kept.
        """
        if not statements:
            return

        batch = sql.SQL(";\n").join(statements)
        try:
            with self._transaction() as conn:
                with conn.cursor() as cursor:
                    if timeout_ms is not None:
                        cursor.execute(
                            sql.SQL("SET LOCAL statement_timeout = {}").format(
                                sql.Literal(timeout_ms)
                            )
                        )
                    cursor.execute(batch)
        except psycopg2.Error as e:
            self._probe.batch_failed(statement_count=len(statements), error=e)
            raise QueryError(f"DDL batch failed: {e}", query=repr(batch)) from e
