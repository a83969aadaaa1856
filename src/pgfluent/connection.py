"""Pooled PostgreSQL connection lifecycle and statement execution."""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from pgfluent._errors import ERR_MSG_EXECUTION_FAILED, ConnectivityError, StatementError
from pgfluent.config import ConnectionSettings, get_settings
from pgfluent.dialect import PostgresDialect
from pgfluent.dialect._base import Dialect
from pgfluent.table import Table

if TYPE_CHECKING:
    from pgfluent._render import Statement

logger = logging.getLogger(__name__)

_SET_STATEMENT_TIMEOUT = "SELECT set_config('statement_timeout', $1, true)"


def _timeout_setting(seconds: float) -> str:
    # 0ms disables statement_timeout, so never round down to it
    return f"{max(1, math.ceil(round(seconds * 1000, 6)))}ms"


class Database:
    """Long-lived handle over an open connection pool.

    Holds no per-statement state: every :meth:`table` call returns a new
    :class:`~pgfluent.table.Table` that exclusively owns its accumulator,
    so one ``Database`` can be shared between threads.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        *,
        dialect: Dialect | None = None,
        statement_timeout: float | None = None,
    ) -> None:
        self._pool = pool
        self._dialect = dialect or PostgresDialect()
        self._statement_timeout = statement_timeout

    @property
    def pool(self) -> ConnectionPool:
        """The underlying pool, for tuning or direct access."""
        return self._pool

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def table(self, name: str, *, timeout: float | None = None) -> Table:
        """Open a table scope for one logical statement.

        Args:
            name: Table name, optionally schema-qualified (``schema.table``).
            timeout: Statement deadline in seconds. Defaults to the
                database-wide ``statement_timeout``.

        Returns:
            A fresh Table builder.
        """
        return Table(self, name, timeout=timeout if timeout is not None else self._statement_timeout)

    # --- Execution primitives ---

    def query(
        self, statement: Statement, *, timeout: float | None = None
    ) -> tuple[list[str], list[Sequence[Any]]]:
        """Run a row-returning statement.

        Returns:
            The driver-reported column names and all returned rows.

        Raises:
            StatementError: If preparation or execution fails.
        """
        with self._cursor(statement, timeout) as cur:
            columns = [c.name for c in cur.description or ()]
            return columns, cur.fetchall()

    def query_value(self, statement: Statement, *, timeout: float | None = None) -> Any:
        """Run a statement and return the first column of its first row, or None."""
        with self._cursor(statement, timeout) as cur:
            row = cur.fetchone()
            return None if row is None else row[0]

    def execute(self, statement: Statement, *, timeout: float | None = None) -> int:
        """Run a statement and return the affected row count."""
        with self._cursor(statement, timeout) as cur:
            return max(cur.rowcount, 0)

    @contextmanager
    def _cursor(self, statement: Statement, timeout: float | None) -> Iterator[Any]:
        operation = str(statement.kind)
        logger.debug(
            "%s: %s | %d parameter(s)", operation, statement.sql, len(statement.parameters)
        )
        try:
            with self._pool.connection() as conn, conn.cursor() as cur:
                if timeout is not None:
                    cur.execute(_SET_STATEMENT_TIMEOUT, [_timeout_setting(timeout)])
                cur.execute(statement.sql, statement.parameters)
                yield cur
        except psycopg.Error as e:
            raise StatementError(
                operation,
                ERR_MSG_EXECUTION_FAILED,
                f"{statement.sql} failed: {e}",
                wrapped=e,
            ) from e
        except PoolTimeout as e:
            raise StatementError(
                operation,
                "no pooled connection available",
                f"pool timeout while running {statement.sql}: {e}",
                wrapped=e,
            ) from e

    # --- Lifecycle ---

    def close(self) -> None:
        """Close the pool and all its connections."""
        self._pool.close()
        logger.info("connection pool closed")

    def __enter__(self) -> Database:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def create_pool(settings: ConnectionSettings) -> ConnectionPool:
    """Create an unopened pool whose connections use native ``$n`` parameters."""
    return ConnectionPool(
        settings.conninfo(),
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        max_lifetime=settings.pool_max_lifetime,
        timeout=settings.pool_timeout,
        kwargs={"cursor_factory": psycopg.RawCursor},
        open=False,
        name="pgfluent",
    )


def connect(
    settings: ConnectionSettings | None = None,
    *,
    retries: int | None = None,
    interval: float | None = None,
) -> Database:
    """Open the pool and verify it with a ping, retrying a bounded number of times.

    Args:
        settings: Connection settings. Defaults to :func:`get_settings`.
        retries: Attempts after the first failure. Defaults to
            ``settings.connect_retries``.
        interval: Seconds slept between attempts. Defaults to
            ``settings.connect_interval``.

    Returns:
        A Database over the open pool.

    Raises:
        ConnectivityError: If every attempt fails.
    """
    settings = settings or get_settings()
    retries = settings.connect_retries if retries is None else retries
    interval = settings.connect_interval if interval is None else interval

    attempt = 0
    while True:
        pool = create_pool(settings)
        try:
            pool.open(wait=True, timeout=settings.pool_timeout)
            with pool.connection() as conn:
                conn.execute("SELECT 1")
        except (psycopg.OperationalError, PoolTimeout) as e:
            pool.close()
            if attempt >= retries:
                raise ConnectivityError(
                    "cannot connect to postgres",
                    f"{settings.host}:{settings.port}/{settings.dbname} "
                    f"unreachable after {attempt + 1} attempt(s): {e}",
                    wrapped=e,
                ) from e
            attempt += 1
            logger.warning(
                "postgres: %s; retry (%d/%d) after %s seconds", e, attempt, retries, interval
            )
            time.sleep(interval)
            continue
        logger.info(
            "connection pool open: %s:%s/%s (max %d)",
            settings.host,
            settings.port,
            settings.dbname,
            settings.pool_max_size,
        )
        return Database(pool, statement_timeout=settings.statement_timeout)


def connect_or_exit(
    settings: ConnectionSettings | None = None,
    *,
    retries: int | None = None,
    interval: float | None = None,
) -> Database:
    """Startup-only variant of :func:`connect` that terminates the process on failure.

    Raises:
        SystemExit: If the database stays unreachable.
    """
    try:
        return connect(settings, retries=retries, interval=interval)
    except ConnectivityError as e:
        logger.critical("%s: %s", e, e.internal())
        raise SystemExit(1) from e
