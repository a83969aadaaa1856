"""Connection settings loaded from environment variables.

Field names are lowercased versions of the env-var names with the
``PGFLUENT_`` prefix removed. ``pydantic-settings`` maps them
automatically (case-insensitive).

Example::

    settings = ConnectionSettings()  # reads .env + real env
    db = connect(settings)
"""

from __future__ import annotations

import functools

from psycopg.conninfo import make_conninfo
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from pgfluent._constants import (
    DEFAULT_CONNECT_INTERVAL,
    DEFAULT_CONNECT_RETRIES,
    DEFAULT_POOL_MAX_LIFETIME,
    DEFAULT_POOL_MAX_SIZE,
    DEFAULT_POOL_MIN_SIZE,
)


class ConnectionSettings(BaseSettings):
    """PostgreSQL connection and pool configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PGFLUENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- Server ------------------------------------------------------------

    host: str = "localhost"
    port: int = 5432
    user: str = "postgres"
    password: SecretStr = SecretStr("")
    dbname: str = "postgres"

    sslmode: str = "disable"
    """libpq sslmode (disable, require, verify-ca, verify-full, ...)."""

    connect_timeout: int = Field(default=10, ge=0)
    """Seconds libpq waits for a single connection attempt."""

    # -- Pool --------------------------------------------------------------

    pool_min_size: int = Field(default=DEFAULT_POOL_MIN_SIZE, ge=0)
    pool_max_size: int = Field(default=DEFAULT_POOL_MAX_SIZE, ge=1)

    pool_max_lifetime: float = Field(default=DEFAULT_POOL_MAX_LIFETIME, gt=0)
    """Seconds before a pooled connection is closed and replaced."""

    pool_timeout: float = Field(default=30.0, gt=0)
    """Seconds a caller waits for a free pooled connection."""

    # -- Startup retry -----------------------------------------------------

    connect_retries: int = Field(default=DEFAULT_CONNECT_RETRIES, ge=0)
    connect_interval: float = Field(default=DEFAULT_CONNECT_INTERVAL, ge=0)

    # -- Statements --------------------------------------------------------

    statement_timeout: float | None = Field(default=None, gt=0)
    """Default per-statement deadline in seconds (None → no deadline)."""

    def conninfo(self) -> str:
        """Build the libpq connection string."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password.get_secret_value() or None,
            dbname=self.dbname,
            sslmode=self.sslmode,
            connect_timeout=self.connect_timeout,
        )


@functools.cache
def get_settings() -> ConnectionSettings:
    """Return a cached ``ConnectionSettings`` read from the environment.

    The ``.env`` file is read at most once per process.
    """
    return ConnectionSettings()
