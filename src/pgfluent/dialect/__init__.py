"""SQL dialect used for statement rendering."""

from pgfluent.dialect._base import Dialect
from pgfluent.dialect.postgres import PostgresDialect

__all__ = [
    "Dialect",
    "PostgresDialect",
]
