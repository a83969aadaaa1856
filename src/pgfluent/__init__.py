"""pgfluent - Fluent statement builder and row mapper for PostgreSQL."""

from __future__ import annotations

__version__ = "0.1.0"

from pgfluent._errors import (
    ConnectivityError,
    ContractError,
    DecodeError,
    InvalidIdentifierError,
    PgFluentError,
    StatementError,
    UsageError,
)
from pgfluent._render import OperationKind, Statement
from pgfluent.config import ConnectionSettings, get_settings
from pgfluent.connection import Database, connect, connect_or_exit
from pgfluent.record import column
from pgfluent.table import Table

__all__ = [
    "connect",
    "connect_or_exit",
    "column",
    "get_settings",
    "ConnectionSettings",
    "Database",
    "OperationKind",
    "Statement",
    "Table",
    "ConnectivityError",
    "ContractError",
    "DecodeError",
    "InvalidIdentifierError",
    "PgFluentError",
    "StatementError",
    "UsageError",
]
