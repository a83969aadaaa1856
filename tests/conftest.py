"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest

from pgfluent import column
from pgfluent._render import Statement
from pgfluent.dialect import PostgresDialect
from pgfluent.table import Table

CREATED = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


@dataclass
class App:
    id: int = column(generated=True, default=0)
    name: str = ""
    desc: str = column("description", default="")
    address: str = ""
    created_date: datetime = CREATED
    changed_date: datetime = CREATED
    deleted_date: datetime | None = None
    is_first: bool = False
    visits: int = 0
    score: float = 0.0


APP_COLUMNS = (
    '"id","name","description","address","created_date",'
    '"changed_date","deleted_date","is_first","visits","score"'
)


class RecordingDatabase:
    """Stand-in for Database: records every statement and replays scripted results."""

    def __init__(self) -> None:
        self.dialect = PostgresDialect()
        self.columns: list[str] = []
        self.rows: list[tuple[Any, ...]] = []
        self.value: Any = None
        self.rowcount = 0
        self.statements: list[Statement] = []
        self.timeouts: list[float | None] = []

    def table(self, name: str, *, timeout: float | None = None) -> Table:
        return Table(self, name, timeout=timeout)

    def query(self, statement, *, timeout=None):
        self._record(statement, timeout)
        return self.columns, self.rows

    def query_value(self, statement, *, timeout=None):
        self._record(statement, timeout)
        return self.value

    def execute(self, statement, *, timeout=None):
        self._record(statement, timeout)
        return self.rowcount

    @property
    def last(self) -> Statement:
        return self.statements[-1]

    def _record(self, statement: Statement, timeout: float | None) -> None:
        self.statements.append(statement)
        self.timeouts.append(timeout)


@pytest.fixture
def pg_dialect():
    return PostgresDialect()


@pytest.fixture
def db():
    return RecordingDatabase()
