"""PostgreSQL dialect implementation."""

from __future__ import annotations

from io import StringIO

from pgfluent._constants import STORAGE_DEFAULT
from pgfluent._utils import validate_identifier
from pgfluent.dialect._base import Dialect


class PostgresDialect(Dialect):
    """PostgreSQL dialect: double-quoted identifiers and $n parameters."""

    # --- Identifiers ---

    def write_identifier(self, w: StringIO, name: str) -> None:
        validate_identifier(name, "column name")
        w.write(f'"{name}"')

    def write_table_name(self, w: StringIO, name: str) -> None:
        if not isinstance(name, str) or name.count(".") > 1:
            # schema-qualified at most; anything else is rejected whole
            validate_identifier(name, "table name")
        for i, part in enumerate(name.split(".")):
            validate_identifier(part, "table name")
            if i:
                w.write(".")
            w.write(f'"{part}"')

    # --- Values ---

    def write_param_placeholder(self, w: StringIO, param_index: int) -> None:
        w.write(f"${param_index}")

    def write_storage_default(self, w: StringIO) -> None:
        w.write(STORAGE_DEFAULT)

    def write_row_source(self, w: StringIO, refs: list[str]) -> None:
        # A single-column parenthesized source must be a ROW() since PostgreSQL 10
        if len(refs) == 1:
            w.write(f"ROW({refs[0]})")
            return
        w.write(f"({','.join(refs)})")

    # --- Pagination ---

    def write_offset(self, w: StringIO, offset: int) -> None:
        w.write(f" OFFSET {offset}")

    def write_limit(self, w: StringIO, limit: int) -> None:
        w.write(f" LIMIT {limit}")
