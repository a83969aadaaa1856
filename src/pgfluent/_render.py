"""Predicate rendering and statement assembly."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from io import StringIO
from typing import Any

from pgfluent._accumulator import Accumulator
from pgfluent._constants import COUNT_ALL, DEFAULT_FIELDS, PLACEHOLDER_MARKER
from pgfluent._errors import UsageError
from pgfluent._writes import resolve_insert, resolve_update
from pgfluent.dialect._base import Dialect


class OperationKind(enum.StrEnum):
    READ = "read"
    COUNT = "count"
    SUM = "sum"
    AVERAGE = "average"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    INCREMENT = "increment"
    DECREMENT = "decrement"


@dataclass(frozen=True)
class Statement:
    """Literal statement text with its ordered positional parameters."""

    kind: OperationKind
    sql: str
    parameters: list[Any] = field(default_factory=list)


def render_where(acc: Accumulator, dialect: Dialect) -> str:
    """Render the accumulated predicates as the body of a WHERE clause.

    Each ``?`` marker is replaced, left to right, with the next positional
    parameter and its argument is appended to ``acc.arguments``. Mixed
    AND/OR chains are flattened without parentheses, so SQL operator
    precedence applies to the result.

    Returns:
        The clause body, or an empty string when nothing was accumulated.
    """
    w = StringIO()
    for i, pred in enumerate(acc.predicates):
        if i:
            w.write(f" {pred.combinator} ")
        pieces = pred.template.split(PLACEHOLDER_MARKER)
        w.write(pieces[0])
        for arg, piece in zip(pred.arguments, pieces[1:], strict=True):
            dialect.write_param_placeholder(w, acc.add_param(arg))
            w.write(piece)
    return w.getvalue()


def assemble(
    kind: OperationKind,
    acc: Accumulator,
    dialect: Dialect,
    *,
    field_name: str | None = None,
    source: Any = None,
    returning: bool = False,
) -> Statement:
    """Assemble the statement for one operation kind.

    Args:
        kind: The operation to render.
        acc: The accumulator to consume; its cursor and arguments advance.
        dialect: Dialect used for quoting and placeholders.
        field_name: Column for increment/decrement.
        source: Record(s) for insert, or record/mapping for update.
        returning: For insert, return the generated columns.

    Returns:
        The assembled Statement.

    Raises:
        UsageError: If the accumulated state cannot form a valid statement.
        ContractError: If ``source`` has an unsupported shape.
        InvalidIdentifierError: If a table or column name is invalid.
    """
    kind = OperationKind(kind)
    w = StringIO()

    if kind is OperationKind.READ:
        w.write(f"SELECT {acc.fields} FROM ")
        dialect.write_table_name(w, acc.table)
        _write_where(w, acc, dialect)
        if acc.group:
            w.write(f" GROUP BY {acc.group}")
        if acc.sort:
            w.write(f" ORDER BY {acc.sort}")
        if acc.offset > 0:
            dialect.write_offset(w, acc.offset)
        if acc.limit > 0:
            dialect.write_limit(w, acc.limit)

    elif kind is OperationKind.COUNT:
        fields = COUNT_ALL if acc.fields == DEFAULT_FIELDS else acc.fields
        w.write(f"SELECT {fields} FROM ")
        dialect.write_table_name(w, acc.table)
        _write_where(w, acc, dialect)

    elif kind in (OperationKind.SUM, OperationKind.AVERAGE):
        func = "SUM" if kind is OperationKind.SUM else "AVG"
        if acc.fields == DEFAULT_FIELDS:
            raise UsageError(
                f"{kind}: select a field before calling {func}",
                f"{func}({DEFAULT_FIELDS}) requested on table {acc.table!r}",
            )
        w.write(f"SELECT {func}({acc.fields}) FROM ")
        dialect.write_table_name(w, acc.table)
        _write_where(w, acc, dialect)

    elif kind is OperationKind.INSERT:
        writes = resolve_insert(source, acc, dialect)
        w.write("INSERT INTO ")
        dialect.write_table_name(w, acc.table)
        w.write(f" ({','.join(writes.columns)}) VALUES ")
        w.write(",".join(f"({','.join(row)})" for row in writes.rows))
        if returning and writes.generated:
            w.write(f" RETURNING {','.join(writes.generated)}")

    elif kind is OperationKind.UPDATE:
        where = render_where(acc, dialect)
        writes = resolve_update(source, acc, dialect)
        w.write("UPDATE ")
        dialect.write_table_name(w, acc.table)
        w.write(f" SET ({','.join(writes.columns)}) = ")
        dialect.write_row_source(w, writes.rows[0])
        if where:
            w.write(f" WHERE {where}")

    elif kind is OperationKind.DELETE:
        if not acc.predicates:
            raise UsageError(
                "delete: a deletion condition is required",
                f"unconditional delete rejected on table {acc.table!r}",
            )
        w.write("DELETE FROM ")
        dialect.write_table_name(w, acc.table)
        _write_where(w, acc, dialect)

    else:
        if field_name is None:
            raise UsageError(f"{kind}: a field name is required")
        column = StringIO()
        dialect.write_identifier(column, field_name)
        sign = "+" if kind is OperationKind.INCREMENT else "-"
        w.write("UPDATE ")
        dialect.write_table_name(w, acc.table)
        w.write(f" SET {column.getvalue()} = {column.getvalue()} {sign} 1")
        _write_where(w, acc, dialect)

    return Statement(kind=kind, sql=w.getvalue(), parameters=list(acc.arguments))


def _write_where(w: StringIO, acc: Accumulator, dialect: Dialect) -> None:
    where = render_where(acc, dialect)
    if where:
        w.write(f" WHERE {where}")
