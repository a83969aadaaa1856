"""Write-field resolution for insert and update statements."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from io import StringIO
from typing import Any

from pgfluent._accumulator import Accumulator
from pgfluent._errors import (
    ERR_MSG_INSERT_SOURCE,
    ERR_MSG_UPDATE_SOURCE,
    ContractError,
    UsageError,
)
from pgfluent.dialect._base import Dialect
from pgfluent.record import describe, is_record


@dataclass
class WriteFields:
    """Quoted column list plus one row of value tokens per written record."""

    columns: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)
    generated: list[str] = field(default_factory=list)


def insert_records(source: Any) -> list[Any]:
    """Normalize an insert source to a non-empty list of same-typed records.

    Raises:
        ContractError: If the source is not a record or a sequence of records
            of one dataclass type.
        UsageError: If the sequence is empty.
    """
    if is_record(source):
        return [source]
    if not isinstance(source, (list, tuple)):
        raise ContractError(
            ERR_MSG_INSERT_SOURCE,
            f"insert received {type(source).__name__}",
        )
    if not source:
        raise UsageError("insert: no records to insert", "empty insert sequence")
    record_type = type(source[0])
    for i, record in enumerate(source):
        if not is_record(record) or type(record) is not record_type:
            raise ContractError(
                "all inserted records must share one dataclass type",
                f"insert element {i} is {type(record).__name__}, "
                f"expected {record_type.__name__}",
            )
    return list(source)


def resolve_insert(source: Any, acc: Accumulator, dialect: Dialect) -> WriteFields:
    """Resolve the column list and value rows of an insert.

    The column list comes from the first record and is shared by every row.
    Generated fields take the storage default and consume no parameter.
    """
    records = insert_records(source)
    descriptors = describe(type(records[0]))
    writes = WriteFields()
    for d in descriptors:
        quoted = _quote(dialect, d.column)
        writes.columns.append(quoted)
        if d.generated:
            writes.generated.append(quoted)

    for record in records:
        row = []
        for d in descriptors:
            w = StringIO()
            if d.generated:
                dialect.write_storage_default(w)
            else:
                dialect.write_param_placeholder(w, acc.add_param(getattr(record, d.name)))
            row.append(w.getvalue())
        writes.rows.append(row)
    return writes


def resolve_update(source: Any, acc: Accumulator, dialect: Dialect) -> WriteFields:
    """Resolve the SET list of an update.

    A mapping contributes exactly its keys in iteration order. A record
    contributes every non-generated field. Placeholders continue from the
    accumulator's cursor so they follow any rendered WHERE parameters.

    Raises:
        ContractError: If the source is neither a mapping nor a record.
        UsageError: If there is nothing to update.
    """
    if isinstance(source, Mapping):
        pairs = list(source.items())
    elif is_record(source):
        pairs = [
            (d.column, getattr(source, d.name))
            for d in describe(type(source))
            if not d.generated
        ]
    else:
        raise ContractError(
            ERR_MSG_UPDATE_SOURCE,
            f"update received {type(source).__name__}",
        )
    if not pairs:
        raise UsageError("update: no fields to update", "empty update field list")

    writes = WriteFields()
    refs = []
    for name, value in pairs:
        writes.columns.append(_quote(dialect, name))
        w = StringIO()
        dialect.write_param_placeholder(w, acc.add_param(value))
        refs.append(w.getvalue())
    writes.rows.append(refs)
    return writes


def _quote(dialect: Dialect, name: str) -> str:
    w = StringIO()
    dialect.write_identifier(w, name)
    return w.getvalue()
