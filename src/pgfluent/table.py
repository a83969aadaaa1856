"""Fluent, table-scoped statement builder."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

from pgfluent._accumulator import Accumulator, Combinator, Predicate
from pgfluent._errors import ERR_MSG_SCOPE_CONSUMED, UsageError
from pgfluent._mapping import RowMapper, ScanSurface, coerce
from pgfluent._render import OperationKind, Statement, assemble
from pgfluent._utils import count_markers, normalize_direction, validate_non_negative
from pgfluent._writes import insert_records
from pgfluent.record import FieldDescriptor, TypeTag, describe

if TYPE_CHECKING:
    from pgfluent.connection import Database

logger = logging.getLogger(__name__)

R = TypeVar("R")

_COUNT_FIELD = FieldDescriptor(name="count", column="count", tag=TypeTag.INTEGER, annotation=int)


class Table:
    """Builder for one logical statement against one table.

    Chained calls mutate this builder's own accumulator and return the
    builder. A terminal call (``find``, ``count``, ``insert``, ...) runs the
    statement, resets the accumulator whether it succeeds or fails, and
    consumes the builder: open a new scope with ``Database.table`` for the
    next statement.

    Example::

        apps: list[App] = []
        db.table("app").where("id=?", 62).where_or("id=?", 1).limit(5).find(apps, App)
    """

    def __init__(self, db: Database, name: str, *, timeout: float | None = None) -> None:
        self._db = db
        self._acc = Accumulator(table=name)
        self._timeout = timeout
        self._consumed = False

    def __repr__(self) -> str:
        return f"<Table {self._acc.table!r} predicates={len(self._acc.predicates)}>"

    # --- Chained calls ---

    def select(self, fields: str) -> Table:
        """Set the projection expression (last call wins)."""
        self._check_open()
        self._acc.fields = fields
        return self

    def where(self, template: str, *args: Any) -> Table:
        """Append an AND predicate; each ``?`` in ``template`` binds one of ``args``."""
        return self._append(Combinator.AND, template, args)

    def where_or(self, template: str, *args: Any) -> Table:
        """Append an OR predicate; each ``?`` in ``template`` binds one of ``args``."""
        return self._append(Combinator.OR, template, args)

    def sort(self, field: str, direction: str = "ASC") -> Table:
        self._check_open()
        self._acc.sort = f"{field} {normalize_direction(direction)}"
        return self

    def offset(self, offset: int) -> Table:
        self._check_open()
        self._acc.offset = validate_non_negative(offset, "offset")
        return self

    def limit(self, limit: int) -> Table:
        self._check_open()
        self._acc.limit = validate_non_negative(limit, "limit")
        return self

    def group(self, group: str) -> Table:
        self._check_open()
        self._acc.group = group
        return self

    def timeout(self, seconds: float | None) -> Table:
        """Set the statement deadline in seconds (None disables it)."""
        self._check_open()
        if seconds is not None and seconds <= 0:
            raise UsageError("timeout must be positive", f"timeout received {seconds!r}")
        self._timeout = seconds
        return self

    # --- Terminal calls: reads ---

    def find(self, dest: Any, record_type: type | None = None) -> int:
        """Read matching rows into a record or a list of records.

        Args:
            dest: A dataclass instance, assigned in place from the first
                row, or a list whose contents are replaced by every row.
            record_type: Record type for a list destination. Defaults to
                the type of the list's first element.

        Returns:
            The number of rows mapped.

        Raises:
            ContractError: If ``dest`` is not a record or a list.
            StatementError: If the read fails.
            DecodeError: If a row cannot be decoded into the record type.
        """

        def run(statement: Statement) -> int:
            mapper = RowMapper(dest, record_type)
            columns, rows = self._db.query(statement, timeout=self._timeout)
            return mapper.map(columns, rows)

        return self._terminal(OperationKind.READ, run)

    def fetch_all(self, record_type: type[R]) -> list[R]:
        """Read matching rows as a new list of ``record_type`` records."""
        records: list[R] = []
        self.find(records, record_type)
        return records

    def fetch_one(self, record_type: type[R]) -> R | None:
        """Read the first matching row as a ``record_type`` record, or None."""

        def run(statement: Statement) -> R | None:
            mapper = RowMapper([], record_type)
            columns, rows = self._db.query(statement, timeout=self._timeout)
            return mapper.first(columns, rows)

        return self._terminal(OperationKind.READ, run)

    def count(self) -> int:
        """Count matching rows (``COUNT(*)`` unless a projection was selected).

        Raises:
            DecodeError: If the selected projection does not yield an integer.
        """

        def run(statement: Statement) -> int:
            value = self._db.query_value(statement, timeout=self._timeout)
            if value is None:
                return 0
            return coerce(_COUNT_FIELD, value)

        return self._terminal(OperationKind.COUNT, run)

    def sum(self) -> Any:
        """Sum the selected field over matching rows.

        Returns:
            The sum, or None when no rows matched.

        Raises:
            UsageError: If no field was selected.
        """
        return self._terminal(OperationKind.SUM, self._scalar)

    def avg(self) -> Any:
        """Average the selected field over matching rows.

        Returns:
            The average, or None when no rows matched.

        Raises:
            UsageError: If no field was selected.
        """
        return self._terminal(OperationKind.AVERAGE, self._scalar)

    # --- Terminal calls: writes ---

    def insert(self, records: Any, *, returning: bool = False) -> int:
        """Insert one record or a sequence of records of one type.

        Generated fields are written as ``DEFAULT``. With ``returning=True``
        the generated values are read back and assigned onto the records.
        Returned rows are paired with records positionally: PostgreSQL
        emits a multi-row ``VALUES`` insert in order in practice, but does
        not document that guarantee. Read generated keys back by a natural
        key when the pairing matters.

        Returns:
            The number of inserted rows.

        Raises:
            ContractError: If ``records`` has an unsupported shape.
            UsageError: If ``records`` is empty.
        """

        def run(statement: Statement) -> int:
            targets = insert_records(records)
            generated = [d for d in describe(type(targets[0])) if d.generated]
            if returning and generated:
                return self._write_back(statement, targets, generated)
            return self._db.execute(statement, timeout=self._timeout)

        return self._terminal(OperationKind.INSERT, run, source=records, returning=returning)

    def update(self, dest: Any) -> int:
        """Update matching rows from a record (all non-generated fields) or a mapping.

        Returns:
            The number of updated rows.

        Raises:
            ContractError: If ``dest`` is neither a record nor a mapping.
            UsageError: If there is nothing to update.
        """
        if not self._acc.predicates and not self._consumed:
            logger.warning("update on %r has no condition; every row is affected", self._acc.table)
        return self._terminal(OperationKind.UPDATE, self._exec, source=dest)

    def delete(self) -> int:
        """Delete matching rows; at least one predicate is required.

        Raises:
            UsageError: If no predicate was accumulated.
        """
        return self._terminal(OperationKind.DELETE, self._exec)

    def increment(self, field: str) -> int:
        """Add 1 to ``field`` on matching rows."""
        return self._terminal(OperationKind.INCREMENT, self._exec, field_name=field)

    def decrement(self, field: str) -> int:
        """Subtract 1 from ``field`` on matching rows."""
        return self._terminal(OperationKind.DECREMENT, self._exec, field_name=field)

    # --- Internals ---

    def _append(self, combinator: Combinator, template: str, args: tuple[Any, ...]) -> Table:
        self._check_open()
        if not isinstance(template, str) or not template.strip():
            raise UsageError("predicate template cannot be empty", f"template {template!r}")
        markers = count_markers(template)
        if markers != len(args):
            raise UsageError(
                "predicate placeholder count does not match its arguments",
                f"{template!r} has {markers} marker(s) but {len(args)} argument(s)",
            )
        self._acc.predicates.append(Predicate(combinator, template, tuple(args)))
        return self

    def _check_open(self) -> None:
        if self._consumed:
            raise UsageError(ERR_MSG_SCOPE_CONSUMED, f"table {self._acc.table!r} reused")

    def _terminal(self, kind: OperationKind, run: Callable[[Statement], Any], **kwargs: Any) -> Any:
        self._check_open()
        self._consumed = True
        try:
            statement = assemble(kind, self._acc, self._db.dialect, **kwargs)
            return run(statement)
        finally:
            self._acc.reset()

    def _exec(self, statement: Statement) -> int:
        return self._db.execute(statement, timeout=self._timeout)

    def _scalar(self, statement: Statement) -> Any:
        return self._db.query_value(statement, timeout=self._timeout)

    def _write_back(
        self, statement: Statement, records: list[Any], generated: list[FieldDescriptor]
    ) -> int:
        # paired positionally; see insert()
        columns, rows = self._db.query(statement, timeout=self._timeout)
        surface = ScanSurface(columns, generated)
        for record, row in zip(records, rows):
            for name, value in surface.decode(row).items():
                object.__setattr__(record, name, value)
        return len(rows)
