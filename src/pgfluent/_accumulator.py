"""Per-statement state collected by the fluent builder."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from pgfluent._constants import DEFAULT_FIELDS


class Combinator(enum.StrEnum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class Predicate:
    """One accumulated condition; immutable once appended."""

    combinator: Combinator
    template: str
    arguments: tuple[Any, ...] = ()


@dataclass
class Accumulator:
    """Mutable state for exactly one logical statement.

    ``cursor`` counts the placeholder tokens emitted so far and always
    equals ``len(arguments)``. An accumulator is never shared between
    table scopes.
    """

    table: str
    fields: str = DEFAULT_FIELDS
    predicates: list[Predicate] = field(default_factory=list)
    sort: str | None = None
    limit: int = 0
    offset: int = 0
    group: str | None = None
    cursor: int = 0
    arguments: list[Any] = field(default_factory=list)

    def add_param(self, value: Any) -> int:
        """Add a parameter and return its 1-based index."""
        self.cursor += 1
        self.arguments.append(value)
        return self.cursor

    def reset(self) -> None:
        """Return every field except the table name to its initial value."""
        self.fields = DEFAULT_FIELDS
        self.predicates = []
        self.sort = None
        self.limit = 0
        self.offset = 0
        self.group = None
        self.cursor = 0
        self.arguments = []
