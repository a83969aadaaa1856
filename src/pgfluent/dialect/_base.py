"""Abstract base class for SQL dialects."""

from __future__ import annotations

from abc import ABC, abstractmethod
from io import StringIO


class Dialect(ABC):
    """Abstract base class defining the SQL dialect interface.

    All quoting and placeholder syntax lives behind this interface.
    Methods receive the StringIO writer the statement is assembled into.
    """

    # --- Identifiers ---

    @abstractmethod
    def write_identifier(self, w: StringIO, name: str) -> None: ...

    @abstractmethod
    def write_table_name(self, w: StringIO, name: str) -> None: ...

    # --- Values ---

    @abstractmethod
    def write_param_placeholder(self, w: StringIO, param_index: int) -> None: ...

    @abstractmethod
    def write_storage_default(self, w: StringIO) -> None: ...

    @abstractmethod
    def write_row_source(self, w: StringIO, refs: list[str]) -> None: ...

    # --- Pagination ---

    @abstractmethod
    def write_offset(self, w: StringIO, offset: int) -> None: ...

    @abstractmethod
    def write_limit(self, w: StringIO, limit: int) -> None: ...
