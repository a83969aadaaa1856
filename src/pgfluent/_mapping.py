"""Row mapping: typed coercion of scanned rows into dataclass records."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from pgfluent._errors import (
    ERR_MSG_DECODE_FAILED,
    ERR_MSG_DEST_NOT_RECORD,
    ERR_MSG_UNKNOWN_RECORD_TYPE,
    ContractError,
    DecodeError,
)
from pgfluent.record import FieldDescriptor, TypeTag, describe, is_record

Coercer = Callable[[Any, Any], Any]
"""Receives (value, declared annotation) and returns the coerced value."""

_TRUE_STRINGS = {"t", "true", "y", "yes", "on", "1"}
_FALSE_STRINGS = {"f", "false", "n", "no", "off", "0"}


def _to_integer(value: Any, _: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("boolean is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        if value != int(value):
            raise ValueError(f"{value!r} is not integral")
        return int(value)
    if isinstance(value, (str, bytes)):
        return int(value)
    raise TypeError(f"cannot convert {type(value).__name__} to int")


def _to_float(value: Any, _: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a float")
    if isinstance(value, (int, float, Decimal, str)):
        return float(value)
    raise TypeError(f"cannot convert {type(value).__name__} to float")


def _to_timestamp(value: Any, _: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    raise TypeError(f"cannot convert {type(value).__name__} to datetime")


def _to_boolean(value: Any, _: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"{value!r} is not a boolean")


def _to_text(value: Any, _: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _to_other(value: Any, annotation: Any) -> Any:
    if not isinstance(annotation, type) or isinstance(value, annotation):
        return value
    return annotation(value)


COERCERS: dict[TypeTag, Coercer] = {
    TypeTag.INTEGER: _to_integer,
    TypeTag.FLOAT: _to_float,
    TypeTag.TIMESTAMP: _to_timestamp,
    TypeTag.BOOLEAN: _to_boolean,
    TypeTag.TEXT: _to_text,
    TypeTag.OTHER: _to_other,
}

ZERO_VALUES: dict[TypeTag, Any] = {
    TypeTag.INTEGER: 0,
    TypeTag.FLOAT: 0.0,
    TypeTag.TIMESTAMP: datetime.min.replace(tzinfo=timezone.utc),
    TypeTag.BOOLEAN: False,
    TypeTag.TEXT: "",
    TypeTag.OTHER: None,
}


def coerce(descriptor: FieldDescriptor, value: Any) -> Any:
    """Coerce one scanned value into the descriptor's declared type.

    Raises:
        DecodeError: If the value is NULL for a non-optional field or the
            coercer rejects it.
    """
    if value is None:
        if descriptor.optional:
            return None
        raise DecodeError(
            ERR_MSG_DECODE_FAILED,
            f"NULL returned for non-optional field {descriptor.name!r} "
            f"(column {descriptor.column!r})",
        )
    try:
        return COERCERS[descriptor.tag](value, descriptor.annotation)
    except (TypeError, ValueError, ArithmeticError, UnicodeDecodeError) as e:
        raise DecodeError(
            ERR_MSG_DECODE_FAILED,
            f"column {descriptor.column!r} value {value!r} cannot be decoded "
            f"into field {descriptor.name!r} ({descriptor.tag}): {e}",
            wrapped=e,
        ) from e


def zero_value(descriptor: FieldDescriptor) -> Any:
    if descriptor.optional:
        return None
    return ZERO_VALUES[descriptor.tag]


class ScanSurface:
    """Column-ordered receptacles for one read.

    ``index`` maps each returned column name to its position. Each position
    holds the descriptor of the destination field it feeds, or None for a
    column the destination does not declare (its value is dropped).
    """

    def __init__(self, columns: Sequence[str], descriptors: Sequence[FieldDescriptor]) -> None:
        self.columns = list(columns)
        self.index: dict[str, int] = {name: i for i, name in enumerate(self.columns)}
        self.receptacles: list[FieldDescriptor | None] = [None] * len(self.columns)
        self.matched: list[FieldDescriptor] = []
        for d in descriptors:
            idx = self.index.get(d.column)
            if idx is None:
                continue
            self.receptacles[idx] = d
            self.matched.append(d)

    def decode(self, row: Sequence[Any]) -> dict[str, Any]:
        """Decode one row into a ``{field name: value}`` mapping of matched fields."""
        if len(row) != len(self.columns):
            raise DecodeError(
                ERR_MSG_DECODE_FAILED,
                f"row has {len(row)} values for {len(self.columns)} columns",
            )
        values = {}
        for d, value in zip(self.receptacles, row):
            if d is not None:
                values[d.name] = coerce(d, value)
        return values


class RowMapper:
    """Maps scanned rows onto a single record or a list of records."""

    def __init__(self, dest: Any, record_type: type | None = None) -> None:
        if is_record(dest):
            params = getattr(type(dest), "__dataclass_params__", None)
            if params is not None and params.frozen:
                raise ContractError(
                    "single-record destination must not be frozen",
                    f"{type(dest).__name__} is a frozen dataclass",
                )
            self.is_sequence = False
            self.record_type = type(dest)
        elif isinstance(dest, list):
            self.is_sequence = True
            if record_type is None and dest:
                record_type = type(dest[0])
            if record_type is None:
                raise ContractError(
                    ERR_MSG_UNKNOWN_RECORD_TYPE,
                    "empty list destination without record_type",
                )
            self.record_type = record_type
        else:
            raise ContractError(
                ERR_MSG_DEST_NOT_RECORD,
                f"find received {type(dest).__name__}",
            )
        self.dest = dest
        self.descriptors = describe(self.record_type)

    def map(self, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> int:
        """Assign decoded rows to the destination.

        A single-record destination takes the first row only. A list
        destination has its contents replaced once every row has decoded.

        Returns:
            The number of rows mapped.
        """
        surface = ScanSurface(columns, self.descriptors)
        if not self.is_sequence:
            for row in rows:
                self._assign(self.dest, surface.decode(row))
                return 1
            return 0

        records = [self.build(surface.decode(row)) for row in rows]
        self.dest[:] = records
        return len(records)

    def first(self, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> Any | None:
        """Build a record from the first row only, or None when there are no rows."""
        surface = ScanSurface(columns, self.descriptors)
        for row in rows:
            return self.build(surface.decode(row))
        return None

    def build(self, values: dict[str, Any]) -> Any:
        """Construct a fresh record, zero-filling required fields the read did not return."""
        kwargs = {}
        late = {}
        for d in self.descriptors:
            if d.name in values:
                value = values[d.name]
            elif d.has_default:
                continue
            else:
                value = zero_value(d)
            if d.init:
                kwargs[d.name] = value
            else:
                late[d.name] = value
        record = self.record_type(**kwargs)
        for name, value in late.items():
            object.__setattr__(record, name, value)
        return record

    def _assign(self, record: Any, values: dict[str, Any]) -> None:
        for name, value in values.items():
            setattr(record, name, value)
