"""Record type contract: dataclass fields mapped onto table columns."""

from __future__ import annotations

import dataclasses
import enum
import functools
import types
import typing
from datetime import datetime
from typing import Any

from pgfluent._errors import ContractError

COLUMN_KEY = "pgfluent.column"
GENERATED_KEY = "pgfluent.generated"

_MISSING = dataclasses.MISSING


class TypeTag(enum.StrEnum):
    """Semantic type of a destination field, selecting its coercer."""

    INTEGER = "integer"
    FLOAT = "float"
    TIMESTAMP = "timestamp"
    BOOLEAN = "boolean"
    TEXT = "text"
    OTHER = "other"


@dataclasses.dataclass(frozen=True)
class FieldDescriptor:
    """Schema for a single record field."""

    name: str
    column: str
    tag: TypeTag
    annotation: Any = str
    optional: bool = False
    generated: bool = False
    has_default: bool = False
    init: bool = True


def column(
    name: str | None = None,
    *,
    generated: bool = False,
    **field_kwargs: Any,
) -> Any:
    """Declare a record field with an explicit column name or generated marker.

    Args:
        name: Column name in the table. Defaults to the field's own name.
        generated: The storage engine assigns this value (e.g. a serial
            primary key). It is written as ``DEFAULT`` on insert and left
            out of full-record updates.
        **field_kwargs: Forwarded to :func:`dataclasses.field`.

    Returns:
        A dataclass field specifier.
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    if name is not None:
        metadata[COLUMN_KEY] = name
    if generated:
        metadata[GENERATED_KEY] = True
    return dataclasses.field(metadata=metadata, **field_kwargs)


def is_record(obj: Any) -> bool:
    """True for dataclass instances, False for dataclass types and everything else."""
    return dataclasses.is_dataclass(obj) and not isinstance(obj, type)


@functools.cache
def describe(record_type: type) -> tuple[FieldDescriptor, ...]:
    """Return the field descriptors of a dataclass record type, in declared order.

    Raises:
        ContractError: If ``record_type`` is not a dataclass type or its
            annotations cannot be resolved.
    """
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise ContractError(
            "record type must be a dataclass",
            f"{record_type!r} is not a dataclass type",
        )
    try:
        hints = typing.get_type_hints(record_type)
    except (NameError, TypeError) as e:
        raise ContractError(
            "cannot resolve record field annotations",
            f"get_type_hints({record_type.__name__}) failed: {e}",
            wrapped=e,
        ) from e

    descriptors = []
    for f in dataclasses.fields(record_type):
        annotation, optional = _unwrap_optional(hints.get(f.name, Any))
        descriptors.append(
            FieldDescriptor(
                name=f.name,
                column=f.metadata.get(COLUMN_KEY) or f.name,
                tag=_tag_for(annotation),
                annotation=annotation,
                optional=optional,
                generated=bool(f.metadata.get(GENERATED_KEY, False)),
                has_default=f.default is not _MISSING or f.default_factory is not _MISSING,
                init=f.init,
            )
        )
    return tuple(descriptors)


def _unwrap_optional(tp: Any) -> tuple[Any, bool]:
    if typing.get_origin(tp) not in (typing.Union, types.UnionType):
        return tp, False
    args = typing.get_args(tp)
    non_none = [a for a in args if a is not types.NoneType]
    optional = len(non_none) < len(args)
    if len(non_none) == 1:
        return non_none[0], optional
    return tp, optional


def _tag_for(annotation: Any) -> TypeTag:
    # exact matches only: bool is an int, IntEnum is an int, and both
    # need their own coercion
    if annotation is bool:
        return TypeTag.BOOLEAN
    if annotation is int:
        return TypeTag.INTEGER
    if annotation is float:
        return TypeTag.FLOAT
    if annotation is datetime:
        return TypeTag.TIMESTAMP
    if annotation is str:
        return TypeTag.TEXT
    return TypeTag.OTHER
