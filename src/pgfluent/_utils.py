"""Validation helpers for identifiers, templates, and pagination values."""

from __future__ import annotations

import re

from pgfluent._constants import MAX_IDENTIFIER_LENGTH, PLACEHOLDER_MARKER
from pgfluent._errors import InvalidIdentifierError, UsageError

IDENTIFIER_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

SORT_DIRECTIONS = ("ASC", "DESC")


def validate_identifier(name: str, context: str = "identifier") -> None:
    """Validate a SQL table or column name."""
    if not isinstance(name, str):
        raise InvalidIdentifierError(
            f"{context} must be a string",
            f"{context} of type {type(name).__name__} provided",
        )
    if not name:
        raise InvalidIdentifierError(
            f"{context} cannot be empty",
            f"empty {context} provided: {name!r}",
        )
    if len(name) > MAX_IDENTIFIER_LENGTH:
        raise InvalidIdentifierError(
            f"{context} too long",
            f"{context} '{name}' exceeds {MAX_IDENTIFIER_LENGTH} characters",
        )
    if not IDENTIFIER_RE.match(name):
        raise InvalidIdentifierError(
            f"invalid {context} format",
            f"{context} '{name}' contains invalid characters",
        )


def count_markers(template: str) -> int:
    """Return the number of positional markers in a predicate template."""
    return template.count(PLACEHOLDER_MARKER)


def normalize_direction(direction: str) -> str:
    upper = direction.strip().upper()
    if upper not in SORT_DIRECTIONS:
        raise UsageError(
            "sort direction must be ASC or DESC",
            f"unsupported sort direction {direction!r}",
        )
    return upper


def validate_non_negative(value: int, context: str) -> int:
    # bool is an int subclass but never a meaningful row count
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise UsageError(
            f"{context} must be a non-negative integer",
            f"{context} received {value!r}",
        )
    return value
