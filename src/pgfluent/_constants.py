"""Statement tokens and connection defaults."""

DEFAULT_FIELDS = "*"
"""Projection used when no explicit select was made."""

COUNT_ALL = "COUNT(*)"
"""Projection substituted by count() for the default projection."""

PLACEHOLDER_MARKER = "?"
"""Positional marker accepted in predicate templates."""

STORAGE_DEFAULT = "DEFAULT"
"""Token emitted in place of a generated column's value on insert."""

MAX_IDENTIFIER_LENGTH = 63
"""PostgreSQL NAMEDATALEN - 1."""

DEFAULT_CONNECT_RETRIES = 3
"""Connect attempts after the first failure before giving up."""

DEFAULT_CONNECT_INTERVAL = 5.0
"""Seconds slept between connect attempts."""

DEFAULT_POOL_MIN_SIZE = 1
DEFAULT_POOL_MAX_SIZE = 10

DEFAULT_POOL_MAX_LIFETIME = 180.0
"""Seconds a pooled connection may live before being replaced."""
