"""Exception hierarchy for statement building, execution, and row mapping."""


class PgFluentError(Exception):
    """Base exception for all pgfluent errors.

    Provides dual messaging: a sanitized user-facing message and
    internal details (statement text, driver messages) for logging.
    """

    def __init__(
        self,
        user_message: str,
        internal_details: str = "",
        wrapped: Exception | None = None,
    ) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details or user_message
        self.wrapped = wrapped

    def internal(self) -> str:
        return self.internal_details


class ConnectivityError(PgFluentError):
    """Raised when the connection pool cannot be opened or pinged."""


class ContractError(PgFluentError):
    """Raised when a destination or source argument has an unsupported shape."""


class StatementError(PgFluentError):
    """Raised when the backing engine rejects or fails a statement."""

    def __init__(
        self,
        operation: str,
        user_message: str,
        internal_details: str = "",
        wrapped: Exception | None = None,
    ) -> None:
        super().__init__(f"{operation}: {user_message}", internal_details, wrapped)
        self.operation = operation


class DecodeError(PgFluentError):
    """Raised when a returned value cannot be coerced into its destination field."""


class UsageError(PgFluentError):
    """Raised for caller misuse detected before any statement is sent."""


class InvalidIdentifierError(UsageError):
    """Raised when a table or column name is not a valid identifier."""


# Sanitized user-facing error message constants
ERR_MSG_DEST_NOT_RECORD = "destination must be a dataclass instance or a list"
ERR_MSG_UPDATE_SOURCE = "update source must be a dataclass instance or a mapping"
ERR_MSG_INSERT_SOURCE = "insert source must be a dataclass instance or a sequence of them"
ERR_MSG_UNKNOWN_RECORD_TYPE = "cannot determine record type for list destination"
ERR_MSG_EXECUTION_FAILED = "statement execution failed"
ERR_MSG_DECODE_FAILED = "cannot decode column value"
ERR_MSG_SCOPE_CONSUMED = "table scope already consumed by a terminal call"
