"""Exception types raised by tabula.

Every error propagates synchronously from the call that detected it.
Nothing is retried and partial results are discarded.
"""

from __future__ import annotations

__all__ = [
    "ChartOptionError",
    "ColumnNotFoundError",
    "ConflictError",
    "DataIOError",
    "DeserializationError",
    "DuplicateKeyError",
    "EvaluationError",
    "MissingChannelError",
    "NotFoundError",
    "ParseError",
    "TableShapeError",
    "TabulaError",
]


class TabulaError(Exception):
    """Base exception for all tabula errors."""

    pass


class DataIOError(TabulaError, OSError):
    """Raised when a data file is missing or unreadable."""

    pass


class ParseError(TabulaError):
    """Raised when delimited input is malformed."""

    pass


class DeserializationError(TabulaError):
    """Raised when a serialized-object file is corrupt or incompatible."""

    pass


class NotFoundError(TabulaError):
    """Raised when a named dataset or object does not exist."""

    pass


class ColumnNotFoundError(NotFoundError):
    """Raised when a referenced column is not part of a table."""

    def __init__(self, column: str, available: list[str] | None = None) -> None:
        """Initialize with the missing column and the columns that do exist.

        Args:
            column: Name that was looked up
            available: Column names of the table, for the message

        """
        self.column = column
        self.available = list(available or [])
        message = f"Column not found: {column!r}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class EvaluationError(TabulaError):
    """Raised when a row expression or aggregation cannot be evaluated."""

    pass


class MissingChannelError(TabulaError):
    """Raised when a chart layer lacks a required visual channel."""

    pass


class DuplicateKeyError(TabulaError):
    """Raised when a pivot maps several source rows onto one cell."""

    pass


class ConflictError(TabulaError):
    """Raised when a generated label collides with a real one."""

    pass


class ChartOptionError(TabulaError, ValueError):
    """Raised when chart layer or style options are invalid."""

    pass


class TableShapeError(TabulaError, ValueError):
    """Raised when columns have unequal lengths or duplicate names."""

    pass
