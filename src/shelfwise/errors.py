"""Exceptions raised by the shelfwise core."""

from typing import Any, Optional


class ShelfwiseError(Exception):
    """Base exception for shelfwise errors."""

    pass


class NotFoundError(ShelfwiseError, LookupError):
    """Raised when a referenced book or goal does not exist."""

    def __init__(self, entity: str, key: Any, message: Optional[str] = None):
        self.entity = entity
        self.key = key
        super().__init__(message or f"{entity} not found: {key}")


class ValidationError(ShelfwiseError, ValueError):
    """Raised when input is rejected before any state is mutated."""

    pass


class InconsistentStateError(ShelfwiseError):
    """A tolerated inconsistency in stored data.

    Never raised by the statistics path; instances are reported by
    ``StatisticsAggregator.find_inconsistencies``.
    """

    def __init__(self, book_id: str, title: str, reason: str):
        self.book_id = book_id
        self.title = title
        self.reason = reason
        super().__init__(f"{title} ({book_id}): {reason}")


def describe_validation_error(exc) -> str:
    """Flatten a pydantic ValidationError into one readable line."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or str(exc)
