"""
PetroDepot exception types.
"""

from typing import Any


class CalculationError(ValueError):
    """A calculator input that cannot produce a finite result."""

    def __init__(
        self,
        message: str,
        field: str,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.field = field
        self.details = details or {}


class RepositoryError(Exception):
    """Base exception for persistence failures."""

    def __init__(
        self,
        message: str,
        table: str,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.table = table
        self.details = details or {}


class RecordNotFoundError(RepositoryError):
    """Raised when an update or delete targets a missing row."""
