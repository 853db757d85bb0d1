# moviecatalog/core/errors.py
"""Failure kinds raised by the catalog core.

"Not found" is deliberately absent: lookups return None and writes return
False when the target row does not exist.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional


class CatalogError(Exception):
    """Base class for every failure raised by the catalog core."""


@dataclass(frozen=True)
class FieldError:
    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}"


class MovieValidationError(CatalogError):
    """One or more business rules rejected a movie before it reached the store."""

    def __init__(self, errors: Iterable[FieldError]):
        self.errors: List[FieldError] = list(errors)
        super().__init__("; ".join(str(e) for e in self.errors) or "invalid movie")

    @property
    def fields(self) -> List[str]:
        return [e.field for e in self.errors]


class ConstraintViolation(CatalogError):
    """The database rejected a write that breaks a declared constraint."""

    def __init__(self, message: str, constraint: Optional[str] = None):
        self.constraint = constraint
        super().__init__(message)


class StoreUnavailable(CatalogError):
    """No connection could be acquired, or the database dropped or timed out a query.

    Transient; callers may retry.
    """


class OperationCancelled(CatalogError):
    """The operation's deadline elapsed; any open transaction was rolled back."""


class SchemaError(CatalogError):
    """Provisioning the tables or indexes failed."""
