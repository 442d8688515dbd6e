"""
Repository error kinds.

Backing-store failures are not wrapped: SQLAlchemy exceptions reach the
caller unchanged. The classes here cover the cases the repository itself
distinguishes.
"""

from typing import Optional


class RepositoryError(Exception):
    """Base class for errors raised by the repository layer."""

    def __init__(
        self,
        message: str,
        entity_type: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.entity_type = entity_type
        self.operation = operation
        super().__init__(message)


class NotFoundError(RepositoryError):
    """Raised when a singular read matches no rows."""

    def __init__(self, entity_type: str, operation: str = "get"):
        super().__init__(
            f"{entity_type} not found",
            entity_type=entity_type,
            operation=operation,
        )


class MissingConditionError(RepositoryError):
    """Raised when an update or delete would touch every row."""

    def __init__(self, entity_type: str, operation: str):
        super().__init__(
            f"{operation} on {entity_type} requires a condition",
            entity_type=entity_type,
            operation=operation,
        )


class TransactionAbortedError(RepositoryError):
    """Raised when a unit of work could not be committed."""
    pass


class ScopeClosedError(RepositoryError):
    """Raised when a transaction scope is used after its transaction ended."""
    pass
