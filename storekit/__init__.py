"""
storekit: a generic SQLAlchemy repository with composable query options.
"""

from .context import Context, background, new_context
from .database import Base, SessionProvider, init_database
from .errors import (
    MissingConditionError,
    NotFoundError,
    RepositoryError,
    ScopeClosedError,
    TransactionAbortedError,
)
from .handle import QueryHandle
from .logger import ContextLogger, NullLogger, StructuredLogger, get_logger
from .query import Option, QueryBuilder, QueryOptions, apply_options, build_options
from .repository import Repository
from .transaction import TransactionScope
from .version import __version__

__all__ = [
    "__version__",
    "Base",
    "Context",
    "ContextLogger",
    "MissingConditionError",
    "NotFoundError",
    "NullLogger",
    "Option",
    "QueryBuilder",
    "QueryHandle",
    "QueryOptions",
    "Repository",
    "RepositoryError",
    "ScopeClosedError",
    "SessionProvider",
    "StructuredLogger",
    "TransactionAbortedError",
    "TransactionScope",
    "apply_options",
    "background",
    "build_options",
    "get_logger",
    "init_database",
    "new_context",
]
