"""
Generic repository over a SQLAlchemy mapped class.

Every operation takes a session from the connection provider for the
duration of the call, refines a query handle with the caller's options,
runs one terminal operation, and reports failures to the failure logger
before re-raising them unchanged. A singular read that finds nothing
raises NotFoundError and is not reported.
"""

from typing import Any, Callable, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .context import Context
from .errors import NotFoundError, TransactionAbortedError
from .handle import QueryHandle
from .logger import NullLogger, log_failure
from .query import Option, apply_options, build_options
from .transaction import TransactionScope

T = TypeVar("T")
R = TypeVar("R")


class Repository(Generic[T]):
    """
    CRUD operations for one entity type.

    Args:
        model: Mapped class; it identifies the table for every operation
        provider: Object whose db(ctx) context manager yields a Session
        logger: Failure logger with error(ctx, message, **fields);
            defaults to a NullLogger

    Example:
        users = Repository(User, SessionProvider.from_url("data/app.db"))
        users.create(ctx, User(name="a"))
        user = users.get(ctx, F(User.name == "a"))
    """

    def __init__(self, model: Type[T], provider: Any, logger: Any = None):
        self.model = model
        self._provider = provider
        self._logger = logger if logger is not None else NullLogger()

    def with_logger(self, logger: Any) -> "Repository[T]":
        """Replace the failure logger; returns self for chaining."""
        self._logger = logger
        return self

    def _handle(self, session: Session, opts) -> QueryHandle:
        return apply_options(QueryHandle(session, self.model), build_options(opts))

    def _log_error(self, ctx: Optional[Context], operation: str, exc: BaseException) -> None:
        log_failure(self._logger, ctx, self.model.__name__, operation, exc)

    def create(self, ctx: Optional[Context], entity: T) -> None:
        """Persist one entity as-is. Generated keys are set on the entity."""
        try:
            with self._provider.db(ctx) as session:
                QueryHandle(session, self.model).create(entity)
        except Exception as exc:
            self._log_error(ctx, "create", exc)
            raise

    def update(self, ctx: Optional[Context], entity: T, *opts: Option) -> int:
        """
        Write the entity's non-None fields to the rows selected by opts.

        Returns:
            Number of rows matched
        """
        try:
            with self._provider.db(ctx) as session:
                return self._handle(session, opts).update(entity)
        except Exception as exc:
            self._log_error(ctx, "update", exc)
            raise

    def delete(self, ctx: Optional[Context], *opts: Option) -> int:
        """
        Delete the rows selected by opts. At least one condition is required.

        Returns:
            Number of rows deleted
        """
        try:
            with self._provider.db(ctx) as session:
                return self._handle(session, opts).delete()
        except Exception as exc:
            self._log_error(ctx, "delete", exc)
            raise

    def get(self, ctx: Optional[Context], *opts: Option) -> T:
        """
        Return the first row selected by opts.

        Raises:
            NotFoundError: no row matched
        """
        try:
            with self._provider.db(ctx) as session:
                entity = self._handle(session, opts).first()
        except Exception as exc:
            self._log_error(ctx, "get", exc)
            raise
        if entity is None:
            raise NotFoundError(self.model.__name__)
        return entity

    def list(self, ctx: Optional[Context], *opts: Option) -> List[T]:
        try:
            with self._provider.db(ctx) as session:
                return self._handle(session, opts).all()
        except Exception as exc:
            self._log_error(ctx, "list", exc)
            raise

    def count(self, ctx: Optional[Context], *opts: Option) -> int:
        try:
            with self._provider.db(ctx) as session:
                return self._handle(session, opts).count()
        except Exception as exc:
            self._log_error(ctx, "count", exc)
            raise

    def transaction(self, ctx: Optional[Context], fn: Callable[[TransactionScope[T]], R]) -> R:
        """
        Run fn inside one unit of work.

        fn receives a TransactionScope bound to the transaction. If fn
        raises, every write made through the scope is rolled back and the
        exception propagates unchanged. If the commit fails, the work is
        rolled back and TransactionAbortedError is raised from the commit
        error.

        Returns:
            Whatever fn returns
        """
        name = self.model.__name__
        try:
            with self._provider.db(ctx) as session:
                scope = TransactionScope(self.model, session, self._logger)
                try:
                    result = fn(scope)
                finally:
                    scope.close()
                try:
                    session.commit()
                except SQLAlchemyError as exc:
                    raise TransactionAbortedError(
                        f"{name} transaction commit failed: {exc}",
                        entity_type=name,
                        operation="transaction",
                    ) from exc
        except TransactionAbortedError as exc:
            self._log_error(ctx, "transaction", exc)
            raise
        return result
