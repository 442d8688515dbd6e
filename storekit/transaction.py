"""
Transaction-bound view of a repository.
"""

from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from .context import Context
from .errors import NotFoundError, ScopeClosedError
from .handle import QueryHandle
from .logger import log_failure
from .query import Option, apply_options, build_options

T = TypeVar("T")


class TransactionScope(Generic[T]):
    """
    CRUD operations inside one unit of work.

    Created by Repository.transaction() and handed to its callback. All
    operations run on the transaction's session and are flushed, never
    committed; the enclosing transaction commits or rolls back as a whole.
    The scope is closed when the callback returns and must not be kept.
    """

    def __init__(self, model: Type[T], session: Session, logger: Any):
        self.model = model
        self._session: Optional[Session] = session
        self._logger = logger

    @property
    def closed(self) -> bool:
        return self._session is None

    def close(self) -> None:
        self._session = None

    def _base_handle(self) -> QueryHandle:
        if self._session is None:
            raise ScopeClosedError(
                f"{self.model.__name__} transaction scope used after its transaction ended",
                entity_type=self.model.__name__,
            )
        return QueryHandle(self._session, self.model)

    def _log_error(self, ctx: Optional[Context], operation: str, exc: BaseException) -> None:
        log_failure(self._logger, ctx, self.model.__name__, f"tx {operation}", exc)

    def create(self, ctx: Optional[Context], entity: T) -> None:
        handle = self._base_handle()
        try:
            handle.create(entity)
        except Exception as exc:
            self._log_error(ctx, "create", exc)
            raise

    def update(self, ctx: Optional[Context], entity: T, *opts: Option) -> int:
        handle = self._base_handle()
        try:
            handle = apply_options(handle, build_options(opts))
            return handle.update(entity)
        except Exception as exc:
            self._log_error(ctx, "update", exc)
            raise

    def delete(self, ctx: Optional[Context], *opts: Option) -> int:
        handle = self._base_handle()
        try:
            handle = apply_options(handle, build_options(opts))
            return handle.delete()
        except Exception as exc:
            self._log_error(ctx, "delete", exc)
            raise

    def get(self, ctx: Optional[Context], *opts: Option) -> T:
        handle = self._base_handle()
        try:
            entity = apply_options(handle, build_options(opts)).first()
        except Exception as exc:
            self._log_error(ctx, "get", exc)
            raise
        if entity is None:
            raise NotFoundError(self.model.__name__, "tx get")
        return entity

    def list(self, ctx: Optional[Context], *opts: Option) -> List[T]:
        handle = self._base_handle()
        try:
            return apply_options(handle, build_options(opts)).all()
        except Exception as exc:
            self._log_error(ctx, "list", exc)
            raise

    def count(self, ctx: Optional[Context], *opts: Option) -> int:
        handle = self._base_handle()
        try:
            return apply_options(handle, build_options(opts)).count()
        except Exception as exc:
            self._log_error(ctx, "count", exc)
            raise
