"""
Query handle over a SQLAlchemy session.

A QueryHandle wraps ``session.query(model)`` behind the small set of
refinement methods the option applier needs. Refinements never mutate a
handle; each returns a new one, so a handle can be shared between a
count and a fetch without one leaking into the other.
"""

from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import text
from sqlalchemy.orm import Query, Session, defer, load_only, selectinload
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import UnaryExpression

from .errors import MissingConditionError

_ORDERING_OPS = (operators.asc_op, operators.desc_op)

_UNSET = object()


def _as_sql(value: Any) -> Any:
    if isinstance(value, str):
        return text(value)
    return value


class QueryHandle:
    """
    Backend-bound query builder for one model.

    Projection and preload directives are kept as loader options, and limit
    and offset as a row window. Both are only attached by the fetch
    terminals (first, all), so count, update and delete see just the
    row-selecting part of the query, and later refinements (ordering,
    joins, grouping, filters) stay valid after a limit or offset.
    """

    def __init__(
        self,
        session: Session,
        model: type,
        query: Optional[Query] = None,
        loaders: Iterable[Any] = (),
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ):
        self.session = session
        self.model = model
        self._query = query if query is not None else session.query(model)
        self._loaders: Tuple[Any, ...] = tuple(loaders)
        self._limit = limit
        self._offset = offset

    @property
    def query(self) -> Query:
        """The underlying SQLAlchemy Query, without loader options or row window."""
        return self._query

    @property
    def loaders(self) -> Tuple[Any, ...]:
        return self._loaders

    @property
    def window(self) -> Tuple[Optional[int], Optional[int]]:
        """The (limit, offset) pair applied by fetches."""
        return self._limit, self._offset

    def _derive(
        self,
        query: Optional[Query] = None,
        loaders: Optional[Sequence[Any]] = None,
        limit: Any = _UNSET,
        offset: Any = _UNSET,
    ) -> "QueryHandle":
        return QueryHandle(
            self.session,
            self.model,
            query if query is not None else self._query,
            self._loaders if loaders is None else loaders,
            self._limit if limit is _UNSET else limit,
            self._offset if offset is _UNSET else offset,
        )

    # Refinements

    def where(self, predicate: Any) -> "QueryHandle":
        """
        Restrict rows.

        Args:
            predicate: SQL expression, list/tuple of expressions,
                dict of column equalities, or raw SQL text
        """
        if isinstance(predicate, dict):
            conditions = [getattr(self.model, key) == value for key, value in predicate.items()]
            return self._derive(query=self._query.filter(*conditions))
        if isinstance(predicate, (list, tuple)):
            return self._derive(query=self._query.filter(*[_as_sql(p) for p in predicate]))
        return self._derive(query=self._query.filter(_as_sql(predicate)))

    def limit(self, limit: Optional[int]) -> "QueryHandle":
        """Cap fetched rows. None removes the cap."""
        return self._derive(limit=limit)

    def offset(self, offset: Optional[int]) -> "QueryHandle":
        """Skip leading fetched rows. None removes the offset."""
        return self._derive(offset=offset)

    def clause(self, fragment: Any) -> "QueryHandle":
        """Apply a raw fragment: ordering expressions sort, anything else filters."""
        if isinstance(fragment, UnaryExpression) and fragment.modifier in _ORDERING_OPS:
            return self._derive(query=self._query.order_by(fragment))
        return self._derive(query=self._query.filter(_as_sql(fragment)))

    def preload(self, path: str) -> "QueryHandle":
        """Eager-load a relationship path such as "orders" or "orders.items"."""
        entity = self.model
        loader = None
        for name in path.split("."):
            attr = getattr(entity, name)
            loader = selectinload(attr) if loader is None else loader.selectinload(attr)
            entity = attr.property.mapper.class_
        return self._derive(loaders=self._loaders + (loader,))

    def select(self, fields: Sequence[str]) -> "QueryHandle":
        columns = [getattr(self.model, name) for name in fields]
        return self._derive(loaders=self._loaders + (load_only(*columns),))

    def omit(self, fields: Sequence[str]) -> "QueryHandle":
        deferred = tuple(defer(getattr(self.model, name)) for name in fields)
        return self._derive(loaders=self._loaders + deferred)

    def join(self, target: Any) -> "QueryHandle":
        """
        Join a relationship by name, or anything Query.join accepts.
        A tuple is unpacked as (target, onclause).
        """
        if isinstance(target, str):
            target = getattr(self.model, target)
        if isinstance(target, tuple):
            return self._derive(query=self._query.join(*target))
        return self._derive(query=self._query.join(target))

    def group(self, group: str) -> "QueryHandle":
        """Group by a mapped column name, or by raw SQL for anything else."""
        columns = sa_inspect(self.model).column_attrs
        column = getattr(self.model, group) if group in columns else text(group)
        return self._derive(query=self._query.group_by(column))

    def having(self, predicate: Any) -> "QueryHandle":
        return self._derive(query=self._query.having(_as_sql(predicate)))

    def distinct(self) -> "QueryHandle":
        return self._derive(query=self._query.distinct())

    def refine(self, fn: Callable[[Query], Query]) -> "QueryHandle":
        """Apply a raw SQLAlchemy Query transform."""
        return self._derive(query=fn(self._query))

    # Terminals

    def _fetch_query(self) -> Query:
        query = self._query
        if self._loaders:
            query = query.options(*self._loaders)
        if self._limit is not None:
            query = query.limit(self._limit)
        if self._offset is not None:
            query = query.offset(self._offset)
        return query

    def first(self) -> Any:
        return self._fetch_query().first()

    def all(self) -> List[Any]:
        return self._fetch_query().all()

    def count(self) -> int:
        """Count every matched row; the fetch window does not apply."""
        return self._query.count()

    def create(self, entity: Any) -> Any:
        self.session.add(entity)
        self.session.flush()
        return entity

    def update(self, entity: Any) -> int:
        """
        Write the entity's non-None column values to every matched row.

        The primary key is never written. When the entity carries a full
        primary key it is added as a condition. The fetch window is ignored.

        Returns:
            Number of rows matched
        """
        mapper = sa_inspect(self.model)
        pk_keys = [mapper.get_property_by_column(col).key for col in mapper.primary_key]

        query = self._query
        identity = [getattr(entity, key) for key in pk_keys]
        if all(value is not None for value in identity):
            query = query.filter(*[getattr(self.model, key) == value for key, value in zip(pk_keys, identity)])

        values = {}
        for attr in mapper.column_attrs:
            if attr.key in pk_keys:
                continue
            value = getattr(entity, attr.key)
            if value is not None:
                values[attr.key] = value

        self._require_condition(query, "update")
        if not values:
            return 0
        return query.update(values)

    def delete(self) -> int:
        """Delete every matched row. The fetch window is ignored."""
        self._require_condition(self._query, "delete")
        return self._query.delete()

    def _require_condition(self, query: Query, operation: str) -> None:
        if query.whereclause is None:
            raise MissingConditionError(self.model.__name__, operation)
