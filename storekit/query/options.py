"""
Composable query options.

An Option is a function that mutates a QueryOptions accumulator. Callers
build a sequence of options, the repository folds them into one
QueryOptions with build_options(), and apply_options() refines a query
handle with the accumulated directives in a fixed order.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional

Option = Callable[["QueryOptions"], None]

# handle -> handle transform used by scopes and the custom terminal step
HandleFunc = Callable[[Any], Any]


@dataclass
class QueryOptions:
    """Accumulated query directives for a single repository call."""

    filter: Any = None
    limit: int = 0
    offset: int = 0
    clauses: List[Any] = field(default_factory=list)
    preloads: List[str] = field(default_factory=list)
    selects: List[str] = field(default_factory=list)
    omit: List[str] = field(default_factory=list)
    joins: List[Any] = field(default_factory=list)
    group: str = ""
    having: Any = None
    distinct: bool = False
    scopes: List[HandleFunc] = field(default_factory=list)
    custom: Optional[HandleFunc] = None


def build_options(options: Iterable[Optional[Option]]) -> QueryOptions:
    """
    Fold options left to right into a fresh QueryOptions.

    Args:
        options: Option functions; None entries are skipped

    Returns:
        The accumulated QueryOptions
    """
    result = QueryOptions()
    for opt in options:
        if opt is not None:
            opt(result)
    return result


def apply_options(handle: Any, options: Optional[QueryOptions]) -> Any:
    """
    Refine a query handle with accumulated options.

    Directives are applied in a fixed order because they do not commute on
    a real query: filter, limit, offset, raw clauses, preloads, select,
    omit, joins, group, having, distinct, scopes, then the custom
    transform, which can override anything before it.

    Args:
        handle: Query handle exposing the refinement methods of QueryHandle
        options: Accumulated options, or None for no refinement

    Returns:
        The refined handle
    """
    if options is None:
        return handle

    if options.filter is not None:
        handle = handle.where(options.filter)

    if options.limit > 0:
        handle = handle.limit(options.limit)

    if options.offset > 0:
        handle = handle.offset(options.offset)

    for fragment in options.clauses:
        handle = handle.clause(fragment)

    for path in options.preloads:
        handle = handle.preload(path)

    if options.selects:
        handle = handle.select(options.selects)

    if options.omit:
        handle = handle.omit(options.omit)

    for target in options.joins:
        handle = handle.join(target)

    if options.group:
        handle = handle.group(options.group)

    if options.having is not None:
        handle = handle.having(options.having)

    if options.distinct:
        handle = handle.distinct()

    for scope in options.scopes:
        handle = scope(handle)

    if options.custom is not None:
        handle = options.custom(handle)

    return handle


# Basic options

def with_filter(predicate: Any) -> Option:
    """Restrict rows; the last filter wins."""
    def option(o: QueryOptions) -> None:
        o.filter = predicate
    return option


def with_limit(limit: int) -> Option:
    """Cap the number of rows; values <= 0 leave the query unbounded."""
    def option(o: QueryOptions) -> None:
        o.limit = limit
    return option


def with_offset(offset: int) -> Option:
    """Skip rows; values <= 0 are ignored by the applier."""
    def option(o: QueryOptions) -> None:
        o.offset = offset
    return option


def with_clauses(*clauses: Any) -> Option:
    """Append raw SQL expression fragments (ordering or conditions)."""
    def option(o: QueryOptions) -> None:
        o.clauses.extend(clauses)
    return option


# Relationship and projection options

def with_preload(*paths: str) -> Option:
    """Append relationship paths to eager-load, e.g. "orders.items"."""
    def option(o: QueryOptions) -> None:
        o.preloads.extend(paths)
    return option


def with_select(*fields: str) -> Option:
    """Load only these columns; replaces earlier selections."""
    def option(o: QueryOptions) -> None:
        o.selects = list(fields)
    return option


def with_omit(*fields: str) -> Option:
    """Defer these columns; replaces earlier omissions."""
    def option(o: QueryOptions) -> None:
        o.omit = list(fields)
    return option


def with_join(*targets: Any) -> Option:
    """Append join targets (relationship names or mapped targets)."""
    def option(o: QueryOptions) -> None:
        o.joins.extend(targets)
    return option


# Grouping and aggregation options

def with_group(group: str) -> Option:
    def option(o: QueryOptions) -> None:
        o.group = group
    return option


def with_having(predicate: Any) -> Option:
    def option(o: QueryOptions) -> None:
        o.having = predicate
    return option


def with_distinct(distinct: bool = True) -> Option:
    def option(o: QueryOptions) -> None:
        o.distinct = distinct
    return option


# Escape hatches

def with_scope(scope: HandleFunc) -> Option:
    """Append a reusable handle -> handle transform."""
    def option(o: QueryOptions) -> None:
        o.scopes.append(scope)
    return option


def with_custom(fn: HandleFunc) -> Option:
    """Set the terminal handle transform, applied after everything else."""
    def option(o: QueryOptions) -> None:
        o.custom = fn
    return option


# Shorthands

F = with_filter
L = with_limit
O = with_offset  # noqa: E741
C = with_clauses
P = with_preload
SEL = with_select
OM = with_omit
J = with_join
G = with_group
H = with_having
D = with_distinct
S = with_scope
CF = with_custom


class QueryBuilder:
    """
    Chainable view over the option constructors.

    Each chain method runs the same Option functions the repository would,
    against the builder's own QueryOptions, and records them. The builder
    is itself an Option: passing it to a repository call replays the
    recorded options onto that call's accumulator.

    Example:
        users = repo.list(ctx, QueryBuilder().where(User.active).page(2, 20))
    """

    def __init__(self):
        self.options = QueryOptions()
        self._applied: List[Option] = []

    def __call__(self, target: QueryOptions) -> None:
        for opt in self._applied:
            opt(target)

    def q(self, *opts: Option) -> "QueryBuilder":
        for opt in opts:
            opt(self.options)
            self._applied.append(opt)
        return self

    def where(self, predicate: Any) -> "QueryBuilder":
        return self.q(F(predicate))

    def clause(self, *clauses: Any) -> "QueryBuilder":
        return self.q(C(*clauses))

    def preload(self, *paths: str) -> "QueryBuilder":
        return self.q(P(*paths))

    def select(self, *fields: str) -> "QueryBuilder":
        return self.q(SEL(*fields))

    def omit(self, *fields: str) -> "QueryBuilder":
        return self.q(OM(*fields))

    def join(self, *targets: Any) -> "QueryBuilder":
        return self.q(J(*targets))

    def limit(self, limit: int) -> "QueryBuilder":
        return self.q(L(limit))

    def offset(self, offset: int) -> "QueryBuilder":
        return self.q(O(offset))

    def distinct(self, distinct: bool = True) -> "QueryBuilder":
        return self.q(D(distinct))

    def group(self, group: str) -> "QueryBuilder":
        return self.q(G(group))

    def having(self, predicate: Any) -> "QueryBuilder":
        return self.q(H(predicate))

    def scope(self, scope: HandleFunc) -> "QueryBuilder":
        return self.q(S(scope))

    def custom(self, fn: HandleFunc) -> "QueryBuilder":
        return self.q(CF(fn))

    def page(self, page: int, page_size: int) -> "QueryBuilder":
        """Paginate with 1-based page numbers."""
        return self.q(L(page_size), O((page - 1) * page_size))
