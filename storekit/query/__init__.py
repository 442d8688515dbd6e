from .options import (
    CF,
    OM,
    SEL,
    C,
    D,
    F,
    G,
    H,
    J,
    L,
    O,
    Option,
    P,
    QueryBuilder,
    QueryOptions,
    S,
    apply_options,
    build_options,
    with_clauses,
    with_custom,
    with_distinct,
    with_filter,
    with_group,
    with_having,
    with_join,
    with_limit,
    with_offset,
    with_omit,
    with_preload,
    with_scope,
    with_select,
)

__all__ = [
    "Option",
    "QueryOptions",
    "QueryBuilder",
    "build_options",
    "apply_options",
    "with_filter",
    "with_limit",
    "with_offset",
    "with_clauses",
    "with_preload",
    "with_select",
    "with_omit",
    "with_join",
    "with_group",
    "with_having",
    "with_distinct",
    "with_scope",
    "with_custom",
    "F",
    "L",
    "O",
    "C",
    "P",
    "SEL",
    "OM",
    "J",
    "G",
    "H",
    "D",
    "S",
    "CF",
]
