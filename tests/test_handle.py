"""
Tests for handle.py - the query handle over a SQLAlchemy session.
"""

import pytest

from storekit.context import Context, background, new_context
from storekit.errors import MissingConditionError
from storekit.handle import QueryHandle

from tests.models import User


@pytest.fixture
def session(provider):
    with provider.db() as session:
        session.add_all([
            User(name="alice", email="a@example.com", age=30),
            User(name="bob", email="b@example.com", age=17),
        ])
        session.flush()
        yield session


class TestRefinement:
    """Test that refinements derive new handles."""

    def test_refinement_does_not_mutate(self, session):
        base = QueryHandle(session, User)
        limited = base.limit(1)

        assert limited is not base
        assert base.count() == 2
        assert len(limited.all()) == 1

    def test_loader_options_accumulate_separately(self, session):
        base = QueryHandle(session, User)
        projected = base.select(["name"]).omit(["email"]).preload("orders")

        assert base.loaders == ()
        assert len(projected.loaders) == 3
        assert projected.query is base.query

    def test_clause_routes_ordering_and_conditions(self, session):
        handle = QueryHandle(session, User)

        ordered = handle.clause(User.age.asc())
        filtered = handle.clause(User.age > 20)

        assert ordered.query.whereclause is None
        assert [u.name for u in ordered.all()] == ["bob", "alice"]
        assert filtered.query.whereclause is not None
        assert [u.name for u in filtered.all()] == ["alice"]

    def test_window_is_kept_out_of_the_query(self, session):
        """Refinements after limit and offset stay valid."""
        handle = QueryHandle(session, User).limit(1).offset(1)
        refined = handle.clause(User.name.asc()).where(User.age > 0).group("name")

        assert refined.window == (1, 1)
        assert "LIMIT" not in str(handle.query)
        assert [u.name for u in refined.all()] == ["bob"]

    def test_limit_none_removes_window(self, session):
        handle = QueryHandle(session, User).limit(1).limit(None)
        assert len(handle.all()) == 2

    def test_group_name_outside_columns_is_raw_sql(self, session):
        """Model attributes that are not columns are not used for grouping."""
        handle = QueryHandle(session, User).group("metadata")
        assert "GROUP BY metadata" in str(handle.query)

    def test_group_by_column_name(self, session):
        handle = QueryHandle(session, User).group("name")
        assert "GROUP BY users.name" in str(handle.query)

    def test_text_group_and_having(self, session):
        handle = QueryHandle(session, User).group("name").having("count(*) >= 1")
        assert len(handle.all()) == 2

    def test_refine_applies_raw_query_function(self, session):
        handle = QueryHandle(session, User).refine(lambda q: q.filter(User.name == "bob"))
        assert handle.first().name == "bob"


class TestTerminals:
    """Test terminal operations."""

    def test_update_with_no_values_matches_nothing(self, session):
        assert QueryHandle(session, User).where(User.name == "bob").update(User()) == 0

    def test_update_requires_condition_even_without_values(self, session):
        with pytest.raises(MissingConditionError) as exc_info:
            QueryHandle(session, User).update(User())
        assert exc_info.value.operation == "update"

    def test_delete_requires_condition(self, session):
        with pytest.raises(MissingConditionError) as exc_info:
            QueryHandle(session, User).limit(1).delete()
        assert exc_info.value.entity_type == "User"
        assert QueryHandle(session, User).count() == 2

    def test_delete_ignores_window(self, session):
        deleted = QueryHandle(session, User).where(User.age > 0).limit(1).delete()
        assert deleted == 2

    def test_create_flushes(self, session):
        user = QueryHandle(session, User).create(User(name="carol"))
        assert user.id is not None


class TestContext:
    """Test the caller context helpers."""

    def test_background_is_empty(self):
        ctx = background()
        assert ctx.request_id is None
        assert ctx.fields == {}

    def test_new_context_generates_request_id(self):
        a, b = new_context(tenant="acme"), new_context()
        assert a.request_id and b.request_id
        assert a.request_id != b.request_id
        assert a.fields == {"tenant": "acme"}

    def test_with_fields_copies(self):
        ctx = Context(request_id="r", fields={"a": 1})
        extended = ctx.with_fields(b=2)
        assert extended.fields == {"a": 1, "b": 2}
        assert ctx.fields == {"a": 1}
        assert extended.request_id == "r"
