"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List

from storekit.context import Context
from storekit.database import SessionProvider
from storekit.repository import Repository

from tests.models import Order, User


class RecordingLogger:
    """Failure logger that keeps every record."""

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    def error(self, ctx, message, **fields):
        self.records.append({"ctx": ctx, "message": message, **fields})


class RaisingLogger:
    """Failure logger that always fails."""

    def __init__(self):
        self.calls = 0

    def error(self, ctx, message, **fields):
        self.calls += 1
        raise RuntimeError("log sink unavailable")


@pytest.fixture
def provider(tmp_path):
    """Session provider on a fresh SQLite database."""
    provider = SessionProvider.from_url(tmp_path / "test.db")
    provider.create_all()
    yield provider
    provider.dispose()


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def repo(provider, recording_logger) -> Repository:
    return Repository(User, provider, recording_logger)


@pytest.fixture
def order_repo(provider, recording_logger) -> Repository:
    return Repository(Order, provider, recording_logger)


@pytest.fixture
def ctx() -> Context:
    return Context(request_id="req-1")


@pytest.fixture
def populated(repo, order_repo, ctx):
    """Three users; alice and carol have orders."""
    alice = User(name="alice", email="alice@example.com", age=30)
    bob = User(name="bob", email="bob@example.com", age=17)
    carol = User(name="carol", email="carol@example.com", age=45)
    for user in (alice, bob, carol):
        repo.create(ctx, user)

    order_repo.create(ctx, Order(user_id=alice.id, item="book", amount=2))
    order_repo.create(ctx, Order(user_id=alice.id, item="pen", amount=5))
    order_repo.create(ctx, Order(user_id=carol.id, item="lamp", amount=1))
    return {"alice": alice, "bob": bob, "carol": carol}
