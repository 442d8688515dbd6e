"""
Database engine, declarative base and session provider.

Uses SQLAlchemy; a filesystem path is treated as a SQLite database.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .context import Context

Base = declarative_base()

DatabaseTarget = Union[str, Path]


def database_url(target: DatabaseTarget) -> str:
    """
    Resolve a database target to a SQLAlchemy URL.

    Args:
        target: SQLAlchemy URL, or path to a SQLite database file

    Returns:
        SQLAlchemy URL string
    """
    if isinstance(target, str) and "://" in target:
        return target
    return f"sqlite:///{Path(target)}"


def create_db_engine(target: DatabaseTarget, echo: bool = False) -> Engine:
    """Create an engine, making parent directories for SQLite files."""
    if not (isinstance(target, str) and "://" in target):
        Path(target).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(database_url(target), echo=echo)


def init_database(target: DatabaseTarget, base=Base) -> Engine:
    """
    Initialize database and create tables.

    Args:
        target: SQLAlchemy URL or path to SQLite database file
        base: Declarative base whose tables are created

    Returns:
        The engine the tables were created on
    """
    engine = create_db_engine(target)
    base.metadata.create_all(engine)
    return engine


def get_session(target: DatabaseTarget) -> Session:
    """
    Get a standalone database session.

    Args:
        target: SQLAlchemy URL or path to SQLite database file

    Returns:
        SQLAlchemy session; the caller commits and closes it
    """
    engine = create_db_engine(target)
    factory = sessionmaker(bind=engine)
    return factory()


class SessionProvider:
    """
    Hands out one session per logical operation.

    The session yielded by db() is committed when the block exits cleanly,
    rolled back when it raises, and closed either way. Objects stay usable
    after the session closes (expire_on_commit is off).
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, target: DatabaseTarget, echo: bool = False) -> "SessionProvider":
        return cls(create_db_engine(target, echo=echo))

    @classmethod
    def from_config(cls, config) -> "SessionProvider":
        """Build a provider from a StoreConfig."""
        return cls.from_url(config.database_url, echo=config.echo)

    @contextmanager
    def db(self, ctx: Optional[Context] = None) -> Iterator[Session]:
        session = self._factory()
        session.info["ctx"] = ctx
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self, base=Base) -> None:
        base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
