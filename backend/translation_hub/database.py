from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from translation_hub.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(dsn: str) -> Engine:
    if dsn.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if dsn in {"sqlite://", "sqlite:///:memory:"}:
            options["poolclass"] = StaticPool
        engine = create_engine(dsn, future=True, **options)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    return create_engine(dsn, future=True, pool_pre_ping=True)


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, expire_on_commit=False, class_=Session)


engine = build_engine(settings.database_dsn)
SessionLocal = build_session_factory(engine)


@contextmanager
def transaction(session_factory: Optional[sessionmaker] = None) -> Iterator[Session]:
    """Run a unit of work: commit on normal exit, roll back and re-raise otherwise."""
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
