from __future__ import annotations

import os

os.environ.setdefault("TRANSLATION_HUB_DATABASE_DSN", "sqlite://")
os.environ.setdefault("TRANSLATION_HUB_JWT_SECRET_KEY", "test-secret")

import pytest
from sqlalchemy import func, select

from translation_hub.cache import MemoryCacheBackend, NullCacheBackend, TranslationCache
from translation_hub.database import build_engine, build_session_factory, transaction
from translation_hub.repositories import TagRepository, TranslationRepository
from translation_hub.services import TranslationService
from translation_hub.tables import metadata


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def translations(session) -> TranslationRepository:
    return TranslationRepository(session)


@pytest.fixture
def tags(session) -> TagRepository:
    return TagRepository(session)


@pytest.fixture
def cache() -> TranslationCache:
    return TranslationCache(MemoryCacheBackend())


@pytest.fixture
def service(session_factory, cache) -> TranslationService:
    return TranslationService(session_factory, cache, default_locale="en")


@pytest.fixture
def uncached_service(session_factory) -> TranslationService:
    return TranslationService(
        session_factory, TranslationCache(NullCacheBackend()), default_locale="en"
    )


@pytest.fixture
def count_rows(session_factory):
    def _count(table) -> int:
        with transaction(session_factory) as session:
            return session.execute(select(func.count()).select_from(table)).scalar_one()

    return _count
