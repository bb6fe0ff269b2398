from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from translation_hub.cache import (
    EXPORT,
    LIST,
    SEARCH_CONTENT,
    SEARCH_KEY,
    SEARCH_TAG,
    CacheKey,
    TranslationCache,
)
from translation_hub.database import transaction
from translation_hub.errors import (
    DuplicateTranslationError,
    TagsRequiredError,
    TranslationNotFoundError,
)
from translation_hub.models import TranslationModel, TranslationPage
from translation_hub.repositories import TagRepository, TranslationRepository

logger = logging.getLogger(__name__)


class TranslationService:
    """Translation reads and writes with tag resolution and cache upkeep.

    Every write runs in one transaction (translation row plus tag links) and
    invalidates the cached exports and lists of the affected locale once the
    transaction has committed.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        cache: TranslationCache,
        default_locale: str,
    ) -> None:
        self.session_factory = session_factory
        self.cache = cache
        self.default_locale = default_locale

    def create(
        self,
        *,
        key: str,
        value: str,
        locale: str,
        tags: Sequence[str],
    ) -> TranslationModel:
        with transaction(self.session_factory) as session:
            if TranslationRepository(session).exists_by_key_and_locale(key, locale):
                raise DuplicateTranslationError(key, locale)
        if not tags:
            raise TagsRequiredError()

        try:
            with transaction(self.session_factory) as session:
                translations = TranslationRepository(session)
                translation = translations.create(key=key, value=value, locale=locale)
                tag_ids = TagRepository(session).ids_from_names(tags)
                translations.attach_tags(translation.id, tag_ids)
                translation = translations.with_tags(translation)
        except IntegrityError as exc:
            # Lost a race against a concurrent insert of the same pair.
            if self._pair_exists(key, locale):
                raise DuplicateTranslationError(key, locale) from exc
            logger.exception("Translation create failed key=%s locale=%s", key, locale)
            raise
        except Exception:
            logger.exception("Translation create failed key=%s locale=%s", key, locale)
            raise

        self.cache.invalidate_locale(locale)
        logger.info("Translation created id=%s key=%s locale=%s", translation.id, key, locale)
        return translation

    def get(self, translation_id: int) -> TranslationModel:
        with transaction(self.session_factory) as session:
            translations = TranslationRepository(session)
            translation = translations.find(translation_id)
            if translation is None:
                raise TranslationNotFoundError(translation_id)
            return translations.with_tags(translation)

    def update(
        self,
        translation_id: int,
        *,
        value: str,
        tags: Sequence[str],
    ) -> TranslationModel:
        with transaction(self.session_factory) as session:
            if TranslationRepository(session).find(translation_id) is None:
                raise TranslationNotFoundError(translation_id)
        if not tags:
            raise TagsRequiredError()

        try:
            with transaction(self.session_factory) as session:
                translations = TranslationRepository(session)
                try:
                    translation = translations.update(translation_id, value=value)
                except LookupError:
                    raise TranslationNotFoundError(translation_id) from None
                tag_ids = TagRepository(session).ids_from_names(tags)
                translations.sync_tags(translation.id, tag_ids)
                translation = translations.with_tags(translation)
        except TranslationNotFoundError:
            raise
        except Exception:
            logger.exception("Translation update failed id=%s", translation_id)
            raise

        self.cache.invalidate_locale(translation.locale)
        logger.info("Translation updated id=%s locale=%s", translation_id, translation.locale)
        return translation

    def delete(self, translation_id: int) -> bool:
        with transaction(self.session_factory) as session:
            translation = TranslationRepository(session).find(translation_id)
        if translation is None:
            raise TranslationNotFoundError(translation_id)
        locale = translation.locale

        try:
            with transaction(self.session_factory) as session:
                deleted = TranslationRepository(session).delete(translation_id)
        except Exception:
            logger.exception("Translation delete failed id=%s", translation_id)
            raise

        self.cache.invalidate_locale(locale)
        logger.info("Translation deleted id=%s locale=%s", translation_id, locale)
        return deleted

    def list(
        self,
        locale: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        def compute() -> TranslationPage:
            with transaction(self.session_factory) as session:
                translations = TranslationRepository(session)
                if locale:
                    return translations.get_by_locale(locale, limit, offset)
                return translations.paginate(limit, offset)

        return self.cache.remember(
            CacheKey(LIST, locale or None, limit=limit, offset=offset), compute
        )

    def search_by_tag(
        self,
        tag: str,
        locale: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        def compute() -> TranslationPage:
            with transaction(self.session_factory) as session:
                return TranslationRepository(session).search_by_tag(tag, locale, limit, offset)

        return self.cache.remember(
            CacheKey(SEARCH_TAG, locale or None, tag, limit, offset), compute
        )

    def search_by_key(
        self,
        key: str,
        locale: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        def compute() -> TranslationPage:
            with transaction(self.session_factory) as session:
                return TranslationRepository(session).search_by_key(key, locale, limit, offset)

        return self.cache.remember(
            CacheKey(SEARCH_KEY, locale or None, key, limit, offset), compute
        )

    def search_by_content(
        self,
        content: str,
        locale: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        def compute() -> TranslationPage:
            with transaction(self.session_factory) as session:
                return TranslationRepository(session).search_by_content(
                    content, locale, limit, offset
                )

        return self.cache.remember(
            CacheKey(SEARCH_CONTENT, locale or None, content, limit, offset), compute
        )

    def export(self, locale: Optional[str] = None) -> dict[str, str]:
        target = locale or self.default_locale

        def compute() -> dict[str, str]:
            with transaction(self.session_factory) as session:
                return TranslationRepository(session).export_by_locale(target)

        return dict(self.cache.remember(CacheKey(EXPORT, target), compute))

    def _pair_exists(self, key: str, locale: str) -> bool:
        with transaction(self.session_factory) as session:
            return TranslationRepository(session).exists_by_key_and_locale(key, locale)
