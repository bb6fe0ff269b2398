from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Optional, Sequence

from sqlalchemy.orm import sessionmaker

from translation_hub.cache import TranslationCache
from translation_hub.database import transaction
from translation_hub.repositories import TagRepository, TranslationRepository

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1000
MAX_TAGS_PER_TRANSLATION = 3


@dataclass
class GenerationReport:
    requested: int
    created: int = 0
    skipped: int = 0
    per_locale: dict[str, int] = field(default_factory=dict)


class TranslationGenerator:
    """Populate synthetic translations for load testing.

    Keys are ``test.key.<index>``; pairs that already exist are skipped so a
    re-run with the same parameters inserts nothing. Each chunk commits in its
    own transaction and a failing chunk aborts the whole run.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        cache: Optional[TranslationCache] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session_factory = session_factory
        self.cache = cache
        self.rng = rng or random.Random()

    def run(
        self,
        count: int,
        locales: Sequence[str],
        tags: Sequence[str],
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> GenerationReport:
        if not locales:
            raise ValueError("At least one locale is required")
        if not tags:
            raise ValueError("At least one tag is required")
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")

        report = GenerationReport(requested=count)
        if count <= 0:
            return report

        with transaction(self.session_factory) as session:
            tag_repository = TagRepository(session)
            tag_ids = list(dict.fromkeys(tag_repository.ids_from_names(tags)))
        logger.info("Tags ready: %s", ", ".join(tags))

        per_locale = math.ceil(count / len(locales))
        for locale in locales:
            logger.info("Generating translations for locale: %s", locale)
            self._generate_locale(locale, per_locale, tag_ids, chunk_size, report)
            if report.created >= count:
                break

        if self.cache is not None:
            for locale in report.per_locale:
                self.cache.invalidate_locale(locale)
        logger.info(
            "Generated %s translations (skipped %s existing)",
            report.created,
            report.skipped,
        )
        return report

    def _generate_locale(
        self,
        locale: str,
        quota: int,
        tag_ids: list[int],
        chunk_size: int,
        report: GenerationReport,
    ) -> None:
        chunks = math.ceil(quota / chunk_size)
        for chunk in range(chunks):
            size = min(chunk_size, quota - chunk * chunk_size)
            try:
                with transaction(self.session_factory) as session:
                    created, skipped = self._generate_chunk(
                        session, locale, chunk * chunk_size, size, tag_ids, report
                    )
            except Exception:
                logger.exception(
                    "Error generating translations locale=%s chunk=%s", locale, chunk
                )
                raise
            report.created += created
            report.skipped += skipped
            if created:
                report.per_locale[locale] = report.per_locale.get(locale, 0) + created
            logger.debug(
                "Chunk committed locale=%s chunk=%s created=%s skipped=%s",
                locale,
                chunk,
                created,
                skipped,
            )
            if report.created >= report.requested:
                return

    def _generate_chunk(
        self,
        session,
        locale: str,
        start: int,
        size: int,
        tag_ids: list[int],
        report: GenerationReport,
    ) -> tuple[int, int]:
        translations = TranslationRepository(session)
        created = 0
        skipped = 0
        for index in range(start, start + size):
            key = f"test.key.{index}"
            if translations.exists_by_key_and_locale(key, locale):
                skipped += 1
                continue
            translation = translations.create(
                key=key,
                value=f"This is a test value for {key} in {locale}",
                locale=locale,
            )
            how_many = self.rng.randint(1, min(MAX_TAGS_PER_TRANSLATION, len(tag_ids)))
            translations.attach_tags(translation.id, self.rng.sample(tag_ids, how_many))
            created += 1
            if report.created + created >= report.requested:
                break
        return created, skipped
