import logging
import math
from typing import Any, Iterable, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.sql.elements import ColumnElement

from translation_hub.models import TagModel, TranslationModel, TranslationPage
from translation_hub.repositories.base import BaseTable
from translation_hub.repositories.enums import TranslationsTableAction
from translation_hub.tables import (
    tags_table,
    translation_tag_table,
    translations_table,
    utcnow,
)

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 15
EXPORT_BATCH_SIZE = 1000
UPDATABLE_FIELDS = frozenset({"key", "value", "locale"})


def _like_pattern(fragment: str) -> str:
    escaped = (
        fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"%{escaped}%"


def _page_window(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    """Return (per_page, page) for a limit/offset pair; page = floor(offset/limit) + 1."""
    per_page = limit if limit and limit > 0 else DEFAULT_PER_PAGE
    page = offset // per_page + 1 if offset and offset > 0 else 1
    return per_page, page


def _dedupe(values: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    result: list[int] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


class TranslationRepository(BaseTable):
    __tablename__ = "translations"

    def create(self, *, key: str, value: str, locale: str) -> TranslationModel:
        now = utcnow()
        row = self.session.execute(
            insert(translations_table)
            .values(key=key, value=value, locale=locale, created_at=now, updated_at=now)
            .returning(*translations_table.c)
        ).mappings().one()
        translation = TranslationModel.model_validate(dict(row))
        self._log(
            TranslationsTableAction.CREATE,
            translation_id=translation.id,
            key=key,
            locale=locale,
        )
        return translation

    def find(self, translation_id: int) -> Optional[TranslationModel]:
        row = self.session.execute(
            select(translations_table).where(translations_table.c.id == translation_id)
        ).mappings().one_or_none()
        self._log(
            TranslationsTableAction.FIND,
            translation_id=translation_id,
            exists=row is not None,
        )
        return TranslationModel.model_validate(dict(row)) if row else None

    def update(self, translation_id: int, **fields: Any) -> TranslationModel:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update translation fields: {sorted(unknown)}")
        values = dict(fields, updated_at=utcnow())
        result = self.session.execute(
            update(translations_table)
            .where(translations_table.c.id == translation_id)
            .values(**values)
        )
        if result.rowcount == 0:
            raise LookupError(f"Translation {translation_id} does not exist")
        self._log(
            TranslationsTableAction.UPDATE,
            translation_id=translation_id,
            fields=sorted(fields),
        )
        return self.find(translation_id)  # type: ignore[return-value]

    def delete(self, translation_id: int) -> bool:
        result = self.session.execute(
            delete(translations_table).where(translations_table.c.id == translation_id)
        )
        deleted = result.rowcount > 0
        self._log(
            TranslationsTableAction.DELETE,
            translation_id=translation_id,
            deleted=deleted,
        )
        return deleted

    def exists_by_key_and_locale(self, key: str, locale: str) -> bool:
        found = self.session.execute(
            select(translations_table.c.id).where(
                translations_table.c.key == key,
                translations_table.c.locale == locale,
            )
        ).first()
        self._log(TranslationsTableAction.EXISTS, key=key, locale=locale, exists=bool(found))
        return found is not None

    def paginate(
        self, limit: Optional[int] = None, offset: Optional[int] = None
    ) -> TranslationPage:
        page = self._paginate([], limit, offset)
        self._log(TranslationsTableAction.PAGINATE, total=page.total, page=page.current_page)
        return page

    def get_by_locale(
        self,
        locale: str,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        page = self._paginate([translations_table.c.locale == locale], limit, offset)
        self._log(
            TranslationsTableAction.LIST_BY_LOCALE,
            locale=locale,
            total=page.total,
            page=page.current_page,
        )
        return page

    def search_by_tag(
        self,
        tag: str,
        locale: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        has_matching_tag = (
            select(translation_tag_table.c.id)
            .select_from(
                translation_tag_table.join(
                    tags_table, tags_table.c.id == translation_tag_table.c.tag_id
                )
            )
            .where(
                translation_tag_table.c.translation_id == translations_table.c.id,
                tags_table.c.name.ilike(_like_pattern(tag), escape="\\"),
            )
            .exists()
        )
        page = self._paginate(
            self._with_locale([has_matching_tag], locale), limit, offset
        )
        self._log(
            TranslationsTableAction.SEARCH_BY_TAG,
            tag=tag,
            locale=locale,
            total=page.total,
        )
        return page

    def search_by_key(
        self,
        key: str,
        locale: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        condition = translations_table.c.key.ilike(_like_pattern(key), escape="\\")
        page = self._paginate(self._with_locale([condition], locale), limit, offset)
        self._log(
            TranslationsTableAction.SEARCH_BY_KEY,
            key=key,
            locale=locale,
            total=page.total,
        )
        return page

    def search_by_content(
        self,
        content: str,
        locale: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> TranslationPage:
        # Substring scan; a full-text index would only match whole or prefix tokens.
        condition = translations_table.c.value.ilike(_like_pattern(content), escape="\\")
        page = self._paginate(self._with_locale([condition], locale), limit, offset)
        self._log(
            TranslationsTableAction.SEARCH_BY_CONTENT,
            content=content,
            locale=locale,
            total=page.total,
        )
        return page

    def export_by_locale(self, locale: str) -> dict[str, str]:
        rows = self.session.execute(
            select(translations_table.c.key, translations_table.c.value)
            .where(translations_table.c.locale == locale)
            .order_by(translations_table.c.key)
            .execution_options(yield_per=EXPORT_BATCH_SIZE)
        )
        exported: dict[str, str] = {}
        for key, value in rows:
            exported[key] = value
        self._log(TranslationsTableAction.EXPORT, locale=locale, count=len(exported))
        return exported

    def attach_tags(self, translation_id: int, tag_ids: Iterable[int]) -> None:
        self._require(translation_id)
        unique_ids = _dedupe(tag_ids)
        self._insert_pairs(translation_id, unique_ids)
        self._log(
            TranslationsTableAction.ATTACH_TAGS,
            translation_id=translation_id,
            tag_ids=unique_ids,
        )

    def sync_tags(self, translation_id: int, tag_ids: Iterable[int]) -> None:
        self._require(translation_id)
        desired = _dedupe(tag_ids)
        current = set(
            self.session.execute(
                select(translation_tag_table.c.tag_id).where(
                    translation_tag_table.c.translation_id == translation_id
                )
            ).scalars()
        )
        stale = current.difference(desired)
        if stale:
            self.session.execute(
                delete(translation_tag_table).where(
                    translation_tag_table.c.translation_id == translation_id,
                    translation_tag_table.c.tag_id.in_(sorted(stale)),
                )
            )
        self._insert_pairs(
            translation_id, [tag_id for tag_id in desired if tag_id not in current]
        )
        self._log(
            TranslationsTableAction.SYNC_TAGS,
            translation_id=translation_id,
            detached=sorted(stale),
            tag_ids=desired,
        )

    def load_tags(self, translation_ids: Iterable[int]) -> dict[int, list[TagModel]]:
        ids = _dedupe(translation_ids)
        tags_by_translation: dict[int, list[TagModel]] = {tid: [] for tid in ids}
        if not ids:
            return tags_by_translation
        rows = self.session.execute(
            select(
                translation_tag_table.c.translation_id,
                tags_table.c.id,
                tags_table.c.name,
            )
            .select_from(
                translation_tag_table.join(
                    tags_table, tags_table.c.id == translation_tag_table.c.tag_id
                )
            )
            .where(translation_tag_table.c.translation_id.in_(ids))
            .order_by(tags_table.c.name)
        ).all()
        for translation_id, tag_id, name in rows:
            tags_by_translation[translation_id].append(TagModel(id=tag_id, name=name))
        self._log(TranslationsTableAction.LOAD_TAGS, translations=len(ids), rows=len(rows))
        return tags_by_translation

    def with_tags(self, translation: TranslationModel) -> TranslationModel:
        tags = self.load_tags([translation.id])[translation.id]
        return translation.model_copy(update={"tags": tags})

    def _require(self, translation_id: int) -> None:
        found = self.session.execute(
            select(translations_table.c.id).where(translations_table.c.id == translation_id)
        ).first()
        if found is None:
            raise LookupError(f"Translation {translation_id} does not exist")

    def _insert_pairs(self, translation_id: int, tag_ids: list[int]) -> None:
        now = utcnow()
        self._insert_ignoring_conflicts(
            translation_tag_table,
            [
                {
                    "translation_id": translation_id,
                    "tag_id": tag_id,
                    "created_at": now,
                    "updated_at": now,
                }
                for tag_id in tag_ids
            ],
            conflict_columns=["translation_id", "tag_id"],
        )

    @staticmethod
    def _with_locale(
        conditions: list[ColumnElement[bool]], locale: Optional[str]
    ) -> list[ColumnElement[bool]]:
        if locale:
            return [*conditions, translations_table.c.locale == locale]
        return conditions

    def _paginate(
        self,
        conditions: list[ColumnElement[bool]],
        limit: Optional[int],
        offset: Optional[int],
    ) -> TranslationPage:
        per_page, page = _page_window(limit, offset)
        total = self.session.execute(
            select(func.count()).select_from(translations_table).where(*conditions)
        ).scalar_one()
        rows = self.session.execute(
            select(translations_table)
            .where(*conditions)
            .order_by(translations_table.c.id)
            .limit(per_page)
            .offset((page - 1) * per_page)
        ).mappings().all()
        items = [TranslationModel.model_validate(dict(row)) for row in rows]
        tags = self.load_tags(item.id for item in items)
        return TranslationPage(
            current_page=page,
            per_page=per_page,
            total=total,
            last_page=max(1, math.ceil(total / per_page)),
            items=[item.model_copy(update={"tags": tags[item.id]}) for item in items],
        )
