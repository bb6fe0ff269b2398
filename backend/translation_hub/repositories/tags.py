import logging
from typing import Iterable

from sqlalchemy import select

from translation_hub.models import TagModel
from translation_hub.repositories.base import BaseTable
from translation_hub.repositories.enums import TagsTableAction
from translation_hub.tables import tags_table, utcnow

logger = logging.getLogger(__name__)


class TagRepository(BaseTable):
    __tablename__ = "tags"

    def find_or_create(self, name: str) -> TagModel:
        now = utcnow()
        self._insert_ignoring_conflicts(
            tags_table,
            [{"name": name, "created_at": now, "updated_at": now}],
            conflict_columns=["name"],
        )
        row = self.session.execute(
            select(tags_table.c.id, tags_table.c.name).where(tags_table.c.name == name)
        ).mappings().one()
        tag = TagModel.model_validate(dict(row))
        self._log(TagsTableAction.FIND_OR_CREATE, name=name, tag_id=tag.id)
        return tag

    def ids_from_names(self, names: Iterable[str]) -> list[int]:
        tag_ids = [self.find_or_create(name).id for name in names]
        self._log(TagsTableAction.IDS_FROM_NAMES, count=len(tag_ids))
        return tag_ids
