import logging
from typing import Any, Iterable, Sequence

from sqlalchemy import Table
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from translation_hub.repositories.enums import BaseTableActionEnum

logger = logging.getLogger(__name__)


class BaseTable:
    __tablename__: str = ""

    def __init__(self, session: Session):
        self.session = session

    def _log(self, action: BaseTableActionEnum, **context: Any) -> None:
        logger.debug("%s.%s %s", self.__tablename__, action.value, context)

    def _insert_ignoring_conflicts(
        self,
        table: Table,
        rows: Sequence[dict[str, Any]],
        conflict_columns: Iterable[str],
    ) -> None:
        """INSERT ... ON CONFLICT DO NOTHING for the dialects we deploy on."""
        if not rows:
            return
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = postgresql.insert(table)
        elif dialect == "sqlite":
            stmt = sqlite.insert(table)
        else:
            raise ValueError(
                f"Conflict-free insert is not supported on dialect {dialect!r}"
            )
        stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_columns))
        self.session.execute(stmt, list(rows))
