from enum import Enum


class BaseTableActionEnum(str, Enum):
    pass


class TagsTableAction(BaseTableActionEnum):
    FIND_OR_CREATE = "find_or_create"
    IDS_FROM_NAMES = "ids_from_names"


class TranslationsTableAction(BaseTableActionEnum):
    CREATE = "create"
    FIND = "find"
    UPDATE = "update"
    DELETE = "delete"
    EXISTS = "exists_by_key_and_locale"
    PAGINATE = "paginate"
    LIST_BY_LOCALE = "get_by_locale"
    SEARCH_BY_TAG = "search_by_tag"
    SEARCH_BY_KEY = "search_by_key"
    SEARCH_BY_CONTENT = "search_by_content"
    EXPORT = "export_by_locale"
    ATTACH_TAGS = "attach_tags"
    SYNC_TAGS = "sync_tags"
    LOAD_TAGS = "load_tags"
