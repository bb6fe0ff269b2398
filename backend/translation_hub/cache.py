"""Read-through caching for translation queries.

Keys are derived from the shape of the query (operation, locale, search term,
limit, offset) through :class:`CacheKey`, so every call site renders the same
string for the same query. Mutations invalidate per locale; paginated list
and search entries are left to expire on their TTL because their key space
is unbounded.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

LIST = "list"
SEARCH_TAG = "search.tag"
SEARCH_KEY = "search.key"
SEARCH_CONTENT = "search.content"
EXPORT = "export"


@dataclass(frozen=True)
class CacheKey:
    operation: str
    locale: Optional[str] = None
    term: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None

    def render(self) -> str:
        """Return ``translations:<operation>:<digest>``.

        The digest covers the JSON encoding of every component, so a separator
        inside a locale or search term cannot make two queries share a key.
        """
        components = [self.locale, self.term]
        if self.operation != EXPORT:
            components.extend([self.limit, self.offset])
        encoded = json.dumps(components, separators=(",", ":"))
        digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
        return f"translations:{self.operation}:{digest}"


class CacheBackend(ABC):
    """Storage port used by :class:`TranslationCache`."""

    @abstractmethod
    def get(self, key: str) -> Tuple[bool, Any]:
        """Return ``(hit, value)``; a miss or an expired entry yields ``(False, None)``."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MemoryCacheBackend(CacheBackend):
    """Single-process cache with per-entry expiry on the monotonic clock."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Tuple[bool, Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False, None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return False, None
            return True, value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class NullCacheBackend(CacheBackend):
    """Caching disabled: every lookup misses and nothing is stored."""

    def get(self, key: str) -> Tuple[bool, Any]:
        return False, None

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        return None

    def delete(self, key: str) -> None:
        return None

    def clear(self) -> None:
        return None


class TranslationCache:
    def __init__(
        self,
        backend: CacheBackend,
        *,
        list_ttl: timedelta = timedelta(minutes=30),
        search_ttl: timedelta = timedelta(minutes=15),
        export_ttl: timedelta = timedelta(hours=1),
    ) -> None:
        self.backend = backend
        self.list_ttl = list_ttl
        self.search_ttl = search_ttl
        self.export_ttl = export_ttl

    def ttl_for(self, operation: str) -> timedelta:
        if operation == EXPORT:
            return self.export_ttl
        if operation == LIST:
            return self.list_ttl
        return self.search_ttl

    def remember(self, key: CacheKey, compute: Callable[[], T]) -> T:
        rendered = key.render()
        hit, value = self.backend.get(rendered)
        if hit:
            logger.debug("Cache hit for %s", rendered)
            return value
        value = compute()
        self.backend.set(rendered, value, self.ttl_for(key.operation).total_seconds())
        logger.debug("Cache stored %s", rendered)
        return value

    def invalidate_locale(self, locale: str) -> None:
        for key in (
            CacheKey(EXPORT, locale),
            CacheKey(LIST, locale),
            CacheKey(LIST, None),
        ):
            self.backend.delete(key.render())
        logger.debug("Cache invalidated for locale=%s", locale)


def build_translation_cache(
    *,
    enabled: bool,
    list_ttl_minutes: int,
    search_ttl_minutes: int,
    export_ttl_minutes: int,
) -> TranslationCache:
    backend: CacheBackend = MemoryCacheBackend() if enabled else NullCacheBackend()
    return TranslationCache(
        backend,
        list_ttl=timedelta(minutes=list_ttl_minutes),
        search_ttl=timedelta(minutes=search_ttl_minutes),
        export_ttl=timedelta(minutes=export_ttl_minutes),
    )
