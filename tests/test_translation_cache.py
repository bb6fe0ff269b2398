from __future__ import annotations

from datetime import timedelta

from translation_hub.cache import (
    EXPORT,
    LIST,
    SEARCH_CONTENT,
    SEARCH_KEY,
    SEARCH_TAG,
    CacheKey,
    MemoryCacheBackend,
    NullCacheBackend,
    TranslationCache,
    build_translation_cache,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_cache_key_rendering_is_deterministic_and_prefixed() -> None:
    rendered = CacheKey(LIST, "en", limit=10, offset=20).render()

    assert rendered == CacheKey(LIST, "en", limit=10, offset=20).render()
    assert rendered.startswith("translations:list:")
    assert CacheKey(EXPORT, "fr").render().startswith("translations:export:")
    assert CacheKey(SEARCH_TAG, None, "web", 15, 0).render().startswith(
        "translations:search.tag:"
    )


def test_cache_key_distinguishes_each_component() -> None:
    keys = {
        CacheKey(LIST).render(),
        CacheKey(LIST, "en").render(),
        CacheKey(LIST, "en", limit=10).render(),
        CacheKey(LIST, "en", limit=10, offset=20).render(),
        CacheKey(LIST, "en", limit=20, offset=10).render(),
        CacheKey(SEARCH_TAG, "en", "web").render(),
        CacheKey(SEARCH_KEY, "en", "web").render(),
        CacheKey(EXPORT, "en").render(),
    }

    assert len(keys) == 8


def test_cache_key_separators_in_locale_or_term_do_not_collide() -> None:
    dotted_term = CacheKey(SEARCH_TAG, "en", "x.web", 5, 1).render()
    dotted_locale = CacheKey(SEARCH_TAG, "en.x", "web", 5, 1).render()

    assert dotted_term != dotted_locale
    assert CacheKey(LIST, None).render() != CacheKey(LIST, "all").render()


def test_search_with_dotted_locale_is_not_served_another_query(service) -> None:
    service.create(key="nav.home", value="Home", locale="en", tags=["x.web"])
    service.create(key="nav.home", value="Accueil", locale="en.x", tags=["web"])

    first = service.search_by_tag("x.web", "en", 5, 1)
    second = service.search_by_tag("web", "en.x", 5, 1)

    assert first != second
    service.cache.backend.clear()
    assert service.search_by_tag("web", "en.x", 5, 1) == second


def test_memory_backend_expires_entries() -> None:
    clock = FakeClock()
    backend = MemoryCacheBackend(clock=clock)

    backend.set("k", {"a": 1}, ttl_seconds=60)
    assert backend.get("k") == (True, {"a": 1})

    clock.advance(59)
    assert backend.get("k") == (True, {"a": 1})

    clock.advance(1)
    assert backend.get("k") == (False, None)


def test_memory_backend_caches_falsy_values() -> None:
    backend = MemoryCacheBackend(clock=FakeClock())

    backend.set("empty", {}, ttl_seconds=10)

    assert backend.get("empty") == (True, {})


def test_remember_computes_once_until_expiry() -> None:
    clock = FakeClock()
    cache = TranslationCache(MemoryCacheBackend(clock=clock), export_ttl=timedelta(minutes=60))
    calls: list[int] = []

    def compute() -> dict[str, str]:
        calls.append(1)
        return {"greeting": "Hello"}

    key = CacheKey(EXPORT, "en")
    assert cache.remember(key, compute) == {"greeting": "Hello"}
    assert cache.remember(key, compute) == {"greeting": "Hello"}
    assert len(calls) == 1

    clock.advance(timedelta(minutes=60).total_seconds())
    cache.remember(key, compute)
    assert len(calls) == 2


def test_ttl_per_operation() -> None:
    cache = TranslationCache(
        NullCacheBackend(),
        list_ttl=timedelta(minutes=30),
        search_ttl=timedelta(minutes=15),
        export_ttl=timedelta(hours=1),
    )

    assert cache.ttl_for(LIST) == timedelta(minutes=30)
    assert cache.ttl_for(SEARCH_CONTENT) == timedelta(minutes=15)
    assert cache.ttl_for(EXPORT) == timedelta(hours=1)


def test_invalidate_locale_drops_export_and_unparameterized_lists() -> None:
    backend = MemoryCacheBackend(clock=FakeClock())
    cache = TranslationCache(backend)
    keys = {
        "export_en": CacheKey(EXPORT, "en"),
        "export_fr": CacheKey(EXPORT, "fr"),
        "list_en": CacheKey(LIST, "en"),
        "list_all": CacheKey(LIST),
        "list_en_page": CacheKey(LIST, "en", limit=10, offset=10),
        "search_en": CacheKey(SEARCH_TAG, "en", "web"),
    }
    for name, key in keys.items():
        cache.remember(key, lambda name=name: name)

    cache.invalidate_locale("en")

    def cached(name: str) -> bool:
        return backend.get(keys[name].render())[0]

    assert not cached("export_en")
    assert not cached("list_en")
    assert not cached("list_all")
    assert cached("export_fr")
    assert cached("list_en_page")
    assert cached("search_en")


def test_null_backend_never_stores() -> None:
    cache = TranslationCache(NullCacheBackend())
    calls: list[int] = []

    def compute() -> int:
        calls.append(1)
        return len(calls)

    key = CacheKey(LIST, "en")
    assert cache.remember(key, compute) == 1
    assert cache.remember(key, compute) == 2


def test_build_translation_cache_honours_enabled_flag() -> None:
    enabled = build_translation_cache(
        enabled=True, list_ttl_minutes=30, search_ttl_minutes=15, export_ttl_minutes=60
    )
    disabled = build_translation_cache(
        enabled=False, list_ttl_minutes=30, search_ttl_minutes=15, export_ttl_minutes=60
    )

    assert isinstance(enabled.backend, MemoryCacheBackend)
    assert isinstance(disabled.backend, NullCacheBackend)
    assert enabled.export_ttl == timedelta(hours=1)
