from __future__ import annotations

import pytest

from translation_hub.errors import (
    DuplicateTranslationError,
    TagsRequiredError,
    TranslationNotFoundError,
    ValidationError,
)
from translation_hub.repositories import TagRepository, TranslationRepository
from translation_hub.tables import tags_table, translation_tag_table, translations_table


def test_create_welcome_message_with_tags(service) -> None:
    created = service.create(
        key="welcome.message", value="Welcome", locale="en", tags=["web", "mobile"]
    )

    assert created.id > 0
    assert created.key == "welcome.message"
    assert {tag.name for tag in created.tags} == {"web", "mobile"}
    assert service.get(created.id) == created
    assert service.export("en") == {"welcome.message": "Welcome"}


def test_create_reuses_existing_tags(service, count_rows) -> None:
    service.create(key="a", value="A", locale="en", tags=["web"])
    service.create(key="b", value="B", locale="en", tags=["web", "web"])

    assert count_rows(tags_table) == 1
    assert count_rows(translation_tag_table) == 2


def test_create_duplicate_leaves_storage_unchanged(service, count_rows) -> None:
    original = service.create(key="greeting", value="Hello", locale="en", tags=["web"])

    with pytest.raises(DuplicateTranslationError) as excinfo:
        service.create(key="greeting", value="Hi there", locale="en", tags=["mobile"])

    assert excinfo.value.key == "greeting"
    assert excinfo.value.locale == "en"
    assert count_rows(translations_table) == 1
    assert count_rows(tags_table) == 1
    assert service.get(original.id).value == "Hello"


def test_create_losing_insert_race_reports_duplicate(service, count_rows, monkeypatch) -> None:
    original = service.create(key="greeting", value="Hello", locale="en", tags=["web"])
    real_exists = TranslationRepository.exists_by_key_and_locale
    calls = {"count": 0}

    def stale_first_check(self, key, locale):
        calls["count"] += 1
        if calls["count"] == 1:
            return False
        return real_exists(self, key, locale)

    monkeypatch.setattr(TranslationRepository, "exists_by_key_and_locale", stale_first_check)

    with pytest.raises(DuplicateTranslationError):
        service.create(key="greeting", value="Overwritten", locale="en", tags=["mobile"])

    assert count_rows(translations_table) == 1
    assert count_rows(translation_tag_table) == 1
    assert count_rows(tags_table) == 1
    assert service.get(original.id).value == "Hello"


def test_create_requires_tags(service, count_rows) -> None:
    with pytest.raises(TagsRequiredError):
        service.create(key="greeting", value="Hello", locale="en", tags=[])

    assert count_rows(translations_table) == 0


def test_tags_required_is_a_validation_error() -> None:
    assert issubclass(TagsRequiredError, ValidationError)


def test_create_rolls_back_when_tag_resolution_fails(service, count_rows, monkeypatch) -> None:
    def explode(self, names):
        raise RuntimeError("tag storage unavailable")

    monkeypatch.setattr(TagRepository, "ids_from_names", explode)

    with pytest.raises(RuntimeError):
        service.create(key="greeting", value="Hello", locale="en", tags=["web"])

    assert count_rows(translations_table) == 0
    assert count_rows(translation_tag_table) == 0


def test_get_missing_translation(service) -> None:
    with pytest.raises(TranslationNotFoundError) as excinfo:
        service.get(42)

    assert excinfo.value.translation_id == 42


def test_update_replaces_value_and_tags(service) -> None:
    created = service.create(key="greeting", value="Hello", locale="en", tags=["A", "B"])

    updated = service.update(created.id, value="Hi", tags=["B", "C"])

    assert updated.value == "Hi"
    assert updated.key == "greeting"
    assert updated.locale == "en"
    assert [tag.name for tag in updated.tags] == ["B", "C"]


def test_update_missing_translation_is_reported_before_tag_check(service) -> None:
    with pytest.raises(TranslationNotFoundError):
        service.update(7, value="x", tags=[])


def test_update_requires_tags(service) -> None:
    created = service.create(key="greeting", value="Hello", locale="en", tags=["web"])

    with pytest.raises(TagsRequiredError):
        service.update(created.id, value="Hi", tags=[])

    assert service.get(created.id).value == "Hello"


def test_delete_removes_translation_and_links(service, count_rows) -> None:
    created = service.create(key="greeting", value="Hello", locale="en", tags=["web"])

    assert service.delete(created.id) is True

    with pytest.raises(TranslationNotFoundError):
        service.get(created.id)
    with pytest.raises(TranslationNotFoundError):
        service.delete(created.id)
    assert count_rows(translation_tag_table) == 0
    assert count_rows(tags_table) == 1


def test_export_defaults_to_configured_locale(service) -> None:
    service.create(key="b.key", value="B", locale="en", tags=["web"])
    service.create(key="a.key", value="A", locale="en", tags=["web"])
    service.create(key="a.key", value="A fr", locale="fr", tags=["web"])

    exported = service.export()

    assert list(exported.items()) == [("a.key", "A"), ("b.key", "B")]
    assert service.export("fr") == {"a.key": "A fr"}


def test_export_returns_independent_copies(service) -> None:
    service.create(key="greeting", value="Hello", locale="en", tags=["web"])

    first = service.export("en")
    first["injected"] = "oops"

    assert service.export("en") == {"greeting": "Hello"}


def test_export_reflects_mutations(service) -> None:
    created = service.create(key="greeting", value="Hello", locale="en", tags=["web"])
    assert service.export("en") == {"greeting": "Hello"}

    service.update(created.id, value="Hi", tags=["web"])
    assert service.export("en") == {"greeting": "Hi"}

    service.delete(created.id)
    assert service.export("en") == {}


def test_list_is_refreshed_after_create(service) -> None:
    service.create(key="first", value="1", locale="en", tags=["web"])
    assert service.list("en").total == 1
    assert service.list().total == 1

    service.create(key="second", value="2", locale="en", tags=["web"])

    assert service.list("en").total == 2
    assert service.list().total == 2


def test_list_without_locale_spans_all_locales(service) -> None:
    service.create(key="greeting", value="Hello", locale="en", tags=["web"])
    service.create(key="greeting", value="Bonjour", locale="fr", tags=["web"])

    assert service.list().total == 2
    assert service.list("fr").total == 1


def test_paginated_search_results_expire_by_ttl_only(service) -> None:
    service.create(key="auth.title", value="Sign in", locale="en", tags=["web"])
    assert service.search_by_key("auth").total == 1

    service.create(key="auth.subtitle", value="Welcome back", locale="en", tags=["web"])

    assert service.search_by_key("auth").total == 1
    service.cache.backend.clear()
    assert service.search_by_key("auth").total == 2


def test_cached_results_match_uncached_results(service, uncached_service) -> None:
    service.create(key="app.title", value="Title", locale="en", tags=["mobile", "web"])
    service.create(key="app.body", value="Some body text", locale="en", tags=["web"])
    service.create(key="app.title", value="Titre", locale="fr", tags=["mobile"])

    assert service.list("en", 10, 0) == uncached_service.list("en", 10, 0)
    assert service.list() == uncached_service.list()
    assert service.search_by_tag("mob") == uncached_service.search_by_tag("mob")
    assert service.search_by_key("title", "fr") == uncached_service.search_by_key("title", "fr")
    assert service.search_by_content("BODY") == uncached_service.search_by_content("BODY")
    assert service.export("fr") == uncached_service.export("fr")
