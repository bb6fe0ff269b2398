from translation_hub.repositories.tags import TagRepository
from translation_hub.repositories.translations import TranslationRepository

__all__ = ["TagRepository", "TranslationRepository"]
