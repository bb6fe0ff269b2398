from translation_hub.services.auth import AuthResult, AuthService
from translation_hub.services.generator import GenerationReport, TranslationGenerator
from translation_hub.services.translations import TranslationService

__all__ = [
    "AuthResult",
    "AuthService",
    "GenerationReport",
    "TranslationGenerator",
    "TranslationService",
]
