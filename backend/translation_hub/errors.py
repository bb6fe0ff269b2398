class TranslationHubError(Exception):
    """Base class for errors raised by the translation services."""


class TranslationNotFoundError(TranslationHubError):
    def __init__(self, translation_id: int) -> None:
        self.translation_id = translation_id
        super().__init__("Translation not found")


class DuplicateTranslationError(TranslationHubError):
    def __init__(self, key: str, locale: str) -> None:
        self.key = key
        self.locale = locale
        super().__init__("Translation already exists for this key and locale")


class ValidationError(TranslationHubError):
    """Input accepted by request validation but rejected by a service rule."""


class TagsRequiredError(ValidationError):
    def __init__(self) -> None:
        super().__init__("At least one tag is required for each translation")


class InvalidCredentialsError(TranslationHubError):
    def __init__(self) -> None:
        super().__init__("The provided credentials are incorrect.")


class EmailAlreadyRegisteredError(TranslationHubError):
    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("The email has already been taken.")
