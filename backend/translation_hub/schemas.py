from typing import Any, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


def _strip_required(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value


def _strip_each(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_strip_required(item) for item in value]
    return value


class StoreTranslationRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=255, description="Translation key")
    value: str = Field(..., min_length=1, description="Translated phrase")
    locale: str = Field(..., min_length=1, max_length=10, description="Locale code")
    tags: List[str] = Field(..., min_length=1, description="At least one tag name")

    @field_validator("key", "value", "locale", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return _strip_required(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _strip_tags(cls, value: Any) -> Any:
        return _strip_each(value)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: List[str]) -> List[str]:
        for tag in value:
            if not tag or len(tag) > 255:
                raise ValueError("Each tag must be a non-empty string of at most 255 characters")
        return value


class UpdateTranslationRequest(BaseModel):
    value: str = Field(..., min_length=1, description="Translated phrase")
    tags: List[str] = Field(..., min_length=1, description="Full replacement tag set")

    @field_validator("value", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return _strip_required(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _strip_tags(cls, value: Any) -> Any:
        return _strip_each(value)

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: List[str]) -> List[str]:
        for tag in value:
            if not tag or len(tag) > 255:
                raise ValueError("Each tag must be a non-empty string of at most 255 characters")
        return value


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    password_confirmation: Optional[str] = None

    @field_validator("password_confirmation")
    @classmethod
    def _passwords_match(cls, value: Optional[str], info) -> Optional[str]:
        if value is not None and value != info.data.get("password"):
            raise ValueError("The password confirmation does not match.")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
