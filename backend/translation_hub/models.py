from datetime import datetime

from pydantic import BaseModel, Field


class TagModel(BaseModel):
    id: int = Field(..., description="Primary key of the tag")
    name: str = Field(..., description="Unique tag name (e.g. 'web', 'mobile')")

    class Config:
        from_attributes = True
        frozen = True
        extra = "ignore"


class TranslationModel(BaseModel):
    id: int = Field(..., description="Primary key of translation record")
    key: str = Field(..., description="Translation key identifier used by clients")
    value: str = Field(..., description="Translated text value")
    locale: str = Field(..., description="Locale code (e.g. 'en', 'fr')")
    created_at: datetime | None = None
    updated_at: datetime | None = None
    tags: list[TagModel] = Field(
        default_factory=list,
        description="Attached tags; empty unless eagerly loaded",
    )

    class Config:
        from_attributes = True
        frozen = True
        extra = "ignore"


class TranslationPage(BaseModel):
    current_page: int = Field(..., description="1-based page number")
    per_page: int = Field(..., description="Page size used for the query")
    total: int = Field(..., description="Total rows matching the query")
    last_page: int = Field(..., description="Highest page number with rows (at least 1)")
    items: list[TranslationModel] = Field(default_factory=list)

    class Config:
        frozen = True
        extra = "forbid"


class UserModel(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True
        frozen = True
        extra = "ignore"
