from datetime import datetime

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: str | None = Field(default=None, max_length=255)
    description: str | None = None
    color: str | None = Field(default=None, max_length=20)


class CategoryResponse(BaseModel):
    id: int
    name: str
    slug: str
    description: str | None
    color: str

    model_config = {"from_attributes": True}


class MediaResponse(BaseModel):
    id: int
    name: str
    url: str
    size: int
    mime_type: str | None

    model_config = {"from_attributes": True}


class CatalogItemWrite(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    image: str | None = Field(default=None, max_length=2048)
    url: str | None = Field(default=None, max_length=2048)
    login: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=255)
    api_key: str | None = None
    description: str | None = None
    categories: list[int] | None = None


class CatalogItemResponse(BaseModel):
    id: int
    title: str
    image: str | None
    url: str | None
    login: str | None
    password: str | None
    api_key: str | None
    description: str | None
    categories: list[CategoryResponse]
    media: list[MediaResponse]
    favorited_count: int = 0
    is_favorited: bool = False
    created_at: datetime


class CatalogListResponse(BaseModel):
    items: list[CatalogItemResponse]
    total: int
    page: int
    last_page: int


class FavoriteToggleResponse(BaseModel):
    id: int
    is_favorited: bool
    message: str


class OpenGraphResponse(BaseModel):
    url: str
    title: str | None = None
    description: str | None = None
    image: str | None = None
    site_name: str | None = None
