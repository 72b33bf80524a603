from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, HttpUrl, model_validator

SiteType = Literal["WordPress", "Drupal", "SPIP", "Typo3", "laravel", "symfony", "other"]
SiteTeam = Literal["quai13", "vernalis"]


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class SiteCreate(BaseModel):
    name: str = Field(max_length=255)
    url: HttpUrl
    description: str | None = None
    type: SiteType = "other"
    team: SiteTeam = "quai13"
    user_ids: list[int] | None = None


class SiteUpdate(SiteCreate):
    sync_enabled: bool = False
    api_token: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def require_token_when_syncing(self):
        if self.sync_enabled and not self.api_token:
            raise ValueError("api_token is required when sync_enabled is true")
        return self


class ApiSyncUpdate(BaseModel):
    sync_enabled: bool = False
    api_token: str | None = Field(default=None, max_length=255)


class SiteUsersUpdate(BaseModel):
    user_ids: list[int] = Field(min_length=1)


class SiteResponse(BaseModel):
    id: int
    name: str
    url: str
    description: str | None
    type: str
    team: str
    user_id: int | None
    sync_enabled: bool
    api_token: str | None
    wordpress_version: str | None
    is_multisite: bool
    last_sync: datetime | None
    deleted_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ApiSyncResponse(BaseModel):
    id: int
    sync_enabled: bool
    api_token: str | None
    last_sync: datetime | None

    model_config = {"from_attributes": True}


class SiteListItem(SiteResponse):
    users: list[UserSummary] = []
    php_version: str | None = None
    contract_start_date: date | None = None
    contract_end_date: date | None = None


class SiteListFilters(BaseModel):
    search: str = ""
    type: list[str] = []
    team: list[str] = []
    sync_enabled: list[bool] = []
    sortField: str = "name"
    sortDirection: Literal["asc", "desc"] = "asc"
    perPage: int = 25


class SiteListResponse(BaseModel):
    sites: list[SiteListItem]
    total: int
    page: int
    last_page: int
    filters: SiteListFilters


class SyncResult(BaseModel):
    site_id: int
    success: bool
    message: str
    last_sync: datetime | None = None
