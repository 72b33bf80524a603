from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, computed_field

Strategy = Literal["mobile", "desktop"]


class CredentialData(BaseModel):
    """Plaintext credential view; every field is None when nothing is stored."""

    ftp_host: str | None = Field(default=None, max_length=255)
    ftp_username: str | None = Field(default=None, max_length=255)
    ftp_password: str | None = None
    db_host: str | None = Field(default=None, max_length=255)
    db_name: str | None = Field(default=None, max_length=255)
    db_username: str | None = Field(default=None, max_length=255)
    db_password: str | None = None
    login_url: str | None = Field(default=None, max_length=255)
    login_username: str | None = Field(default=None, max_length=255)
    login_password: str | None = None
    api_keys: str | None = None


class ContractData(BaseModel):
    contract_start_date: date | None = None
    contract_end_date: date | None = None
    contract_capacity: str | None = Field(default=None, max_length=255)
    contract_storage_usage: str | None = Field(default=None, max_length=255)
    contract_storage_limit: str | None = Field(default=None, max_length=255)


class ContractResponse(ContractData):
    site_id: int
    exists: bool = True
    is_active: bool = False
    is_expired: bool = False
    days_until_expiry: int | None = None


class ServerInfoResponse(BaseModel):
    site_id: int
    exists: bool = True
    php_version: str | None = None
    php_memory_limit: str | None = None
    php_max_execution_time: int | None = None
    php_post_max_size: str | None = None
    php_upload_max_filesize: str | None = None
    mysql_version: str | None = None
    mysql_server_info: str | None = None
    server_ip: str | None = None
    server_hostname: str | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class SiteMetricResponse(BaseModel):
    id: int
    site_id: int
    php_version: str | None
    memory_limit: str | None
    max_execution_time: str | None
    post_max_size: str | None
    upload_max_filesize: str | None
    max_input_vars: str | None
    php_extensions: list[str] | None
    server_ip: str | None
    server_software: str | None
    server_os: str | None
    server_hostname: str | None
    mysql_version: str | None
    mysql_server_info: str | None
    wordpress_version: str | None
    wordpress_site_url: str | None
    wordpress_home_url: str | None
    wordpress_is_multisite: bool
    wordpress_max_upload_size: str | None
    wordpress_permalink_structure: str | None
    wordpress_active_theme: str | None
    wordpress_active_theme_version: str | None
    wordpress_active_plugins: list | None
    lighthouse_score: int | None
    last_check: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}


class PhpMetricPayload(BaseModel):
    version: str
    memory_limit: str
    max_execution_time: str
    post_max_size: str
    upload_max_filesize: str
    max_input_vars: str
    extensions: list[str]


class MysqlMetricPayload(BaseModel):
    version: str
    server_info: str


class WordPressMetricPayload(BaseModel):
    version: str
    site_url: str
    home_url: str
    is_multisite: bool
    max_upload_size: str
    permalink_structure: str
    active_theme: str
    active_theme_version: str
    active_plugins: list


class ServerMetricPayload(BaseModel):
    software: str
    os: str
    server_ip: str
    server_hostname: str


class SystemInfoPayload(BaseModel):
    """Full system-info document, as posted to record a metric snapshot."""

    php: PhpMetricPayload
    mysql: MysqlMetricPayload
    wordpress: WordPressMetricPayload
    server: ServerMetricPayload


class PageSpeedInsightResponse(BaseModel):
    id: int
    site_id: int
    strategy: str
    performance_score: Decimal | None
    accessibility_score: Decimal | None
    best_practices_score: Decimal | None
    seo_score: Decimal | None
    first_contentful_paint: int | None
    speed_index: int | None
    largest_contentful_paint: int | None
    time_to_interactive: int | None
    total_blocking_time: int | None
    cumulative_layout_shift: float | None
    updated_at: datetime

    model_config = {"from_attributes": True}

    @computed_field
    @property
    def performance_percent(self) -> int | None:
        if self.performance_score is None:
            return None
        return int(self.performance_score * 100)


class PageSpeedRunRequest(BaseModel):
    strategy: Strategy = "mobile"


class QueuedJobResponse(BaseModel):
    task_id: int
    job_type: str
    site_id: int
    status: str
