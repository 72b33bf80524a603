from datetime import date

from pydantic import BaseModel


class SiteTypeStat(BaseModel):
    type: str
    count: int
    fill: str


class ExpiringContract(BaseModel):
    site_id: int
    site_name: str
    contract_end_date: date
    days_remaining: int
    is_urgent: bool


class StorageUsage(BaseModel):
    site_id: int
    site_name: str
    storage_usage: str
    storage_limit: str
    usage_gb: float
    limit_gb: float
    usage_percentage: float
    is_critical: bool
    is_warning: bool


class DashboardResponse(BaseModel):
    site_type_stats: list[SiteTypeStat]
    expiring_contracts: list[ExpiringContract]
    storage_usage: list[StorageUsage]
