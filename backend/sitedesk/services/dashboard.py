import re
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.models import Site, SiteContract
from sitedesk.schemas.dashboard import (
    DashboardResponse,
    ExpiringContract,
    SiteTypeStat,
    StorageUsage,
)

EXPIRY_WINDOW_DAYS = 180
URGENT_DAYS = 7
STORAGE_TOP_N = 10
CRITICAL_PERCENT = 90
WARNING_PERCENT = 75

_NON_NUMERIC = re.compile(r"[^0-9.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d+)?|\.\d+")


def parse_storage(value: str | None) -> float:
    """Read the number out of free text like "13GB". Unreadable -> 0."""
    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", value or ""))
    return float(match.group()) if match else 0.0


async def site_type_stats(db: AsyncSession) -> list[SiteTypeStat]:
    count = func.count(Site.id).label("count")
    result = await db.execute(
        select(Site.type, count)
        .where(Site.deleted_at.is_(None))
        .group_by(Site.type)
        .order_by(count.desc(), Site.type)
    )
    return [
        SiteTypeStat(type=site_type, count=total, fill=f"var(--chart-{index})")
        for index, (site_type, total) in enumerate(result.all(), start=1)
    ]


async def expiring_contracts(db: AsyncSession, today: date | None = None) -> list[ExpiringContract]:
    today = today or datetime.now(timezone.utc).date()
    result = await db.execute(
        select(SiteContract, Site.name)
        .join(Site, Site.id == SiteContract.site_id)
        .where(Site.deleted_at.is_(None))
        .where(SiteContract.contract_end_date.is_not(None))
        .where(SiteContract.contract_end_date.between(today, today + timedelta(days=EXPIRY_WINDOW_DAYS)))
        .order_by(SiteContract.contract_end_date, SiteContract.site_id)
    )

    contracts = []
    for contract, site_name in result.all():
        days = (contract.contract_end_date - today).days
        contracts.append(
            ExpiringContract(
                site_id=contract.site_id,
                site_name=site_name,
                contract_end_date=contract.contract_end_date,
                days_remaining=max(0, days),
                is_urgent=days <= URGENT_DAYS,
            )
        )
    return contracts


async def storage_usage(db: AsyncSession) -> list[StorageUsage]:
    result = await db.execute(
        select(SiteContract, Site.name)
        .join(Site, Site.id == SiteContract.site_id)
        .where(Site.deleted_at.is_(None))
        .where(SiteContract.contract_storage_usage.is_not(None))
        .where(SiteContract.contract_storage_limit.is_not(None))
    )

    rows = []
    for contract, site_name in result.all():
        usage = parse_storage(contract.contract_storage_usage)
        limit = parse_storage(contract.contract_storage_limit)
        if limit <= 0:
            continue
        percentage = round(usage / limit * 100, 1)
        rows.append(
            StorageUsage(
                site_id=contract.site_id,
                site_name=site_name,
                storage_usage=contract.contract_storage_usage,
                storage_limit=contract.contract_storage_limit,
                usage_gb=usage,
                limit_gb=limit,
                usage_percentage=percentage,
                is_critical=percentage >= CRITICAL_PERCENT,
                is_warning=WARNING_PERCENT <= percentage < CRITICAL_PERCENT,
            )
        )

    rows.sort(key=lambda row: row.usage_percentage, reverse=True)
    return rows[:STORAGE_TOP_N]


async def build_dashboard(db: AsyncSession, today: date | None = None) -> DashboardResponse:
    return DashboardResponse(
        site_type_stats=await site_type_stats(db),
        expiring_contracts=await expiring_contracts(db, today),
        storage_usage=await storage_usage(db),
    )
