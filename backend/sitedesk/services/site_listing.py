import math

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sitedesk.models import Site, SiteContract, SiteServerInfo
from sitedesk.schemas.site import SiteListFilters, SiteListItem, SiteListResponse

DEFAULT_SORT_FIELD = "name"
MAX_PER_PAGE = 100

# Public sort key -> column. Anything not listed falls back to name ascending.
SORT_COLUMNS = {
    "name": Site.name,
    "url": Site.url,
    "type": Site.type,
    "team": Site.team,
    "created_at": Site.created_at,
    "php_version": SiteServerInfo.php_version,
    "last_sync": Site.last_sync,
    "last_check": Site.last_sync,
    "contract_start_date": SiteContract.contract_start_date,
    "contract_end_date": SiteContract.contract_end_date,
}


def _base_query() -> Select:
    return (
        select(
            Site,
            SiteServerInfo.php_version,
            SiteContract.contract_start_date,
            SiteContract.contract_end_date,
        )
        .outerjoin(SiteServerInfo, SiteServerInfo.site_id == Site.id)
        .outerjoin(SiteContract, SiteContract.site_id == Site.id)
        .where(Site.deleted_at.is_(None))
    )


def apply_filters(query: Select, filters: SiteListFilters) -> Select:
    if filters.search:
        pattern = f"%{filters.search}%"
        query = query.where(
            or_(Site.name.ilike(pattern), Site.url.ilike(pattern), Site.description.ilike(pattern))
        )
    if filters.type:
        query = query.where(Site.type.in_(filters.type))
    if filters.team:
        query = query.where(Site.team.in_(filters.team))
    if filters.sync_enabled:
        query = query.where(Site.sync_enabled.in_(sorted(set(filters.sync_enabled))))
    return query


def apply_sort(query: Select, filters: SiteListFilters) -> tuple[Select, SiteListFilters]:
    """Order the query; an unknown sort field resets to name ascending."""
    column = SORT_COLUMNS.get(filters.sortField)
    if column is None:
        filters = filters.model_copy(update={"sortField": DEFAULT_SORT_FIELD, "sortDirection": "asc"})
        column = SORT_COLUMNS[DEFAULT_SORT_FIELD]
    ordering = column.desc() if filters.sortDirection == "desc" else column.asc()
    return query.order_by(ordering, Site.id.asc()), filters


async def list_sites(db: AsyncSession, filters: SiteListFilters, page: int = 1) -> SiteListResponse:
    per_page = min(max(filters.perPage, 1), MAX_PER_PAGE)
    page = max(page, 1)

    query = apply_filters(_base_query(), filters)
    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

    query, filters = apply_sort(query, filters)
    query = query.options(selectinload(Site.users)).limit(per_page).offset((page - 1) * per_page)
    rows = (await db.execute(query)).all()

    items = []
    for site, php_version, start_date, end_date in rows:
        item = SiteListItem.model_validate(site)
        item.php_version = php_version
        item.contract_start_date = start_date
        item.contract_end_date = end_date
        items.append(item)

    return SiteListResponse(
        sites=items,
        total=total,
        page=page,
        last_page=max(1, math.ceil(total / per_page)),
        filters=filters.model_copy(update={"perPage": per_page}),
    )
