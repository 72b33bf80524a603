import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.database import get_db
from sitedesk.dependencies import get_current_user, get_site, load_site
from sitedesk.models import Site, SiteContract, SiteServerInfo, User
from sitedesk.schemas import (
    ApiSyncResponse,
    ApiSyncUpdate,
    SiteCreate,
    SiteListFilters,
    SiteListItem,
    SiteListResponse,
    SiteUpdate,
    SiteUsersUpdate,
    SyncResult,
)
from sitedesk.services.site_listing import list_sites
from sitedesk.services.site_sync import sync_site_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sites", tags=["sites"])


async def _load_users(db: AsyncSession, user_ids: list[int]) -> list[User]:
    wanted = set(user_ids)
    result = await db.execute(select(User).where(User.id.in_(wanted)))
    users = list(result.scalars().all())
    missing = wanted - {user.id for user in users}
    if missing:
        raise HTTPException(status_code=422, detail=f"Unknown user id(s): {sorted(missing)}")
    return users


async def _site_item(db: AsyncSession, site: Site) -> SiteListItem:
    item = SiteListItem.model_validate(site)
    server_info = (
        await db.execute(select(SiteServerInfo).where(SiteServerInfo.site_id == site.id))
    ).scalar_one_or_none()
    contract = (
        await db.execute(select(SiteContract).where(SiteContract.site_id == site.id))
    ).scalar_one_or_none()
    if server_info:
        item.php_version = server_info.php_version
    if contract:
        item.contract_start_date = contract.contract_start_date
        item.contract_end_date = contract.contract_end_date
    return item


@router.get("", response_model=SiteListResponse)
async def get_sites(
    search: str = "",
    type: list[str] = Query(default=[]),
    team: list[str] = Query(default=[]),
    sync_enabled: list[bool] = Query(default=[]),
    sortField: str = "name",
    sortDirection: str = "asc",
    perPage: int = 25,
    page: int = 1,
    db: AsyncSession = Depends(get_db),
):
    filters = SiteListFilters(
        search=search,
        type=type,
        team=team,
        sync_enabled=sync_enabled,
        sortField=sortField,
        sortDirection="desc" if sortDirection == "desc" else "asc",
        perPage=perPage,
    )
    return await list_sites(db, filters, page)


@router.post("", response_model=SiteListItem, status_code=201)
async def create_site(
    body: SiteCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # Without an explicit list the creator is the only assigned user.
    users = await _load_users(db, body.user_ids or [user.id])

    site = Site(
        name=body.name,
        url=str(body.url).rstrip("/"),
        description=body.description,
        type=body.type,
        team=body.team,
        user_id=user.id,
    )
    site.users = users
    db.add(site)
    await db.commit()

    logger.info("Created site %s (%s) for user %s", site.id, site.url, user.id)
    return await _site_item(db, await load_site(db, site.id))


@router.get("/{site_id}", response_model=SiteListItem)
async def read_site(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    return await _site_item(db, site)


@router.put("/{site_id}", response_model=SiteListItem)
async def update_site(
    body: SiteUpdate,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    site.name = body.name
    site.url = str(body.url).rstrip("/")
    site.description = body.description
    site.type = body.type
    site.team = body.team
    site.sync_enabled = body.sync_enabled
    if body.api_token is not None:
        site.api_token = body.api_token
    if body.user_ids is not None:
        site.users = await _load_users(db, body.user_ids)
    await db.commit()
    return await _site_item(db, site)


@router.delete("/{site_id}", status_code=204)
async def delete_site(site_id: int, force: bool = False, db: AsyncSession = Depends(get_db)):
    site = await load_site(db, site_id, include_deleted=force)
    if force:
        # Child rows go with the site through ON DELETE CASCADE.
        await db.delete(site)
        logger.info("Permanently deleted site %s", site_id)
    else:
        site.soft_delete()
        logger.info("Soft-deleted site %s", site_id)
    await db.commit()
    return Response(status_code=204)


@router.post("/{site_id}/restore", response_model=SiteListItem)
async def restore_site(site_id: int, db: AsyncSession = Depends(get_db)):
    site = await load_site(db, site_id, include_deleted=True)
    if site.is_deleted:
        site.restore()
        await db.commit()
        logger.info("Restored site %s", site_id)
    return await _site_item(db, site)


@router.post("/{site_id}/sync", response_model=SyncResult)
async def sync_site(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    if not site.sync_enabled:
        raise HTTPException(
            status_code=400,
            detail="Sync not enabled. Enable sync for this site before attempting to sync data.",
        )

    site_id = site.id
    if await sync_site_data(db, site):
        return SyncResult(
            site_id=site_id,
            success=True,
            message="Site data synced successfully",
            last_sync=site.last_sync,
        )
    return SyncResult(
        site_id=site_id,
        success=False,
        message="Failed to sync site data. Please check the API token and try again.",
    )


@router.get("/{site_id}/api-sync", response_model=ApiSyncResponse)
async def read_api_sync(site: Site = Depends(get_site)):
    return site


@router.put("/{site_id}/api-sync", response_model=ApiSyncResponse)
async def update_api_sync(
    body: ApiSyncUpdate,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    site.sync_enabled = body.sync_enabled
    if body.api_token is not None:
        site.api_token = body.api_token
    await db.commit()
    return site


@router.put("/{site_id}/users", response_model=SiteListItem)
async def assign_users(
    body: SiteUsersUpdate,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    site.users = await _load_users(db, body.user_ids)
    await db.commit()
    return await _site_item(db, site)


@router.delete("/{site_id}/users/{user_id}", response_model=SiteListItem)
async def remove_user(
    user_id: int,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    site.users = [user for user in site.users if user.id != user_id]
    await db.commit()
    return await _site_item(db, site)
