from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sitedesk.database import get_db
from sitedesk.models import Site, User


async def get_current_user(
    x_user_id: int | None = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Authentication happens upstream; the proxy passes the user id along."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = await db.get(User, x_user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


async def load_site(db: AsyncSession, site_id: int, *, include_deleted: bool = False) -> Site:
    result = await db.execute(
        select(Site).where(Site.id == site_id).options(selectinload(Site.users))
    )
    site = result.scalar_one_or_none()
    if not site or (site.is_deleted and not include_deleted):
        raise HTTPException(status_code=404, detail="Site not found")
    return site


async def get_site(site_id: int, db: AsyncSession = Depends(get_db)) -> Site:
    return await load_site(db, site_id)
