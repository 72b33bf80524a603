from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.database import get_db
from sitedesk.schemas import DashboardResponse
from sitedesk.services.dashboard import build_dashboard

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardResponse)
async def get_dashboard(db: AsyncSession = Depends(get_db)):
    return await build_dashboard(db)
