import logging
from contextlib import contextmanager

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.crypto import DecryptionError, MissingKeyError
from sitedesk.database import get_db
from sitedesk.dependencies import get_site
from sitedesk.models import Site
from sitedesk.schemas import (
    ContractData,
    ContractResponse,
    CredentialData,
    PageSpeedInsightResponse,
    PageSpeedRunRequest,
    QueuedJobResponse,
    ServerInfoResponse,
    SiteMetricResponse,
    SystemInfoPayload,
)
from sitedesk.services import site_resources
from sitedesk.services.dispatch import queue_pagespeed
from sitedesk.services.pagespeed import latest_insights
from sitedesk.services.site_metrics import recent_metrics, record_metric

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sites/{site_id}", tags=["site details"])


@contextmanager
def _credential_codec_errors(site_id: int):
    try:
        yield
    except MissingKeyError:
        logger.error("Credential access for site %s without APP_ENCRYPTION_KEY", site_id)
        raise HTTPException(status_code=503, detail="Credential encryption is not configured")
    except DecryptionError:
        logger.error("Stored credentials for site %s cannot be decrypted", site_id)
        raise HTTPException(status_code=500, detail="Stored credentials cannot be decrypted")


@router.get("/credentials", response_model=CredentialData)
async def read_credentials(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    with _credential_codec_errors(site.id):
        return await site_resources.get_credentials(db, site.id)


@router.put("/credentials", response_model=CredentialData)
async def update_credentials(
    body: CredentialData,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    with _credential_codec_errors(site.id):
        return await site_resources.save_credentials(db, site.id, body)


@router.get("/contract", response_model=ContractResponse)
async def read_contract(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    return await site_resources.get_contract(db, site.id)


@router.put("/contract", response_model=ContractResponse)
async def update_contract(
    body: ContractData,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    return await site_resources.save_contract(db, site.id, body)


@router.delete("/contract", status_code=204)
async def delete_contract(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    if not await site_resources.delete_contract(db, site.id):
        raise HTTPException(status_code=404, detail="Contract not found")


@router.get("/server-info", response_model=ServerInfoResponse)
async def read_server_info(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    return await site_resources.get_server_info(db, site.id)


@router.get("/metrics", response_model=list[SiteMetricResponse])
async def list_metrics(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    return await recent_metrics(db, site.id)


@router.post("/metrics", response_model=SiteMetricResponse, status_code=201)
async def create_metric(
    body: SystemInfoPayload,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    return await record_metric(db, site.id, body)


@router.get("/pagespeed", response_model=list[PageSpeedInsightResponse])
async def list_pagespeed(site: Site = Depends(get_site), db: AsyncSession = Depends(get_db)):
    return await latest_insights(db, site.id)


@router.post("/pagespeed", response_model=QueuedJobResponse, status_code=202)
async def run_pagespeed(
    body: PageSpeedRunRequest | None = None,
    site: Site = Depends(get_site),
    db: AsyncSession = Depends(get_db),
):
    strategy = body.strategy if body else "mobile"
    task = await queue_pagespeed(db, site.id, strategy)
    return QueuedJobResponse(
        task_id=task.id,
        job_type=task.job_type,
        site_id=task.site_id,
        status=task.status,
    )
