"""Fan-out of background jobs: one queued task per eligible site."""
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.models import JobTask, Site
from sitedesk.models.job_task import JOB_PAGESPEED, JOB_SITE_SYNC
from sitedesk.services.task_queue import enqueue_task

logger = logging.getLogger(__name__)


def minute_window(current_time: datetime) -> str:
    return current_time.replace(second=0, microsecond=0).isoformat()


async def queue_site_sync(db: AsyncSession, site_id: int, *, idempotency_key: str | None = None) -> JobTask:
    return await enqueue_task(db, JOB_SITE_SYNC, site_id, idempotency_key=idempotency_key)


async def queue_pagespeed(
    db: AsyncSession, site_id: int, strategy: str, *, idempotency_key: str | None = None
) -> JobTask:
    return await enqueue_task(
        db,
        JOB_PAGESPEED,
        site_id,
        payload_json={"strategy": strategy},
        idempotency_key=idempotency_key,
    )


async def dispatch_sync_all(db: AsyncSession, *, window: str | None = None) -> list[JobTask]:
    """Queue a sync job for every live site with sync enabled.

    With ``window`` set, a second call for the same window queues nothing new.
    """
    result = await db.execute(
        select(Site.id)
        .where(Site.sync_enabled.is_(True))
        .where(Site.deleted_at.is_(None))
        .order_by(Site.id)
    )
    site_ids = result.scalars().all()

    tasks = []
    for site_id in site_ids:
        key = f"{JOB_SITE_SYNC}:{site_id}:{window}" if window else None
        tasks.append(await queue_site_sync(db, site_id, idempotency_key=key))

    logger.info("Dispatched sync jobs for %s site(s)", len(tasks))
    return tasks


async def dispatch_pagespeed(
    db: AsyncSession,
    strategy: str,
    *,
    site_ids: list[int] | None = None,
    window: str | None = None,
) -> list[JobTask]:
    """Queue PageSpeed jobs for the given sites, or for every live site."""
    if site_ids is None:
        result = await db.execute(select(Site.id).where(Site.deleted_at.is_(None)).order_by(Site.id))
        site_ids = list(result.scalars().all())

    tasks = []
    for site_id in site_ids:
        key = f"{JOB_PAGESPEED}:{strategy}:{site_id}:{window}" if window else None
        tasks.append(await queue_pagespeed(db, site_id, strategy, idempotency_key=key))

    logger.info("Dispatched PageSpeed (%s) jobs for %s site(s)", strategy, len(tasks))
    return tasks
