import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from sitedesk.config import settings
from sitedesk.database import async_session
from sitedesk.services.dispatch import dispatch_pagespeed, dispatch_sync_all, minute_window

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

SYNC_ALL_JOB_ID = "sites_sync_all"
PAGESPEED_JOB_IDS = {
    "mobile": "sites_pagespeed_mobile",
    "desktop": "sites_pagespeed_desktop",
}


async def scheduled_sync_all():
    window = minute_window(datetime.now(timezone.utc))
    logger.info("Scheduled sync-all trigger for window %s", window)
    async with async_session() as db:
        await dispatch_sync_all(db, window=window)


async def scheduled_pagespeed(strategy: str):
    window = minute_window(datetime.now(timezone.utc))
    logger.info("Scheduled PageSpeed (%s) trigger for window %s", strategy, window)
    async with async_session() as db:
        await dispatch_pagespeed(db, strategy, window=window)


def _add_cron_job(func, job_id: str, cron_expression: str, args: list | None = None):
    # A stopped scheduler keeps pending jobs without checking ids.
    if scheduler.get_job(job_id) is not None:
        scheduler.remove_job(job_id)
    scheduler.add_job(
        func,
        trigger=CronTrigger.from_crontab(cron_expression),
        id=job_id,
        args=args or [],
        replace_existing=True,
    )
    logger.info("Registered %s with cron: %s", job_id, cron_expression)


def register_jobs():
    """Register the recurring fan-outs. Each job id is registered exactly once."""
    _add_cron_job(scheduled_sync_all, SYNC_ALL_JOB_ID, settings.sync_cron)
    _add_cron_job(
        scheduled_pagespeed,
        PAGESPEED_JOB_IDS["mobile"],
        settings.pagespeed_mobile_cron,
        args=["mobile"],
    )
    _add_cron_job(
        scheduled_pagespeed,
        PAGESPEED_JOB_IDS["desktop"],
        settings.pagespeed_desktop_cron,
        args=["desktop"],
    )
