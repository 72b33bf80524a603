import logging

from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.models import Site
from sitedesk.services.pagespeed import run_pagespeed_test

logger = logging.getLogger(__name__)


async def run_pagespeed_job(db: AsyncSession, site_id: int, strategy: str = "mobile") -> bool:
    site = await db.get(Site, site_id)
    if site is None or site.is_deleted:
        logger.warning("PageSpeed job skipped: site %s not found", site_id)
        return True

    logger.info("Starting PageSpeed Insights (%s) for %s (%s)", strategy, site.name, site_id)
    insight = await run_pagespeed_test(db, site, strategy)
    if insight is None:
        logger.warning("PageSpeed job for site %s (%s) produced no result", site_id, strategy)
    return True
