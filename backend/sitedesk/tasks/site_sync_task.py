import logging

from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.models import Site
from sitedesk.services.site_sync import sync_site_data

logger = logging.getLogger(__name__)


async def run_site_sync_job(db: AsyncSession, site_id: int) -> bool:
    """Sync one site in the background.

    Returns True once the job has run to an outcome, including a logged
    failure. Only an exception escaping here sends the task back to the queue.
    """
    site = await db.get(Site, site_id)
    if site is None or site.is_deleted:
        logger.warning("Site sync job skipped: site %s not found", site_id)
        return True
    if not site.sync_enabled:
        logger.info("Site sync job skipped: sync disabled for site %s", site_id)
        return True

    logger.info("Starting site sync for %s (%s)", site.name, site_id)
    if await sync_site_data(db, site):
        logger.info("Site sync job finished for site %s", site_id)
    else:
        logger.warning("Site sync job finished with failure for site %s", site_id)
    return True
