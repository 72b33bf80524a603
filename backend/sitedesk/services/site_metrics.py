import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.models import SiteMetric
from sitedesk.models.base import utcnow
from sitedesk.schemas.site_details import SystemInfoPayload

logger = logging.getLogger(__name__)

RECENT_METRICS_LIMIT = 10


def metric_from_payload(site_id: int, payload: SystemInfoPayload) -> SiteMetric:
    php, mysql, wordpress, server = payload.php, payload.mysql, payload.wordpress, payload.server
    return SiteMetric(
        site_id=site_id,
        php_version=php.version,
        memory_limit=php.memory_limit,
        max_execution_time=php.max_execution_time,
        post_max_size=php.post_max_size,
        upload_max_filesize=php.upload_max_filesize,
        max_input_vars=php.max_input_vars,
        php_extensions=php.extensions,
        server_ip=server.server_ip,
        server_software=server.software,
        server_os=server.os,
        server_hostname=server.server_hostname,
        mysql_version=mysql.version,
        mysql_server_info=mysql.server_info,
        wordpress_version=wordpress.version,
        wordpress_site_url=wordpress.site_url,
        wordpress_home_url=wordpress.home_url,
        wordpress_is_multisite=wordpress.is_multisite,
        wordpress_max_upload_size=wordpress.max_upload_size,
        wordpress_permalink_structure=wordpress.permalink_structure,
        wordpress_active_theme=wordpress.active_theme,
        wordpress_active_theme_version=wordpress.active_theme_version,
        wordpress_active_plugins=wordpress.active_plugins,
        last_check=utcnow(),
    )


async def record_metric(db: AsyncSession, site_id: int, payload: SystemInfoPayload) -> SiteMetric:
    """Append a snapshot. Server info and contract rows are not touched."""
    metric = metric_from_payload(site_id, payload)
    db.add(metric)
    await db.commit()
    await db.refresh(metric)
    logger.info("Recorded metric %s for site %s", metric.id, site_id)
    return metric


async def recent_metrics(db: AsyncSession, site_id: int, limit: int = RECENT_METRICS_LIMIT) -> list[SiteMetric]:
    result = await db.execute(
        select(SiteMetric)
        .where(SiteMetric.site_id == site_id)
        .order_by(SiteMetric.created_at.desc(), SiteMetric.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
