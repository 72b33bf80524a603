"""Run Google PageSpeed Insights against a site and keep the latest result per strategy."""
import logging
from decimal import Decimal
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.config import settings
from sitedesk.models import Site, SitePageSpeedInsight

logger = logging.getLogger(__name__)

CATEGORIES = ("performance", "accessibility", "best-practices", "seo")

# lighthouse category id -> column
SCORE_FIELDS = {
    "performance": "performance_score",
    "accessibility": "accessibility_score",
    "best-practices": "best_practices_score",
    "seo": "seo_score",
}

# lighthouse audit id -> column
METRIC_FIELDS = {
    "first-contentful-paint": "first_contentful_paint",
    "speed-index": "speed_index",
    "largest-contentful-paint": "largest_contentful_paint",
    "interactive": "time_to_interactive",
    "total-blocking-time": "total_blocking_time",
}

_SCORE_SCALE = Decimal("0.01")


def build_params(url: str, strategy: str, api_key: str) -> list[tuple[str, str]]:
    params = [("url", url), ("key", api_key), ("strategy", strategy)]
    params.extend(("category", category) for category in CATEGORIES)
    return params


def _score(value: Any) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value)).quantize(_SCORE_SCALE)


def _metric(value: Any) -> int | None:
    if value is None:
        return None
    return int(round(float(value)))


def extract_insight_values(data: dict) -> dict[str, Any]:
    """Map a runPagespeed response onto SitePageSpeedInsight columns.

    Every column is present in the result; anything the response lacks is None.
    """
    lighthouse = data.get("lighthouseResult") or {}
    categories = lighthouse.get("categories") or {}
    audits = lighthouse.get("audits") or {}

    values: dict[str, Any] = {}
    for category, column in SCORE_FIELDS.items():
        values[column] = _score((categories.get(category) or {}).get("score"))
    for audit, column in METRIC_FIELDS.items():
        values[column] = _metric((audits.get(audit) or {}).get("numericValue"))

    cls = (audits.get("cumulative-layout-shift") or {}).get("numericValue")
    values["cumulative_layout_shift"] = float(cls) if cls is not None else None
    values["full_response"] = data
    return values


async def upsert_insight(
    db: AsyncSession, site_id: int, strategy: str, values: dict[str, Any]
) -> SitePageSpeedInsight:
    result = await db.execute(
        select(SitePageSpeedInsight)
        .where(SitePageSpeedInsight.site_id == site_id)
        .where(SitePageSpeedInsight.strategy == strategy)
    )
    insight = result.scalar_one_or_none()
    if insight is None:
        insight = SitePageSpeedInsight(site_id=site_id, strategy=strategy, **values)
        db.add(insight)
    else:
        for column, value in values.items():
            setattr(insight, column, value)
    await db.commit()
    return insight


async def run_pagespeed_test(
    db: AsyncSession,
    site: Site,
    strategy: str = "mobile",
    client: httpx.AsyncClient | None = None,
) -> SitePageSpeedInsight | None:
    site_id = site.id
    api_key = settings.google_pagespeed_api_key
    if not api_key:
        logger.error("Google PageSpeed API key is not configured; skipping site %s", site_id)
        return None

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.pagespeed_timeout_seconds)

    try:
        response = await client.get(
            settings.pagespeed_api_url,
            params=build_params(site.url, strategy, api_key),
        )
        if not response.is_success:
            logger.error(
                "PageSpeed Insights API error for site %s: HTTP %s %s",
                site_id,
                response.status_code,
                response.text[:500],
            )
            return None

        insight = await upsert_insight(db, site_id, strategy, extract_insight_values(response.json()))
        logger.info("PageSpeed Insights stored for site %s (%s)", site_id, strategy)
        return insight
    except Exception as exc:
        await db.rollback()
        logger.exception("PageSpeed Insights failed for site %s (%s): %s", site_id, strategy, exc)
        return None
    finally:
        if owns_client:
            await client.aclose()


async def latest_insights(db: AsyncSession, site_id: int) -> list[SitePageSpeedInsight]:
    result = await db.execute(
        select(SitePageSpeedInsight)
        .where(SitePageSpeedInsight.site_id == site_id)
        .order_by(SitePageSpeedInsight.strategy)
    )
    return list(result.scalars().all())
