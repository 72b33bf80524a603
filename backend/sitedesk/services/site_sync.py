"""Pull a site's system-info document and reconcile it into the database.

Each managed WordPress site exposes
``{url}/wp-json/teamtreize/v1/system-info/{api_token}``. The payload is
partial: every key is optional, and a key that is missing (or null) never
overwrites what is already stored.
"""
import logging
import math
from datetime import date
from typing import Any

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.config import settings
from sitedesk.models import Site, SiteContract, SiteServerInfo
from sitedesk.models.base import utcnow

logger = logging.getLogger(__name__)

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

SYSTEM_INFO_PATH = "/wp-json/teamtreize/v1/system-info/"

# Bounds of the integer columns the payload is written into.
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

# (payload section, payload key, server info column)
SERVER_INFO_FIELDS = [
    ("php", "version", "php_version"),
    ("php", "memory_limit", "php_memory_limit"),
    ("php", "max_execution_time", "php_max_execution_time"),
    ("php", "post_max_size", "php_post_max_size"),
    ("php", "upload_max_filesize", "php_upload_max_filesize"),
    ("mysql", "version", "mysql_version"),
    ("mysql", "server_info", "mysql_server_info"),
    ("server", "server_ip", "server_ip"),
    ("server", "server_hostname", "server_hostname"),
]

_FALSE_STRINGS = {"", "0", "false", "no", "off"}


def _dig(data: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def _as_int(value: Any) -> int | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    number = int(number)
    if not INT32_MIN <= number <= INT32_MAX:
        return None
    return number


def _as_date(value: Any) -> date | None:
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _as_text(value: Any) -> str:
    # Whole floats read back as "12" rather than "12.0".
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_system_info_url(site: Site) -> str:
    return site.url.rstrip("/") + SYSTEM_INFO_PATH + site.api_token


def can_sync(site: Site) -> bool:
    return bool(site.sync_enabled and site.api_token and site.url)


def site_info_updates(data: dict) -> dict[str, Any]:
    updates: dict[str, Any] = {}
    version = _dig(data, "wordpress", "version")
    if version is not None:
        updates["wordpress_version"] = _as_text(version)
    is_multisite = _dig(data, "wordpress", "is_multisite")
    if is_multisite is not None:
        updates["is_multisite"] = _as_bool(is_multisite)
    return updates


def server_info_updates(data: dict) -> dict[str, Any]:
    updates: dict[str, Any] = {}
    for section, key, column in SERVER_INFO_FIELDS:
        value = _dig(data, section, key)
        if value is None:
            continue
        if column == "php_max_execution_time":
            value = _as_int(value)
            if value is None:
                logger.warning("Ignoring non-numeric or out-of-range php.max_execution_time in sync payload")
                continue
        else:
            value = _as_text(value)
        updates[column] = value
    return updates


def contract_updates(data: dict) -> dict[str, Any]:
    if "contract" not in data:
        return {}
    contract = data["contract"]

    updates: dict[str, Any] = {}
    for key, column in (("start_date", "contract_start_date"), ("end_date", "contract_end_date")):
        raw = _dig(contract, key)
        if raw is None:
            continue
        parsed = _as_date(raw)
        if parsed is None:
            logger.warning("Ignoring unparsable contract.%s %r in sync payload", key, raw)
            continue
        updates[column] = parsed

    capacity = _dig(contract, "capacity")
    if capacity is not None:
        updates["contract_capacity"] = _as_text(capacity)
        # The payload carries no separate limit; capacity doubles as the storage limit.
        updates["contract_storage_limit"] = _as_text(capacity)

    usage = _dig(contract, "storage", "usage_gb")
    if usage is not None:
        updates["contract_storage_usage"] = _as_text(usage)
    return updates


async def _upsert_one_to_one(db: AsyncSession, model, site_id: int, values: dict[str, Any]):
    result = await db.execute(select(model).where(model.site_id == site_id))
    row = result.scalar_one_or_none()
    if row is None:
        row = model(site_id=site_id, **values)
        db.add(row)
    else:
        for column, value in values.items():
            setattr(row, column, value)
    return row


async def apply_system_info(db: AsyncSession, site: Site, data: dict) -> None:
    """Merge one payload into Site, SiteServerInfo and SiteContract. Does not commit."""
    for column, value in site_info_updates(data).items():
        setattr(site, column, value)

    server_values = server_info_updates(data)
    if server_values:
        await _upsert_one_to_one(db, SiteServerInfo, site.id, server_values)

    contract_values = contract_updates(data)
    if contract_values:
        await _upsert_one_to_one(db, SiteContract, site.id, contract_values)


async def fetch_system_info(site: Site, client: httpx.AsyncClient) -> dict | None:
    response = await client.get(build_system_info_url(site))
    if not response.is_success:
        logger.warning("Site sync failed for site %s: HTTP %s", site.id, response.status_code)
        return None

    try:
        data = response.json()
    except ValueError:
        data = None
    if not data or not isinstance(data, dict):
        logger.warning("Site sync failed for site %s: Invalid JSON response", site.id)
        return None
    return data


async def sync_site_data(
    db: AsyncSession, site: Site, client: httpx.AsyncClient | None = None
) -> bool:
    """Fetch and reconcile one site. Returns False on skip or any failure."""
    site_id = site.id
    if not can_sync(site):
        logger.info("Site sync skipped for site %s: sync disabled or missing token/url", site_id)
        return False

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.site_sync_timeout_seconds)

    try:
        data = await fetch_system_info(site, client)
        if data is None:
            return False

        # One transaction for all three passes and the sync stamp.
        await apply_system_info(db, site, data)
        site.last_sync = utcnow()
        await db.commit()

        logger.info("Site sync completed successfully for site %s", site_id)
        return True
    except (httpx.ConnectError, httpx.TimeoutException) as exc:
        await db.rollback()
        logger.error("Site sync connection failed for site %s: %s", site_id, exc)
        return False
    except httpx.HTTPError as exc:
        await db.rollback()
        logger.error("Site sync request failed for site %s: %s", site_id, exc)
        return False
    except Exception as exc:
        await db.rollback()
        logger.exception("Site sync failed for site %s: %s", site_id, exc)
        return False
    finally:
        if owns_client:
            await client.aclose()
