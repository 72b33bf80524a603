"""Best-effort OpenGraph lookup used to prefill catalog entries."""
import logging
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from sitedesk.config import settings
from sitedesk.schemas.catalog import OpenGraphResponse

logger = logging.getLogger(__name__)

REQUEST_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; sitedesk/0.1; +opengraph)",
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}


def _meta(soup: BeautifulSoup, prop: str) -> str | None:
    tag = soup.find("meta", property=prop) or soup.find("meta", attrs={"name": prop})
    if tag and tag.get("content"):
        return tag["content"].strip() or None
    return None


def parse_opengraph(url: str, html: str) -> OpenGraphResponse:
    soup = BeautifulSoup(html, "lxml")

    title = _meta(soup, "og:title")
    if title is None and soup.title and soup.title.string:
        title = soup.title.string.strip() or None

    image = _meta(soup, "og:image")
    if image:
        image = urljoin(url, image)

    return OpenGraphResponse(
        url=url,
        title=title,
        description=_meta(soup, "og:description") or _meta(soup, "description"),
        image=image,
        site_name=_meta(soup, "og:site_name"),
    )


async def fetch_opengraph(url: str, client: httpx.AsyncClient | None = None) -> OpenGraphResponse:
    """Never raises for remote problems; returns whatever could be read."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return OpenGraphResponse(url=url)

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(
            timeout=settings.opengraph_timeout_seconds,
            follow_redirects=True,
            headers=REQUEST_HEADERS,
        )
    try:
        response = await client.get(url)
        content_type = response.headers.get("content-type", "")
        if not response.is_success or "html" not in content_type:
            logger.info("OpenGraph lookup for %s returned HTTP %s (%s)", url, response.status_code, content_type)
            return OpenGraphResponse(url=url)
        return parse_opengraph(str(response.url), response.text)
    except httpx.HTTPError as exc:
        logger.warning("OpenGraph lookup failed for %s: %s", url, exc)
        return OpenGraphResponse(url=url)
    finally:
        if owns_client:
            await client.aclose()
