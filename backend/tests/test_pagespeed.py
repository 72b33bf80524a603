from decimal import Decimal

import httpx
import pytest
from sqlalchemy import func, select

from conftest import mock_client
from sitedesk.models import SitePageSpeedInsight
from sitedesk.services.pagespeed import build_params, extract_insight_values, run_pagespeed_test


def lighthouse_payload(performance=0.96, fcp=1500.4, cls=0.042):
    return {
        "id": "https://example.com/",
        "lighthouseResult": {
            "categories": {
                "performance": {"score": performance},
                "accessibility": {"score": 0.88},
                "best-practices": {"score": 1},
                "seo": {"score": 0.9},
            },
            "audits": {
                "first-contentful-paint": {"numericValue": fcp},
                "speed-index": {"numericValue": 2100.7},
                "largest-contentful-paint": {"numericValue": 2500},
                "interactive": {"numericValue": 3200.2},
                "total-blocking-time": {"numericValue": 120},
                "cumulative-layout-shift": {"numericValue": cls},
            },
        },
    }


def test_params_repeat_category():
    params = build_params("https://example.com", "desktop", "k")
    assert ("strategy", "desktop") in params
    assert [value for key, value in params if key == "category"] == [
        "performance",
        "accessibility",
        "best-practices",
        "seo",
    ]


def test_missing_sections_map_to_none():
    values = extract_insight_values({"lighthouseResult": {"categories": {}}})
    assert values["performance_score"] is None
    assert values["first_contentful_paint"] is None
    assert values["cumulative_layout_shift"] is None


@pytest.mark.asyncio
class TestRunPageSpeedTest:
    async def test_scores_and_metrics_are_stored(self, db, make_site):
        site = await make_site(url="https://example.com")
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=lighthouse_payload())

        async with mock_client(handler) as client:
            insight = await run_pagespeed_test(db, site, "mobile", client)

        assert insight is not None
        assert insight.performance_score == Decimal("0.96")
        assert insight.best_practices_score == Decimal("1.00")
        assert insight.first_contentful_paint == 1500
        assert insight.speed_index == 2101
        assert insight.cumulative_layout_shift == pytest.approx(0.042)
        assert insight.full_response["id"] == "https://example.com/"

        sent = requests[0].url.params
        assert sent["url"] == "https://example.com"
        assert sent["strategy"] == "mobile"
        assert sent["key"] == "test-pagespeed-key"
        assert len(sent.get_list("category")) == 4

    async def test_rerun_replaces_row_for_same_strategy(self, db, make_site):
        site = await make_site()
        async with mock_client(lambda r: httpx.Response(200, json=lighthouse_payload(0.5))) as client:
            await run_pagespeed_test(db, site, "mobile", client)
        async with mock_client(lambda r: httpx.Response(200, json=lighthouse_payload(0.75))) as client:
            await run_pagespeed_test(db, site, "mobile", client)
            await run_pagespeed_test(db, site, "desktop", client)

        rows = (
            await db.execute(select(SitePageSpeedInsight).order_by(SitePageSpeedInsight.strategy))
        ).scalars().all()
        assert [row.strategy for row in rows] == ["desktop", "mobile"]
        assert rows[1].performance_score == Decimal("0.75")

    async def test_missing_api_key_skips_request(self, db, make_site, test_settings, monkeypatch):
        monkeypatch.setattr(test_settings, "google_pagespeed_api_key", "")
        site = await make_site()
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=lighthouse_payload())

        async with mock_client(handler) as client:
            assert await run_pagespeed_test(db, site, "mobile", client) is None
        assert calls == []

    async def test_api_error_stores_nothing(self, db, make_site):
        site = await make_site()
        async with mock_client(lambda r: httpx.Response(429, text="quota exceeded")) as client:
            assert await run_pagespeed_test(db, site, "mobile", client) is None

        count = (await db.execute(select(func.count()).select_from(SitePageSpeedInsight))).scalar_one()
        assert count == 0
