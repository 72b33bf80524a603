from datetime import date, timedelta

import pytest

from sitedesk.models import SiteContract
from sitedesk.services.dashboard import build_dashboard, parse_storage

TODAY = date(2026, 3, 1)


@pytest.mark.parametrize(
    "raw, expected",
    [("13GB", 13.0), ("2.5 Go", 2.5), ("", 0.0), (None, 0.0), ("unlimited", 0.0)],
)
def test_parse_storage(raw, expected):
    assert parse_storage(raw) == expected


@pytest.mark.asyncio
class TestDashboard:
    async def test_site_type_counts_are_ranked(self, db, make_site):
        await make_site(type="WordPress")
        await make_site(type="WordPress")
        await make_site(type="Drupal")

        dashboard = await build_dashboard(db, TODAY)
        assert [(s.type, s.count, s.fill) for s in dashboard.site_type_stats] == [
            ("WordPress", 2, "var(--chart-1)"),
            ("Drupal", 1, "var(--chart-2)"),
        ]

    async def test_expiring_contracts_window(self, db, make_site):
        soon = await make_site(name="Soon")
        later = await make_site(name="Later")
        far = await make_site(name="Far")
        past = await make_site(name="Past")
        db.add_all(
            [
                SiteContract(site_id=soon.id, contract_end_date=TODAY + timedelta(days=5)),
                SiteContract(site_id=later.id, contract_end_date=TODAY + timedelta(days=60)),
                SiteContract(site_id=far.id, contract_end_date=TODAY + timedelta(days=200)),
                SiteContract(site_id=past.id, contract_end_date=TODAY - timedelta(days=1)),
            ]
        )
        await db.commit()

        expiring = (await build_dashboard(db, TODAY)).expiring_contracts
        assert [(c.site_name, c.days_remaining, c.is_urgent) for c in expiring] == [
            ("Soon", 5, True),
            ("Later", 60, False),
        ]

    async def test_storage_usage_levels(self, db, make_site):
        rows = [("Full", "95GB", "100GB"), ("Busy", "8GB", "10GB"), ("Calm", "1GB", "10GB"), ("Bad", "1GB", "n/a")]
        for name, usage, limit in rows:
            site = await make_site(name=name)
            db.add(SiteContract(site_id=site.id, contract_storage_usage=usage, contract_storage_limit=limit))
        await db.commit()

        usage = (await build_dashboard(db, TODAY)).storage_usage
        assert [u.site_name for u in usage] == ["Full", "Busy", "Calm"]
        assert usage[0].usage_percentage == 95.0
        assert usage[0].is_critical and not usage[0].is_warning
        assert usage[1].is_warning and not usage[1].is_critical
        assert not usage[2].is_warning and not usage[2].is_critical
