from datetime import date

import pytest

from sitedesk.models import SiteContract, SiteServerInfo
from sitedesk.schemas import SiteListFilters
from sitedesk.services.site_listing import list_sites


def names(response):
    return [site.name for site in response.sites]


@pytest.mark.asyncio
class TestListSites:
    async def test_default_sort_is_name_and_excludes_deleted(self, db, make_site):
        await make_site(name="Charlie")
        await make_site(name="alpha")
        gone = await make_site(name="Bravo")
        gone.soft_delete()
        await db.commit()

        response = await list_sites(db, SiteListFilters())
        assert response.total == 2
        assert set(names(response)) == {"Charlie", "alpha"}

    async def test_search_matches_name_url_and_description(self, db, make_site):
        await make_site(name="Blog", description="Marketing site")
        await make_site(name="Shop", url="https://shop.example.org")
        await make_site(name="Intranet")

        assert names(await list_sites(db, SiteListFilters(search="marketing"))) == ["Blog"]
        assert names(await list_sites(db, SiteListFilters(search="example.org"))) == ["Shop"]

    async def test_type_team_and_sync_filters(self, db, make_site):
        await make_site(name="A", type="Drupal", team="vernalis")
        await make_site(name="B", type="WordPress", team="vernalis", sync_enabled=True, api_token="t")
        await make_site(name="C", type="WordPress", team="quai13")

        response = await list_sites(db, SiteListFilters(type=["WordPress"], team=["vernalis"]))
        assert names(response) == ["B"]

        response = await list_sites(db, SiteListFilters(sync_enabled=[False]))
        assert names(response) == ["A", "C"]

    async def test_sort_by_related_columns(self, db, make_site):
        old = await make_site(name="Old PHP")
        new = await make_site(name="New PHP")
        await make_site(name="No info")
        db.add(SiteServerInfo(site_id=old.id, php_version="7.4"))
        db.add(SiteServerInfo(site_id=new.id, php_version="8.3"))
        db.add(SiteContract(site_id=old.id, contract_end_date=date(2026, 1, 1)))
        await db.commit()

        response = await list_sites(db, SiteListFilters(sortField="php_version", sortDirection="desc"))
        assert names(response)[:2] == ["New PHP", "Old PHP"]
        assert response.sites[0].php_version == "8.3"
        assert response.sites[1].contract_end_date == date(2026, 1, 1)

    async def test_unknown_sort_field_falls_back_to_name(self, db, make_site):
        await make_site(name="B")
        await make_site(name="A")

        response = await list_sites(db, SiteListFilters(sortField="api_token", sortDirection="desc"))
        assert names(response) == ["A", "B"]
        assert response.filters.sortField == "name"
        assert response.filters.sortDirection == "asc"

    async def test_pagination(self, db, make_site):
        for index in range(5):
            await make_site(name=f"Site {index}")

        response = await list_sites(db, SiteListFilters(perPage=2), page=3)
        assert response.total == 5
        assert response.last_page == 3
        assert names(response) == ["Site 4"]
