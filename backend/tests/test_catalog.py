import httpx
import pytest

from conftest import mock_client
from sitedesk.models import User
from sitedesk.schemas import CatalogItemWrite, CategoryCreate
from sitedesk.services import catalog
from sitedesk.services.catalog import RESOURCES, TOOLS, slugify
from sitedesk.services.opengraph import fetch_opengraph, parse_opengraph


def test_slugify():
    assert slugify("Outils SEO & Analytics") == "outils-seo-analytics"
    assert slugify("Éditeurs  Web") == "editeurs-web"


def test_slugify_non_ascii_name_gets_stable_slug():
    slug = slugify("日本")
    assert slug.startswith("category-")
    assert len(slug) > len("category-")
    assert slugify("日本") == slug
    assert slugify("中国") != slug


def test_parse_opengraph_prefers_og_tags():
    html = """
    <html><head>
      <title>Fallback title</title>
      <meta property="og:title" content="Real title">
      <meta name="description" content="Plain description">
      <meta property="og:image" content="/img/card.png">
      <meta property="og:site_name" content="Example">
    </head><body></body></html>
    """
    result = parse_opengraph("https://example.com/page", html)
    assert result.title == "Real title"
    assert result.description == "Plain description"
    assert result.image == "https://example.com/img/card.png"
    assert result.site_name == "Example"


@pytest.mark.asyncio
async def test_fetch_opengraph_tolerates_errors():
    async with mock_client(lambda r: httpx.Response(404, text="missing")) as client:
        result = await fetch_opengraph("https://example.com", client)
    assert result.url == "https://example.com"
    assert result.title is None


@pytest.mark.asyncio
class TestCatalog:
    async def test_category_slug_and_color_defaults(self, db):
        category = await catalog.create_category(db, RESOURCES, CategoryCreate(name="Design Tools"))
        assert category.slug == "design-tools"
        assert category.color == "#6366f1"

        with pytest.raises(catalog.DuplicateSlugError):
            await catalog.create_category(db, RESOURCES, CategoryCreate(name="Design tools"))

        # Tool categories live in their own table.
        tool_category = await catalog.create_category(db, TOOLS, CategoryCreate(name="Design Tools"))
        assert tool_category.slug == "design-tools"

    async def test_non_ascii_names_do_not_collide(self, db):
        japan = await catalog.create_category(db, RESOURCES, CategoryCreate(name="日本"))
        china = await catalog.create_category(db, RESOURCES, CategoryCreate(name="中国"))
        assert japan.slug and china.slug
        assert japan.slug != china.slug

        with pytest.raises(catalog.DuplicateSlugError):
            await catalog.create_category(db, RESOURCES, CategoryCreate(name="日本"))

    async def test_create_with_categories_and_filter(self, db, user):
        seo = await catalog.create_category(db, RESOURCES, CategoryCreate(name="SEO"))
        await catalog.create_item(db, RESOURCES, CatalogItemWrite(title="Search Console", categories=[seo.id]))
        await catalog.create_item(db, RESOURCES, CatalogItemWrite(title="Figma", description="design"))

        by_category = await catalog.list_items(db, RESOURCES, user_id=user.id, category_id=seo.id)
        assert [item.title for item in by_category.items] == ["Search Console"]
        assert by_category.items[0].categories[0].name == "SEO"

        by_search = await catalog.list_items(db, RESOURCES, user_id=user.id, search="DESIGN")
        assert [item.title for item in by_search.items] == ["Figma"]

    async def test_unknown_category_is_rejected(self, db):
        with pytest.raises(catalog.UnknownCategoryError):
            await catalog.create_item(db, TOOLS, CatalogItemWrite(title="X", categories=[42]))

    async def test_toggle_favorite_and_counts(self, db, user):
        other = User(name="Bob", email="bob@example.com")
        db.add(other)
        await db.commit()
        tool = await catalog.create_item(db, TOOLS, CatalogItemWrite(title="Postman"))

        first = await catalog.toggle_favorite(db, TOOLS, tool.id, user.id)
        assert first.is_favorited is True
        await catalog.toggle_favorite(db, TOOLS, tool.id, other.id)

        mine = await catalog.list_items(db, TOOLS, user_id=user.id, favorites=True)
        assert [item.title for item in mine.items] == ["Postman"]
        assert mine.items[0].favorited_count == 2
        assert mine.items[0].is_favorited is True

        second = await catalog.toggle_favorite(db, TOOLS, tool.id, user.id)
        assert second.is_favorited is False
        assert (await catalog.list_items(db, TOOLS, user_id=user.id, favorites=True)).total == 0

    async def test_update_keeps_categories_unless_sent(self, db):
        seo = await catalog.create_category(db, RESOURCES, CategoryCreate(name="SEO"))
        item = await catalog.create_item(db, RESOURCES, CatalogItemWrite(title="Old", categories=[seo.id]))

        updated = await catalog.update_item(db, RESOURCES, item.id, CatalogItemWrite(title="New"))
        assert updated.title == "New"
        assert [c.id for c in updated.categories] == [seo.id]

        cleared = await catalog.update_item(db, RESOURCES, item.id, CatalogItemWrite(title="New", categories=[]))
        assert cleared.categories == []

    async def test_soft_delete_hides_item(self, db):
        item = await catalog.create_item(db, RESOURCES, CatalogItemWrite(title="Temp"))
        assert await catalog.delete_item(db, RESOURCES, item.id) is True
        assert await catalog.get_item(db, RESOURCES, item.id) is None
        assert (await catalog.list_items(db, RESOURCES)).total == 0
        assert await catalog.delete_item(db, RESOURCES, item.id) is False
