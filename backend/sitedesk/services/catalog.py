"""Resources and tools: listing, editing, categories and per-user favorites.

Both families behave the same way; a ``CatalogKind`` names the tables one of
them lives in so the functions below serve either.
"""
import hashlib
import logging
import math
import re
import unicodedata
from dataclasses import dataclass

from sqlalchemy import Table, delete, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from sitedesk.models import Resource, ResourceCategory, Tool, ToolCategory
from sitedesk.models.catalog import (
    DEFAULT_CATEGORY_COLOR,
    resource_category_resource,
    resource_user_favorites,
    tool_category_tool,
    tool_user_favorites,
)
from sitedesk.schemas.catalog import (
    CatalogItemResponse,
    CatalogItemWrite,
    CatalogListResponse,
    CategoryCreate,
    CategoryResponse,
    FavoriteToggleResponse,
    MediaResponse,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = 12


class CatalogError(Exception):
    pass


class UnknownCategoryError(CatalogError):
    pass


class DuplicateSlugError(CatalogError):
    pass


@dataclass(frozen=True)
class CatalogKind:
    label: str
    model: type
    category_model: type
    category_table: Table
    category_column: str
    favorites_table: Table
    item_column: str


RESOURCES = CatalogKind(
    label="Resource",
    model=Resource,
    category_model=ResourceCategory,
    category_table=resource_category_resource,
    category_column="resource_category_id",
    favorites_table=resource_user_favorites,
    item_column="resource_id",
)

TOOLS = CatalogKind(
    label="Tool",
    model=Tool,
    category_model=ToolCategory,
    category_table=tool_category_tool,
    category_column="tool_category_id",
    favorites_table=tool_user_favorites,
    item_column="tool_id",
)


def slugify(value: str, fallback_prefix: str = "category") -> str:
    ascii_text = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_text.lower()).strip("-")
    if slug:
        return slug
    # Names without ASCII letters or digits still get a stable, non-empty slug.
    digest = hashlib.sha1(value.strip().encode("utf-8")).hexdigest()[:8]
    return f"{fallback_prefix}-{digest}"


# Categories

async def list_categories(db: AsyncSession, kind: CatalogKind) -> list[CategoryResponse]:
    result = await db.execute(select(kind.category_model).order_by(kind.category_model.name))
    return [CategoryResponse.model_validate(row) for row in result.scalars().all()]


async def create_category(db: AsyncSession, kind: CatalogKind, data: CategoryCreate) -> CategoryResponse:
    slug = data.slug or slugify(data.name)
    existing = await db.execute(select(kind.category_model.id).where(kind.category_model.slug == slug))
    if existing.first() is not None:
        raise DuplicateSlugError(f"Category slug {slug!r} already exists")

    category = kind.category_model(
        name=data.name,
        slug=slug,
        description=data.description,
        color=data.color or DEFAULT_CATEGORY_COLOR,
    )
    db.add(category)
    await db.commit()
    await db.refresh(category)
    logger.info("Created %s category %s (%s)", kind.label.lower(), category.id, slug)
    return CategoryResponse.model_validate(category)


async def _load_categories(db: AsyncSession, kind: CatalogKind, ids: list[int]) -> list:
    wanted = set(ids)
    if not wanted:
        return []
    result = await db.execute(select(kind.category_model).where(kind.category_model.id.in_(wanted)))
    categories = list(result.scalars().all())
    missing = wanted - {category.id for category in categories}
    if missing:
        raise UnknownCategoryError(f"Unknown category id(s): {sorted(missing)}")
    return categories


# Items

def _item_query(kind: CatalogKind):
    return (
        select(kind.model)
        .where(kind.model.deleted_at.is_(None))
        .options(selectinload(kind.model.categories), selectinload(kind.model.media))
    )


async def _favorite_stats(
    db: AsyncSession, kind: CatalogKind, item_ids: list[int], user_id: int | None
) -> tuple[dict[int, int], set[int]]:
    if not item_ids:
        return {}, set()
    item_col = kind.favorites_table.c[kind.item_column]
    user_col = kind.favorites_table.c.user_id

    counts = await db.execute(
        select(item_col, func.count()).where(item_col.in_(item_ids)).group_by(item_col)
    )
    favorited: set[int] = set()
    if user_id is not None:
        mine = await db.execute(select(item_col).where(item_col.in_(item_ids)).where(user_col == user_id))
        favorited = set(mine.scalars().all())
    return dict(counts.all()), favorited


def _to_response(item, favorited_count: int, is_favorited: bool) -> CatalogItemResponse:
    return CatalogItemResponse(
        id=item.id,
        title=item.title,
        image=item.image,
        url=item.url,
        login=item.login,
        password=item.password,
        api_key=item.api_key,
        description=item.description,
        categories=[CategoryResponse.model_validate(c) for c in item.categories],
        media=[MediaResponse.model_validate(m) for m in item.media],
        favorited_count=favorited_count,
        is_favorited=is_favorited,
        created_at=item.created_at,
    )


async def list_items(
    db: AsyncSession,
    kind: CatalogKind,
    *,
    user_id: int | None = None,
    search: str | None = None,
    category_id: int | None = None,
    favorites: bool = False,
    page: int = 1,
) -> CatalogListResponse:
    model = kind.model
    query = _item_query(kind)

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(model.title.ilike(pattern), model.description.ilike(pattern)))
    if category_id is not None:
        link = kind.category_table
        query = query.where(
            model.id.in_(
                select(link.c[kind.item_column]).where(link.c[kind.category_column] == category_id)
            )
        )
    if favorites:
        fav = kind.favorites_table
        query = query.where(
            model.id.in_(select(fav.c[kind.item_column]).where(fav.c.user_id == user_id))
        )

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()

    page = max(page, 1)
    result = await db.execute(
        query.order_by(model.created_at.desc(), model.id.desc())
        .limit(PAGE_SIZE)
        .offset((page - 1) * PAGE_SIZE)
    )
    items = list(result.scalars().all())
    counts, favorited = await _favorite_stats(db, kind, [item.id for item in items], user_id)

    return CatalogListResponse(
        items=[_to_response(item, counts.get(item.id, 0), item.id in favorited) for item in items],
        total=total,
        page=page,
        last_page=max(1, math.ceil(total / PAGE_SIZE)),
    )


async def _get_live_item(db: AsyncSession, kind: CatalogKind, item_id: int):
    result = await db.execute(_item_query(kind).where(kind.model.id == item_id))
    return result.scalar_one_or_none()


async def get_item(
    db: AsyncSession, kind: CatalogKind, item_id: int, user_id: int | None = None
) -> CatalogItemResponse | None:
    item = await _get_live_item(db, kind, item_id)
    if item is None:
        return None
    counts, favorited = await _favorite_stats(db, kind, [item.id], user_id)
    return _to_response(item, counts.get(item.id, 0), item.id in favorited)


async def create_item(
    db: AsyncSession, kind: CatalogKind, data: CatalogItemWrite, user_id: int | None = None
) -> CatalogItemResponse:
    categories = await _load_categories(db, kind, data.categories or [])
    item = kind.model(**data.model_dump(exclude={"categories"}))
    item.categories = categories
    item.media = []
    db.add(item)
    await db.commit()

    logger.info("Created %s %s", kind.label.lower(), item.id)
    return await get_item(db, kind, item.id, user_id)


async def update_item(
    db: AsyncSession,
    kind: CatalogKind,
    item_id: int,
    data: CatalogItemWrite,
    user_id: int | None = None,
) -> CatalogItemResponse | None:
    item = await _get_live_item(db, kind, item_id)
    if item is None:
        return None

    for field, value in data.model_dump(exclude={"categories"}).items():
        setattr(item, field, value)
    # Categories are only replaced when the field was sent.
    if data.categories is not None:
        item.categories = await _load_categories(db, kind, data.categories)
    await db.commit()

    return await get_item(db, kind, item_id, user_id)


async def delete_item(db: AsyncSession, kind: CatalogKind, item_id: int) -> bool:
    item = await db.get(kind.model, item_id)
    if item is None or item.is_deleted:
        return False
    item.soft_delete()
    await db.commit()
    logger.info("Deleted %s %s", kind.label.lower(), item_id)
    return True


async def toggle_favorite(
    db: AsyncSession, kind: CatalogKind, item_id: int, user_id: int
) -> FavoriteToggleResponse | None:
    item = await db.get(kind.model, item_id)
    if item is None or item.is_deleted:
        return None

    fav = kind.favorites_table
    item_col = fav.c[kind.item_column]
    existing = await db.execute(
        select(item_col).where(item_col == item_id).where(fav.c.user_id == user_id)
    )
    if existing.first() is not None:
        await db.execute(delete(fav).where(item_col == item_id).where(fav.c.user_id == user_id))
        is_favorited = False
        message = f"{kind.label} removed from favorites."
    else:
        await db.execute(insert(fav).values({kind.item_column: item_id, "user_id": user_id}))
        is_favorited = True
        message = f"{kind.label} added to favorites."
    await db.commit()

    return FavoriteToggleResponse(id=item_id, is_favorited=is_favorited, message=message)
