from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from sitedesk.database import get_db
from sitedesk.dependencies import get_current_user
from sitedesk.models import User
from sitedesk.schemas import (
    CatalogItemResponse,
    CatalogItemWrite,
    CatalogListResponse,
    CategoryCreate,
    CategoryResponse,
    FavoriteToggleResponse,
    OpenGraphResponse,
)
from sitedesk.services import catalog
from sitedesk.services.catalog import CatalogKind
from sitedesk.services.opengraph import fetch_opengraph


def build_catalog_router(kind: CatalogKind, prefix: str, category_prefix: str) -> APIRouter:
    """Item and category endpoints for one catalog family."""
    router = APIRouter(tags=[prefix])
    not_found = f"{kind.label} not found"

    @router.get(f"/api/{prefix}", response_model=CatalogListResponse)
    async def list_items(
        search: str | None = None,
        category: int | None = None,
        favorites: bool = False,
        page: int = 1,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        return await catalog.list_items(
            db,
            kind,
            user_id=user.id,
            search=search,
            category_id=category,
            favorites=favorites,
            page=page,
        )

    @router.post(f"/api/{prefix}", response_model=CatalogItemResponse, status_code=201)
    async def create_item(
        body: CatalogItemWrite,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        try:
            return await catalog.create_item(db, kind, body, user.id)
        except catalog.UnknownCategoryError as exc:
            raise HTTPException(status_code=422, detail=str(exc))

    @router.get(f"/api/{prefix}/{{item_id}}", response_model=CatalogItemResponse)
    async def read_item(
        item_id: int,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        item = await catalog.get_item(db, kind, item_id, user.id)
        if not item:
            raise HTTPException(status_code=404, detail=not_found)
        return item

    @router.put(f"/api/{prefix}/{{item_id}}", response_model=CatalogItemResponse)
    async def update_item(
        item_id: int,
        body: CatalogItemWrite,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        try:
            item = await catalog.update_item(db, kind, item_id, body, user.id)
        except catalog.UnknownCategoryError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        if not item:
            raise HTTPException(status_code=404, detail=not_found)
        return item

    @router.delete(f"/api/{prefix}/{{item_id}}", status_code=204)
    async def delete_item(item_id: int, db: AsyncSession = Depends(get_db)):
        if not await catalog.delete_item(db, kind, item_id):
            raise HTTPException(status_code=404, detail=not_found)
        return Response(status_code=204)

    @router.post(f"/api/{prefix}/{{item_id}}/favorite", response_model=FavoriteToggleResponse)
    async def toggle_favorite(
        item_id: int,
        db: AsyncSession = Depends(get_db),
        user: User = Depends(get_current_user),
    ):
        result = await catalog.toggle_favorite(db, kind, item_id, user.id)
        if not result:
            raise HTTPException(status_code=404, detail=not_found)
        return result

    @router.get(f"/api/{category_prefix}", response_model=list[CategoryResponse])
    async def list_categories(db: AsyncSession = Depends(get_db)):
        return await catalog.list_categories(db, kind)

    @router.post(f"/api/{category_prefix}", response_model=CategoryResponse, status_code=201)
    async def create_category(body: CategoryCreate, db: AsyncSession = Depends(get_db)):
        try:
            return await catalog.create_category(db, kind, body)
        except catalog.DuplicateSlugError as exc:
            raise HTTPException(status_code=409, detail=str(exc))

    return router


resources_router = build_catalog_router(catalog.RESOURCES, "resources", "resource-categories")
tools_router = build_catalog_router(catalog.TOOLS, "tools", "tool-categories")

opengraph_router = APIRouter(prefix="/api/opengraph", tags=["opengraph"])


@opengraph_router.get("", response_model=OpenGraphResponse)
async def read_opengraph(url: str):
    return await fetch_opengraph(url)
