"""
Category API Endpoints.

Every member can list categories; only admins manage them.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.dependencies import get_current_user
from backend.app.core.guards import get_actor, require_admin
from backend.app.db.session import get_db
from backend.app.domain.actor import Actor
from backend.app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from backend.app.services.categories import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])
admin_router = APIRouter(prefix="/admin/categories", tags=["Categories"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    categories = await CategoryService.list_categories(db)
    return [CategoryResponse.model_validate(category) for category in categories]


@admin_router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    category = await CategoryService.create_category(db, actor, request.name, request.icon)
    return CategoryResponse.model_validate(category)


@admin_router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    request: CategoryUpdate,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Update a category.

    A rename moves every expense filed under the old name to the new one in
    the same transaction. If that fails the rename is rolled back and the
    response is 500 with ERR_STORAGE_002.
    """
    category = await CategoryService.get_category(db, category_id)
    category = await CategoryService.update_category(db, actor, category, name=request.name, icon=request.icon)
    return CategoryResponse.model_validate(category)


@admin_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    actor: Actor = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    category = await CategoryService.get_category(db, category_id)
    await CategoryService.delete_category(db, actor, category)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
