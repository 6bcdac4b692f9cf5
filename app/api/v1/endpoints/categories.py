"""Category API endpoints."""
from typing import Annotated, List, Optional
import uuid

from fastapi import APIRouter, status, Query, Depends

from app.api.deps import DB, require_permission
from app.core.permissions import Operation, Resource
from app.core.request_context import RequestContext
from app.models.category import Category
from app.schemas.base import ApiResponse
from app.schemas.category import CategoryCreate, CategoryUpdate, CategoryResponse
from app.services.category_service import CategoryService


router = APIRouter(tags=["Categories"])


def _to_response(category: Category, product_count: int) -> CategoryResponse:
    return CategoryResponse.model_validate(category).model_copy(update={"product_count": product_count})


@router.get("", response_model=ApiResponse[List[CategoryResponse]])
async def list_categories(
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.CATEGORIES, Operation.READ))],
    search: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
):
    """Get categories with their product counts, sorted by name."""
    rows = await CategoryService(db).list_categories(search=search, is_active=is_active)
    return ApiResponse(
        data=[_to_response(category, count) for category, count in rows],
        count=len(rows),
    )


@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def get_category(
    category_id: uuid.UUID,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.CATEGORIES, Operation.READ))],
):
    category, count = await CategoryService(db).get_category(category_id)
    return ApiResponse(data=_to_response(category, count))


@router.post(
    "",
    response_model=ApiResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    data: CategoryCreate,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.CATEGORIES, Operation.CREATE))],
):
    category, count = await CategoryService(db).create_category(ctx, data.model_dump())
    return ApiResponse(message="Category created successfully", data=_to_response(category, count))


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def update_category(
    category_id: uuid.UUID,
    data: CategoryUpdate,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.CATEGORIES, Operation.UPDATE))],
):
    category, count = await CategoryService(db).update_category(
        ctx, category_id, data.model_dump(exclude_unset=True)
    )
    return ApiResponse(message="Category updated successfully", data=_to_response(category, count))


@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(
    category_id: uuid.UUID,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.CATEGORIES, Operation.DELETE))],
):
    """Soft delete a category that no product uses."""
    await CategoryService(db).delete_category(ctx, category_id)
    return ApiResponse(message="Category deleted successfully")
