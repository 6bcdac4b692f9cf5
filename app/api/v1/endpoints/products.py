"""Product API endpoints."""
from typing import Annotated, List, Optional
import uuid

from fastapi import APIRouter, status, Query, Depends

from app.api.deps import DB, require_permission
from app.core.permissions import Operation, Resource
from app.core.request_context import RequestContext
from app.models.product import StockStatus
from app.schemas.base import ApiResponse, PaginatedResponse
from app.schemas.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ReorderRuleUpdate,
    ReorderRuleResponse,
    SkuSuggestion,
)
from app.services.product_service import ProductService


router = APIRouter(tags=["Products"])


ReadContext = Annotated[RequestContext, Depends(require_permission(Resource.PRODUCTS, Operation.READ))]
ReorderContext = Annotated[RequestContext, Depends(require_permission(Resource.PRODUCTS, Operation.MANAGE_REORDER))]


@router.get("", response_model=PaginatedResponse[List[ProductResponse]])
async def list_products(
    db: DB,
    ctx: ReadContext,
    search: Optional[str] = Query(None, description="Search name or SKU"),
    category: Optional[uuid.UUID] = Query(None),
    warehouse: Optional[uuid.UUID] = Query(None),
    status: Optional[StockStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """Get paginated products, newest first."""
    products, total, pages = await ProductService(db).get_products(
        search=search,
        category_id=category,
        warehouse_id=warehouse,
        status=status,
        page=page,
        limit=limit,
    )
    return PaginatedResponse(
        data=[ProductResponse.model_validate(p) for p in products],
        count=len(products),
        total=total,
        page=page,
        pages=pages,
    )


@router.get("/stock", response_model=ApiResponse[List[ProductResponse]])
async def get_stock_availability(
    db: DB,
    ctx: ReadContext,
    search: Optional[str] = Query(None),
    category: Optional[uuid.UUID] = Query(None),
    warehouse: Optional[uuid.UUID] = Query(None),
    status: Optional[StockStatus] = Query(None),
):
    """Stock availability, lowest stock first."""
    products = await ProductService(db).get_stock_availability(
        search=search,
        category_id=category,
        warehouse_id=warehouse,
        status=status,
    )
    return ApiResponse(
        data=[ProductResponse.model_validate(p) for p in products],
        count=len(products),
    )


@router.get("/reorder-rules", response_model=ApiResponse[List[ReorderRuleResponse]])
async def get_reorder_rules(db: DB, ctx: ReorderContext):
    products = await ProductService(db).get_reorder_rules()
    return ApiResponse(
        data=[ReorderRuleResponse.model_validate(p) for p in products],
        count=len(products),
    )


@router.put("/{product_id}/reorder-rule", response_model=ApiResponse[ReorderRuleResponse])
async def update_reorder_rule(
    product_id: uuid.UUID,
    data: ReorderRuleUpdate,
    db: DB,
    ctx: ReorderContext,
):
    product = await ProductService(db).update_reorder_rule(
        ctx, product_id, data.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Reorder rule updated successfully",
        data=ReorderRuleResponse.model_validate(product),
    )


@router.get("/purchase-suggestions", response_model=ApiResponse[List[ReorderRuleResponse]])
async def get_purchase_suggestions(db: DB, ctx: ReorderContext):
    """Products at or below their reorder level with the quantity to order."""
    products = await ProductService(db).get_purchase_suggestions()
    return ApiResponse(
        data=[ReorderRuleResponse.model_validate(p) for p in products],
        count=len(products),
    )


@router.get("/generate-sku", response_model=ApiResponse[SkuSuggestion])
async def generate_sku(
    db: DB,
    ctx: ReorderContext,
    category_id: Optional[uuid.UUID] = Query(None),
):
    """Suggest the next free SKU for a category. Nothing is reserved."""
    sku = await ProductService(db).suggest_sku(category_id)
    return ApiResponse(data=SkuSuggestion(sku=sku))


@router.get("/{product_id}", response_model=ApiResponse[ProductResponse])
async def get_product(product_id: uuid.UUID, db: DB, ctx: ReadContext):
    product = await ProductService(db).get_product(product_id)
    return ApiResponse(data=ProductResponse.model_validate(product))


@router.post(
    "",
    response_model=ApiResponse[ProductResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    data: ProductCreate,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.PRODUCTS, Operation.CREATE))],
):
    product = await ProductService(db).create_product(ctx, data.model_dump())
    return ApiResponse(
        message="Product created successfully",
        data=ProductResponse.model_validate(product),
    )


@router.put("/{product_id}", response_model=ApiResponse[ProductResponse])
async def update_product(
    product_id: uuid.UUID,
    data: ProductUpdate,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.PRODUCTS, Operation.UPDATE))],
):
    product = await ProductService(db).update_product(
        ctx, product_id, data.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Product updated successfully",
        data=ProductResponse.model_validate(product),
    )


@router.delete("/{product_id}", response_model=ApiResponse[None])
async def delete_product(
    product_id: uuid.UUID,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.PRODUCTS, Operation.DELETE))],
):
    await ProductService(db).delete_product(ctx, product_id)
    return ApiResponse(message="Product deleted successfully")
