"""Warehouse API endpoints."""
from typing import Annotated, List, Optional
import uuid

from fastapi import APIRouter, status, Query, Depends

from app.api.deps import DB, require_permission
from app.core.permissions import Operation, Resource
from app.core.request_context import RequestContext
from app.schemas.base import ApiResponse
from app.schemas.warehouse import (
    WarehouseCreate,
    WarehouseUpdate,
    WarehouseResponse,
)
from app.services.warehouse_service import WarehouseService


router = APIRouter(tags=["Warehouses"])


@router.get("", response_model=ApiResponse[List[WarehouseResponse]])
async def list_warehouses(
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.WAREHOUSES, Operation.READ))],
    is_active: Optional[bool] = Query(None),
):
    """Get all warehouses sorted by name."""
    warehouses = await WarehouseService(db).list_warehouses(is_active=is_active)
    return ApiResponse(
        data=[WarehouseResponse.model_validate(w) for w in warehouses],
        count=len(warehouses),
    )


@router.get("/{warehouse_id}", response_model=ApiResponse[WarehouseResponse])
async def get_warehouse(
    warehouse_id: uuid.UUID,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.WAREHOUSES, Operation.READ))],
):
    """Get warehouse by ID."""
    warehouse = await WarehouseService(db).get_warehouse(warehouse_id)
    return ApiResponse(data=WarehouseResponse.model_validate(warehouse))


@router.post(
    "",
    response_model=ApiResponse[WarehouseResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_warehouse(
    data: WarehouseCreate,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.WAREHOUSES, Operation.CREATE))],
):
    """
    Create a new warehouse.
    Requires: Admin
    """
    warehouse = await WarehouseService(db).create_warehouse(ctx, data.model_dump())
    return ApiResponse(
        message="Warehouse created successfully",
        data=WarehouseResponse.model_validate(warehouse),
    )


@router.put("/{warehouse_id}", response_model=ApiResponse[WarehouseResponse])
async def update_warehouse(
    warehouse_id: uuid.UUID,
    data: WarehouseUpdate,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.WAREHOUSES, Operation.UPDATE))],
):
    """
    Update warehouse.
    Requires: Admin
    """
    warehouse = await WarehouseService(db).update_warehouse(
        ctx, warehouse_id, data.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Warehouse updated successfully",
        data=WarehouseResponse.model_validate(warehouse),
    )


@router.delete("/{warehouse_id}", response_model=ApiResponse[None])
async def delete_warehouse(
    warehouse_id: uuid.UUID,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.WAREHOUSES, Operation.DELETE))],
):
    """
    Delete a warehouse with no products assigned.
    Requires: Admin
    """
    await WarehouseService(db).delete_warehouse(ctx, warehouse_id)
    return ApiResponse(message="Warehouse deleted successfully")
