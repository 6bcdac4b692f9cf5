"""Delivery (outbound) API endpoints."""
from datetime import datetime
from typing import Annotated, List, Optional
import uuid

from fastapi import APIRouter, BackgroundTasks, status, Query, Depends

from app.api.deps import DB, require_permission
from app.core.permissions import Operation, Resource
from app.core.request_context import RequestContext
from app.models.delivery import DeliveryStatus
from app.schemas.base import ApiResponse
from app.schemas.delivery import DeliveryCreate, DeliveryUpdate, DeliveryResponse
from app.services.delivery_service import DeliveryService
from app.services.notification_service import schedule_low_stock_alert


router = APIRouter(tags=["Deliveries"])


def _gate(operation: Operation):
    return Annotated[RequestContext, Depends(require_permission(Resource.DELIVERIES, operation))]


@router.get("", response_model=ApiResponse[List[DeliveryResponse]])
async def list_deliveries(
    db: DB,
    ctx: _gate(Operation.READ),
    status: Optional[DeliveryStatus] = Query(None),
    customer: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, description="delivery_date from"),
    end_date: Optional[datetime] = Query(None, description="delivery_date to"),
    search: Optional[str] = Query(None, description="Search delivery number or customer"),
):
    """Get deliveries, newest first."""
    deliveries = await DeliveryService(db).list_deliveries(
        status=status.value if status else None,
        customer=customer,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return ApiResponse(
        data=[DeliveryResponse.model_validate(d) for d in deliveries],
        count=len(deliveries),
    )


@router.get("/{delivery_id}", response_model=ApiResponse[DeliveryResponse])
async def get_delivery(delivery_id: uuid.UUID, db: DB, ctx: _gate(Operation.READ)):
    delivery = await DeliveryService(db).get_delivery(delivery_id)
    return ApiResponse(data=DeliveryResponse.model_validate(delivery))


@router.post(
    "",
    response_model=ApiResponse[DeliveryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_delivery(data: DeliveryCreate, db: DB, ctx: _gate(Operation.CREATE)):
    """
    Create a Draft delivery.
    Each line is checked against current stock; nothing is reserved.
    """
    delivery = await DeliveryService(db).create_delivery(ctx, data.model_dump())
    return ApiResponse(
        message="Delivery created successfully",
        data=DeliveryResponse.model_validate(delivery),
    )


@router.put("/{delivery_id}", response_model=ApiResponse[DeliveryResponse])
async def update_delivery(
    delivery_id: uuid.UUID,
    data: DeliveryUpdate,
    db: DB,
    ctx: _gate(Operation.UPDATE),
):
    delivery = await DeliveryService(db).update_delivery(
        ctx, delivery_id, data.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Delivery updated successfully",
        data=DeliveryResponse.model_validate(delivery),
    )


@router.put("/{delivery_id}/validate", response_model=ApiResponse[DeliveryResponse])
async def validate_delivery(
    delivery_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    db: DB,
    ctx: _gate(Operation.VALIDATE),
):
    """
    Validate a delivery and take picked quantities out of stock.
    Requires: Admin or Inventory Manager
    """
    delivery, low_stock = await DeliveryService(db).validate_delivery(ctx, delivery_id)
    schedule_low_stock_alert(background_tasks, low_stock)
    return ApiResponse(
        message="Delivery validated and stock updated successfully",
        data=DeliveryResponse.model_validate(delivery),
    )


@router.delete("/{delivery_id}", response_model=ApiResponse[None])
async def delete_delivery(delivery_id: uuid.UUID, db: DB, ctx: _gate(Operation.DELETE)):
    """
    Delete a delivery that is not Delivered.
    Requires: Admin or Inventory Manager
    """
    await DeliveryService(db).delete_delivery(ctx, delivery_id)
    return ApiResponse(message="Delivery deleted successfully")
