"""Stock adjustment API endpoints."""
from datetime import datetime
from typing import Annotated, List, Optional
import uuid

from fastapi import APIRouter, BackgroundTasks, status, Query, Depends

from app.api.deps import DB, require_permission
from app.core.permissions import Operation, Resource
from app.core.request_context import RequestContext
from app.models.adjustment import AdjustmentReason
from app.schemas.base import ApiResponse
from app.schemas.adjustment import AdjustmentCreate, AdjustmentResponse
from app.services.adjustment_service import AdjustmentService
from app.services.notification_service import schedule_low_stock_alert


router = APIRouter(tags=["Stock Adjustments"])


ReadContext = Annotated[RequestContext, Depends(require_permission(Resource.ADJUSTMENTS, Operation.READ))]


@router.get("", response_model=ApiResponse[List[AdjustmentResponse]])
async def list_adjustments(
    db: DB,
    ctx: ReadContext,
    reason: Optional[AdjustmentReason] = Query(None),
    warehouse: Optional[uuid.UUID] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, description="Search adjustment number"),
):
    """Get adjustments, newest first."""
    adjustments = await AdjustmentService(db).list_adjustments(
        reason=reason.value if reason else None,
        warehouse_id=warehouse,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return ApiResponse(
        data=[AdjustmentResponse.model_validate(a) for a in adjustments],
        count=len(adjustments),
    )


@router.get("/{adjustment_id}", response_model=ApiResponse[AdjustmentResponse])
async def get_adjustment(adjustment_id: uuid.UUID, db: DB, ctx: ReadContext):
    adjustment = await AdjustmentService(db).get_adjustment(adjustment_id)
    return ApiResponse(data=AdjustmentResponse.model_validate(adjustment))


@router.post(
    "",
    response_model=ApiResponse[AdjustmentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_adjustment(
    data: AdjustmentCreate,
    background_tasks: BackgroundTasks,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.ADJUSTMENTS, Operation.CREATE))],
):
    """
    Record a physical count and set the product's stock to it.
    Requires: Admin or Inventory Manager
    """
    adjustment, low_stock = await AdjustmentService(db).create_adjustment(ctx, data.model_dump())
    schedule_low_stock_alert(background_tasks, low_stock)
    return ApiResponse(
        message="Adjustment created and stock updated successfully",
        data=AdjustmentResponse.model_validate(adjustment),
    )


@router.delete("/{adjustment_id}", response_model=ApiResponse[None])
async def delete_adjustment(
    adjustment_id: uuid.UUID,
    db: DB,
    ctx: Annotated[RequestContext, Depends(require_permission(Resource.ADJUSTMENTS, Operation.DELETE))],
):
    """
    Delete an adjustment record. Stock is left as it is.
    Requires: Admin or Inventory Manager
    """
    await AdjustmentService(db).delete_adjustment(ctx, adjustment_id)
    return ApiResponse(message="Adjustment deleted successfully")
