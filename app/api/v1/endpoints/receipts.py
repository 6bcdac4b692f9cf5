"""Receipt (inbound) API endpoints."""
from datetime import datetime
from typing import Annotated, List, Optional
import uuid

from fastapi import APIRouter, status, Query, Depends

from app.api.deps import DB, require_permission
from app.core.permissions import Operation, Resource
from app.core.request_context import RequestContext
from app.models.receipt import ReceiptStatus
from app.schemas.base import ApiResponse
from app.schemas.receipt import ReceiptCreate, ReceiptUpdate, ReceiptResponse
from app.services.receipt_service import ReceiptService


router = APIRouter(tags=["Receipts"])


def _gate(operation: Operation):
    return Annotated[RequestContext, Depends(require_permission(Resource.RECEIPTS, operation))]


@router.get("", response_model=ApiResponse[List[ReceiptResponse]])
async def list_receipts(
    db: DB,
    ctx: _gate(Operation.READ),
    status: Optional[ReceiptStatus] = Query(None),
    supplier: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None, description="expected_date from"),
    end_date: Optional[datetime] = Query(None, description="expected_date to"),
    search: Optional[str] = Query(None, description="Search receipt number or supplier"),
):
    """Get receipts, newest first."""
    receipts = await ReceiptService(db).list_receipts(
        status=status.value if status else None,
        supplier=supplier,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return ApiResponse(
        data=[ReceiptResponse.model_validate(r) for r in receipts],
        count=len(receipts),
    )


@router.get("/{receipt_id}", response_model=ApiResponse[ReceiptResponse])
async def get_receipt(receipt_id: uuid.UUID, db: DB, ctx: _gate(Operation.READ)):
    receipt = await ReceiptService(db).get_receipt(receipt_id)
    return ApiResponse(data=ReceiptResponse.model_validate(receipt))


@router.post(
    "",
    response_model=ApiResponse[ReceiptResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_receipt(data: ReceiptCreate, db: DB, ctx: _gate(Operation.CREATE)):
    """Create a Draft receipt. The receipt number is assigned here."""
    receipt = await ReceiptService(db).create_receipt(ctx, data.model_dump())
    return ApiResponse(
        message="Receipt created successfully",
        data=ReceiptResponse.model_validate(receipt),
    )


@router.put("/{receipt_id}", response_model=ApiResponse[ReceiptResponse])
async def update_receipt(
    receipt_id: uuid.UUID,
    data: ReceiptUpdate,
    db: DB,
    ctx: _gate(Operation.UPDATE),
):
    receipt = await ReceiptService(db).update_receipt(
        ctx, receipt_id, data.model_dump(exclude_unset=True)
    )
    return ApiResponse(
        message="Receipt updated successfully",
        data=ReceiptResponse.model_validate(receipt),
    )


@router.put("/{receipt_id}/validate", response_model=ApiResponse[ReceiptResponse])
async def validate_receipt(receipt_id: uuid.UUID, db: DB, ctx: _gate(Operation.VALIDATE)):
    """
    Validate a receipt and add passed quantities to stock.
    Requires: Admin or Inventory Manager
    """
    receipt = await ReceiptService(db).validate_receipt(ctx, receipt_id)
    return ApiResponse(
        message="Receipt validated and stock updated successfully",
        data=ReceiptResponse.model_validate(receipt),
    )


@router.delete("/{receipt_id}", response_model=ApiResponse[None])
async def delete_receipt(receipt_id: uuid.UUID, db: DB, ctx: _gate(Operation.DELETE)):
    """
    Delete a receipt that is not Done.
    Requires: Admin or Inventory Manager
    """
    await ReceiptService(db).delete_receipt(ctx, receipt_id)
    return ApiResponse(message="Receipt deleted successfully")
