"""Receipt schemas for API requests/responses."""
from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema, UserRef
from app.schemas.product import ProductRef
from typing import Optional, List
from datetime import datetime
import uuid

from app.models.receipt import ReceiptStatus, QualityStatus


# ==================== ITEM SCHEMAS ====================

class ReceiptItemCreate(BaseModel):
    """Receipt line."""
    product_id: uuid.UUID
    expected_qty: int = Field(..., ge=0)
    received_qty: int = Field(default=0, ge=0)
    quality_status: QualityStatus = QualityStatus.PENDING
    notes: Optional[str] = None


class ReceiptItemResponse(BaseResponseSchema):
    id: uuid.UUID
    line_no: int
    product_id: Optional[uuid.UUID] = None
    product: Optional[ProductRef] = None
    expected_qty: int
    received_qty: int
    quality_status: str
    notes: Optional[str] = None


# ==================== RECEIPT SCHEMAS ====================

class ReceiptCreate(BaseModel):
    """Receipt creation schema. Number and status are assigned by the server."""
    supplier: str = Field(..., min_length=1, max_length=200)
    expected_date: datetime
    reference_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    items: List[ReceiptItemCreate] = Field(..., min_length=1)


class ReceiptUpdate(BaseModel):
    """
    Receipt update schema.

    items, when sent, replace the existing lines wholesale.
    """
    supplier: Optional[str] = Field(None, min_length=1, max_length=200)
    expected_date: Optional[datetime] = None
    reference_number: Optional[str] = Field(None, max_length=100)
    status: Optional[ReceiptStatus] = None
    notes: Optional[str] = None
    items: Optional[List[ReceiptItemCreate]] = Field(None, min_length=1)


class ReceiptResponse(BaseResponseSchema):
    """Receipt response with expanded references."""
    id: uuid.UUID
    receipt_number: str
    reference_number: Optional[str] = None
    supplier: str
    expected_date: datetime
    received_date: Optional[datetime] = None
    status: str
    notes: Optional[str] = None
    items: List[ReceiptItemResponse] = []
    total_items: int
    created_by: Optional[UserRef] = None
    last_updated_by: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime
