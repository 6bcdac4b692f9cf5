"""Stock adjustment schemas for API requests/responses."""
from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema, UserRef
from app.schemas.warehouse import WarehouseBrief
from typing import Optional
from datetime import datetime
import uuid

from app.models.adjustment import AdjustmentReason


class AdjustmentCreate(BaseModel):
    """
    Adjustment creation schema.

    system_stock and difference are computed by the server at creation.
    """
    product_id: uuid.UUID
    warehouse_id: Optional[uuid.UUID] = None
    physical_count: int = Field(..., ge=0)
    reason: AdjustmentReason
    notes: Optional[str] = None


class AdjustmentProduct(BaseResponseSchema):
    id: uuid.UUID
    name: str
    sku: str
    unit_of_measure: str


class AdjustmentResponse(BaseResponseSchema):
    """Adjustment response with expanded references."""
    id: uuid.UUID
    adjustment_number: str
    product_id: Optional[uuid.UUID] = None
    product: Optional[AdjustmentProduct] = None
    warehouse_id: Optional[uuid.UUID] = None
    warehouse: Optional[WarehouseBrief] = None
    system_stock: int
    physical_count: int
    difference: int
    reason: str
    notes: Optional[str] = None
    adjusted_by: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime
