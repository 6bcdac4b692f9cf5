"""Delivery schemas for API requests/responses."""
from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema, UserRef
from app.schemas.product import ProductRef
from typing import Optional, List
from datetime import datetime
import uuid

from app.models.delivery import DeliveryStatus


# ==================== ITEM SCHEMAS ====================

class DeliveryItemCreate(BaseModel):
    """Delivery line."""
    product_id: uuid.UUID
    requested_qty: int = Field(..., ge=0)
    picked_qty: int = Field(default=0, ge=0)


class DeliveryItemResponse(BaseResponseSchema):
    id: uuid.UUID
    line_no: int
    product_id: Optional[uuid.UUID] = None
    product: Optional[ProductRef] = None
    requested_qty: int
    picked_qty: int


# ==================== DELIVERY SCHEMAS ====================

class DeliveryCreate(BaseModel):
    """Delivery creation schema. Number and status are assigned by the server."""
    customer: str = Field(..., min_length=1, max_length=200)
    delivery_address: str = Field(..., min_length=1)
    delivery_date: datetime
    tracking_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    items: List[DeliveryItemCreate] = Field(..., min_length=1)


class DeliveryUpdate(BaseModel):
    """
    Delivery update schema.

    items, when sent, replace the existing lines wholesale.
    """
    customer: Optional[str] = Field(None, min_length=1, max_length=200)
    delivery_address: Optional[str] = Field(None, min_length=1)
    delivery_date: Optional[datetime] = None
    tracking_number: Optional[str] = Field(None, max_length=100)
    status: Optional[DeliveryStatus] = None
    notes: Optional[str] = None
    items: Optional[List[DeliveryItemCreate]] = Field(None, min_length=1)


class DeliveryResponse(BaseResponseSchema):
    """Delivery response with expanded references."""
    id: uuid.UUID
    delivery_number: str
    tracking_number: Optional[str] = None
    customer: str
    delivery_address: str
    delivery_date: datetime
    status: str
    notes: Optional[str] = None
    items: List[DeliveryItemResponse] = []
    total_items: int
    created_by: Optional[UserRef] = None
    last_updated_by: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime
