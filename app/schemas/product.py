from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.base import BaseResponseSchema, UserRef
from app.schemas.category import CategoryBrief
from app.schemas.warehouse import WarehouseBrief
from typing import Optional
from datetime import datetime
import uuid

from app.models.product import UnitOfMeasure, StockStatus


def _check_max_stock(reorder_level: Optional[int], max_stock_level: Optional[int]) -> None:
    if max_stock_level is not None and reorder_level is not None and max_stock_level < reorder_level:
        raise ValueError("max_stock_level must be greater than or equal to reorder_level")


# ==================== PRODUCT SCHEMAS ====================

class ProductCreate(BaseModel):
    """Product creation schema."""
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = Field(None, max_length=500)
    unit_of_measure: UnitOfMeasure
    category_id: uuid.UUID
    warehouse_id: Optional[uuid.UUID] = None
    current_stock: int = Field(default=0, ge=0)  # Opening balance
    reorder_level: int = Field(..., ge=0)
    max_stock_level: Optional[int] = Field(None, ge=0)
    auto_reorder_enabled: bool = False

    @field_validator("sku")
    @classmethod
    def uppercase_sku(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def check_stock_levels(self):
        _check_max_stock(self.reorder_level, self.max_stock_level)
        return self


class ProductUpdate(BaseModel):
    """
    Product update schema.

    current_stock is deliberately absent: stock only changes through
    receipts, deliveries and adjustments.
    """
    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = Field(None, max_length=500)
    unit_of_measure: Optional[UnitOfMeasure] = None
    category_id: Optional[uuid.UUID] = None
    warehouse_id: Optional[uuid.UUID] = None
    reorder_level: Optional[int] = Field(None, ge=0)
    max_stock_level: Optional[int] = Field(None, ge=0)
    auto_reorder_enabled: Optional[bool] = None

    @field_validator("sku")
    @classmethod
    def uppercase_sku(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class ReorderRuleUpdate(BaseModel):
    """Reorder rule update for a single product."""
    reorder_level: Optional[int] = Field(None, ge=0)
    max_stock_level: Optional[int] = Field(None, ge=0)
    auto_reorder_enabled: Optional[bool] = None


class ProductRef(BaseResponseSchema):
    """Product reference expanded inside document lines."""
    id: uuid.UUID
    name: str
    sku: str
    unit_of_measure: str
    current_stock: int


class ProductResponse(BaseResponseSchema):
    """Product response schema."""
    id: uuid.UUID
    sku: str
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    unit_of_measure: str
    category_id: uuid.UUID
    category: Optional[CategoryBrief] = None
    warehouse_id: Optional[uuid.UUID] = None
    warehouse: Optional[WarehouseBrief] = None
    current_stock: int
    reorder_level: int
    max_stock_level: Optional[int] = None
    auto_reorder_enabled: bool
    stock_status: StockStatus
    suggested_order_qty: int
    version: int
    created_by: Optional[UserRef] = None
    last_updated_by: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime


class ReorderRuleResponse(BaseResponseSchema):
    """Reorder rule view of a product (also used for purchase suggestions)."""
    id: uuid.UUID
    name: str
    sku: str
    category: Optional[CategoryBrief] = None
    warehouse: Optional[WarehouseBrief] = None
    current_stock: int
    reorder_level: int
    max_stock_level: Optional[int] = None
    auto_reorder_enabled: bool
    stock_status: StockStatus
    suggested_order_qty: int


class SkuSuggestion(BaseModel):
    sku: str
