from pydantic import BaseModel, Field

from app.schemas.base import BaseResponseSchema
from typing import Optional
from datetime import datetime
import uuid


class CategoryBase(BaseModel):
    """Base category schema."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[uuid.UUID] = None


class CategoryCreate(CategoryBase):
    """Category creation schema."""
    pass


class CategoryUpdate(BaseModel):
    """Category update schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    parent_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None


class CategoryBrief(BaseResponseSchema):
    """Category reference embedded in products."""
    id: uuid.UUID
    name: str


class CategoryResponse(BaseResponseSchema):
    """Category response schema."""
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    parent_id: Optional[uuid.UUID] = None
    parent: Optional[CategoryBrief] = None
    is_active: bool
    product_count: int = 0
    created_at: datetime
    updated_at: datetime
