"""Warehouse schemas for API requests/responses."""
from pydantic import BaseModel, Field, field_validator

from app.schemas.base import BaseResponseSchema, UserRef
from typing import Optional
from datetime import datetime
import uuid


class WarehouseLocation(BaseModel):
    """Physical location of a warehouse."""
    address: str = Field(..., min_length=1, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: str = Field(default="USA", min_length=1, max_length=100)


class WarehouseLocationUpdate(BaseModel):
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, max_length=20)
    country: Optional[str] = Field(None, min_length=1, max_length=100)


class WarehouseCreate(BaseModel):
    """Warehouse creation schema."""
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=20)
    location: WarehouseLocation
    capacity: Optional[int] = Field(None, ge=0)
    manager_id: Optional[uuid.UUID] = None

    @field_validator("code")
    @classmethod
    def uppercase_code(cls, v: str) -> str:
        return v.strip().upper()


class WarehouseUpdate(BaseModel):
    """Warehouse update schema."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=20)
    location: Optional[WarehouseLocationUpdate] = None
    capacity: Optional[int] = Field(None, ge=0)
    manager_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def uppercase_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v


class WarehouseBrief(BaseResponseSchema):
    """Warehouse reference embedded in products and adjustments."""
    id: uuid.UUID
    name: str
    code: str


class WarehouseResponse(BaseResponseSchema):
    """Warehouse response schema."""
    id: uuid.UUID
    code: str
    name: str
    location: WarehouseLocation
    capacity: Optional[int] = None
    manager_id: Optional[uuid.UUID] = None
    manager: Optional[UserRef] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
