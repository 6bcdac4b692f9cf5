"""
Base Schema Classes for Pydantic Models

This module provides base classes that handle common patterns like UUID serialization,
ensuring consistency across all response schemas, plus the response envelope
every endpoint returns.

RULE: All response schemas that use `from_attributes=True` MUST inherit from BaseResponseSchema.
"""

from datetime import datetime
from typing import Generic, Optional, TypeVar
from uuid import UUID
from pydantic import BaseModel, ConfigDict


T = TypeVar("T")


class BaseResponseSchema(BaseModel):
    """
    Base class for all response schemas that read from ORM models.

    Features:
    - Automatically handles UUID → string serialization in JSON
    - Enables from_attributes for ORM compatibility
    - Consistent datetime serialization

    Usage:
        class ProductResponse(BaseResponseSchema):
            id: UUID
            name: str
            category_id: Optional[UUID] = None
    """
    model_config = ConfigDict(
        from_attributes=True,
        # Serialize UUIDs as strings in JSON output
        json_encoders={
            UUID: str,
            datetime: lambda v: v.isoformat() if v else None,
        },
        # Allow population by field name or alias
        populate_by_name=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """
    Response envelope.

        {"success": true, "message": "...", "data": {...}, "count": 3}
    """
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    count: Optional[int] = None


class PaginatedResponse(ApiResponse[T], Generic[T]):
    """Envelope for page/limit listings."""
    total: int = 0
    page: int = 1
    pages: int = 0


class UserRef(BaseResponseSchema):
    """User reference expanded inside other resources."""
    id: UUID
    name: str
    email: str
