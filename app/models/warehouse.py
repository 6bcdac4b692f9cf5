"""Warehouse model for inventory locations."""
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, ForeignKey, Integer, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from app.database import Base


class Warehouse(Base):
    """Warehouse model for storing inventory locations."""

    __tablename__ = "warehouses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(20), unique=True, nullable=False, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)

    # Location
    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    zip_code = Column(String(20))
    country = Column(String(100), nullable=False, default="USA")

    # Capacity in units, unbounded when null
    capacity = Column(Integer)

    # Manager
    manager_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    # Status
    is_active = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    manager = relationship("User", foreign_keys=[manager_id])
    products = relationship("Product", back_populates="warehouse", passive_deletes=True)

    @property
    def location(self) -> dict:
        """Location block as exposed by the API."""
        return {
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "country": self.country,
        }

    @property
    def full_address(self) -> str:
        """Get formatted full address."""
        parts = [self.address, self.city, self.state]
        if self.zip_code:
            parts.append(self.zip_code)
        parts.append(self.country)
        return ", ".join(parts)

    def __repr__(self):
        return f"<Warehouse {self.code}: {self.name}>"
