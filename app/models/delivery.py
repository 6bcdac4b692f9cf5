"""Delivery model for outbound stock."""
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, ForeignKey, Integer, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from app.database import Base


class DeliveryStatus(str, Enum):
    """Delivery status enum. DELIVERED is terminal."""
    DRAFT = "Draft"
    PICKING = "Picking"
    PACKED = "Packed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"


class Delivery(Base):
    """Outbound delivery header."""

    __tablename__ = "deliveries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Identification
    delivery_number = Column(String(30), unique=True, nullable=False, index=True)
    tracking_number = Column(String(100), default="")

    # Counterparty
    customer = Column(String(200), nullable=False, index=True)
    delivery_address = Column(Text, nullable=False)

    delivery_date = Column(DateTime(timezone=True), nullable=False)

    status = Column(
        String(20),
        nullable=False,
        default=DeliveryStatus.DRAFT.value,
        index=True,
        comment="Draft, Picking, Packed, Shipped, Delivered"
    )

    notes = Column(Text, default="")

    # Users
    created_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    last_updated_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    items = relationship(
        "DeliveryItem",
        back_populates="delivery",
        cascade="all, delete-orphan",
        order_by="DeliveryItem.line_no",
    )
    created_by = relationship("User", foreign_keys=[created_by_id])
    last_updated_by = relationship("User", foreign_keys=[last_updated_by_id])

    @property
    def total_items(self) -> int:
        """Total picked quantity across all lines."""
        return sum(item.picked_qty or 0 for item in self.items)

    def __repr__(self):
        return f"<Delivery {self.delivery_number} ({self.status})>"


class DeliveryItem(Base):
    """Line of a delivery."""

    __tablename__ = "delivery_items"
    __table_args__ = (
        CheckConstraint("requested_qty >= 0", name="ck_delivery_items_requested_qty"),
        CheckConstraint("picked_qty >= 0", name="ck_delivery_items_picked_qty"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    delivery_id = Column(UUID(as_uuid=True), ForeignKey("deliveries.id", ondelete="CASCADE"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False, default=0)

    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), index=True)

    # Quantities
    requested_qty = Column(Integer, nullable=False, default=0)
    picked_qty = Column(Integer, nullable=False, default=0)

    # Relationships
    delivery = relationship("Delivery", back_populates="items")
    product = relationship("Product")

    def __repr__(self):
        return f"<DeliveryItem {self.product_id} x{self.picked_qty}>"
