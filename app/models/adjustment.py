"""Stock adjustment model for physical count corrections."""
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, ForeignKey, Integer, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from app.database import Base


class AdjustmentReason(str, Enum):
    """Adjustment reason enum."""
    DAMAGED_GOODS = "Damaged Goods"
    EXPIRED_ITEMS = "Expired Items"
    THEFT_LOSS = "Theft/Loss"
    COUNTING_ERROR = "Counting Error"
    RETURN_TO_SUPPLIER = "Return to Supplier"
    OTHER = "Other"


class StockAdjustment(Base):
    """
    Physical count correction for a single product.

    There is no status: creating the record is the stock mutation.
    """

    __tablename__ = "stock_adjustments"
    __table_args__ = (
        CheckConstraint("physical_count >= 0", name="ck_stock_adjustments_physical_count"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Identification
    adjustment_number = Column(String(30), unique=True, nullable=False, index=True)

    # What was counted
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), index=True)
    warehouse_id = Column(UUID(as_uuid=True), ForeignKey("warehouses.id", ondelete="SET NULL"), index=True)

    # Quantities
    system_stock = Column(Integer, nullable=False)  # What the ledger showed
    physical_count = Column(Integer, nullable=False)  # What was counted
    difference = Column(Integer, nullable=False)  # physical_count - system_stock

    reason = Column(
        String(50),
        nullable=False,
        index=True,
        comment="Damaged Goods, Expired Items, Theft/Loss, Counting Error, Return to Supplier, Other"
    )
    notes = Column(Text, default="")

    adjusted_by_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    # Relationships
    product = relationship("Product")
    warehouse = relationship("Warehouse")
    adjusted_by = relationship("User", foreign_keys=[adjusted_by_id])

    def __repr__(self):
        return f"<StockAdjustment {self.adjustment_number}>"
