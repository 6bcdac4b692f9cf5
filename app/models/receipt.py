"""Receipt model for inbound stock."""
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, ForeignKey, Integer, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid

from app.database import Base


class ReceiptStatus(str, Enum):
    """Receipt status enum. DONE is terminal."""
    DRAFT = "Draft"
    WAITING = "Waiting"
    RECEIVED = "Received"
    DONE = "Done"


class QualityStatus(str, Enum):
    """Quality check outcome of a received line."""
    PENDING = "Pending"
    PASS = "Pass"
    FAIL = "Fail"


class Receipt(Base):
    """Inbound goods receipt header."""

    __tablename__ = "receipts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Identification
    receipt_number = Column(String(30), unique=True, nullable=False, index=True)
    reference_number = Column(String(100), default="")

    # Counterparty
    supplier = Column(String(200), nullable=False, index=True)

    # Dates
    expected_date = Column(DateTime(timezone=True), nullable=False)
    received_date = Column(DateTime(timezone=True))

    status = Column(
        String(20),
        nullable=False,
        default=ReceiptStatus.DRAFT.value,
        index=True,
        comment="Draft, Waiting, Received, Done"
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
        "ReceiptItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="ReceiptItem.line_no",
    )
    created_by = relationship("User", foreign_keys=[created_by_id])
    last_updated_by = relationship("User", foreign_keys=[last_updated_by_id])

    @property
    def total_items(self) -> int:
        """Total received quantity across all lines."""
        return sum(item.received_qty or 0 for item in self.items)

    def __repr__(self):
        return f"<Receipt {self.receipt_number} ({self.status})>"


class ReceiptItem(Base):
    """Line of a receipt."""

    __tablename__ = "receipt_items"
    __table_args__ = (
        CheckConstraint("expected_qty >= 0", name="ck_receipt_items_expected_qty"),
        CheckConstraint("received_qty >= 0", name="ck_receipt_items_received_qty"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    receipt_id = Column(UUID(as_uuid=True), ForeignKey("receipts.id", ondelete="CASCADE"), nullable=False, index=True)
    line_no = Column(Integer, nullable=False, default=0)

    # Product is nulled if the product is later deleted
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), index=True)

    # Quantities
    expected_qty = Column(Integer, nullable=False, default=0)
    received_qty = Column(Integer, nullable=False, default=0)

    quality_status = Column(
        String(20),
        nullable=False,
        default=QualityStatus.PENDING.value,
        comment="Pending, Pass, Fail"
    )
    notes = Column(Text, default="")

    # Relationships
    receipt = relationship("Receipt", back_populates="items")
    product = relationship("Product")

    def __repr__(self):
        return f"<ReceiptItem {self.product_id} x{self.received_qty}>"
