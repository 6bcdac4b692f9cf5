import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Integer, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base

if TYPE_CHECKING:
    from app.models.category import Category
    from app.models.warehouse import Warehouse
    from app.models.user import User


class UnitOfMeasure(str, Enum):
    """Units a product can be stocked in."""
    KG = "kg"
    GRAMS = "grams"
    LITERS = "liters"
    ML = "ml"
    PIECES = "pieces"
    BOXES = "boxes"
    PACKS = "packs"
    METERS = "meters"
    CM = "cm"


class StockStatus(str, Enum):
    """Stock status derived from current stock and reorder level."""
    IN_STOCK = "in_stock"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


def stock_status(current_stock: int, reorder_level: int) -> StockStatus:
    """
    Classify a stock level.

    0 is out of stock, anything up to and including the reorder level is
    low stock, everything above is in stock.
    """
    if current_stock == 0:
        return StockStatus.OUT_OF_STOCK
    if current_stock <= reorder_level:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def suggested_order_qty(
    current_stock: int,
    reorder_level: int,
    max_stock_level: Optional[int],
) -> int:
    """Quantity needed to refill up to max_stock_level once at or below the reorder level."""
    if not max_stock_level:
        return 0
    if current_stock <= reorder_level:
        return max(0, max_stock_level - current_stock)
    return 0


class Product(Base):
    """
    Product catalog entry and the authoritative on-hand quantity (stock ledger).

    current_stock is only written by the stock ledger service. The version
    column is bumped on every UPDATE, so a write based on a stale read fails
    instead of silently overwriting a concurrent change.
    """
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("current_stock >= 0", name="ck_products_current_stock_non_negative"),
        CheckConstraint("reorder_level >= 0", name="ck_products_reorder_level_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )

    # Basic info
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    unit_of_measure: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="kg, grams, liters, ml, pieces, boxes, packs, meters, cm"
    )

    # Catalog references
    category_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("categories.id"),
        nullable=False,
        index=True
    )
    warehouse_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("warehouses.id"),
        nullable=True,
        index=True
    )

    # Stock ledger
    current_stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Reorder rule
    reorder_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_stock_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    auto_reorder_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Audit
    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )
    last_updated_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    category: Mapped["Category"] = relationship("Category", back_populates="products")
    warehouse: Mapped[Optional["Warehouse"]] = relationship("Warehouse", back_populates="products")
    created_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[created_by_id])
    last_updated_by: Mapped[Optional["User"]] = relationship("User", foreign_keys=[last_updated_by_id])

    @property
    def stock_status(self) -> StockStatus:
        """Derived stock status, recomputed on every read."""
        return stock_status(self.current_stock, self.reorder_level)

    @property
    def suggested_order_qty(self) -> int:
        """Derived refill quantity, recomputed on every read."""
        return suggested_order_qty(self.current_stock, self.reorder_level, self.max_stock_level)

    @property
    def needs_reorder(self) -> bool:
        return self.stock_status != StockStatus.IN_STOCK

    def __repr__(self) -> str:
        return f"<Product(sku='{self.sku}', stock={self.current_stock})>"
