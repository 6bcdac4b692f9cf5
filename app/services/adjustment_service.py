"""
Stock adjustment service.

An adjustment records a physical count. Creating it is the stock mutation:
the product's stock is overwritten with the counted quantity, so two
adjustments in a row leave the last count, not a sum. Deleting an adjustment
does not restore the previous stock.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import NotFoundError, ValidationError
from app.core.request_context import RequestContext
from app.models.adjustment import StockAdjustment, AdjustmentReason
from app.models.document_sequence import DocumentType
from app.models.product import Product
from app.models.warehouse import Warehouse
from app.services.document_sequence_service import DocumentSequenceService
from app.services.notification_service import low_stock_alerts
from app.services.stock_ledger_service import StockLedgerService


logger = logging.getLogger(__name__)


ADJUSTMENT_LOAD_OPTIONS = (
    selectinload(StockAdjustment.product),
    selectinload(StockAdjustment.warehouse),
    selectinload(StockAdjustment.adjusted_by),
)


class AdjustmentService:
    """Service for stock adjustments."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_adjustments(
        self,
        reason: Optional[str] = None,
        warehouse_id: Optional[uuid.UUID] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> List[StockAdjustment]:
        """List adjustments newest first. Date filters apply to created_at."""
        query = select(StockAdjustment).options(*ADJUSTMENT_LOAD_OPTIONS)

        if reason:
            query = query.where(StockAdjustment.reason == reason)
        if warehouse_id:
            query = query.where(StockAdjustment.warehouse_id == warehouse_id)
        if start_date:
            query = query.where(StockAdjustment.created_at >= start_date)
        if end_date:
            query = query.where(StockAdjustment.created_at <= end_date)
        if search:
            query = query.where(StockAdjustment.adjustment_number.ilike(f"%{search}%"))

        result = await self.db.execute(query.order_by(StockAdjustment.created_at.desc()))
        return list(result.scalars().all())

    async def get_adjustment(self, adjustment_id: uuid.UUID) -> StockAdjustment:
        result = await self.db.execute(
            select(StockAdjustment)
            .options(*ADJUSTMENT_LOAD_OPTIONS)
            .where(StockAdjustment.id == adjustment_id)
            .execution_options(populate_existing=True)
        )
        adjustment = result.scalar_one_or_none()
        if adjustment is None:
            raise NotFoundError("Adjustment not found")
        return adjustment

    async def create_adjustment(
        self, ctx: RequestContext, data: dict
    ) -> Tuple[StockAdjustment, List[Dict[str, Any]]]:
        """
        Record a physical count and set the product's stock to it.

        Returns:
            Tuple of (adjustment, low-stock snapshot of the product, empty when above reorder level)

        Raises:
            NotFoundError: product does not exist
            ValidationError: negative count, unknown reason or warehouse
        """
        physical_count = data["physical_count"]
        if physical_count < 0:
            raise ValidationError("Physical count cannot be negative")
        try:
            reason = AdjustmentReason(data["reason"]).value
        except ValueError:
            raise ValidationError(f"Invalid adjustment reason '{data['reason']}'")

        if await self.db.get(Product, data["product_id"]) is None:
            raise NotFoundError("Product not found")

        warehouse_id = data.get("warehouse_id")
        if warehouse_id and await self.db.get(Warehouse, warehouse_id) is None:
            raise ValidationError("Invalid warehouse")

        adjustment_number = await DocumentSequenceService(self.db).next_number(DocumentType.ADJUSTMENT.value)

        product, system_stock = await StockLedgerService(self.db).set_stock(
            ctx, data["product_id"], physical_count, source=f"adjustment {adjustment_number}"
        )

        adjustment = StockAdjustment(
            adjustment_number=adjustment_number,
            product_id=product.id,
            warehouse_id=warehouse_id,
            system_stock=system_stock,
            physical_count=physical_count,
            difference=physical_count - system_stock,
            reason=reason,
            notes=data.get("notes") or "",
            adjusted_by_id=ctx.user_id,
        )
        self.db.add(adjustment)
        await self.db.commit()

        logger.info(
            f"Adjustment {adjustment_number} on {product.sku}: {system_stock} -> {physical_count} "
            f"({reason}) by user {ctx.user_id}"
        )
        low_stock = low_stock_alerts([product])
        return await self.get_adjustment(adjustment.id), low_stock

    async def delete_adjustment(self, ctx: RequestContext, adjustment_id: uuid.UUID) -> None:
        """Delete an adjustment record. The stock change it made stays in place."""
        adjustment = await self.get_adjustment(adjustment_id)

        await self.db.delete(adjustment)
        await self.db.commit()
        logger.info(f"Adjustment {adjustment.adjustment_number} deleted by user {ctx.user_id}")
