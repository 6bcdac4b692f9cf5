"""
Delivery service: outbound goods.

Validation takes the picked quantity of every line out of stock. The check
is all-or-nothing: if any product would go below zero, nothing is written.
"""
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import BusinessRuleViolation, NotFoundError, ValidationError
from app.core.request_context import RequestContext
from app.models.delivery import Delivery, DeliveryItem, DeliveryStatus
from app.models.document_sequence import DocumentType
from app.models.product import Product
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_state_machine import DELIVERY_LIFECYCLE
from app.services.notification_service import low_stock_alerts
from app.services.stock_ledger_service import StockLedgerService


logger = logging.getLogger(__name__)


DELIVERY_LOAD_OPTIONS = (
    selectinload(Delivery.items).selectinload(DeliveryItem.product),
    selectinload(Delivery.created_by),
    selectinload(Delivery.last_updated_by),
)


class DeliveryService:
    """Service for delivery (outbound) documents."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.lifecycle = DELIVERY_LIFECYCLE

    # ==================== QUERIES ====================

    async def list_deliveries(
        self,
        status: Optional[str] = None,
        customer: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> List[Delivery]:
        """List deliveries newest first. Date filters apply to delivery_date."""
        query = select(Delivery).options(*DELIVERY_LOAD_OPTIONS)

        if status:
            query = query.where(Delivery.status == status)
        if customer:
            query = query.where(Delivery.customer.ilike(f"%{customer}%"))
        if start_date:
            query = query.where(Delivery.delivery_date >= start_date)
        if end_date:
            query = query.where(Delivery.delivery_date <= end_date)
        if search:
            query = query.where(
                or_(
                    Delivery.delivery_number.ilike(f"%{search}%"),
                    Delivery.customer.ilike(f"%{search}%"),
                )
            )

        result = await self.db.execute(query.order_by(Delivery.created_at.desc()))
        return list(result.scalars().all())

    async def get_delivery(self, delivery_id: uuid.UUID) -> Delivery:
        result = await self.db.execute(
            select(Delivery)
            .options(*DELIVERY_LOAD_OPTIONS)
            .where(Delivery.id == delivery_id)
            .execution_options(populate_existing=True)
        )
        delivery = result.scalar_one_or_none()
        if delivery is None:
            raise NotFoundError("Delivery not found")
        return delivery

    # ==================== HELPERS ====================

    async def _ensure_products_exist(self, product_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Product]:
        ids = set(product_ids)
        result = await self.db.execute(select(Product).where(Product.id.in_(ids)))
        products = {p.id: p for p in result.scalars().all()}
        for product_id in ids:
            if product_id not in products:
                raise ValidationError(f"Product with ID {product_id} not found")
        return products

    async def _check_requested_stock(self, items: List[dict]) -> None:
        """
        Advisory check at creation: each line's requested quantity must be on hand.

        Stock may still change before validation, which checks again.
        """
        products = await self._ensure_products_exist(item["product_id"] for item in items)
        for item in items:
            product = products[item["product_id"]]
            if product.current_stock < item["requested_qty"]:
                raise BusinessRuleViolation(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {product.current_stock}, Requested: {item['requested_qty']}"
                )

    @staticmethod
    def _build_items(items: List[dict]) -> List[DeliveryItem]:
        return [
            DeliveryItem(
                line_no=line_no,
                product_id=item["product_id"],
                requested_qty=item["requested_qty"],
                picked_qty=item.get("picked_qty") or 0,
            )
            for line_no, item in enumerate(items, start=1)
        ]

    # ==================== WORKFLOW ====================

    async def create_delivery(self, ctx: RequestContext, data: dict) -> Delivery:
        """
        Create a Draft delivery.

        Raises:
            ValidationError: no items, or an item references an unknown product
            BusinessRuleViolation: a line requests more than is on hand
        """
        items = data.get("items") or []
        if not items:
            raise ValidationError("Please add at least one item")
        await self._check_requested_stock(items)

        delivery_number = await DocumentSequenceService(self.db).next_number(DocumentType.DELIVERY.value)

        delivery = Delivery(
            delivery_number=delivery_number,
            customer=data["customer"],
            delivery_address=data["delivery_address"],
            delivery_date=data["delivery_date"],
            tracking_number=data.get("tracking_number") or "",
            notes=data.get("notes") or "",
            status=self.lifecycle.initial,
            created_by_id=ctx.user_id,
            last_updated_by_id=ctx.user_id,
            items=self._build_items(items),
        )
        self.db.add(delivery)
        await self.db.commit()

        logger.info(f"Delivery {delivery_number} created by user {ctx.user_id} with {len(items)} items")
        return await self.get_delivery(delivery.id)

    async def update_delivery(self, ctx: RequestContext, delivery_id: uuid.UUID, data: dict) -> Delivery:
        """
        Update a delivery that is not Delivered yet.

        Provided fields overwrite; items, when provided, replace all lines.
        """
        delivery = await self.get_delivery(delivery_id)
        self.lifecycle.ensure_mutable(delivery.status, "update")

        if data.get("status") is not None:
            new_status = DeliveryStatus(data["status"]).value
            self.lifecycle.validate_status_change(delivery.status, new_status)
            delivery.status = new_status

        if data.get("items") is not None:
            items = data["items"]
            if not items:
                raise ValidationError("Please add at least one item")
            await self._ensure_products_exist(item["product_id"] for item in items)
            delivery.items = self._build_items(items)

        for field in ("customer", "delivery_address", "delivery_date", "tracking_number", "notes"):
            if data.get(field) is not None:
                setattr(delivery, field, data[field])

        delivery.last_updated_by_id = ctx.user_id
        await self.db.commit()
        return await self.get_delivery(delivery.id)

    async def validate_delivery(
        self, ctx: RequestContext, delivery_id: uuid.UUID
    ) -> Tuple[Delivery, List[Dict[str, Any]]]:
        """
        Validate a delivery: take picked quantities out of stock and mark it Delivered.

        Picked quantities are summed per product and every product is checked
        before any is decremented. Stock and status are committed together.

        Returns:
            Tuple of (delivery, products left at or below their reorder level)

        Raises:
            BusinessRuleViolation: delivery already validated
            InsufficientStockError: some product does not cover its picked quantity
            NotFoundError: a line's product no longer exists
            RetryableConflict: a product changed concurrently
        """
        delivery = await self.get_delivery(delivery_id)
        if self.lifecycle.is_terminal(delivery.status):
            raise BusinessRuleViolation("Delivery already validated")

        for item in delivery.items:
            if item.product_id is None:
                raise NotFoundError(f"Product on line {item.line_no} no longer exists")

        deltas = [(item.product_id, -item.picked_qty) for item in delivery.items]
        products = await StockLedgerService(self.db).apply_deltas(
            ctx, deltas, source=f"delivery {delivery.delivery_number}"
        )

        delivery.status = self.lifecycle.terminal
        delivery.last_updated_by_id = ctx.user_id
        await self.db.commit()

        logger.info(f"Delivery {delivery.delivery_number} validated by user {ctx.user_id}")
        low_stock = low_stock_alerts(products)
        return await self.get_delivery(delivery.id), low_stock

    async def delete_delivery(self, ctx: RequestContext, delivery_id: uuid.UUID) -> None:
        """Hard delete a delivery that is not Delivered. Stock is untouched."""
        delivery = await self.get_delivery(delivery_id)
        self.lifecycle.ensure_mutable(delivery.status, "delete")

        await self.db.delete(delivery)
        await self.db.commit()
        logger.info(f"Delivery {delivery.delivery_number} deleted by user {ctx.user_id}")
