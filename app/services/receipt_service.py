"""
Receipt service: inbound goods.

Receipts never touch stock until validated. Validation adds the received
quantity of every line that passed quality control, then freezes the
receipt in Done.
"""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
import logging
import uuid

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import BusinessRuleViolation, NotFoundError, ValidationError
from app.core.request_context import RequestContext
from app.models.document_sequence import DocumentType
from app.models.product import Product
from app.models.receipt import Receipt, ReceiptItem, ReceiptStatus, QualityStatus
from app.services.document_sequence_service import DocumentSequenceService
from app.services.document_state_machine import RECEIPT_LIFECYCLE
from app.services.stock_ledger_service import StockLedgerService


logger = logging.getLogger(__name__)


RECEIPT_LOAD_OPTIONS = (
    selectinload(Receipt.items).selectinload(ReceiptItem.product),
    selectinload(Receipt.created_by),
    selectinload(Receipt.last_updated_by),
)


class ReceiptService:
    """Service for receipt (inbound) documents."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.lifecycle = RECEIPT_LIFECYCLE

    # ==================== QUERIES ====================

    async def list_receipts(
        self,
        status: Optional[str] = None,
        supplier: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search: Optional[str] = None,
    ) -> List[Receipt]:
        """List receipts newest first. Date filters apply to expected_date."""
        query = select(Receipt).options(*RECEIPT_LOAD_OPTIONS)

        if status:
            query = query.where(Receipt.status == status)
        if supplier:
            query = query.where(Receipt.supplier.ilike(f"%{supplier}%"))
        if start_date:
            query = query.where(Receipt.expected_date >= start_date)
        if end_date:
            query = query.where(Receipt.expected_date <= end_date)
        if search:
            query = query.where(
                or_(
                    Receipt.receipt_number.ilike(f"%{search}%"),
                    Receipt.supplier.ilike(f"%{search}%"),
                )
            )

        result = await self.db.execute(query.order_by(Receipt.created_at.desc()))
        return list(result.scalars().all())

    async def get_receipt(self, receipt_id: uuid.UUID) -> Receipt:
        result = await self.db.execute(
            select(Receipt)
            .options(*RECEIPT_LOAD_OPTIONS)
            .where(Receipt.id == receipt_id)
            .execution_options(populate_existing=True)
        )
        receipt = result.scalar_one_or_none()
        if receipt is None:
            raise NotFoundError("Receipt not found")
        return receipt

    # ==================== HELPERS ====================

    async def _ensure_products_exist(self, product_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Product]:
        ids = set(product_ids)
        result = await self.db.execute(select(Product).where(Product.id.in_(ids)))
        products = {p.id: p for p in result.scalars().all()}
        for product_id in ids:
            if product_id not in products:
                raise ValidationError(f"Product with ID {product_id} not found")
        return products

    @staticmethod
    def _build_items(items: List[dict]) -> List[ReceiptItem]:
        return [
            ReceiptItem(
                line_no=line_no,
                product_id=item["product_id"],
                expected_qty=item["expected_qty"],
                received_qty=item.get("received_qty") or 0,
                quality_status=QualityStatus(item.get("quality_status") or QualityStatus.PENDING).value,
                notes=item.get("notes") or "",
            )
            for line_no, item in enumerate(items, start=1)
        ]

    # ==================== WORKFLOW ====================

    async def create_receipt(self, ctx: RequestContext, data: dict) -> Receipt:
        """
        Create a Draft receipt.

        Raises:
            ValidationError: no items, or an item references an unknown product
        """
        items = data.get("items") or []
        if not items:
            raise ValidationError("Please add at least one item")
        await self._ensure_products_exist(item["product_id"] for item in items)

        receipt_number = await DocumentSequenceService(self.db).next_number(DocumentType.RECEIPT.value)

        receipt = Receipt(
            receipt_number=receipt_number,
            supplier=data["supplier"],
            expected_date=data["expected_date"],
            reference_number=data.get("reference_number") or "",
            notes=data.get("notes") or "",
            status=self.lifecycle.initial,
            created_by_id=ctx.user_id,
            last_updated_by_id=ctx.user_id,
            items=self._build_items(items),
        )
        self.db.add(receipt)
        await self.db.commit()

        logger.info(f"Receipt {receipt_number} created by user {ctx.user_id} with {len(items)} items")
        return await self.get_receipt(receipt.id)

    async def update_receipt(self, ctx: RequestContext, receipt_id: uuid.UUID, data: dict) -> Receipt:
        """
        Update a receipt that is not Done yet.

        Provided fields overwrite; items, when provided, replace all lines.
        """
        receipt = await self.get_receipt(receipt_id)
        self.lifecycle.ensure_mutable(receipt.status, "update")

        if data.get("status") is not None:
            new_status = ReceiptStatus(data["status"]).value
            self.lifecycle.validate_status_change(receipt.status, new_status)
            receipt.status = new_status

        if data.get("items") is not None:
            items = data["items"]
            if not items:
                raise ValidationError("Please add at least one item")
            await self._ensure_products_exist(item["product_id"] for item in items)
            receipt.items = self._build_items(items)

        for field in ("supplier", "expected_date", "reference_number", "notes"):
            if data.get(field) is not None:
                setattr(receipt, field, data[field])

        receipt.last_updated_by_id = ctx.user_id
        await self.db.commit()
        return await self.get_receipt(receipt.id)

    async def validate_receipt(self, ctx: RequestContext, receipt_id: uuid.UUID) -> Receipt:
        """
        Validate a receipt: add stock for every Pass line and mark it Done.

        Lines with Pending or Fail quality, and lines whose product was
        deleted, leave stock unchanged. Stock and status are committed
        together.

        Raises:
            BusinessRuleViolation: receipt already validated
        """
        receipt = await self.get_receipt(receipt_id)
        if self.lifecycle.is_terminal(receipt.status):
            raise BusinessRuleViolation("Receipt already validated")

        deltas = [
            (item.product_id, item.received_qty)
            for item in receipt.items
            if item.product_id is not None
            and item.quality_status == QualityStatus.PASS.value
            and item.received_qty > 0
        ]
        if deltas:
            await StockLedgerService(self.db).apply_deltas(
                ctx, deltas, source=f"receipt {receipt.receipt_number}"
            )

        receipt.status = self.lifecycle.terminal
        receipt.received_date = datetime.now(timezone.utc)
        receipt.last_updated_by_id = ctx.user_id
        await self.db.commit()

        logger.info(
            f"Receipt {receipt.receipt_number} validated by user {ctx.user_id}: "
            f"{len(deltas)} of {len(receipt.items)} lines added to stock"
        )
        return await self.get_receipt(receipt.id)

    async def delete_receipt(self, ctx: RequestContext, receipt_id: uuid.UUID) -> None:
        """Hard delete a receipt that is not Done. Stock is untouched."""
        receipt = await self.get_receipt(receipt_id)
        self.lifecycle.ensure_mutable(receipt.status, "delete")

        await self.db.delete(receipt)
        await self.db.commit()
        logger.info(f"Receipt {receipt.receipt_number} deleted by user {ctx.user_id}")
