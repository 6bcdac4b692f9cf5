"""
Stock ledger: the only code that writes Product.current_stock.

Writes rely on the optimistic version column of Product. If another
transaction changed a product between our read and our write, the flush
fails with StaleDataError and surfaces as RetryableConflict; the caller's
transaction is rolled back as a whole.
"""
import logging
import uuid
from collections import OrderedDict
from typing import Dict, Iterable, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    RetryableConflict,
    ValidationError,
)
from app.core.request_context import RequestContext
from app.models.product import Product


logger = logging.getLogger(__name__)


def aggregate_deltas(deltas: Iterable[Tuple[uuid.UUID, int]]) -> Dict[uuid.UUID, int]:
    """Sum deltas per product, keeping first-seen order."""
    totals: Dict[uuid.UUID, int] = OrderedDict()
    for product_id, delta in deltas:
        totals[product_id] = totals.get(product_id, 0) + delta
    return totals


class StockLedgerService:
    """Applies stock changes to products."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load_products(self, product_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Product]:
        ids = list(product_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Product).where(Product.id.in_(ids)))
        products = {p.id: p for p in result.scalars().all()}

        missing = [str(pid) for pid in ids if pid not in products]
        if missing:
            raise NotFoundError(
                f"Product not found: {missing[0]}",
                details={"product_ids": missing},
            )
        return products

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except StaleDataError:
            logger.warning("Stock write lost a race with a concurrent update")
            raise RetryableConflict(
                "Stock was modified by another request, please retry"
            )

    def _write(self, ctx: RequestContext, product: Product, new_stock: int, source: str) -> None:
        old_stock = product.current_stock
        product.current_stock = new_stock
        product.last_updated_by_id = ctx.user_id
        logger.info(
            f"Stock {product.sku}: {old_stock} -> {new_stock} ({source}) by user {ctx.user_id}"
        )

    async def apply_delta(
        self,
        ctx: RequestContext,
        product_id: uuid.UUID,
        delta: int,
        source: str = "manual",
    ) -> Product:
        """
        Add delta (may be negative) to one product's stock.

        Raises:
            NotFoundError: product does not exist
            InsufficientStockError: result would be negative
            RetryableConflict: concurrent modification
        """
        products = await self.apply_deltas(ctx, [(product_id, delta)], source=source)
        return products[0]

    async def apply_deltas(
        self,
        ctx: RequestContext,
        deltas: Iterable[Tuple[uuid.UUID, int]],
        source: str = "manual",
    ) -> List[Product]:
        """
        Apply several deltas all-or-nothing.

        Deltas for the same product are summed first, then every product is
        checked before anything is written, so a failing check leaves all
        stock untouched.

        Returns:
            The affected products, in first-seen order
        """
        totals = aggregate_deltas(deltas)
        products = await self._load_products(totals.keys())

        for product_id, delta in totals.items():
            product = products[product_id]
            if product.current_stock + delta < 0:
                raise InsufficientStockError(
                    product.name,
                    available=product.current_stock,
                    required=-delta,
                    product_id=product.id,
                )

        for product_id, delta in totals.items():
            product = products[product_id]
            self._write(ctx, product, product.current_stock + delta, source)

        await self._flush()
        return [products[pid] for pid in totals]

    async def set_stock(
        self,
        ctx: RequestContext,
        product_id: uuid.UUID,
        quantity: int,
        source: str = "adjustment",
    ) -> Tuple[Product, int]:
        """
        Overwrite a product's stock with an absolute quantity.

        Returns:
            (product, previous stock)
        """
        if quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")

        products = await self._load_products([product_id])
        product = products[product_id]
        previous = product.current_stock

        self._write(ctx, product, quantity, source)
        await self._flush()
        return product, previous
