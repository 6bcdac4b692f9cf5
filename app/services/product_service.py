"""Product service: catalog, stock availability and reorder rules."""
from typing import List, Optional, Tuple
import logging
import math
import uuid

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.core.exceptions import (
    BusinessRuleViolation,
    NotFoundError,
    RetryableConflict,
    ValidationError,
)
from app.core.request_context import RequestContext
from app.models.category import Category
from app.models.product import Product, StockStatus, UnitOfMeasure
from app.models.warehouse import Warehouse
from app.services.document_sequence_service import DocumentSequenceService


logger = logging.getLogger(__name__)


PRODUCT_LOAD_OPTIONS = (
    selectinload(Product.category),
    selectinload(Product.warehouse),
    selectinload(Product.created_by),
    selectinload(Product.last_updated_by),
)


class ProductService:
    """Service for product catalog operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== QUERIES ====================

    def _filtered_query(
        self,
        search: Optional[str] = None,
        category_id: Optional[uuid.UUID] = None,
        warehouse_id: Optional[uuid.UUID] = None,
    ):
        query = select(Product).options(*PRODUCT_LOAD_OPTIONS)

        if search:
            query = query.where(
                or_(
                    Product.name.ilike(f"%{search}%"),
                    Product.sku.ilike(f"%{search}%"),
                )
            )
        if category_id:
            query = query.where(Product.category_id == category_id)
        if warehouse_id:
            query = query.where(Product.warehouse_id == warehouse_id)
        return query

    @staticmethod
    def _filter_status(products: List[Product], status: Optional[StockStatus]) -> List[Product]:
        # Status is derived, so it is filtered after loading
        if not status:
            return products
        return [p for p in products if p.stock_status == status]

    async def get_products(
        self,
        search: Optional[str] = None,
        category_id: Optional[uuid.UUID] = None,
        warehouse_id: Optional[uuid.UUID] = None,
        status: Optional[StockStatus] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Product], int, int]:
        """
        Get paginated products, newest first.

        Returns:
            Tuple of (products on this page, total matching, total pages)
        """
        query = self._filtered_query(search, category_id, warehouse_id)
        result = await self.db.execute(query.order_by(Product.created_at.desc()))
        products = self._filter_status(list(result.scalars().all()), status)

        total = len(products)
        start = (page - 1) * limit
        pages = math.ceil(total / limit) if limit else 0
        return products[start:start + limit], total, pages

    async def get_stock_availability(
        self,
        search: Optional[str] = None,
        category_id: Optional[uuid.UUID] = None,
        warehouse_id: Optional[uuid.UUID] = None,
        status: Optional[StockStatus] = None,
    ) -> List[Product]:
        """Products ordered by ascending stock, lowest first."""
        query = self._filtered_query(search, category_id, warehouse_id)
        result = await self.db.execute(query.order_by(Product.current_stock.asc(), Product.name))
        return self._filter_status(list(result.scalars().all()), status)

    async def get_product(self, product_id: uuid.UUID) -> Product:
        result = await self.db.execute(
            select(Product)
            .options(*PRODUCT_LOAD_OPTIONS)
            .where(Product.id == product_id)
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise NotFoundError("Product not found")
        return product

    # ==================== MUTATIONS ====================

    async def _ensure_unique_sku(self, sku: str) -> None:
        if (await self.db.execute(select(Product.id).where(Product.sku == sku))).first():
            raise BusinessRuleViolation("Product with this SKU already exists")

    async def _ensure_category(self, category_id: uuid.UUID) -> None:
        if await self.db.get(Category, category_id) is None:
            raise ValidationError("Invalid category")

    async def _ensure_warehouse(self, warehouse_id: Optional[uuid.UUID]) -> None:
        if warehouse_id and await self.db.get(Warehouse, warehouse_id) is None:
            raise ValidationError("Invalid warehouse")

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            raise RetryableConflict("Product was modified by another request, please retry")

    async def create_product(self, ctx: RequestContext, data: dict) -> Product:
        """
        Create a product.

        Raises:
            BusinessRuleViolation: duplicate SKU
            ValidationError: unknown category or warehouse
        """
        data["sku"] = data["sku"].upper()
        data["unit_of_measure"] = UnitOfMeasure(data["unit_of_measure"]).value
        await self._ensure_unique_sku(data["sku"])
        await self._ensure_category(data["category_id"])
        await self._ensure_warehouse(data.get("warehouse_id"))

        product = Product(
            **data,
            created_by_id=ctx.user_id,
            last_updated_by_id=ctx.user_id,
        )
        self.db.add(product)
        await self.db.commit()

        logger.info(f"Product {product.sku} created by user {ctx.user_id} with stock {product.current_stock}")
        return await self.get_product(product.id)

    async def update_product(self, ctx: RequestContext, product_id: uuid.UUID, data: dict) -> Product:
        """Update catalog fields. Stock is never changed here."""
        product = await self.get_product(product_id)
        data.pop("current_stock", None)
        if data.get("unit_of_measure"):
            data["unit_of_measure"] = UnitOfMeasure(data["unit_of_measure"]).value

        if data.get("sku"):
            data["sku"] = data["sku"].upper()
            if data["sku"] != product.sku:
                await self._ensure_unique_sku(data["sku"])
        if data.get("category_id") and data["category_id"] != product.category_id:
            await self._ensure_category(data["category_id"])
        if data.get("warehouse_id") and data["warehouse_id"] != product.warehouse_id:
            await self._ensure_warehouse(data["warehouse_id"])

        self._check_stock_levels(
            data.get("reorder_level", product.reorder_level),
            data.get("max_stock_level", product.max_stock_level),
        )

        for key, value in data.items():
            if key in ("sku", "name", "category_id", "unit_of_measure", "reorder_level") and value is None:
                continue
            setattr(product, key, value)
        product.last_updated_by_id = ctx.user_id

        await self._commit()
        return await self.get_product(product.id)

    async def delete_product(self, ctx: RequestContext, product_id: uuid.UUID) -> None:
        """
        Delete a product unconditionally.

        Document lines referencing it keep their row with a null product.
        """
        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        await self.db.delete(product)
        await self._commit()
        logger.info(f"Product {product.sku} deleted by user {ctx.user_id}")

    # ==================== REORDER RULES ====================

    @staticmethod
    def _check_stock_levels(reorder_level: Optional[int], max_stock_level: Optional[int]) -> None:
        if max_stock_level is not None and reorder_level is not None and max_stock_level < reorder_level:
            raise ValidationError("max_stock_level must be greater than or equal to reorder_level")

    async def get_reorder_rules(self) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .options(selectinload(Product.category), selectinload(Product.warehouse))
            .order_by(Product.name)
        )
        return list(result.scalars().all())

    async def update_reorder_rule(self, ctx: RequestContext, product_id: uuid.UUID, data: dict) -> Product:
        product = await self.get_product(product_id)

        self._check_stock_levels(
            data.get("reorder_level", product.reorder_level),
            data.get("max_stock_level", product.max_stock_level),
        )
        for key in ("reorder_level", "max_stock_level", "auto_reorder_enabled"):
            if key in data:
                if data[key] is None and key != "max_stock_level":
                    continue
                setattr(product, key, data[key])
        product.last_updated_by_id = ctx.user_id

        await self._commit()
        logger.info(
            f"Reorder rule for {product.sku} set to {product.reorder_level}/{product.max_stock_level} "
            f"by user {ctx.user_id}"
        )
        return await self.get_product(product.id)

    async def get_purchase_suggestions(self) -> List[Product]:
        """Low and out of stock products, lowest stock first."""
        products = await self.get_stock_availability()
        return [p for p in products if p.needs_reorder]

    async def suggest_sku(self, category_id: Optional[uuid.UUID] = None) -> str:
        return await DocumentSequenceService(self.db).suggest_sku(category_id)
