"""Warehouse service."""
from typing import List, Optional
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import BusinessRuleViolation, NotFoundError, ValidationError
from app.core.request_context import RequestContext
from app.models.product import Product
from app.models.user import User
from app.models.warehouse import Warehouse


logger = logging.getLogger(__name__)


class WarehouseService:
    """Service for warehouse management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_warehouses(self, is_active: Optional[bool] = None) -> List[Warehouse]:
        """List warehouses sorted by name with their manager expanded."""
        query = select(Warehouse).options(selectinload(Warehouse.manager))
        if is_active is not None:
            query = query.where(Warehouse.is_active == is_active)

        result = await self.db.execute(query.order_by(Warehouse.name))
        return list(result.scalars().all())

    async def get_warehouse(self, warehouse_id: uuid.UUID) -> Warehouse:
        result = await self.db.execute(
            select(Warehouse)
            .options(selectinload(Warehouse.manager))
            .where(Warehouse.id == warehouse_id)
            .execution_options(populate_existing=True)
        )
        warehouse = result.scalar_one_or_none()
        if warehouse is None:
            raise NotFoundError("Warehouse not found")
        return warehouse

    async def _ensure_unique(
        self,
        name: Optional[str],
        code: Optional[str],
        exclude_id: Optional[uuid.UUID] = None,
    ) -> None:
        if name:
            query = select(Warehouse.id).where(Warehouse.name == name)
            if exclude_id:
                query = query.where(Warehouse.id != exclude_id)
            if (await self.db.execute(query)).first():
                raise BusinessRuleViolation("Warehouse with this name already exists")
        if code:
            query = select(Warehouse.id).where(Warehouse.code == code)
            if exclude_id:
                query = query.where(Warehouse.id != exclude_id)
            if (await self.db.execute(query)).first():
                raise BusinessRuleViolation("Warehouse with this code already exists")

    async def _ensure_manager(self, manager_id: Optional[uuid.UUID]) -> None:
        if manager_id and await self.db.get(User, manager_id) is None:
            raise ValidationError("Invalid manager")

    async def create_warehouse(self, ctx: RequestContext, data: dict) -> Warehouse:
        await self._ensure_unique(data["name"], data["code"])
        await self._ensure_manager(data.get("manager_id"))

        location = data.pop("location")
        warehouse = Warehouse(**data, **location)
        self.db.add(warehouse)
        await self.db.commit()

        logger.info(f"Warehouse {warehouse.code} created by user {ctx.user_id}")
        return await self.get_warehouse(warehouse.id)

    async def update_warehouse(self, ctx: RequestContext, warehouse_id: uuid.UUID, data: dict) -> Warehouse:
        warehouse = await self.get_warehouse(warehouse_id)

        await self._ensure_unique(
            data.get("name") if data.get("name") != warehouse.name else None,
            data.get("code") if data.get("code") != warehouse.code else None,
            exclude_id=warehouse.id,
        )
        if "manager_id" in data:
            await self._ensure_manager(data["manager_id"])

        location = data.pop("location", None) or {}
        for key, value in location.items():
            if value is not None:
                setattr(warehouse, key, value)

        for key, value in data.items():
            if key in ("name", "code") and not value:
                continue
            setattr(warehouse, key, value)

        await self.db.commit()
        return await self.get_warehouse(warehouse.id)

    async def delete_warehouse(self, ctx: RequestContext, warehouse_id: uuid.UUID) -> None:
        """
        Hard delete a warehouse.

        Raises:
            BusinessRuleViolation: products are still assigned to the warehouse
        """
        warehouse = await self.get_warehouse(warehouse_id)

        result = await self.db.execute(
            select(func.count(Product.id)).where(Product.warehouse_id == warehouse.id)
        )
        products_count = result.scalar_one()
        if products_count > 0:
            raise BusinessRuleViolation(
                f"Cannot delete warehouse. It has {products_count} associated product(s). "
                "Please reassign the products first."
            )

        await self.db.delete(warehouse)
        await self.db.commit()
        logger.info(f"Warehouse {warehouse.code} deleted by user {ctx.user_id}")
