"""Category service: product categories with soft delete."""
from typing import List, Optional, Tuple
import logging
import uuid

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import BusinessRuleViolation, NotFoundError, ValidationError
from app.core.request_context import RequestContext
from app.models.category import Category
from app.models.product import Product


logger = logging.getLogger(__name__)


class CategoryService:
    """Service for category management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _product_counts(self, category_ids: List[uuid.UUID]) -> dict:
        if not category_ids:
            return {}
        result = await self.db.execute(
            select(Product.category_id, func.count(Product.id))
            .where(Product.category_id.in_(category_ids))
            .group_by(Product.category_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def list_categories(
        self,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Tuple[Category, int]]:
        """List categories sorted by name, each with its product count."""
        query = select(Category).options(selectinload(Category.parent))

        if search:
            query = query.where(Category.name.ilike(f"%{search}%"))
        if is_active is not None:
            query = query.where(Category.is_active == is_active)

        result = await self.db.execute(query.order_by(Category.name))
        categories = list(result.scalars().all())

        counts = await self._product_counts([c.id for c in categories])
        return [(c, counts.get(c.id, 0)) for c in categories]

    async def get_category(self, category_id: uuid.UUID) -> Tuple[Category, int]:
        result = await self.db.execute(
            select(Category)
            .options(selectinload(Category.parent))
            .where(Category.id == category_id)
            .execution_options(populate_existing=True)
        )
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category not found")

        counts = await self._product_counts([category.id])
        return category, counts.get(category.id, 0)

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[uuid.UUID] = None) -> None:
        query = select(Category.id).where(Category.name == name)
        if exclude_id:
            query = query.where(Category.id != exclude_id)
        if (await self.db.execute(query)).first():
            raise BusinessRuleViolation("Category with this name already exists")

    async def _ensure_parent(self, parent_id: Optional[uuid.UUID], category_id: Optional[uuid.UUID] = None) -> None:
        if parent_id is None:
            return
        if category_id and parent_id == category_id:
            raise ValidationError("A category cannot be its own parent")
        if await self.db.get(Category, parent_id) is None:
            raise ValidationError("Invalid parent category")

    async def create_category(self, ctx: RequestContext, data: dict) -> Tuple[Category, int]:
        await self._ensure_unique_name(data["name"])
        await self._ensure_parent(data.get("parent_id"))

        category = Category(**data)
        self.db.add(category)
        await self.db.commit()

        logger.info(f"Category '{category.name}' created by user {ctx.user_id}")
        return await self.get_category(category.id)

    async def update_category(self, ctx: RequestContext, category_id: uuid.UUID, data: dict) -> Tuple[Category, int]:
        category = await self.db.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")

        if data.get("name") and data["name"] != category.name:
            await self._ensure_unique_name(data["name"], exclude_id=category.id)
        if "parent_id" in data:
            await self._ensure_parent(data["parent_id"], category.id)

        for key, value in data.items():
            if key == "name" and not value:
                continue
            setattr(category, key, value)

        await self.db.commit()
        return await self.get_category(category.id)

    async def delete_category(self, ctx: RequestContext, category_id: uuid.UUID) -> None:
        """
        Soft delete a category.

        Raises:
            BusinessRuleViolation: products still use the category
        """
        category, product_count = await self.get_category(category_id)
        if product_count > 0:
            raise BusinessRuleViolation(
                f"Cannot delete category. {product_count} product(s) are using this category."
            )

        category.is_active = False
        await self.db.commit()
        logger.info(f"Category '{category.name}' deactivated by user {ctx.user_id}")
