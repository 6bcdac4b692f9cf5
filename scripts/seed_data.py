"""Seed sample catalog data (categories, warehouses, products).

Run from the project root:
    python -m scripts.seed_data

An Admin user must exist (register one through /api/v1/auth/register first).
"""
import asyncio
import sys

from sqlalchemy import select

from app.database import get_db_session, init_db
from app.models.category import Category
from app.models.product import Product
from app.models.user import Role, User
from app.models.warehouse import Warehouse


CATEGORIES = [
    {"name": "Electronics", "description": "Electronic devices and components"},
    {"name": "Furniture", "description": "Office and home furniture"},
    {"name": "Office Supplies", "description": "Stationery and office equipment"},
    {"name": "Food & Beverages", "description": "Food products and drinks"},
    {"name": "Clothing & Apparel", "description": "Garments and accessories"},
]

SUBCATEGORIES = {
    "Electronics": [
        {"name": "Laptops", "description": "Laptop computers"},
        {"name": "Mobile Phones", "description": "Smartphones and accessories"},
        {"name": "Accessories", "description": "Electronic accessories"},
    ],
}

WAREHOUSES = [
    {"name": "Main Warehouse", "code": "WH-MAIN", "address": "123 Industrial Park Road",
     "city": "Mumbai", "state": "Maharashtra", "zip_code": "400001", "country": "India", "capacity": 10000},
    {"name": "North Warehouse", "code": "WH-NORTH", "address": "456 Storage Avenue",
     "city": "Delhi", "state": "Delhi", "zip_code": "110001", "country": "India", "capacity": 5000},
    {"name": "South Warehouse", "code": "WH-SOUTH", "address": "789 Logistics Street",
     "city": "Bangalore", "state": "Karnataka", "zip_code": "560001", "country": "India", "capacity": 7500},
]

# (sku, name, description, current_stock, reorder_level, max_stock_level)
LAPTOPS = [
    ("ELEC-LAPT-001", "Dell Latitude 5420", "14-inch business laptop with Intel i5 processor", 25, 10, 50),
    ("ELEC-LAPT-002", "HP EliteBook 840", "14-inch premium business laptop", 15, 8, 40),
    ("ELEC-LAPT-003", "Lenovo ThinkPad X1", "Ultra-portable 13-inch business laptop", 5, 10, 30),
]


async def seed():
    """Seed initial data."""
    await init_db()

    async with get_db_session() as db:
        admin = (
            await db.execute(select(User).where(User.role == Role.ADMIN.value).limit(1))
        ).scalar_one_or_none()
        if admin is None:
            print("No admin user found. Please create an admin user first through register.")
            sys.exit(1)
        print(f"Found admin user: {admin.name}")

        existing = (await db.execute(select(Category.id).limit(1))).first()
        if existing:
            print("Catalog already has data. Skipping seed.")
            return

        print("\nCreating categories...")
        categories = {}
        for data in CATEGORIES:
            category = Category(**data)
            db.add(category)
            categories[data["name"]] = category
        await db.flush()

        subcategory_count = 0
        for parent_name, children in SUBCATEGORIES.items():
            for data in children:
                category = Category(**data, parent_id=categories[parent_name].id)
                db.add(category)
                categories[data["name"]] = category
                subcategory_count += 1
        await db.flush()
        print(f"  Created {len(CATEGORIES)} categories and {subcategory_count} subcategories")

        print("\nCreating warehouses...")
        warehouses = {}
        for data in WAREHOUSES:
            warehouse = Warehouse(**data, manager_id=admin.id)
            db.add(warehouse)
            warehouses[data["code"]] = warehouse
        await db.flush()
        print(f"  Created {len(warehouses)} warehouses")

        print("\nCreating sample products...")
        for sku, name, description, stock, reorder_level, max_stock_level in LAPTOPS:
            db.add(Product(
                sku=sku,
                name=name,
                description=description,
                unit_of_measure="pieces",
                category_id=categories["Laptops"].id,
                warehouse_id=warehouses["WH-MAIN"].id,
                current_stock=stock,
                reorder_level=reorder_level,
                max_stock_level=max_stock_level,
                auto_reorder_enabled=True,
                created_by_id=admin.id,
                last_updated_by_id=admin.id,
            ))
        print(f"  Created {len(LAPTOPS)} sample products")

    print("\nSeed data created successfully!")


if __name__ == "__main__":
    asyncio.run(seed())
