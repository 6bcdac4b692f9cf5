"""
Shared fixtures: a throwaway SQLite database per test, users for every role
and an httpx client talking to the app in-process.
"""
import os

# Must be set before app.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_stockmaster.db")
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOW_STOCK_ALERT_EMAIL"] = ""

from typing import AsyncGenerator, Dict

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.request_context import RequestContext
from app.core.security import create_access_token, get_password_hash
from app.database import Base, get_db, register_models
from app.main import app
from app.models.category import Category
from app.models.product import Product
from app.models.user import Role, User
from app.models.warehouse import Warehouse


register_models()


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'stockmaster.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db: AsyncSession, login_id: str, role: Role) -> User:
    user = User(
        login_id=login_id,
        name=login_id.replace("_", " ").title(),
        email=f"{login_id}@stockmaster.io",
        password_hash=get_password_hash("Secret@123"),
        role=role.value,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def users(db) -> Dict[Role, User]:
    return {
        Role.ADMIN: await _make_user(db, "admin_1", Role.ADMIN),
        Role.INVENTORY_MANAGER: await _make_user(db, "manager_1", Role.INVENTORY_MANAGER),
        Role.WAREHOUSE_STAFF: await _make_user(db, "staff_01", Role.WAREHOUSE_STAFF),
    }


@pytest.fixture
def ctx(users) -> RequestContext:
    admin = users[Role.ADMIN]
    return RequestContext(user_id=admin.id, role=Role.ADMIN)


def auth_headers(user: User) -> Dict[str, str]:
    token = create_access_token(subject=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(users):
    return auth_headers(users[Role.ADMIN])


@pytest.fixture
def manager_headers(users):
    return auth_headers(users[Role.INVENTORY_MANAGER])


@pytest.fixture
def staff_headers(users):
    return auth_headers(users[Role.WAREHOUSE_STAFF])


@pytest.fixture
async def category(db) -> Category:
    category = Category(name="Electronics", description="Devices and parts")
    db.add(category)
    await db.commit()
    return category


@pytest.fixture
async def warehouse(db) -> Warehouse:
    warehouse = Warehouse(
        name="Main Warehouse",
        code="WH-MAIN",
        address="1 Dock Road",
        city="Springfield",
        state="IL",
        country="USA",
    )
    db.add(warehouse)
    await db.commit()
    return warehouse


@pytest.fixture
def make_product(db, category, warehouse):
    async def _make(sku: str, stock: int = 0, reorder_level: int = 5, max_stock_level=None, name=None) -> Product:
        product = Product(
            sku=sku,
            name=name or f"Product {sku}",
            unit_of_measure="pieces",
            category_id=category.id,
            warehouse_id=warehouse.id,
            current_stock=stock,
            reorder_level=reorder_level,
            max_stock_level=max_stock_level,
        )
        db.add(product)
        await db.commit()
        return product

    return _make
