"""Stock status rules and the all-or-nothing stock ledger."""
import uuid

import pytest

from app.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    RetryableConflict,
    ValidationError,
)
from app.models.product import Product, StockStatus, stock_status, suggested_order_qty
from app.services.stock_ledger_service import StockLedgerService, aggregate_deltas


@pytest.mark.parametrize(
    "stock, reorder_level, expected",
    [
        (0, 10, StockStatus.OUT_OF_STOCK),
        (0, 0, StockStatus.OUT_OF_STOCK),
        (10, 10, StockStatus.LOW_STOCK),
        (3, 10, StockStatus.LOW_STOCK),
        (11, 10, StockStatus.IN_STOCK),
    ],
)
def test_stock_status(stock, reorder_level, expected):
    assert stock_status(stock, reorder_level) == expected


def test_suggested_order_qty():
    assert suggested_order_qty(3, 10, 50) == 47
    assert suggested_order_qty(10, 10, 50) == 40
    assert suggested_order_qty(11, 10, 50) == 0
    assert suggested_order_qty(3, 10, None) == 0


def test_aggregate_deltas_sums_per_product():
    a, b = uuid.uuid4(), uuid.uuid4()
    totals = aggregate_deltas([(a, -3), (b, 5), (a, -4)])
    assert totals == {a: -7, b: 5}
    assert list(totals) == [a, b]


async def test_apply_deltas_writes_every_product(db, ctx, make_product):
    p1 = await make_product("SKU-1", stock=10)
    p2 = await make_product("SKU-2", stock=4)

    products = await StockLedgerService(db).apply_deltas(ctx, [(p1.id, -8), (p2.id, 6)], source="test")
    await db.commit()

    assert [p.current_stock for p in products] == [2, 10]
    assert p1.last_updated_by_id == ctx.user_id


async def test_apply_deltas_is_all_or_nothing(db, ctx, make_product):
    p1 = await make_product("SKU-1", stock=10)
    p2 = await make_product("SKU-2", stock=1)

    with pytest.raises(InsufficientStockError) as exc_info:
        await StockLedgerService(db).apply_deltas(ctx, [(p1.id, -5), (p2.id, -3)])

    assert exc_info.value.available == 1
    assert exc_info.value.required == 3
    assert p1.current_stock == 10
    assert p2.current_stock == 1


async def test_repeated_product_is_checked_on_the_sum(db, ctx, make_product):
    product = await make_product("SKU-1", stock=5)

    with pytest.raises(InsufficientStockError):
        await StockLedgerService(db).apply_deltas(ctx, [(product.id, -3), (product.id, -3)])
    assert product.current_stock == 5


async def test_missing_product_raises_not_found(db, ctx):
    with pytest.raises(NotFoundError):
        await StockLedgerService(db).apply_delta(ctx, uuid.uuid4(), 5)


async def test_set_stock_returns_previous_quantity(db, ctx, make_product):
    product = await make_product("SKU-1", stock=50)

    updated, previous = await StockLedgerService(db).set_stock(ctx, product.id, 45)

    assert previous == 50
    assert updated.current_stock == 45


async def test_set_stock_rejects_negative(db, ctx, make_product):
    product = await make_product("SKU-1", stock=50)

    with pytest.raises(ValidationError):
        await StockLedgerService(db).set_stock(ctx, product.id, -1)


async def test_stock_write_bumps_version(db, ctx, make_product):
    product = await make_product("SKU-1", stock=1)
    version = product.version

    await StockLedgerService(db).apply_delta(ctx, product.id, 1)
    await db.commit()

    assert product.version == version + 1


async def test_stale_concurrent_write_is_retryable(session_factory, ctx, make_product):
    product = await make_product("SKU-1", stock=5)

    async with session_factory() as first, session_factory() as second:
        assert (await first.get(Product, product.id)).current_stock == 5
        assert (await second.get(Product, product.id)).current_stock == 5

        await StockLedgerService(first).apply_delta(ctx, product.id, 1)
        await first.commit()

        with pytest.raises(RetryableConflict):
            await StockLedgerService(second).apply_delta(ctx, product.id, 1)
        await second.rollback()

    async with session_factory() as fresh:
        assert (await fresh.get(Product, product.id)).current_stock == 6
