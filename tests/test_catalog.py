"""Categories, warehouses and products over the HTTP API."""


async def test_admin_creates_warehouse(client, admin_headers):
    response = await client.post(
        "/api/v1/warehouses",
        json={
            "name": "Overflow",
            "code": "wh-2",
            "location": {"address": "2 Dock Road", "city": "Springfield", "state": "IL"},
            "capacity": 500,
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["code"] == "WH-2"
    assert data["location"]["country"] == "USA"


async def test_duplicate_warehouse_code_rejected(client, admin_headers, warehouse):
    response = await client.post(
        "/api/v1/warehouses",
        json={
            "name": "Another",
            "code": "wh-main",
            "location": {"address": "3 Dock Road", "city": "Springfield", "state": "IL"},
        },
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Warehouse with this code already exists"


async def test_warehouse_with_products_cannot_be_deleted(client, admin_headers, make_product, warehouse):
    await make_product("SKU-1")

    response = await client.delete(f"/api/v1/warehouses/{warehouse.id}", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["message"] == (
        "Cannot delete warehouse. It has 1 associated product(s). Please reassign the products first."
    )


async def test_empty_warehouse_is_deleted(client, admin_headers, warehouse):
    response = await client.delete(f"/api/v1/warehouses/{warehouse.id}", headers=admin_headers)
    assert response.status_code == 200

    missing = await client.get(f"/api/v1/warehouses/{warehouse.id}", headers=admin_headers)
    assert missing.status_code == 404


async def test_category_in_use_cannot_be_deleted(client, manager_headers, make_product, category):
    await make_product("SKU-1")
    await make_product("SKU-2")

    response = await client.delete(f"/api/v1/categories/{category.id}", headers=manager_headers)

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete category. 2 product(s) are using this category."


async def test_unused_category_is_deactivated(client, manager_headers):
    created = await client.post(
        "/api/v1/categories", json={"name": "Seasonal"}, headers=manager_headers
    )
    category_id = created.json()["data"]["id"]

    response = await client.delete(f"/api/v1/categories/{category_id}", headers=manager_headers)
    assert response.status_code == 200

    detail = await client.get(f"/api/v1/categories/{category_id}", headers=manager_headers)
    assert detail.json()["data"]["is_active"] is False


async def test_category_list_reports_product_counts(client, staff_headers, make_product, category):
    await make_product("SKU-1")

    response = await client.get("/api/v1/categories", headers=staff_headers)

    data = response.json()["data"]
    assert [(c["name"], c["product_count"]) for c in data] == [("Electronics", 1)]


async def test_create_product_uppercases_sku(client, manager_headers, category, warehouse):
    response = await client.post(
        "/api/v1/products",
        json={
            "sku": "ele00001",
            "name": "Cable",
            "unit_of_measure": "meters",
            "category_id": str(category.id),
            "warehouse_id": str(warehouse.id),
            "current_stock": 3,
            "reorder_level": 5,
            "max_stock_level": 20,
        },
        headers=manager_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["sku"] == "ELE00001"
    assert data["stock_status"] == "low_stock"
    assert data["suggested_order_qty"] == 17
    assert data["category"]["name"] == "Electronics"


async def test_duplicate_sku_rejected(client, manager_headers, make_product, category):
    await make_product("ELE00001")

    response = await client.post(
        "/api/v1/products",
        json={
            "sku": "ele00001",
            "name": "Other",
            "unit_of_measure": "pieces",
            "category_id": str(category.id),
            "reorder_level": 1,
        },
        headers=manager_headers,
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Product with this SKU already exists"


async def test_max_stock_below_reorder_level_rejected(client, manager_headers, category):
    response = await client.post(
        "/api/v1/products",
        json={
            "sku": "x-1",
            "name": "X",
            "unit_of_measure": "pieces",
            "category_id": str(category.id),
            "reorder_level": 10,
            "max_stock_level": 5,
        },
        headers=manager_headers,
    )

    assert response.status_code == 400


async def test_update_product_ignores_stock(client, db, manager_headers, make_product):
    product = await make_product("SKU-1", stock=7)

    response = await client.put(
        f"/api/v1/products/{product.id}",
        json={"name": "Renamed", "current_stock": 999},
        headers=manager_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Renamed"
    assert data["current_stock"] == 7


async def test_products_are_paginated_and_filtered(client, staff_headers, make_product):
    await make_product("SKU-1", stock=0)
    await make_product("SKU-2", stock=3, reorder_level=5)
    await make_product("SKU-3", stock=30, reorder_level=5)

    response = await client.get(
        "/api/v1/products", params={"status": "low_stock", "limit": 10}, headers=staff_headers
    )
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["sku"] == "SKU-2"

    paged = await client.get("/api/v1/products", params={"page": 2, "limit": 2}, headers=staff_headers)
    body = paged.json()
    assert body["total"] == 3
    assert body["pages"] == 2
    assert body["count"] == 1


async def test_purchase_suggestions(client, manager_headers, make_product):
    await make_product("SKU-LOW", stock=2, reorder_level=5, max_stock_level=40)
    await make_product("SKU-OK", stock=30, reorder_level=5, max_stock_level=40)

    response = await client.get("/api/v1/products/purchase-suggestions", headers=manager_headers)

    data = response.json()["data"]
    assert [(p["sku"], p["suggested_order_qty"]) for p in data] == [("SKU-LOW", 38)]


async def test_generate_sku(client, manager_headers, make_product, category):
    await make_product("ELE00012")

    response = await client.get(
        "/api/v1/products/generate-sku", params={"category_id": str(category.id)}, headers=manager_headers
    )

    assert response.json()["data"] == {"sku": "ELE00013"}
