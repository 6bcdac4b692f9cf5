"""Stock adjustments over the HTTP API."""
from app.services import notification_service


async def test_adjustment_sets_stock_to_physical_count(client, db, manager_headers, make_product, warehouse):
    product = await make_product("SKU-1", stock=50, reorder_level=10)

    response = await client.post(
        "/api/v1/adjustments",
        json={
            "product_id": str(product.id),
            "warehouse_id": str(warehouse.id),
            "physical_count": 45,
            "reason": "Damaged Goods",
            "notes": "Crushed pallet",
        },
        headers=manager_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Adjustment created and stock updated successfully"
    adjustment = body["data"]
    assert adjustment["adjustment_number"].startswith("ADJ-")
    assert adjustment["system_stock"] == 50
    assert adjustment["physical_count"] == 45
    assert adjustment["difference"] == -5
    assert adjustment["warehouse"]["code"] == "WH-MAIN"

    await db.refresh(product)
    assert product.current_stock == 45


async def test_adjustment_rejects_negative_count(client, manager_headers, make_product):
    product = await make_product("SKU-1", stock=5)

    response = await client.post(
        "/api/v1/adjustments",
        json={"product_id": str(product.id), "physical_count": -1, "reason": "Other"},
        headers=manager_headers,
    )

    assert response.status_code == 400


async def test_adjustment_rejects_unknown_reason(client, manager_headers, make_product):
    product = await make_product("SKU-1", stock=5)

    response = await client.post(
        "/api/v1/adjustments",
        json={"product_id": str(product.id), "physical_count": 3, "reason": "Lost in space"},
        headers=manager_headers,
    )

    assert response.status_code == 400


async def test_adjustment_for_unknown_product(client, manager_headers, users):
    response = await client.post(
        "/api/v1/adjustments",
        json={
            "product_id": "00000000-0000-0000-0000-000000000001",
            "physical_count": 3,
            "reason": "Other",
        },
        headers=manager_headers,
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"


async def test_staff_cannot_adjust(client, staff_headers, make_product):
    product = await make_product("SKU-1", stock=5)

    response = await client.post(
        "/api/v1/adjustments",
        json={"product_id": str(product.id), "physical_count": 3, "reason": "Other"},
        headers=staff_headers,
    )

    assert response.status_code == 403


async def test_deleting_adjustment_keeps_stock(client, db, manager_headers, make_product):
    product = await make_product("SKU-1", stock=20)
    created = await client.post(
        "/api/v1/adjustments",
        json={"product_id": str(product.id), "physical_count": 12, "reason": "Counting Error"},
        headers=manager_headers,
    )
    adjustment_id = created.json()["data"]["id"]

    response = await client.delete(f"/api/v1/adjustments/{adjustment_id}", headers=manager_headers)

    assert response.status_code == 200
    await db.refresh(product)
    assert product.current_stock == 12


async def test_list_adjustments_by_reason(client, manager_headers, staff_headers, make_product):
    product = await make_product("SKU-1", stock=20)
    for count, reason in ((18, "Theft/Loss"), (17, "Expired Items")):
        await client.post(
            "/api/v1/adjustments",
            json={"product_id": str(product.id), "physical_count": count, "reason": reason},
            headers=manager_headers,
        )

    response = await client.get(
        "/api/v1/adjustments", params={"reason": "Theft/Loss"}, headers=staff_headers
    )

    body = response.json()
    assert body["count"] == 1
    assert body["data"][0]["difference"] == -2


async def test_sequential_adjustments_track_the_running_count(client, db, manager_headers, make_product):
    product = await make_product("SKU-1", stock=30, reorder_level=5)

    counted = []
    for physical_count in (50, 45):
        response = await client.post(
            "/api/v1/adjustments",
            json={"product_id": str(product.id), "physical_count": physical_count, "reason": "Counting Error"},
            headers=manager_headers,
        )
        assert response.status_code == 201
        counted.append(response.json()["data"])

    assert [(a["system_stock"], a["physical_count"], a["difference"]) for a in counted] == [
        (30, 50, 20),
        (50, 45, -5),
    ]
    assert counted[0]["adjustment_number"] != counted[1]["adjustment_number"]
    await db.refresh(product)
    assert product.current_stock == 45


async def test_adjustment_below_reorder_level_schedules_alert(client, manager_headers, make_product, monkeypatch):
    sent = []
    monkeypatch.setattr(notification_service, "_dispatch", lambda kind, payload: sent.append((kind, payload)))
    product = await make_product("SKU-1", stock=20, reorder_level=10)

    for physical_count in (15, 8):
        response = await client.post(
            "/api/v1/adjustments",
            json={"product_id": str(product.id), "physical_count": physical_count, "reason": "Theft/Loss"},
            headers=manager_headers,
        )
        assert response.status_code == 201

    assert [(kind, payload["products"][0]["current_stock"]) for kind, payload in sent] == [
        (notification_service.LOW_STOCK, 8),
    ]
