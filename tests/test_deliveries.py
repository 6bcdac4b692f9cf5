"""Delivery workflow over the HTTP API."""
from app.services import notification_service


def delivery_payload(*items):
    return {
        "customer": "Initech",
        "delivery_address": "4120 Freidrich Lane, Austin TX",
        "delivery_date": "2025-06-03T09:00:00Z",
        "items": list(items),
    }


def line(product, requested, picked=None):
    return {
        "product_id": str(product.id),
        "requested_qty": requested,
        "picked_qty": requested if picked is None else picked,
    }


async def create_delivery(client, headers, *items):
    response = await client.post("/api/v1/deliveries", json=delivery_payload(*items), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_validate_takes_picked_quantity_out_of_stock(client, db, manager_headers, make_product):
    product = await make_product("SKU-1", stock=10, reorder_level=2)
    delivery = await create_delivery(client, manager_headers, line(product, 8))
    assert delivery["delivery_number"].startswith("DEL-")
    assert delivery["status"] == "Draft"

    response = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=manager_headers)

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Delivered"
    await db.refresh(product)
    assert product.current_stock == 2

    again = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=manager_headers)
    assert again.status_code == 400
    assert again.json()["message"] == "Delivery already validated"
    await db.refresh(product)
    assert product.current_stock == 2


async def test_create_rejects_line_above_available_stock(client, staff_headers, make_product):
    product = await make_product("SKU-1", stock=3, name="Widget")

    response = await client.post(
        "/api/v1/deliveries", json=delivery_payload(line(product, 5)), headers=staff_headers
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Insufficient stock for Widget. Available: 3, Requested: 5"


async def test_validate_is_all_or_nothing(client, db, manager_headers, make_product):
    plenty = await make_product("SKU-A", stock=10)
    scarce = await make_product("SKU-B", stock=4, name="Scarce Part")
    delivery = await create_delivery(
        client, manager_headers, line(plenty, 5), line(scarce, 4)
    )

    # Stock drops after the delivery was drafted
    adjust = await client.post(
        "/api/v1/adjustments",
        json={"product_id": str(scarce.id), "physical_count": 1, "reason": "Damaged Goods"},
        headers=manager_headers,
    )
    assert adjust.status_code == 201

    response = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=manager_headers)

    assert response.status_code == 400
    assert "Insufficient stock for Scarce Part" in response.json()["message"]
    await db.refresh(plenty)
    await db.refresh(scarce)
    assert plenty.current_stock == 10
    assert scarce.current_stock == 1

    detail = await client.get(f"/api/v1/deliveries/{delivery['id']}", headers=manager_headers)
    assert detail.json()["data"]["status"] == "Draft"


async def test_same_product_on_two_lines_is_checked_on_total(client, db, manager_headers, make_product):
    product = await make_product("SKU-1", stock=6)
    delivery = await create_delivery(client, manager_headers, line(product, 4), line(product, 4))

    response = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=manager_headers)

    assert response.status_code == 400
    await db.refresh(product)
    assert product.current_stock == 6


async def test_staff_cannot_validate(client, staff_headers, make_product):
    product = await make_product("SKU-1", stock=6)
    delivery = await create_delivery(client, staff_headers, line(product, 1))

    response = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=staff_headers)

    assert response.status_code == 403
    assert response.json()["message"] == "User role Warehouse Staff is not authorized to access this route"


async def test_delete_draft_delivery(client, manager_headers, make_product):
    product = await make_product("SKU-1", stock=6)
    delivery = await create_delivery(client, manager_headers, line(product, 1))

    response = await client.delete(f"/api/v1/deliveries/{delivery['id']}", headers=manager_headers)
    assert response.status_code == 200

    missing = await client.get(f"/api/v1/deliveries/{delivery['id']}", headers=manager_headers)
    assert missing.status_code == 404


async def test_delivered_delivery_cannot_be_updated_or_deleted(client, db, manager_headers, make_product):
    product = await make_product("SKU-1", stock=10, reorder_level=2)
    delivery = await create_delivery(client, manager_headers, line(product, 8))
    validated = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=manager_headers)
    assert validated.status_code == 200

    update = await client.put(
        f"/api/v1/deliveries/{delivery['id']}",
        json={"notes": "Left at reception", "items": [line(product, 1)]},
        headers=manager_headers,
    )
    assert update.status_code == 400
    assert update.json()["message"] == "Cannot update a completed delivery"

    delete = await client.delete(f"/api/v1/deliveries/{delivery['id']}", headers=manager_headers)
    assert delete.status_code == 400
    assert delete.json()["message"] == "Cannot delete a completed delivery"

    detail = await client.get(f"/api/v1/deliveries/{delivery['id']}", headers=manager_headers)
    data = detail.json()["data"]
    assert data["status"] == "Delivered"
    assert [item["picked_qty"] for item in data["items"]] == [8]
    await db.refresh(product)
    assert product.current_stock == 2


async def test_validate_schedules_low_stock_alert(client, manager_headers, make_product, monkeypatch):
    sent = []
    monkeypatch.setattr(notification_service, "_dispatch", lambda kind, payload: sent.append((kind, payload)))
    low = await make_product("SKU-LOW", stock=10, reorder_level=5)
    plenty = await make_product("SKU-OK", stock=50, reorder_level=5)
    delivery = await create_delivery(client, manager_headers, line(low, 6), line(plenty, 6))

    response = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=manager_headers)

    assert response.status_code == 200
    assert sent == [(
        notification_service.LOW_STOCK,
        {"products": [{"sku": "SKU-LOW", "name": "Product SKU-LOW", "current_stock": 4, "reorder_level": 5}]},
    )]


async def test_failed_alert_does_not_fail_validation(client, db, manager_headers, make_product, monkeypatch):
    def unreachable_smtp(kind, payload):
        raise OSError("Connection refused")

    monkeypatch.setattr(notification_service, "_dispatch", unreachable_smtp)
    product = await make_product("SKU-1", stock=3, reorder_level=5)
    delivery = await create_delivery(client, manager_headers, line(product, 1))

    response = await client.put(f"/api/v1/deliveries/{delivery['id']}/validate", headers=manager_headers)

    assert response.status_code == 200
    await db.refresh(product)
    assert product.current_stock == 2
