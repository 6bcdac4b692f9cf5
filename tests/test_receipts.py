"""Receipt workflow over the HTTP API."""


def receipt_payload(*items, supplier="Acme Supplies"):
    return {
        "supplier": supplier,
        "expected_date": "2025-06-01T10:00:00Z",
        "reference_number": "PO-1001",
        "items": list(items),
    }


def line(product, expected=10, received=0, quality="Pending"):
    return {
        "product_id": str(product.id),
        "expected_qty": expected,
        "received_qty": received,
        "quality_status": quality,
    }


async def test_create_receipt_assigns_number_and_draft_status(client, staff_headers, make_product):
    product = await make_product("SKU-1")

    response = await client.post(
        "/api/v1/receipts", json=receipt_payload(line(product)), headers=staff_headers
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    receipt = body["data"]
    assert receipt["receipt_number"].startswith("RCP-")
    assert receipt["receipt_number"].endswith("-001")
    assert receipt["status"] == "Draft"
    assert receipt["items"][0]["line_no"] == 1
    assert receipt["items"][0]["product"]["sku"] == "SKU-1"


async def test_create_receipt_requires_items(client, staff_headers):
    response = await client.post("/api/v1/receipts", json=receipt_payload(), headers=staff_headers)

    assert response.status_code == 400
    assert response.json()["success"] is False


async def test_validate_adds_only_passed_lines(client, db, manager_headers, make_product):
    passed = await make_product("SKU-PASS", stock=5)
    failed = await make_product("SKU-FAIL", stock=5)
    pending = await make_product("SKU-PEND", stock=5)

    created = await client.post(
        "/api/v1/receipts",
        json=receipt_payload(
            line(passed, received=20, quality="Pass"),
            line(failed, received=7, quality="Fail"),
            line(pending, received=3, quality="Pending"),
        ),
        headers=manager_headers,
    )
    receipt_id = created.json()["data"]["id"]

    response = await client.put(f"/api/v1/receipts/{receipt_id}/validate", headers=manager_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "Done"
    assert data["received_date"] is not None

    for product in (passed, failed, pending):
        await db.refresh(product)
    assert passed.current_stock == 25
    assert failed.current_stock == 5
    assert pending.current_stock == 5


async def test_done_receipt_is_immutable(client, manager_headers, make_product):
    product = await make_product("SKU-1")
    created = await client.post(
        "/api/v1/receipts",
        json=receipt_payload(line(product, received=1, quality="Pass")),
        headers=manager_headers,
    )
    receipt_id = created.json()["data"]["id"]
    await client.put(f"/api/v1/receipts/{receipt_id}/validate", headers=manager_headers)

    again = await client.put(f"/api/v1/receipts/{receipt_id}/validate", headers=manager_headers)
    assert again.status_code == 400
    assert again.json()["message"] == "Receipt already validated"

    update = await client.put(
        f"/api/v1/receipts/{receipt_id}", json={"notes": "late"}, headers=manager_headers
    )
    assert update.status_code == 400
    assert update.json()["message"] == "Cannot update a completed receipt"

    delete = await client.delete(f"/api/v1/receipts/{receipt_id}", headers=manager_headers)
    assert delete.status_code == 400


async def test_update_replaces_items(client, staff_headers, make_product):
    first = await make_product("SKU-1")
    second = await make_product("SKU-2")
    created = await client.post(
        "/api/v1/receipts", json=receipt_payload(line(first)), headers=staff_headers
    )
    receipt_id = created.json()["data"]["id"]

    response = await client.put(
        f"/api/v1/receipts/{receipt_id}",
        json={"status": "Waiting", "items": [line(second, expected=4)]},
        headers=staff_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "Waiting"
    assert [item["product_id"] for item in data["items"]] == [str(second.id)]


async def test_update_cannot_jump_to_done(client, staff_headers, make_product):
    product = await make_product("SKU-1")
    created = await client.post(
        "/api/v1/receipts", json=receipt_payload(line(product)), headers=staff_headers
    )
    receipt_id = created.json()["data"]["id"]

    response = await client.put(
        f"/api/v1/receipts/{receipt_id}", json={"status": "Done"}, headers=staff_headers
    )

    assert response.status_code == 400


async def test_unknown_product_rejected(client, staff_headers):
    response = await client.post(
        "/api/v1/receipts",
        json=receipt_payload({
            "product_id": "00000000-0000-0000-0000-000000000001",
            "expected_qty": 1,
        }),
        headers=staff_headers,
    )

    assert response.status_code == 400
    assert "not found" in response.json()["message"]


async def test_list_receipts_filters_by_status_and_supplier(client, staff_headers, make_product):
    product = await make_product("SKU-1")
    await client.post("/api/v1/receipts", json=receipt_payload(line(product)), headers=staff_headers)
    await client.post(
        "/api/v1/receipts",
        json=receipt_payload(line(product), supplier="Globex"),
        headers=staff_headers,
    )

    response = await client.get(
        "/api/v1/receipts", params={"supplier": "globex", "status": "Draft"}, headers=staff_headers
    )

    body = response.json()
    assert response.status_code == 200
    assert body["count"] == 1
    assert body["data"][0]["supplier"] == "Globex"
