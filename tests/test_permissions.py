"""Access policy and its enforcement on the API."""
import pytest

from app.core import exceptions
from app.core.permissions import Operation, PermissionChecker, Resource, authorize
from app.main import FULL_API_DESCRIPTION
from app.models.user import Role


@pytest.mark.parametrize(
    "role, resource, operation, allowed",
    [
        (Role.WAREHOUSE_STAFF, Resource.PRODUCTS, Operation.READ, True),
        (Role.WAREHOUSE_STAFF, Resource.PRODUCTS, Operation.CREATE, False),
        (Role.WAREHOUSE_STAFF, Resource.RECEIPTS, Operation.CREATE, True),
        (Role.WAREHOUSE_STAFF, Resource.RECEIPTS, Operation.VALIDATE, False),
        (Role.INVENTORY_MANAGER, Resource.RECEIPTS, Operation.VALIDATE, True),
        (Role.INVENTORY_MANAGER, Resource.WAREHOUSES, Operation.CREATE, False),
        (Role.ADMIN, Resource.WAREHOUSES, Operation.DELETE, True),
        (Role.ADMIN, Resource.ADJUSTMENTS, Operation.UPDATE, False),
    ],
)
def test_authorize(role, resource, operation, allowed):
    assert authorize(role, resource, operation) is allowed


def test_allowed_operations_for_staff():
    checker = PermissionChecker(Role.WAREHOUSE_STAFF)
    assert checker.allowed_operations(Resource.DELIVERIES) == [
        Operation.READ,
        Operation.CREATE,
        Operation.UPDATE,
    ]
    assert checker.allowed_operations(Resource.ADJUSTMENTS) == [Operation.READ]


async def test_missing_token_is_rejected(client):
    response = await client.get("/api/v1/products")

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "message": "Not authorized, no token",
        "error": "AuthenticationError",
    }


async def test_invalid_token_is_rejected(client):
    response = await client.get(
        "/api/v1/products", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert response.status_code == 401
    assert response.json()["message"] == "Not authorized, token failed"


async def test_manager_cannot_create_warehouse(client, manager_headers):
    response = await client.post(
        "/api/v1/warehouses",
        json={
            "name": "Overflow",
            "code": "wh-2",
            "location": {"address": "2 Dock Road", "city": "Springfield", "state": "IL"},
        },
        headers=manager_headers,
    )

    assert response.status_code == 403
    assert response.json()["message"] == "User role Inventory Manager is not authorized to access this route"


async def test_staff_cannot_create_product(client, staff_headers, category):
    response = await client.post(
        "/api/v1/products",
        json={
            "sku": "new-1",
            "name": "New",
            "unit_of_measure": "pieces",
            "category_id": str(category.id),
            "reorder_level": 1,
        },
        headers=staff_headers,
    )

    assert response.status_code == 403


def test_documented_error_codes_match_handlers():
    documented = {
        int(row.split("|")[1])
        for row in FULL_API_DESCRIPTION.splitlines()
        if row.startswith("| ") and row.split("|")[1].strip().isdigit()
    }
    raised = {
        error.status_code
        for error in vars(exceptions).values()
        if isinstance(error, type) and issubclass(error, exceptions.InventoryError)
    }

    assert documented == raised | {500}
