"""
Access policy.

A single declarative table maps (resource, operation) to the roles allowed to
perform it. Endpoints declare what they do; authorize() decides. Services
never check roles themselves.
"""
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from app.models.user import Role


class Resource(str, Enum):
    PRODUCTS = "products"
    CATEGORIES = "categories"
    WAREHOUSES = "warehouses"
    RECEIPTS = "receipts"
    DELIVERIES = "deliveries"
    ADJUSTMENTS = "adjustments"


class Operation(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    VALIDATE = "validate"
    DELETE = "delete"
    MANAGE_REORDER = "manage_reorder"  # reorder rules, purchase suggestions, SKU generation


ALL_ROLES: FrozenSet[Role] = frozenset(Role)
MANAGERS: FrozenSet[Role] = frozenset({Role.ADMIN, Role.INVENTORY_MANAGER})
ADMINS: FrozenSet[Role] = frozenset({Role.ADMIN})


PERMISSIONS: Dict[Tuple[Resource, Operation], FrozenSet[Role]] = {
    # Products
    (Resource.PRODUCTS, Operation.READ): ALL_ROLES,
    (Resource.PRODUCTS, Operation.CREATE): MANAGERS,
    (Resource.PRODUCTS, Operation.UPDATE): MANAGERS,
    (Resource.PRODUCTS, Operation.DELETE): MANAGERS,
    (Resource.PRODUCTS, Operation.MANAGE_REORDER): MANAGERS,
    # Categories
    (Resource.CATEGORIES, Operation.READ): ALL_ROLES,
    (Resource.CATEGORIES, Operation.CREATE): MANAGERS,
    (Resource.CATEGORIES, Operation.UPDATE): MANAGERS,
    (Resource.CATEGORIES, Operation.DELETE): MANAGERS,
    # Warehouses
    (Resource.WAREHOUSES, Operation.READ): ALL_ROLES,
    (Resource.WAREHOUSES, Operation.CREATE): ADMINS,
    (Resource.WAREHOUSES, Operation.UPDATE): ADMINS,
    (Resource.WAREHOUSES, Operation.DELETE): ADMINS,
    # Receipts
    (Resource.RECEIPTS, Operation.READ): ALL_ROLES,
    (Resource.RECEIPTS, Operation.CREATE): ALL_ROLES,
    (Resource.RECEIPTS, Operation.UPDATE): ALL_ROLES,
    (Resource.RECEIPTS, Operation.VALIDATE): MANAGERS,
    (Resource.RECEIPTS, Operation.DELETE): MANAGERS,
    # Deliveries
    (Resource.DELIVERIES, Operation.READ): ALL_ROLES,
    (Resource.DELIVERIES, Operation.CREATE): ALL_ROLES,
    (Resource.DELIVERIES, Operation.UPDATE): ALL_ROLES,
    (Resource.DELIVERIES, Operation.VALIDATE): MANAGERS,
    (Resource.DELIVERIES, Operation.DELETE): MANAGERS,
    # Adjustments
    (Resource.ADJUSTMENTS, Operation.READ): ALL_ROLES,
    (Resource.ADJUSTMENTS, Operation.CREATE): MANAGERS,
    (Resource.ADJUSTMENTS, Operation.DELETE): MANAGERS,
}


def allowed_roles(resource: Resource, operation: Operation) -> FrozenSet[Role]:
    """Roles allowed for an operation. Unlisted operations allow nobody."""
    return PERMISSIONS.get((resource, operation), frozenset())


def authorize(role: Role, resource: Resource, operation: Operation) -> bool:
    """Check whether a role may perform an operation on a resource."""
    return role in allowed_roles(resource, operation)


class PermissionChecker:
    """Permission checks for one caller's role."""

    def __init__(self, role: Role):
        self.role = role

    def can(self, resource: Resource, operation: Operation) -> bool:
        return authorize(self.role, resource, operation)

    def allowed_operations(self, resource: Resource) -> List[Operation]:
        """Operations this role may perform on a resource, e.g. for UI hints."""
        return [op for op in Operation if self.can(resource, op)]
