from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Access Control
    auth,
    # Catalog
    categories,
    warehouses,
    products,
    # Stock Operations
    receipts,
    deliveries,
    adjustments,
)


# Create main API router
api_router = APIRouter(prefix="/api/v1")

# ==================== Access Control ====================
api_router.include_router(
    auth.router,
    prefix="/auth",
)

# ==================== Catalog ====================
api_router.include_router(
    categories.router,
    prefix="/categories",
)
api_router.include_router(
    warehouses.router,
    prefix="/warehouses",
)
api_router.include_router(
    products.router,
    prefix="/products",
)

# ==================== Stock Operations ====================
api_router.include_router(
    receipts.router,
    prefix="/receipts",
)
api_router.include_router(
    deliveries.router,
    prefix="/deliveries",
)
api_router.include_router(
    adjustments.router,
    prefix="/adjustments",
)
