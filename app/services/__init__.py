# Services module
from app.services.auth_service import AuthService
from app.services.category_service import CategoryService
from app.services.warehouse_service import WarehouseService
from app.services.product_service import ProductService

# Stock operations
from app.services.document_sequence_service import DocumentSequenceService
from app.services.stock_ledger_service import StockLedgerService
from app.services.receipt_service import ReceiptService
from app.services.delivery_service import DeliveryService
from app.services.adjustment_service import AdjustmentService

__all__ = [
    "AuthService",
    "CategoryService",
    "WarehouseService",
    "ProductService",
    # Stock operations
    "DocumentSequenceService",
    "StockLedgerService",
    "ReceiptService",
    "DeliveryService",
    "AdjustmentService",
]
