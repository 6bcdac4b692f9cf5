"""
Application exceptions and their translation into the API response envelope.

Services raise these; nothing below the API layer knows about HTTP.
Every error leaves the API as:

    {"success": false, "message": "...", "error": "..."}
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base exception for inventory errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(InventoryError):
    """Missing or malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(InventoryError):
    """Referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class BusinessRuleViolation(InventoryError):
    """Input is well formed but a business rule forbids the operation."""
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(BusinessRuleViolation):
    """A stock decrement would take a product below zero."""

    def __init__(self, product_name: str, available: int, required: int, product_id: Any = None):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, Required: {required}",
            details={
                "product_id": str(product_id) if product_id else None,
                "available": available,
                "required": required,
            },
        )
        self.product_name = product_name
        self.available = available
        self.required = required


class RetryableConflict(InventoryError):
    """A concurrent write changed the data after it was read; the request may be retried."""
    status_code = status.HTTP_409_CONFLICT


class AuthenticationError(InventoryError):
    """Missing, invalid or expired credentials."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(InventoryError):
    """Authenticated, but the role is not allowed to perform the operation."""
    status_code = status.HTTP_403_FORBIDDEN


def error_envelope(message: str, error: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if error:
        body["error"] = error
    body.update(extra)
    return body


async def inventory_error_handler(request: Request, exc: InventoryError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")

    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, error=type(exc).__name__),
        headers=headers,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = first.get("msg", "Invalid request")
    if field:
        message = f"{field}: {message}"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope(
            message,
            error="ValidationError",
            errors=[{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in errors],
        ),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_envelope("Internal server error", error=str(exc)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
