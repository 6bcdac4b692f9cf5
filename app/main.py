from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.api.v1.router import api_router
from app.core.exceptions import register_exception_handlers
from app.database import init_db, async_session_factory


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create any missing tables
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()

    yield

    logger.info("Shutting down...")


OPENAPI_TAGS = [
    {"name": "Authentication", "description": "Login ID based auth with access/refresh tokens"},
    {"name": "Products", "description": "Product catalog, stock levels and reorder rules"},
    {"name": "Categories", "description": "Product categories"},
    {"name": "Warehouses", "description": "Warehouse locations"},
    {"name": "Receipts", "description": "Inbound goods; validation adds stock"},
    {"name": "Deliveries", "description": "Outbound goods; validation removes stock"},
    {"name": "Stock Adjustments", "description": "Physical counts that overwrite stock"},
]

FULL_API_DESCRIPTION = """
## StockMaster IMS API

Inventory backend for a single organization: catalog, warehouses, inbound
receipts, outbound deliveries and stock adjustments.

### Authentication

All endpoints except `/auth/register`, `/auth/login` and `/auth/refresh` require a JWT.
Include token in Authorization header: `Bearer <token>`

### Roles

| Role | Access |
|------|--------|
| Admin | Everything |
| Inventory Manager | Everything except warehouse changes |
| Warehouse Staff | Read, create and edit draft documents |

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Bad Request - Validation failed or business rule violated |
| 401 | Unauthorized - Invalid/expired token |
| 403 | Forbidden - Insufficient permissions |
| 404 | Not Found - Resource doesn't exist |
| 409 | Conflict - Concurrent update, retry |
| 500 | Internal Server Error |

### Support

- **API Docs**: /docs (Swagger UI)
- **ReDoc**: /redoc (Alternative docs)
- **Health Check**: /health
"""

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=FULL_API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
    swagger_ui_parameters={
        "deepLinking": True,
        "persistAuthorization": True,
        "filter": True,
    },
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API router
app.include_router(api_router)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with database validation."""
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": "unknown"
        }
    }

    # Check database connectivity
    try:
        async with async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            health_status["checks"]["database"] = "connected"
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    # Return 503 if unhealthy
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
    }
