from contextlib import asynccontextmanager
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.api.v1.router import api_router
from app.database import init_db, async_session_factory
from app.jobs.scheduler import scheduler, start_scheduler, shutdown_scheduler


logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create missing tables (production schemas are managed by Alembic)
    - Start background scheduler

    Shutdown:
    - Stop background scheduler
    """
    # Startup
    await init_db()
    if settings.SCHEDULER_ENABLED:
        start_scheduler()
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} started")

    yield

    # Shutdown
    shutdown_scheduler()
    logger.info(f"{settings.APP_NAME} shutting down")


# OpenAPI Tags with detailed descriptions
OPENAPI_TAGS = [
    {"name": "Wholesale Pricing", "description": "Tier pricing quotes, tier validation, order checks and profit previews"},
    {"name": "Stock", "description": "Reorder alerts and manual stock adjustments"},
    {"name": "Partner Payouts", "description": "Partner profit distributions, approval workflow and outstanding aging"},
    {"name": "Profit Reports", "description": "Per-order profit reports, period net profit and trends"},
    {"name": "Financial Ledger", "description": "Revenue, cost and payout bookings, period balance and reconciliation"},
]

FULL_API_DESCRIPTION = """
## Wholesale Marketplace Backend

Pricing and profit engine for a B2B wholesale marketplace.

| Module | Description |
|--------|-------------|
| **Wholesale Pricing** | Volume tiers, MOQ gating, customer discounts |
| **Profit** | Line and order profit with platform/seller split |
| **Profit Reports** | Per-order reports from cost snapshots, period net profit |
| **Partner Payouts** | Share of net profit per partner, PENDING → APPROVED → PAID |
| **Financial Ledger** | Debit/credit bookings for orders and payouts, reconciliation |
| **Stock** | Reorder alerts, logged manual adjustments |

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Bad Request - Business rule violated |
| 404 | Not Found - Resource doesn't exist |
| 409 | Conflict - Duplicate payout or report |
| 422 | Unprocessable Entity - Validation failed |
| 500 | Internal Server Error |
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
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


# Global exception handler for anything the routers did not translate
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}")

    error_detail = {
        "error": str(exc),
        "type": type(exc).__name__,
        "path": str(request.url.path),
        "method": request.method,
    }
    if settings.DEBUG:
        error_detail["traceback"] = traceback.format_exc()

    return JSONResponse(status_code=500, content=error_detail)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Database ping plus background scheduler state. 503 when the database is unreachable."""
    from sqlalchemy import text
    from datetime import datetime, timezone

    checks = {"database": "unknown", "scheduler": "disabled"}
    healthy = True

    try:
        async with async_session_factory() as session:
            await session.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except Exception as e:
        logger.warning(f"Health check could not reach the database: {e}")
        checks["database"] = f"error: {e}"
        healthy = False

    if settings.SCHEDULER_ENABLED:
        checks["scheduler"] = "running" if scheduler.running else "stopped"

    body = {
        "status": "healthy" if healthy else "unhealthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
    if not healthy:
        return JSONResponse(status_code=503, content=body)
    return body


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
    }
