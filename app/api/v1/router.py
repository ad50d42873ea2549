from fastapi import APIRouter

from app.api.v1.endpoints import (
    # Wholesale Pricing & Profit Preview
    pricing,
    # Stock
    stock,
    # Partner Payouts
    payouts,
    # Profit Reporting
    profit_reports,
    # Financial Ledger
    ledger,
)


api_router = APIRouter(prefix="/api/v1")

# ==================== Wholesale Pricing ====================
api_router.include_router(
    pricing.router,
    prefix="/pricing",
    tags=["Wholesale Pricing"]
)

# ==================== Stock ====================
api_router.include_router(
    stock.router,
    prefix="/stock",
    tags=["Stock"]
)

# ==================== Partner Payouts ====================
api_router.include_router(
    payouts.router,
    prefix="/payouts",
    tags=["Partner Payouts"]
)

# ==================== Profit Reports ====================
api_router.include_router(
    profit_reports.router,
    prefix="/profit-reports",
    tags=["Profit Reports"]
)

# ==================== Financial Ledger ====================
api_router.include_router(
    ledger.router,
    prefix="/ledger",
    tags=["Financial Ledger"]
)
