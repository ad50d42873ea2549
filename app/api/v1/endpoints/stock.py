"""
Stock API Endpoints

- Reorder alerts grouped by priority
- Manual stock adjustments (add, remove, set)
"""
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from app.api.deps import DB
from app.schemas.stock import StockAdjustRequest, StockAdjustResponse, InventoryLogResponse
from app.services.stock_service import (
    StockService,
    ProductNotFoundError,
    StockAdjustmentError,
)

router = APIRouter()


@router.get("/reorder-alerts")
async def get_reorder_alerts(db: DB):
    """
    Products that are out of stock (critical), at or below their reorder
    level (high) or running low (medium), lowest stock first.
    """
    report = await StockService(db).reorder_alerts()
    return report.to_dict()


@router.post("/{product_id}/adjust", response_model=StockAdjustResponse)
async def adjust_stock(product_id: UUID, data: StockAdjustRequest, db: DB):
    """Adjust a product's stock. The reason must be at least 5 characters."""
    try:
        log = await StockService(db).adjust_stock(
            product_id,
            data.adjustment_type,
            data.quantity,
            data.reason,
            notes=data.notes,
            performed_by=data.performed_by,
        )
    except ProductNotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    except StockAdjustmentError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "errors": e.errors},
        )

    return StockAdjustResponse(
        previous_stock=log.previous_stock,
        new_stock=log.new_stock,
        log=InventoryLogResponse.model_validate(log),
    )
