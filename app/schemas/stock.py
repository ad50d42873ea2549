"""Pydantic schemas for stock alerts and adjustments."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseResponseSchema, BaseCreateSchema
from app.services.stock_calculations import AdjustmentType


class StockAdjustRequest(BaseCreateSchema):
    """
    Manual stock change. `quantity` is validated by the stock rules so a
    negative value comes back as a 400 with the rule's message.
    """
    adjustment_type: AdjustmentType
    quantity: int
    reason: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)
    performed_by: Optional[UUID] = None


class InventoryLogResponse(BaseResponseSchema):
    id: UUID
    product_id: UUID
    action: str
    adjustment_type: str
    quantity: int
    previous_stock: int
    new_stock: int
    notes: Optional[str] = None
    performed_by: Optional[UUID] = None
    created_at: datetime


class StockAdjustResponse(BaseResponseSchema):
    previous_stock: int
    new_stock: int
    log: InventoryLogResponse
    message: str = "Stock adjusted successfully"
