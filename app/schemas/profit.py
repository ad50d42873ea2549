"""Pydantic schemas for profit calculation and profit reports."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseResponseSchema, BaseCreateSchema
from app.schemas.wholesale import ProductPricingInput


class ProfitRequest(BaseCreateSchema):
    """Profit for one line. Without unit_price the tier/wholesale price is resolved."""
    product: ProductPricingInput
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = None


class OrderProfitLine(BaseCreateSchema):
    product: ProductPricingInput
    quantity: int = Field(..., gt=0)
    unit_price: Optional[Decimal] = None


class OrderProfitRequest(BaseCreateSchema):
    items: List[OrderProfitLine] = Field(..., min_length=1)


class ProfitReportResponse(BaseResponseSchema):
    id: UUID
    order_id: UUID
    revenue: Decimal
    cost_of_goods: Decimal
    gross_profit: Decimal
    net_profit: Decimal
    profit_margin: Decimal
    platform_profit: Decimal
    platform_profit_percent: Decimal
    seller_profit: Decimal
    seller_profit_percent: Decimal
    seller_id: Optional[UUID] = None
    legacy_items: int = 0
    report_period: str
    report_date: date
    created_at: datetime
