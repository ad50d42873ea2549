"""Pydantic schemas for wholesale pricing requests.

Tier and pricing inputs are deliberately permissive (no range constraints):
the tier validator reports every problem at once, which field-level
pydantic errors would cut short.
"""
from datetime import date
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseCreateSchema


class WholesaleTierInput(BaseCreateSchema):
    """One volume tier as entered by an admin."""
    min_quantity: int
    max_quantity: Optional[int] = Field(None, description="Omit for an unbounded top tier")
    price: Decimal
    discount: Optional[Decimal] = Field(None, description="Percent off wholesale price")


class ProductPricingInput(BaseCreateSchema):
    """Pricing and cost configuration of a product."""
    id: Optional[UUID] = None
    name: Optional[str] = None
    base_price: Decimal = Decimal("0")
    wholesale_price: Decimal
    moq: Optional[int] = None
    stock_quantity: Optional[int] = Field(None, description="Omit when stock is not tracked")
    platform_profit_percentage: Decimal = Decimal("0")
    seller_commission_percentage: Decimal = Decimal("0")
    cost_per_unit: Optional[Decimal] = None
    shipping_cost: Decimal = Decimal("0")
    handling_cost: Decimal = Decimal("0")
    wholesale_tiers: List[WholesaleTierInput] = []


class QuoteRequest(BaseCreateSchema):
    product: ProductPricingInput
    quantity: int = Field(..., ge=0)
    customer_discount: Optional[Decimal] = Field(None, description="Customer-specific discount percent")
    discount_valid_until: Optional[date] = None


class TierValidationRequest(BaseCreateSchema):
    base_price: Decimal
    wholesale_price: Decimal
    moq: Optional[int] = None
    tiers: List[WholesaleTierInput] = []


class OrderValidationRequest(BaseCreateSchema):
    product: ProductPricingInput
    quantity: int = Field(..., ge=0)
