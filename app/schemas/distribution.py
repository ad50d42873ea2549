"""Pydantic schemas for partner payouts (profit distributions)."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import Field

from app.core.enum_utils import (
    create_uppercase_validator,
    VALID_DISTRIBUTION_STATUSES,
    VALID_PERIOD_TYPES,
    VALID_PAYMENT_METHODS,
)
from app.models.partner import PeriodType, PaymentMethod
from app.schemas.base import BaseResponseSchema, BaseCreateSchema


class PayoutGenerateRequest(BaseCreateSchema):
    partner_id: UUID
    start_date: date
    end_date: date
    period_type: PeriodType = PeriodType.CUSTOM
    notes: Optional[str] = Field(None, max_length=1000)

    _normalize_period_type = create_uppercase_validator('period_type', VALID_PERIOD_TYPES)


class DistributeRequest(BaseCreateSchema):
    """Generate payouts for every active partner over one period."""
    start_date: date
    end_date: date
    period_type: PeriodType = PeriodType.CUSTOM
    notes: Optional[str] = Field(None, max_length=1000)

    _normalize_period_type = create_uppercase_validator('period_type', VALID_PERIOD_TYPES)


class PayoutStatusUpdate(BaseCreateSchema):
    """
    Status change. The state machine decides which transitions are legal,
    so `status` is only case-normalized here.
    """
    status: str
    user_id: Optional[UUID] = None
    payment_method: Optional[PaymentMethod] = None
    payment_reference: Optional[str] = Field(None, max_length=100)
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None

    _normalize_status = create_uppercase_validator('status', VALID_DISTRIBUTION_STATUSES)
    _normalize_payment_method = create_uppercase_validator('payment_method', VALID_PAYMENT_METHODS)


class PartnerBrief(BaseResponseSchema):
    id: UUID
    name: str
    email: Optional[str] = None
    profit_share_percentage: Decimal


class ProfitDistributionResponse(BaseResponseSchema):
    id: UUID
    partner_id: UUID
    partner: Optional[PartnerBrief] = None
    period_type: str
    start_date: date
    end_date: date
    total_revenue: Decimal
    total_costs: Decimal
    net_profit: Decimal
    partner_share: Decimal
    distribution_amount: Decimal
    status: str
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PayoutGenerateResponse(BaseResponseSchema):
    payout: ProfitDistributionResponse
    calculation: dict
    message: str = "Payout statement generated successfully"


class DistributeResponse(BaseResponseSchema):
    created: List[ProfitDistributionResponse]
    conflicts: List[dict]
    total_share_percentage: Decimal
    calculation: dict
    notices: List[str]
