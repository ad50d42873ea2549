"""Pydantic schemas for the financial ledger."""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from uuid import UUID

from pydantic import Field

from app.schemas.base import BaseResponseSchema, BaseCreateSchema


class LedgerEntryResponse(BaseResponseSchema):
    id: UUID
    source_type: str
    source_id: UUID
    source_name: Optional[str] = None
    order_id: Optional[UUID] = None
    amount: Decimal
    direction: str
    category: str
    subcategory: Optional[str] = None
    party_id: Optional[UUID] = None
    party_name: Optional[str] = None
    party_type: Optional[str] = None
    description: Optional[str] = None
    entry_date: date
    fiscal_year: int
    fiscal_month: int
    is_reconciled: bool
    reconciled_at: Optional[datetime] = None
    created_at: datetime


class LedgerListResponse(BaseResponseSchema):
    entries: List[LedgerEntryResponse]
    total: int
    page: int
    limit: int
    has_more: bool
    page_summary: dict
    notices: List[str] = []


class LedgerReconcileRequest(BaseCreateSchema):
    entry_ids: List[UUID] = Field(..., min_length=1)
    user_id: Optional[UUID] = None


class LedgerCompareRequest(BaseCreateSchema):
    start_date: date
    end_date: date
