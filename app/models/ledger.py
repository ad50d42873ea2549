"""Financial ledger.

Every money movement the platform books is one row: order revenue (credit),
cost of goods (debit), operating expenses (debit) and partner payouts
(debit). Amounts are always positive; `direction` carries the sign.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import String, Boolean, DateTime, Date, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, MoneyType


class LedgerDirection(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class LedgerSourceType(str, Enum):
    """What produced the entry."""
    ORDER = "ORDER"
    EXPENSE = "EXPENSE"
    COMMISSION = "COMMISSION"
    ADJUSTMENT = "ADJUSTMENT"


class LedgerCategory(str, Enum):
    REVENUE = "REVENUE"
    COGS = "COGS"
    OPERATING_EXPENSE = "OPERATING_EXPENSE"
    PARTNER_DISTRIBUTION = "PARTNER_DISTRIBUTION"
    ADJUSTMENT = "ADJUSTMENT"


class LedgerEntry(Base):
    """
    Single ledger line.

    `entry_date` is the business date of the source (order date, cost date,
    payment date), which is what period balances and reconciliation filter on.
    """
    __tablename__ = "ledger_entries"
    __table_args__ = (
        Index("ix_ledger_entries_entry_date", "entry_date"),
        Index("ix_ledger_entries_source", "source_type", "source_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )

    # Source
    source_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="ORDER, EXPENSE, COMMISSION, ADJUSTMENT"
    )
    source_id: Mapped[uuid.UUID] = mapped_column(UUIDType(as_uuid=True), nullable=False)
    source_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    order_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    # Amount
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    direction: Mapped[str] = mapped_column(String(10), nullable=False, comment="DEBIT, CREDIT")
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    subcategory: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Counterparty
    party_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    party_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    party_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Period
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    fiscal_year: Mapped[int] = mapped_column(Integer, nullable=False)
    fiscal_month: Mapped[int] = mapped_column(Integer, nullable=False)

    # Reconciliation
    is_reconciled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reconciled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    reconciled_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<LedgerEntry({self.source_type} {self.direction} {self.amount} {self.category})>"
