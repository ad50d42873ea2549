"""Business partner and profit distribution (payout) models.

Partners are co-owners entitled to a percentage of platform net profit.
A ProfitDistribution is generated once per partner per period and only
changes afterwards through status transitions:

    PENDING -> APPROVED -> PAID
    PENDING | APPROVED -> REJECTED
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, Boolean, DateTime, Date, ForeignKey, Text, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, MoneyType, PercentType


class PeriodType(str, Enum):
    """Distribution period."""
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"
    CUSTOM = "CUSTOM"


class PaymentMethod(str, Enum):
    """How a payout was paid."""
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_BANKING = "MOBILE_BANKING"
    CASH = "CASH"
    CHEQUE = "CHEQUE"


class Partner(Base):
    """Business partner with a profit-share percentage."""
    __tablename__ = "partners"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    profit_share_percentage: Mapped[Decimal] = mapped_column(
        PercentType,
        nullable=False,
        comment="Share of period net profit owed to this partner"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    distributions: Mapped[List["ProfitDistribution"]] = relationship(
        "ProfitDistribution",
        back_populates="partner",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Partner(name={self.name}, share={self.profit_share_percentage}%)>"


class ProfitDistribution(Base):
    """
    One partner's share of net profit for a date range.

    The (partner_id, start_date, end_date) unique constraint is what makes
    payout generation idempotent: two concurrent generate requests cannot
    both insert a row for the same period.
    """
    __tablename__ = "profit_distributions"
    __table_args__ = (
        UniqueConstraint("partner_id", "start_date", "end_date", name="uq_profit_distribution_period"),
        Index("ix_profit_distributions_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    partner_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("partners.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Period
    period_type: Mapped[str] = mapped_column(
        String(20),
        default="CUSTOM",
        nullable=False,
        comment="DAILY, WEEKLY, MONTHLY, YEARLY, CUSTOM"
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Calculation snapshot
    total_revenue: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    total_costs: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    net_profit: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    partner_share: Mapped[Decimal] = mapped_column(
        PercentType,
        nullable=False,
        comment="Partner's share percentage at generation time"
    )
    distribution_amount: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    # Lifecycle
    status: Mapped[str] = mapped_column(
        String(20),
        default="PENDING",
        nullable=False,
        comment="PENDING, APPROVED, PAID, REJECTED"
    )
    approved_by: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_method: Mapped[Optional[str]] = mapped_column(
        String(30),
        nullable=True,
        comment="BANK_TRANSFER, MOBILE_BANKING, CASH, CHEQUE"
    )
    payment_reference: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    partner: Mapped["Partner"] = relationship("Partner", back_populates="distributions", lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<ProfitDistribution(partner={self.partner_id}, "
            f"{self.start_date}..{self.end_date}, status={self.status})>"
        )
