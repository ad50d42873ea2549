"""Per-order profit report written when an order is delivered."""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, DateTime, Date, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.db_types import UUIDType, MoneyType, PercentType


class ProfitReport(Base):
    """Frozen profit breakdown for one delivered order (one report per order)."""
    __tablename__ = "profit_reports"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )

    revenue: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    cost_of_goods: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    gross_profit: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    net_profit: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    profit_margin: Mapped[Decimal] = mapped_column(PercentType, nullable=False)

    platform_profit: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    platform_profit_percent: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    seller_profit: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    seller_profit_percent: Mapped[Decimal] = mapped_column(PercentType, nullable=False)
    seller_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)

    legacy_items: Mapped[int] = mapped_column(
        default=0,
        comment="Items priced from current product cost (no snapshot)"
    )

    report_period: Mapped[str] = mapped_column(String(20), default="daily", nullable=False)
    report_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
