"""Order, order item and operational cost models.

Order items carry an immutable financial snapshot (cost_per_unit,
profit_per_unit, total_profit, profit_margin) taken at order placement.
Profit reporting reads these snapshots and never recomputes them from the
product's current cost. Rows created before snapshots existed have NULLs and
fall back to the product's current cost.
"""
import uuid
from datetime import datetime, date, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import String, DateTime, Date, ForeignKey, Integer, Text, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, MoneyType, PercentType
from app.models.product import Product


class OrderStatus(str, Enum):
    """Order lifecycle status."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


class Order(Base):
    """Customer order with aggregate profit fields filled by the profit-report job."""
    __tablename__ = "orders"
    __table_args__ = (
        Index("ix_orders_status_created", "status", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    order_number: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(50),
        default="PENDING",
        nullable=False,
        comment="PENDING, CONFIRMED, SHIPPED, DELIVERED, RETURNED, CANCELLED"
    )

    subtotal: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    shipping: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)
    total: Mapped[Decimal] = mapped_column(MoneyType, default=Decimal("0"), nullable=False)

    # Aggregate profit (set by profit report generation)
    total_cost: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    gross_profit: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    platform_profit: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    seller_profit: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    profit_margin: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)

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

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Order(number={self.order_number}, status={self.status})>"


class OrderItem(Base):
    """Order line with the financial snapshot frozen at placement time."""
    __tablename__ = "order_items"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, comment="Resolved unit price")
    total: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    # Snapshot (NULL = legacy row without snapshot)
    cost_per_unit: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    profit_per_unit: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    total_profit: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    profit_margin: Mapped[Optional[Decimal]] = mapped_column(PercentType, nullable=True)

    order: Mapped["Order"] = relationship("Order", back_populates="items")
    product: Mapped["Product"] = relationship("Product", lazy="selectin")

    @property
    def has_cost_snapshot(self) -> bool:
        return self.cost_per_unit is not None


class OperationalCost(Base):
    """Operating expense booked against a date (rent, salaries, marketing...)."""
    __tablename__ = "operational_costs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    category: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        comment="RENT, SALARY, MARKETING, UTILITIES, SHIPPING, OTHER"
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    cost_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )
