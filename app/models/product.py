"""Product and wholesale tier models.

A product carries its cost (base_price), its standard wholesale selling price,
an optional minimum order quantity and an ordered set of volume tiers. The
profit percentages are admin-configured and feed the per-order profit split.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.db_types import UUIDType, MoneyType, PercentType


class Product(Base):
    """
    Wholesale product with pricing and profit configuration.

    Invariants enforced by the tier validator before save:
    - wholesale_price > base_price
    - moq > 0 (when set)
    - base_price < tier.price <= wholesale_price for every tier
    """
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)

    # Pricing
    base_price: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        comment="Cost price"
    )
    wholesale_price: Mapped[Decimal] = mapped_column(
        MoneyType,
        nullable=False,
        comment="Standard wholesale selling price"
    )
    moq: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Minimum order quantity (NULL = no minimum)"
    )
    stock_quantity: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=0,
        comment="Units on hand (NULL = not tracked)"
    )
    reorder_level: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Reorder when stock falls to this level (NULL = REORDER_LEVEL_DEFAULT)"
    )
    reorder_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Profit configuration
    platform_profit_percentage: Mapped[Decimal] = mapped_column(
        PercentType,
        default=Decimal("0"),
        nullable=False
    )
    seller_commission_percentage: Mapped[Decimal] = mapped_column(
        PercentType,
        default=Decimal("0"),
        nullable=False
    )

    # Detailed cost tracking (defaults to base_price / 0 when unset)
    cost_per_unit: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    shipping_cost: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)
    handling_cost: Mapped[Optional[Decimal]] = mapped_column(MoneyType, nullable=True)

    seller_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUIDType(as_uuid=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

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

    # Relationships
    wholesale_tiers: Mapped[List["WholesaleTier"]] = relationship(
        "WholesaleTier",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="WholesaleTier.min_quantity",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Product(sku={self.sku}, wholesale_price={self.wholesale_price})>"


class WholesaleTier(Base):
    """Volume tier: a quantity range with a discounted unit price."""
    __tablename__ = "wholesale_tiers"
    __table_args__ = (
        Index("ix_wholesale_tiers_product_min", "product_id", "min_quantity"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False
    )
    min_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    max_quantity: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="NULL = unbounded"
    )
    price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    discount: Mapped[Optional[Decimal]] = mapped_column(
        PercentType,
        nullable=True,
        comment="Percent off wholesale_price"
    )

    product: Mapped["Product"] = relationship("Product", back_populates="wholesale_tiers")

    def __repr__(self) -> str:
        return f"<WholesaleTier({self.min_quantity}-{self.max_quantity or '∞'} @ {self.price})>"
