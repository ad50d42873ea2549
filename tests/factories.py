"""Plain records for tests of the pure pricing and profit functions."""
from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
import uuid


def tier(min_quantity, max_quantity, price, discount=None):
    return SimpleNamespace(
        min_quantity=min_quantity,
        max_quantity=max_quantity,
        price=Decimal(str(price)),
        discount=Decimal(str(discount)) if discount is not None else None,
    )


def standard_tiers():
    """10-49 @ 95 (5%), 50-99 @ 90 (10%), 100+ @ 85 (15%)"""
    return [
        tier(10, 49, 95, 5),
        tier(50, 99, 90, 10),
        tier(100, None, 85, 15),
    ]


def product_record(**overrides):
    fields = dict(
        id=uuid.uuid4(),
        name="Basmati Rice 25kg",
        base_price=Decimal("80"),
        wholesale_price=Decimal("100"),
        moq=10,
        stock_quantity=None,
        platform_profit_percentage=Decimal("20"),
        seller_commission_percentage=Decimal("0"),
        cost_per_unit=None,
        shipping_cost=None,
        handling_cost=None,
        wholesale_tiers=standard_tiers(),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def utc(year, month, day, hour=12):
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


PRODUCT_PAYLOAD = {
    "name": "Basmati Rice 25kg",
    "base_price": 80,
    "wholesale_price": 100,
    "moq": 10,
    "platform_profit_percentage": 20,
    "seller_commission_percentage": 0,
    "wholesale_tiers": [
        {"min_quantity": 10, "max_quantity": 49, "price": 95, "discount": 5},
        {"min_quantity": 50, "max_quantity": 99, "price": 90, "discount": 10},
        {"min_quantity": 100, "max_quantity": None, "price": 85, "discount": 15},
    ],
}


def orm_product(**overrides):
    """Transient Product row (no session) with the standard tiers."""
    from app.models import Product, WholesaleTier

    fields = dict(
        id=uuid.uuid4(),
        name="Basmati Rice 25kg",
        sku=f"SKU-{uuid.uuid4().hex[:8]}",
        base_price=Decimal("80"),
        wholesale_price=Decimal("100"),
        moq=10,
        stock_quantity=1000,
        platform_profit_percentage=Decimal("20"),
        seller_commission_percentage=Decimal("0"),
    )
    fields.update(overrides)
    product = Product(**fields)
    product.wholesale_tiers = [
        WholesaleTier(min_quantity=t.min_quantity, max_quantity=t.max_quantity, price=t.price, discount=t.discount)
        for t in standard_tiers()
    ]
    return product
