"""
Wholesale Pricing Service.

Resolves the volume tier that applies to a quantity and prices an order line:
1. Tier resolution (descending min_quantity scan, first match wins)
2. Line pricing with MOQ gating and savings vs. the standard wholesale rate
3. Next-tier upsell hints
4. Customer-specific discounts layered on top of tier pricing
5. Cart totals

All functions are pure. Products and tiers are duck-typed: ORM rows from
app.models and the pydantic input schemas both work.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Sequence

from app.core.money import ZERO, HUNDRED, to_decimal, round_money, safe_percentage


PRICE_TYPE_TIER = "tier"
PRICE_TYPE_WHOLESALE = "wholesale"


def tier_to_dict(tier: Any) -> Optional[Dict[str, Any]]:
    if tier is None:
        return None
    discount = getattr(tier, "discount", None)
    return {
        "min_quantity": tier.min_quantity,
        "max_quantity": tier.max_quantity,
        "price": float(tier.price),
        "discount": float(discount) if discount is not None else None,
    }


@dataclass
class PriceCalculation:
    """Full pricing of one order line."""
    unit_price: Decimal
    total_price: Decimal
    quantity: int
    applied_tier: Any = None
    price_type: Optional[str] = None
    savings: Decimal = ZERO
    savings_percentage: Decimal = ZERO
    meets_minimum: bool = True
    minimum_required: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "unit_price": float(self.unit_price),
            "total_price": float(self.total_price),
            "quantity": self.quantity,
            "applied_tier": tier_to_dict(self.applied_tier),
            "price_type": self.price_type,
            "savings": float(self.savings),
            "savings_percentage": float(self.savings_percentage),
            "meets_minimum": self.meets_minimum,
            "minimum_required": self.minimum_required,
        }


@dataclass
class PriceInfo:
    """Short quote used by product pages."""
    price: Decimal
    original_price: Decimal
    discount: Decimal = ZERO
    tier: Any = None
    savings: Decimal = ZERO
    price_type: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "price": float(self.price),
            "original_price": float(self.original_price),
            "discount": float(self.discount),
            "tier": tier_to_dict(self.tier),
            "savings": float(self.savings),
            "price_type": self.price_type,
        }


@dataclass
class NextTierBenefit:
    next_tier: Any
    quantity_needed: int
    current_unit_price: Decimal
    next_unit_price: Decimal
    potential_savings: Decimal

    def to_dict(self) -> dict:
        return {
            "next_tier": tier_to_dict(self.next_tier),
            "quantity_needed": self.quantity_needed,
            "current_unit_price": float(self.current_unit_price),
            "next_unit_price": float(self.next_unit_price),
            "potential_savings": float(self.potential_savings),
        }


@dataclass
class CustomerDiscountCheck:
    is_valid: bool
    applicable_percent: Decimal = ZERO
    reason: Optional[str] = None


@dataclass
class ItemPrice:
    """Tier price plus customer discount for one line."""
    base_price: Decimal
    quantity: int
    tier_applied: Any
    tier_price: Decimal
    tier_discount: Decimal
    tier_discount_percent: Decimal
    customer_discount_percent: Decimal
    customer_discount_amount: Decimal
    subtotal_before_discount: Decimal
    subtotal_after_discount: Decimal
    final_unit_price: Decimal
    final_total: Decimal
    total_savings: Decimal
    total_savings_percent: Decimal
    meets_minimum: bool
    minimum_required: Optional[int]
    product_id: Any = None
    product_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "product_id": str(self.product_id) if self.product_id is not None else None,
            "product_name": self.product_name,
            "base_price": float(self.base_price),
            "quantity": self.quantity,
            "tier_applied": tier_to_dict(self.tier_applied),
            "tier_price": float(self.tier_price),
            "tier_discount": float(self.tier_discount),
            "tier_discount_percent": float(self.tier_discount_percent),
            "customer_discount_percent": float(self.customer_discount_percent),
            "customer_discount_amount": float(self.customer_discount_amount),
            "subtotal_before_discount": float(self.subtotal_before_discount),
            "subtotal_after_discount": float(self.subtotal_after_discount),
            "final_unit_price": float(self.final_unit_price),
            "final_total": float(self.final_total),
            "total_savings": float(self.total_savings),
            "total_savings_percent": float(self.total_savings_percent),
            "meets_minimum": self.meets_minimum,
            "minimum_required": self.minimum_required,
        }


@dataclass
class CartTotal:
    item_details: List[ItemPrice] = field(default_factory=list)
    subtotal: Decimal = ZERO
    total_customer_discount: Decimal = ZERO
    total: Decimal = ZERO
    total_savings: Decimal = ZERO

    def to_dict(self) -> dict:
        return {
            "items": [item.to_dict() for item in self.item_details],
            "subtotal": float(self.subtotal),
            "total_customer_discount": float(self.total_customer_discount),
            "total": float(self.total),
            "total_savings": float(self.total_savings),
        }


# =============================================================================
# TIER RESOLUTION
# =============================================================================

def find_applicable_tier(tiers: Optional[Sequence[Any]], quantity: int) -> Optional[Any]:
    """
    Find the tier whose range contains `quantity`.

    Tiers are scanned by min_quantity descending and the first match wins, so
    if ranges overlap the most specific (highest min_quantity) tier applies.
    """
    if not tiers:
        return None

    for tier in sorted(tiers, key=lambda t: t.min_quantity, reverse=True):
        if quantity >= tier.min_quantity:
            if tier.max_quantity is None or quantity <= tier.max_quantity:
                return tier

    return None


def get_available_tiers(product: Any) -> List[Any]:
    """Tiers sorted ascending by min_quantity, for display."""
    tiers = getattr(product, "wholesale_tiers", None) or []
    return sorted(tiers, key=lambda t: t.min_quantity)


def below_minimum(product: Any, quantity: int) -> bool:
    moq = getattr(product, "moq", None)
    return moq is not None and quantity < moq


# =============================================================================
# LINE PRICING
# =============================================================================

def calculate_wholesale_price(product: Any, quantity: int) -> PriceCalculation:
    """
    Price `quantity` units of `product`.

    Below MOQ the result is a zeroed sentinel (meets_minimum=False) that
    callers must treat as a rejected line, not as a free one.
    """
    moq = getattr(product, "moq", None)

    if below_minimum(product, quantity):
        return PriceCalculation(
            unit_price=ZERO,
            total_price=ZERO,
            quantity=quantity,
            meets_minimum=False,
            minimum_required=moq,
        )

    wholesale_price = to_decimal(product.wholesale_price)
    tier = find_applicable_tier(getattr(product, "wholesale_tiers", None), quantity)

    if tier is not None:
        unit_price = to_decimal(tier.price)
        price_type = PRICE_TYPE_TIER
    else:
        unit_price = wholesale_price
        price_type = PRICE_TYPE_WHOLESALE

    total_price = unit_price * quantity
    savings = (wholesale_price - unit_price) * quantity
    savings_percentage = safe_percentage(savings, wholesale_price * quantity)

    return PriceCalculation(
        unit_price=unit_price,
        total_price=total_price,
        quantity=quantity,
        applied_tier=tier,
        price_type=price_type,
        savings=savings,
        savings_percentage=savings_percentage,
        meets_minimum=True,
        minimum_required=moq,
    )


def calculate_price(product: Any, quantity: int) -> PriceInfo:
    """Short quote: unit price, discount off wholesale and line savings."""
    wholesale_price = to_decimal(product.wholesale_price)
    calculation = calculate_wholesale_price(product, quantity)

    if not calculation.meets_minimum:
        return PriceInfo(price=ZERO, original_price=wholesale_price)

    tier = calculation.applied_tier
    if tier is None:
        return PriceInfo(
            price=calculation.unit_price,
            original_price=wholesale_price,
            price_type=PRICE_TYPE_WHOLESALE,
        )

    discount = getattr(tier, "discount", None)
    if discount is None:
        discount = calculate_bulk_discount(wholesale_price, tier.price)

    return PriceInfo(
        price=calculation.unit_price,
        original_price=wholesale_price,
        discount=to_decimal(discount),
        tier=tier,
        savings=calculation.savings,
        price_type=PRICE_TYPE_TIER,
    )


def calculate_bulk_discount(base_price: Any, tier_price: Any) -> Decimal:
    """Percent off `base_price`; 0 when the base is 0."""
    base = to_decimal(base_price)
    return safe_percentage(base - to_decimal(tier_price), base)


def get_next_tier_benefit(product: Any, quantity: int) -> Optional[NextTierBenefit]:
    """
    What the buyer gains by moving up to the next tier.

    None when the line is below MOQ, the product has no tiers, or the
    quantity already sits in the highest tier.
    """
    tiers = get_available_tiers(product)
    if not tiers or below_minimum(product, quantity):
        return None

    next_tier = next((t for t in tiers if t.min_quantity > quantity), None)
    if next_tier is None:
        return None

    current_unit_price = calculate_wholesale_price(product, quantity).unit_price
    next_unit_price = to_decimal(next_tier.price)

    return NextTierBenefit(
        next_tier=next_tier,
        quantity_needed=next_tier.min_quantity - quantity,
        current_unit_price=current_unit_price,
        next_unit_price=next_unit_price,
        potential_savings=(current_unit_price - next_unit_price) * next_tier.min_quantity,
    )


# =============================================================================
# CUSTOMER DISCOUNTS
# =============================================================================

def validate_customer_discount(
    discount_percent: Any,
    valid_until: Optional[date] = None,
    today: Optional[date] = None,
) -> CustomerDiscountCheck:
    """Check a customer-specific discount before it is applied to a price."""
    percent = to_decimal(discount_percent)

    if percent <= 0:
        return CustomerDiscountCheck(is_valid=False, reason="No discount set")

    if percent > HUNDRED:
        return CustomerDiscountCheck(is_valid=False, reason="Invalid discount percentage")

    today = today or date.today()
    if valid_until is not None and valid_until < today:
        return CustomerDiscountCheck(is_valid=False, reason="Discount expired")

    return CustomerDiscountCheck(is_valid=True, applicable_percent=percent)


def calculate_item_price(
    product: Any,
    quantity: int,
    customer_discount: Any = 0,
    customer_discount_valid: bool = False,
) -> ItemPrice:
    """
    Tier pricing followed by the customer's percentage discount.

    Used for order enforcement, so the final unit price and totals are
    rounded to cents and the savings percentage to one decimal place.
    """
    wholesale_price = to_decimal(product.wholesale_price)
    moq = getattr(product, "moq", None)
    product_id = getattr(product, "id", None)
    product_name = getattr(product, "name", None)

    if below_minimum(product, quantity):
        return ItemPrice(
            base_price=wholesale_price,
            quantity=quantity,
            tier_applied=None,
            tier_price=ZERO,
            tier_discount=ZERO,
            tier_discount_percent=ZERO,
            customer_discount_percent=ZERO,
            customer_discount_amount=ZERO,
            subtotal_before_discount=ZERO,
            subtotal_after_discount=ZERO,
            final_unit_price=ZERO,
            final_total=ZERO,
            total_savings=ZERO,
            total_savings_percent=ZERO,
            meets_minimum=False,
            minimum_required=moq,
            product_id=product_id,
            product_name=product_name,
        )

    tier = find_applicable_tier(getattr(product, "wholesale_tiers", None), quantity)
    tier_price = to_decimal(tier.price) if tier is not None else wholesale_price
    tier_discount_percent = to_decimal(getattr(tier, "discount", None)) if tier is not None else ZERO

    subtotal_before = tier_price * quantity
    applicable_discount = to_decimal(customer_discount) if customer_discount_valid else ZERO
    customer_discount_amount = subtotal_before * applicable_discount / HUNDRED
    subtotal_after = subtotal_before - customer_discount_amount

    final_unit_price = subtotal_after / quantity if quantity else ZERO
    base_total = wholesale_price * quantity
    total_savings = base_total - subtotal_after
    savings_percent = safe_percentage(total_savings, base_total)

    return ItemPrice(
        base_price=wholesale_price,
        quantity=quantity,
        tier_applied=tier,
        tier_price=tier_price,
        tier_discount=(wholesale_price - tier_price) * quantity,
        tier_discount_percent=tier_discount_percent,
        customer_discount_percent=applicable_discount,
        customer_discount_amount=customer_discount_amount,
        subtotal_before_discount=subtotal_before,
        subtotal_after_discount=subtotal_after,
        final_unit_price=round_money(final_unit_price),
        final_total=round_money(subtotal_after),
        total_savings=round_money(total_savings),
        total_savings_percent=savings_percent.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
        meets_minimum=True,
        minimum_required=moq,
        product_id=product_id,
        product_name=product_name,
    )


def calculate_cart_total(
    items: Sequence[Any],
    customer_discount: Any = 0,
    customer_discount_valid: bool = False,
) -> CartTotal:
    """
    Price every (product, quantity) pair in a cart.

    `items` holds objects or tuples; tuples are read as (product, quantity).
    """
    details = []
    for item in items:
        if isinstance(item, tuple):
            product, quantity = item
        else:
            product, quantity = item.product, item.quantity
        details.append(calculate_item_price(product, quantity, customer_discount, customer_discount_valid))

    return CartTotal(
        item_details=details,
        subtotal=round_money(sum((d.subtotal_before_discount for d in details), ZERO)),
        total_customer_discount=round_money(sum((d.customer_discount_amount for d in details), ZERO)),
        total=round_money(sum((d.final_total for d in details), ZERO)),
        total_savings=round_money(sum((d.total_savings for d in details), ZERO)),
    )
