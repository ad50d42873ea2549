"""
Order placement pricing.

Validates each requested line, prices it and freezes its cost/profit
snapshot onto the OrderItem. Snapshots are never recomputed afterwards.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.money import ZERO, to_decimal
from app.models.order import Order, OrderItem, OrderStatus
from app.services.order_validation import validate_wholesale_order
from app.services.profit_calculation import snapshot_line_item
from app.services.wholesale_pricing import (
    calculate_wholesale_price,
    calculate_item_price,
    validate_customer_discount,
)

logger = logging.getLogger(__name__)


class OrderLineRejectedError(Exception):
    """Order line failed MOQ/stock validation."""
    def __init__(self, message: str, errors: List[str] = None, details: Dict = None):
        self.message = message
        self.errors = errors or []
        self.details = details or {}
        super().__init__(self.message)


def price_order_line(
    product: Any,
    quantity: int,
    customer_discount: Any = None,
    discount_valid_until: Optional[date] = None,
) -> OrderItem:
    """
    Build an OrderItem for `quantity` units of `product`.

    A customer discount, when given and still valid, is applied on top of the
    tier price. Raises OrderLineRejectedError when the line is not orderable.
    """
    validation = validate_wholesale_order(product, quantity)
    if not validation.is_valid:
        raise OrderLineRejectedError(
            f"Order line for {getattr(product, 'name', 'product')} rejected",
            errors=validation.errors,
            details={"warnings": validation.warnings},
        )

    unit_price = calculate_wholesale_price(product, quantity).unit_price
    total = unit_price * quantity

    if customer_discount is not None:
        check = validate_customer_discount(customer_discount, discount_valid_until)
        if check.is_valid:
            item_price = calculate_item_price(product, quantity, check.applicable_percent, True)
            unit_price = item_price.final_unit_price
            total = item_price.final_total

    snapshot = snapshot_line_item(product, quantity, unit_price, total=total)

    return OrderItem(
        product_id=product.id,
        product=product,
        quantity=quantity,
        price=unit_price,
        total=total,
        cost_per_unit=snapshot.cost_per_unit,
        profit_per_unit=snapshot.profit_per_unit,
        total_profit=snapshot.total_profit,
        profit_margin=snapshot.profit_margin,
    )


def build_order(
    order_number: str,
    lines: Sequence[Tuple[Any, int]],
    shipping: Any = 0,
    status: str = OrderStatus.PENDING.value,
) -> Order:
    """Price every (product, quantity) line and assemble an unsaved Order."""
    items = [price_order_line(product, quantity) for product, quantity in lines]
    subtotal = sum((to_decimal(item.total) for item in items), ZERO)
    shipping_amount = to_decimal(shipping)

    order = Order(
        order_number=order_number,
        status=status,
        subtotal=subtotal,
        shipping=shipping_amount,
        total=subtotal + shipping_amount,
        items=items,
    )
    logger.info(f"Priced order {order_number}: {len(items)} lines, total {order.total}")
    return order
