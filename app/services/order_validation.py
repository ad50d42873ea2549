"""Order line validation against MOQ and available stock.

Errors make a line invalid. Warnings (low stock, next-tier upsell) are
informational and never affect validity.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List

from app.config import settings
from app.core.money import to_decimal, format_money
from app.services.wholesale_pricing import below_minimum, get_next_tier_benefit

logger = logging.getLogger(__name__)


@dataclass
class OrderValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


def validate_wholesale_order(product: Any, quantity: int) -> OrderValidationResult:
    """
    Validate `quantity` units of `product` before the line is accepted.

    Stock checks are skipped when the product does not track stock
    (stock_quantity is None).
    """
    errors: List[str] = []
    warnings: List[str] = []

    moq = getattr(product, "moq", None)
    stock = getattr(product, "stock_quantity", None)

    if below_minimum(product, quantity):
        errors.append(f"Minimum order quantity is {moq} units")

    if stock is not None:
        if quantity > stock:
            if stock <= 0:
                errors.append("Product is out of stock")
            else:
                errors.append(f"Only {stock} units available")

        if quantity > stock * to_decimal(settings.LOW_STOCK_WARNING_RATIO):
            warnings.append(
                f"Low stock: this order uses {quantity} of the {stock} units remaining"
            )

    benefit = get_next_tier_benefit(product, quantity)
    if benefit is not None and benefit.quantity_needed <= (moq or 1):
        warnings.append(
            f"Add {benefit.quantity_needed} more units to reach the "
            f"{benefit.next_tier.min_quantity}+ tier at "
            f"{format_money(benefit.next_unit_price, settings.CURRENCY_SYMBOL)} per unit "
            f"and save {format_money(benefit.potential_savings, settings.CURRENCY_SYMBOL)}"
        )

    if errors:
        logger.debug(f"Order line rejected for product {getattr(product, 'id', None)}: {errors}")

    return OrderValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
