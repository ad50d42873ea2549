"""
Wholesale Pricing Validation.

Checked before a product's pricing configuration is saved:
1. wholesale_price > base_price (positive margin)
2. MOQ > 0 (if provided)
3. Every tier priced above base_price and at or below wholesale_price
4. Valid tier quantity ranges, no overlaps between neighbours
5. Tier discount in 0-100 and consistent with the tier price
6. Bulk monotonicity: larger quantities never cost more per unit

Validation never stops at the first problem. Every violation is collected so
an admin can fix them all in one pass.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.config import settings
from app.core.money import HUNDRED, to_decimal, format_money


class WholesalePricingValidationError(Exception):
    """Raised by the fail-fast variant; carries every collected error."""
    def __init__(self, message: str, errors: List[str] = None, details: Dict = None):
        self.message = message
        self.errors = errors or []
        self.details = details or {}
        super().__init__(self.message)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"is_valid": self.is_valid, "errors": list(self.errors)}


def _money(value: Any) -> str:
    return format_money(value, settings.CURRENCY_SYMBOL)


def _amount(value: Decimal) -> str:
    return f"{settings.CURRENCY_SYMBOL}{value:.2f}"


def _tier_label(index: int, tier: Any) -> str:
    return f"Tier {index + 1} ({tier.min_quantity}-{tier.max_quantity or '∞'})"


def validate_wholesale_tiers(
    tiers: Sequence[Any],
    base_price: Any,
    wholesale_price: Any,
) -> List[str]:
    """Per-tier and cross-tier checks, in ascending min_quantity order."""
    errors: List[str] = []
    base = to_decimal(base_price)
    wholesale = to_decimal(wholesale_price)
    tolerance = to_decimal(settings.TIER_DISCOUNT_TOLERANCE)

    sorted_tiers = sorted(tiers, key=lambda t: t.min_quantity)

    for i, tier in enumerate(sorted_tiers):
        label = _tier_label(i, tier)
        price = to_decimal(tier.price)

        if price <= base:
            errors.append(
                f"{label}: Tier price ({_money(price)}) must be greater than base price ({_money(base)}). "
                f"Margin: {_amount(price - base)}"
            )

        if price > wholesale:
            errors.append(
                f"{label}: Tier price ({_money(price)}) cannot exceed wholesale price ({_money(wholesale)})"
            )

        if tier.min_quantity <= 0:
            errors.append(f"{label}: Minimum quantity must be greater than 0")

        if tier.max_quantity is not None and tier.max_quantity < tier.min_quantity:
            errors.append(
                f"{label}: Maximum quantity ({tier.max_quantity}) cannot be less than "
                f"minimum quantity ({tier.min_quantity})"
            )

        # Unbounded tiers are only checked via their predecessor
        if i < len(sorted_tiers) - 1 and tier.max_quantity is not None:
            next_tier = sorted_tiers[i + 1]
            if tier.max_quantity >= next_tier.min_quantity:
                errors.append(
                    f"Overlapping tier ranges detected: "
                    f"Tier {i + 1} ({tier.min_quantity}-{tier.max_quantity}) overlaps with "
                    f"Tier {i + 2} ({next_tier.min_quantity}-{next_tier.max_quantity or '∞'})"
                )

        discount = getattr(tier, "discount", None)
        if discount is not None:
            discount = to_decimal(discount)
            if discount < 0 or discount > HUNDRED:
                errors.append(
                    f"{label}: Discount must be between 0 and 100. Received: {discount}%"
                )

            expected_price = wholesale * (1 - discount / HUNDRED)
            if abs(price - expected_price) > tolerance:
                errors.append(
                    f"{label}: Price ({_money(price)}) doesn't match {discount}% discount. "
                    f"Expected: {_amount(expected_price)}"
                )

    for current_tier, next_tier in zip(sorted_tiers, sorted_tiers[1:]):
        current_price = to_decimal(current_tier.price)
        next_price = to_decimal(next_tier.price)
        if next_price > current_price:
            errors.append(
                f"Invalid tier pricing: Higher quantity tier ({next_tier.min_quantity}+) "
                f"has higher price ({_money(next_price)}) than lower quantity tier "
                f"({current_tier.min_quantity}+, {_money(current_price)}). "
                f"Bulk discounts should decrease prices for larger quantities."
            )

    return errors


def validate_wholesale_pricing(
    base_price: Any,
    wholesale_price: Any,
    moq: Optional[int] = None,
    tiers: Optional[Sequence[Any]] = None,
) -> ValidationResult:
    """Validate a draft pricing configuration. Never raises."""
    errors: List[str] = []
    base = to_decimal(base_price)
    wholesale = to_decimal(wholesale_price)

    if wholesale <= base:
        errors.append(
            f"Wholesale price ({_money(wholesale)}) must be greater than base price ({_money(base)}). "
            f"Current margin: {_amount(wholesale - base)}"
        )

    if moq is not None and moq <= 0:
        errors.append(f"Minimum Order Quantity (MOQ) must be greater than 0. Received: {moq}")

    if tiers:
        errors.extend(validate_wholesale_tiers(tiers, base, wholesale))

    return ValidationResult(is_valid=not errors, errors=errors)


def validate_wholesale_pricing_or_raise(
    base_price: Any,
    wholesale_price: Any,
    moq: Optional[int] = None,
    tiers: Optional[Sequence[Any]] = None,
) -> None:
    """Fail-fast variant for call sites that cannot display a list."""
    result = validate_wholesale_pricing(base_price, wholesale_price, moq, tiers)
    if not result.is_valid:
        raise WholesalePricingValidationError(
            "Wholesale pricing validation failed:\n" + "\n".join(result.errors),
            errors=result.errors,
        )


def validate_product_pricing(product: Any) -> ValidationResult:
    """Validate the pricing configuration stored on a product row."""
    return validate_wholesale_pricing(
        product.base_price,
        product.wholesale_price,
        getattr(product, "moq", None),
        getattr(product, "wholesale_tiers", None),
    )


def validate_basic_pricing(base_price: Any, wholesale_price: Any, moq: Optional[int] = None) -> ValidationResult:
    """Margin and MOQ checks only."""
    return validate_wholesale_pricing(base_price, wholesale_price, moq, [])


def format_validation_errors(result: ValidationResult) -> Dict[str, Any]:
    """Error body returned by the API when validation fails."""
    return {
        "error": "Wholesale pricing validation failed",
        "details": result.errors,
    }
