"""
Wholesale Pricing API Endpoints

- Line quotes with tier resolution, upsell hints and customer discounts
- Tier configuration validation (all errors at once)
- Order line validation (MOQ, stock, warnings)
- Line and order profit previews
"""
import logging

from fastapi import APIRouter, HTTPException, status

from app.schemas.wholesale import QuoteRequest, TierValidationRequest, OrderValidationRequest
from app.schemas.profit import ProfitRequest, OrderProfitRequest
from app.services.wholesale_pricing import (
    calculate_wholesale_price,
    calculate_price,
    get_next_tier_benefit,
    validate_customer_discount,
    calculate_item_price,
)
from app.services.wholesale_validation import validate_wholesale_pricing, format_validation_errors
from app.services.order_validation import validate_wholesale_order
from app.services.profit_calculation import (
    ProfitConfig,
    OrderProfitItem,
    calculate_product_profit,
    calculate_order_profit,
    categorize_margin,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _resolve_unit_price(product, quantity: int, unit_price=None):
    """Explicit unit price, else the tier/wholesale price. Rejects lines below MOQ."""
    if unit_price is not None:
        return unit_price

    calculation = calculate_wholesale_price(product, quantity)
    if not calculation.meets_minimum:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Minimum order quantity is {calculation.minimum_required} units",
        )
    return calculation.unit_price


@router.post("/quote")
async def quote(data: QuoteRequest):
    """
    Price a quantity of a product.

    Below MOQ the quote reports `meets_minimum: false` with zeroed amounts;
    such a line must not be accepted into an order.
    """
    product = data.product
    calculation = calculate_wholesale_price(product, data.quantity)
    price_info = calculate_price(product, data.quantity)
    benefit = get_next_tier_benefit(product, data.quantity)

    discount_check = validate_customer_discount(data.customer_discount, data.discount_valid_until)
    item_price = calculate_item_price(
        product,
        data.quantity,
        customer_discount=data.customer_discount,
        customer_discount_valid=discount_check.is_valid,
    )

    return {
        "calculation": calculation.to_dict(),
        "price": price_info.to_dict(),
        "next_tier": benefit.to_dict() if benefit else None,
        "customer_discount": {
            "is_valid": discount_check.is_valid,
            "reason": discount_check.reason,
            "applicable_percent": float(discount_check.applicable_percent),
        },
        "item": item_price.to_dict(),
    }


@router.post("/validate-tiers")
async def validate_tiers(data: TierValidationRequest):
    """Validate a pricing configuration; 422 with every error when invalid."""
    result = validate_wholesale_pricing(data.base_price, data.wholesale_price, data.moq, data.tiers)
    if not result.is_valid:
        logger.info(f"Rejected tier configuration with {len(result.errors)} errors")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=format_validation_errors(result),
        )
    return result.to_dict()


@router.post("/validate-order")
async def validate_order(data: OrderValidationRequest):
    """Check MOQ and stock for an order line. Warnings never make a line invalid."""
    return validate_wholesale_order(data.product, data.quantity).to_dict()


@router.post("/profit")
async def line_profit(data: ProfitRequest):
    """Profit breakdown of one line."""
    unit_price = _resolve_unit_price(data.product, data.quantity, data.unit_price)
    breakdown = calculate_product_profit(
        data.quantity,
        ProfitConfig.from_product(data.product, unit_price=unit_price),
    )
    return {
        **breakdown.to_dict(),
        "unit_price": float(unit_price),
        "margin_category": categorize_margin(breakdown.profit_margin),
    }


@router.post("/order-profit")
async def order_profit(data: OrderProfitRequest):
    """Profit across all lines of a prospective order."""
    items = []
    for line in data.items:
        unit_price = _resolve_unit_price(line.product, line.quantity, line.unit_price)
        items.append(
            OrderProfitItem(
                product_id=line.product.id,
                quantity=line.quantity,
                config=ProfitConfig.from_product(line.product, unit_price=unit_price),
            )
        )

    calculation = calculate_order_profit(items)
    return {
        **calculation.to_dict(),
        "margin_category": categorize_margin(calculation.profit_margin),
    }
