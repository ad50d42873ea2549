from datetime import date, timedelta
from decimal import Decimal

from app.schemas.wholesale import ProductPricingInput
from app.services.wholesale_pricing import (
    find_applicable_tier,
    get_available_tiers,
    calculate_wholesale_price,
    calculate_price,
    calculate_bulk_discount,
    get_next_tier_benefit,
    validate_customer_discount,
    calculate_item_price,
    calculate_cart_total,
)
from tests.factories import tier, standard_tiers, product_record, PRODUCT_PAYLOAD


# =============================================================================
# TIER RESOLUTION
# =============================================================================

def test_resolves_tier_containing_quantity():
    tiers = standard_tiers()
    assert find_applicable_tier(tiers, 49).price == Decimal("95")
    assert find_applicable_tier(tiers, 50).price == Decimal("90")
    assert find_applicable_tier(tiers, 99).price == Decimal("90")
    assert find_applicable_tier(tiers, 1000).price == Decimal("85")


def test_no_tier_below_lowest_minimum():
    assert find_applicable_tier(standard_tiers(), 5) is None


def test_no_tier_for_empty_list():
    assert find_applicable_tier([], 50) is None
    assert find_applicable_tier(None, 50) is None


def test_overlapping_tiers_prefer_highest_minimum():
    tiers = [tier(10, 100, 95), tier(50, None, 90)]
    assert find_applicable_tier(tiers, 60).price == Decimal("90")
    assert find_applicable_tier(tiers, 20).price == Decimal("95")


def test_resolution_ignores_input_order():
    tiers = list(reversed(standard_tiers()))
    assert find_applicable_tier(tiers, 75).price == Decimal("90")


def test_available_tiers_sorted_ascending():
    product = product_record(wholesale_tiers=list(reversed(standard_tiers())))
    assert [t.min_quantity for t in get_available_tiers(product)] == [10, 50, 100]


# =============================================================================
# LINE PRICING
# =============================================================================

def test_below_moq_returns_zeroed_sentinel(product):
    result = calculate_wholesale_price(product, 5)

    assert result.meets_minimum is False
    assert result.unit_price == 0
    assert result.total_price == 0
    assert result.minimum_required == 10
    assert result.applied_tier is None


def test_below_moq_short_quote_is_zero(product):
    info = calculate_price(product, 5)
    assert info.price == 0
    assert info.discount == 0


def test_savings_against_wholesale_price(product):
    result = calculate_wholesale_price(product, 50)

    assert result.unit_price == Decimal("90")
    assert result.savings == Decimal("500")
    assert result.savings_percentage == Decimal("10")
    assert result.price_type == "tier"


def test_bulk_order_end_to_end(product):
    result = calculate_wholesale_price(product, 150)

    assert result.unit_price == Decimal("85")
    assert result.total_price == Decimal("12750")
    assert result.savings == Decimal("2250")
    assert result.savings_percentage == Decimal("15")
    assert result.applied_tier.min_quantity == 100


def test_falls_back_to_wholesale_price_without_matching_tier():
    product = product_record(moq=None)
    result = calculate_wholesale_price(product, 5)

    assert result.meets_minimum is True
    assert result.unit_price == Decimal("100")
    assert result.total_price == Decimal("500")
    assert result.savings == 0
    assert result.price_type == "wholesale"


def test_accepts_pydantic_product_input():
    product = ProductPricingInput(**PRODUCT_PAYLOAD)
    result = calculate_wholesale_price(product, 60)
    assert result.unit_price == Decimal("90")
    assert result.total_price == Decimal("5400")


def test_short_quote_derives_discount_when_tier_has_none():
    product = product_record(wholesale_tiers=[tier(50, None, 90)], moq=None)
    info = calculate_price(product, 50)

    assert info.price == Decimal("90")
    assert info.discount == Decimal("10")
    assert info.savings == Decimal("500")
    assert info.price_type == "tier"


def test_bulk_discount_guards_zero_base():
    assert calculate_bulk_discount(0, 10) == 0
    assert calculate_bulk_discount(100, 85) == Decimal("15")


# =============================================================================
# NEXT TIER
# =============================================================================

def test_next_tier_benefit(product):
    benefit = get_next_tier_benefit(product, 45)

    assert benefit.next_tier.min_quantity == 50
    assert benefit.quantity_needed == 5
    assert benefit.current_unit_price == Decimal("95")
    assert benefit.next_unit_price == Decimal("90")
    assert benefit.potential_savings == Decimal("250")


def test_no_next_tier_in_highest_tier(product):
    assert get_next_tier_benefit(product, 150) is None


def test_no_next_tier_below_moq(product):
    assert get_next_tier_benefit(product, 5) is None


def test_no_next_tier_without_tiers():
    assert get_next_tier_benefit(product_record(wholesale_tiers=[]), 20) is None


# =============================================================================
# CUSTOMER DISCOUNTS
# =============================================================================

def test_customer_discount_checks():
    today = date(2026, 6, 1)

    assert validate_customer_discount(0).reason == "No discount set"
    assert validate_customer_discount(None).is_valid is False
    assert validate_customer_discount(150).reason == "Invalid discount percentage"
    expired = validate_customer_discount(10, valid_until=today - timedelta(days=1), today=today)
    assert expired.reason == "Discount expired"

    ok = validate_customer_discount(10, valid_until=today, today=today)
    assert ok.is_valid is True
    assert ok.applicable_percent == Decimal("10")


def test_item_price_applies_customer_discount_after_tier(product):
    item = calculate_item_price(product, 100, customer_discount=10, customer_discount_valid=True)

    assert item.tier_price == Decimal("85")
    assert item.subtotal_before_discount == Decimal("8500")
    assert item.customer_discount_amount == Decimal("850")
    assert item.final_unit_price == Decimal("76.50")
    assert item.final_total == Decimal("7650.00")
    assert item.total_savings == Decimal("2350.00")
    assert item.total_savings_percent == Decimal("23.5")


def test_item_price_ignores_invalid_customer_discount(product):
    item = calculate_item_price(product, 100, customer_discount=10, customer_discount_valid=False)
    assert item.customer_discount_amount == 0
    assert item.final_total == Decimal("8500.00")


def test_item_price_below_moq(product):
    item = calculate_item_price(product, 3)
    assert item.meets_minimum is False
    assert item.final_total == 0


def test_cart_total_sums_lines(product):
    other = product_record(wholesale_price=Decimal("50"), base_price=Decimal("40"), moq=None, wholesale_tiers=[])
    cart = calculate_cart_total([(product, 50), (other, 4)])

    assert cart.subtotal == Decimal("4700.00")
    assert cart.total == Decimal("4700.00")
    assert cart.total_savings == Decimal("500.00")
    assert len(cart.to_dict()["items"]) == 2
