"""
Profit Calculation Service.

Per-line and per-order profit with the platform/seller split:

    revenue      = unit_price × quantity
    total_cost   = (cost_per_unit + shipping_cost + handling_cost) × quantity
    gross_profit = revenue - total_cost
    platform     = gross × platform% ; remaining = gross - platform
    seller       = remaining × commission%
    platform     = gross - seller   (platform absorbs the uncommitted share)

Seller profit is computed first and the platform takes the remainder, so
platform_profit + seller_profit == gross_profit exactly.

Order line items carry a frozen cost snapshot taken at placement. Reports
must read the snapshot; the product's current cost is only used for legacy
items that have none.
"""
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

from app.core.money import ZERO, HUNDRED, to_decimal, optional_decimal, percent_of, safe_percentage
from app.services.wholesale_pricing import find_applicable_tier


@dataclass
class ProfitConfig:
    """Cost configuration of one product line."""
    base_price: Decimal
    wholesale_price: Decimal
    platform_profit_percentage: Decimal = ZERO
    seller_commission_percentage: Decimal = ZERO
    cost_per_unit: Optional[Decimal] = None
    shipping_cost: Decimal = ZERO
    handling_cost: Decimal = ZERO

    @classmethod
    def from_product(cls, product: Any, unit_price: Any = None) -> "ProfitConfig":
        """Build from a product; `unit_price` overrides the selling price (e.g. a tier price)."""
        return cls(
            base_price=to_decimal(product.base_price),
            wholesale_price=to_decimal(unit_price if unit_price is not None else product.wholesale_price),
            platform_profit_percentage=to_decimal(getattr(product, "platform_profit_percentage", None)),
            seller_commission_percentage=to_decimal(getattr(product, "seller_commission_percentage", None)),
            cost_per_unit=optional_decimal(getattr(product, "cost_per_unit", None)),
            shipping_cost=to_decimal(getattr(product, "shipping_cost", None)),
            handling_cost=to_decimal(getattr(product, "handling_cost", None)),
        )

    @property
    def unit_cost(self) -> Decimal:
        """Landed cost of one unit (cost_per_unit defaults to base_price)."""
        cost = self.cost_per_unit if self.cost_per_unit is not None else self.base_price
        return to_decimal(cost) + to_decimal(self.shipping_cost) + to_decimal(self.handling_cost)


@dataclass
class ProfitBreakdown:
    revenue: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    platform_profit: Decimal
    seller_profit: Decimal
    platform_profit_percentage: Decimal
    seller_profit_percentage: Decimal
    profit_margin: Decimal

    def to_dict(self) -> dict:
        return {
            "revenue": float(self.revenue),
            "total_cost": float(self.total_cost),
            "gross_profit": float(self.gross_profit),
            "platform_profit": float(self.platform_profit),
            "seller_profit": float(self.seller_profit),
            "platform_profit_percentage": float(self.platform_profit_percentage),
            "seller_profit_percentage": float(self.seller_profit_percentage),
            "profit_margin": float(self.profit_margin),
        }


@dataclass
class OrderProfitItem:
    product_id: Any
    quantity: int
    config: ProfitConfig


@dataclass
class ItemProfit:
    product_id: Any
    quantity: int
    profit: ProfitBreakdown


@dataclass
class OrderProfitCalculation:
    subtotal: Decimal = ZERO
    total_cost: Decimal = ZERO
    gross_profit: Decimal = ZERO
    platform_profit: Decimal = ZERO
    seller_profit: Decimal = ZERO
    profit_margin: Decimal = ZERO
    item_breakdowns: List[ItemProfit] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "subtotal": float(self.subtotal),
            "total_cost": float(self.total_cost),
            "gross_profit": float(self.gross_profit),
            "platform_profit": float(self.platform_profit),
            "seller_profit": float(self.seller_profit),
            "profit_margin": float(self.profit_margin),
            "items": [
                {
                    "product_id": str(item.product_id) if item.product_id is not None else None,
                    "quantity": item.quantity,
                    "profit": item.profit.to_dict(),
                }
                for item in self.item_breakdowns
            ],
        }


@dataclass
class LineItemSnapshot:
    """Financial snapshot frozen onto an order line at placement."""
    cost_per_unit: Decimal
    profit_per_unit: Decimal
    total_profit: Decimal
    profit_margin: Decimal


@dataclass
class ResolvedLineCost:
    revenue: Decimal
    cost_per_unit: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    from_snapshot: bool


# =============================================================================
# LINE AND ORDER PROFIT
# =============================================================================

def split_gross_profit(
    gross_profit: Decimal,
    platform_percentage: Decimal,
    seller_percentage: Decimal,
) -> tuple:
    """Return (platform_profit, seller_profit); the two always sum to gross_profit."""
    platform_share = percent_of(gross_profit, platform_percentage)
    remaining = gross_profit - platform_share
    seller_profit = percent_of(remaining, seller_percentage) if seller_percentage > 0 else ZERO
    platform_profit = gross_profit - seller_profit
    return platform_profit, seller_profit


def calculate_product_profit(quantity: int, config: ProfitConfig) -> ProfitBreakdown:
    """Profit breakdown for `quantity` units sold at config.wholesale_price."""
    selling_price = to_decimal(config.wholesale_price)
    platform_pct = to_decimal(config.platform_profit_percentage)
    seller_pct = to_decimal(config.seller_commission_percentage)

    revenue = selling_price * quantity
    total_cost = config.unit_cost * quantity
    gross_profit = revenue - total_cost

    platform_profit, seller_profit = split_gross_profit(gross_profit, platform_pct, seller_pct)

    return ProfitBreakdown(
        revenue=revenue,
        total_cost=total_cost,
        gross_profit=gross_profit,
        platform_profit=platform_profit,
        seller_profit=seller_profit,
        platform_profit_percentage=platform_pct,
        seller_profit_percentage=seller_pct,
        profit_margin=safe_percentage(gross_profit, revenue),
    )


def calculate_order_profit(items: Sequence[Any]) -> OrderProfitCalculation:
    """
    Sum line profits across an order.

    Each item exposes product_id, quantity and config (see OrderProfitItem).
    The order margin is recomputed from the totals, never averaged.
    """
    result = OrderProfitCalculation()

    for item in items:
        profit = calculate_product_profit(item.quantity, item.config)
        result.subtotal += profit.revenue
        result.total_cost += profit.total_cost
        result.gross_profit += profit.gross_profit
        result.platform_profit += profit.platform_profit
        result.seller_profit += profit.seller_profit
        result.item_breakdowns.append(
            ItemProfit(product_id=getattr(item, "product_id", None), quantity=item.quantity, profit=profit)
        )

    result.profit_margin = safe_percentage(result.gross_profit, result.subtotal)
    return result


def calculate_tier_profit(
    quantity: int,
    base_price: Any,
    tiers: Sequence[Any],
    platform_profit_percentage: Any,
) -> Optional[ProfitBreakdown]:
    """Profit at the tier price that applies to `quantity`; None if no tier does."""
    tier = find_applicable_tier(tiers, quantity)
    if tier is None:
        return None

    return calculate_product_profit(
        quantity,
        ProfitConfig(
            base_price=to_decimal(base_price),
            wholesale_price=to_decimal(tier.price),
            platform_profit_percentage=to_decimal(platform_profit_percentage),
        ),
    )


# =============================================================================
# SNAPSHOTS
# =============================================================================

def snapshot_line_item(product: Any, quantity: int, unit_price: Any, total: Any = None) -> LineItemSnapshot:
    """
    Freeze the line's cost and profit using the product's cost right now.

    `total` is the stored line total. When it is rounded separately from the
    unit price (customer discounts), profit is derived from it so that
    total_profit == total - cost_per_unit * quantity on the frozen line.
    """
    config = ProfitConfig.from_product(product, unit_price=unit_price)
    unit_cost = config.unit_cost
    revenue = to_decimal(total) if total is not None else to_decimal(unit_price) * quantity
    total_profit = revenue - unit_cost * quantity

    return LineItemSnapshot(
        cost_per_unit=unit_cost,
        profit_per_unit=revenue / quantity - unit_cost if quantity else ZERO,
        total_profit=total_profit,
        profit_margin=safe_percentage(total_profit, revenue),
    )


def resolve_line_item_cost(item: Any, product: Any = None) -> ResolvedLineCost:
    """
    Cost and gross profit of a persisted order line.

    A non-null snapshot on the item always wins. Only legacy items without
    one are costed from the product's current cost_per_unit / base_price.
    """
    quantity = item.quantity
    revenue = to_decimal(item.total) if getattr(item, "total", None) is not None \
        else to_decimal(item.price) * quantity

    snapshot_cost = getattr(item, "cost_per_unit", None)
    if snapshot_cost is not None:
        cost_per_unit = to_decimal(snapshot_cost)
        from_snapshot = True
    else:
        product = product if product is not None else getattr(item, "product", None)
        if product is not None:
            cost_per_unit = ProfitConfig.from_product(product).unit_cost
        else:
            cost_per_unit = ZERO
        from_snapshot = False

    total_cost = cost_per_unit * quantity
    snapshot_profit = getattr(item, "total_profit", None)
    gross_profit = to_decimal(snapshot_profit) if snapshot_profit is not None else revenue - total_cost

    return ResolvedLineCost(
        revenue=revenue,
        cost_per_unit=cost_per_unit,
        total_cost=total_cost,
        gross_profit=gross_profit,
        from_snapshot=from_snapshot,
    )


# =============================================================================
# PLANNING HELPERS
# =============================================================================

def calculate_profit_margin(selling_price: Any, cost_price: Any) -> Decimal:
    """(selling - cost) / selling × 100, 0 for a zero selling price."""
    selling = to_decimal(selling_price)
    return safe_percentage(selling - to_decimal(cost_price), selling)


def categorize_margin(margin: Any) -> str:
    margin = to_decimal(margin)
    if margin < 0:
        return "loss"
    if margin >= 40:
        return "high"
    if margin >= 20:
        return "medium"
    return "low"


def calculate_roi(profit: Any, investment: Any) -> Decimal:
    return safe_percentage(to_decimal(profit), to_decimal(investment))


def calculate_suggested_wholesale_price(
    base_price: Any,
    target_profit_margin: Any,
    shipping_cost: Any = 0,
    handling_cost: Any = 0,
    marketing_cost: Any = 0,
) -> Decimal:
    """
    Selling price that yields `target_profit_margin` percent on revenue,
    rounded up to a whole unit: cost / (1 - margin / 100).
    """
    total_cost = (
        to_decimal(base_price) + to_decimal(shipping_cost)
        + to_decimal(handling_cost) + to_decimal(marketing_cost)
    )
    margin = to_decimal(target_profit_margin)
    if margin >= HUNDRED:
        raise ValueError("Target profit margin must be below 100%")

    suggested = total_cost / (1 - margin / HUNDRED)
    return Decimal(math.ceil(suggested))


def calculate_break_even_quantity(base_price: Any, wholesale_price: Any, fixed_costs: Any) -> Optional[int]:
    """Units needed to cover fixed costs; None when each unit sells at or below cost."""
    profit_per_unit = to_decimal(wholesale_price) - to_decimal(base_price)
    if profit_per_unit <= 0:
        return None
    return math.ceil(to_decimal(fixed_costs) / profit_per_unit)


def analyze_profit_performance(orders: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Totals, margin, growth and best day over a list of order summaries
    (dicts with date, revenue, cost, profit) in chronological order.
    """
    if not orders:
        return {
            "total_revenue": ZERO,
            "total_cost": ZERO,
            "total_profit": ZERO,
            "average_profit_margin": ZERO,
            "profit_growth": ZERO,
            "best_performing_day": None,
        }

    total_revenue = sum((to_decimal(o["revenue"]) for o in orders), ZERO)
    total_cost = sum((to_decimal(o["cost"]) for o in orders), ZERO)
    total_profit = sum((to_decimal(o["profit"]) for o in orders), ZERO)

    first_profit = to_decimal(orders[0]["profit"])
    last_profit = to_decimal(orders[-1]["profit"])
    growth = safe_percentage(last_profit - first_profit, first_profit)

    best = max(orders, key=lambda o: to_decimal(o["profit"]))

    return {
        "total_revenue": total_revenue,
        "total_cost": total_cost,
        "total_profit": total_profit,
        "average_profit_margin": safe_percentage(total_profit, total_revenue),
        "profit_growth": growth,
        "best_performing_day": {
            "date": best["date"],
            "profit": to_decimal(best["profit"]),
        },
    }
