"""ORM models. Importing this package registers every table on Base.metadata."""
from app.models.product import Product, WholesaleTier
from app.models.inventory import InventoryLog
from app.models.order import Order, OrderItem, OrderStatus, OperationalCost
from app.models.partner import Partner, ProfitDistribution, PeriodType, PaymentMethod
from app.models.profit_report import ProfitReport
from app.models.ledger import LedgerEntry, LedgerDirection, LedgerSourceType, LedgerCategory

__all__ = [
    "Product",
    "WholesaleTier",
    "InventoryLog",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OperationalCost",
    "Partner",
    "ProfitDistribution",
    "PeriodType",
    "PaymentMethod",
    "ProfitReport",
    "LedgerEntry",
    "LedgerDirection",
    "LedgerSourceType",
    "LedgerCategory",
]
