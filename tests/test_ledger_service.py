import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.services.distribution_service import DistributionService
from app.services.ledger_service import (
    LedgerError,
    LedgerService,
    compare_ledger_to_orders,
    order_cost_of_goods,
    summarize_balance,
)
from app.services.profit_report_service import ProfitReportService
from tests.factories import utc

MARCH = (date(2026, 3, 1), date(2026, 3, 31))


def entry(direction, amount, category="REVENUE", source_type="ORDER"):
    return SimpleNamespace(
        direction=direction, amount=Decimal(amount), category=category, source_type=source_type
    )


def test_summarize_balance():
    balance = summarize_balance([
        entry("CREDIT", "12750"),
        entry("DEBIT", "12000", "COGS"),
        entry("DEBIT", "300", "PARTNER_DISTRIBUTION", "COMMISSION"),
    ])

    assert balance.total_credits == Decimal("12750")
    assert balance.total_debits == Decimal("12300")
    assert balance.net_balance == Decimal("450")
    assert balance.entry_count == 3
    assert balance.by_category["COGS"] == Decimal("12000")
    assert balance.to_dict()["net_balance"] == 450.0


def test_empty_balance():
    balance = summarize_balance([])
    assert balance.net_balance == 0
    assert balance.to_dict()["entries"] == 0


def test_order_cost_of_goods_skips_lines_without_snapshot():
    order = SimpleNamespace(items=[
        SimpleNamespace(cost_per_unit=Decimal("80"), quantity=10),
        SimpleNamespace(cost_per_unit=None, quantity=5),
    ])
    assert order_cost_of_goods(order) == Decimal("800")


def test_comparison_ignores_payouts_and_flags_gaps():
    entries = [
        entry("CREDIT", "1000"),
        entry("DEBIT", "800", "COGS"),
        entry("DEBIT", "50", "PARTNER_DISTRIBUTION", "COMMISSION"),
    ]
    orders = [SimpleNamespace(total=Decimal("1000.004"), total_cost=Decimal("750"))]

    comparison = compare_ledger_to_orders(*MARCH, entries, orders, tolerance=Decimal("0.01"))

    assert comparison.revenue_matches is True
    assert comparison.cogs_matches is False
    assert comparison.cogs_difference == Decimal("50")
    assert comparison.notices == ["COGS discrepancy detected: ৳50"]
    assert comparison.to_dict()["reconciliation"]["overall_match"] is False


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture
def reported_march(db, make_product, make_order):
    """Delivered March order (revenue 12750, cost 12000) with its profit report."""
    async def setup():
        product = await make_product()
        order = await make_order(product, 150, created_at=utc(2026, 3, 10))
        await ProfitReportService(db).generate_for_order(order.id)
        return order

    return setup


async def test_profit_report_books_revenue_and_cogs(db, reported_march):
    order = await reported_march()
    service = LedgerService(db)

    entries, total = await service.list_entries(order_id=order.id)

    assert total == 2
    by_category = {e.category: e for e in entries}
    assert by_category["REVENUE"].direction == "CREDIT"
    assert by_category["REVENUE"].amount == Decimal("12750")
    assert by_category["COGS"].direction == "DEBIT"
    assert by_category["COGS"].amount == Decimal("12000")
    assert by_category["COGS"].entry_date == date(2026, 3, 10)
    assert (by_category["COGS"].fiscal_year, by_category["COGS"].fiscal_month) == (2026, 3)

    again = await service.record_order(order)
    assert len(again) == 2
    assert (await service.list_entries(order_id=order.id))[1] == 2


async def test_paid_payout_is_booked_once(db, reported_march, make_partner):
    await reported_march()
    partner = await make_partner("Karim Ahmed", 40)
    payouts = DistributionService(db)
    ledger = LedgerService(db)

    dist, _ = await payouts.generate(partner.id, *MARCH)
    await payouts.update_status(dist.id, "APPROVED")
    _, commissions = await ledger.list_entries(source_type="COMMISSION")
    assert commissions == 0

    await payouts.update_status(dist.id, "PAID", payment_method="CASH")
    entries, commissions = await ledger.list_entries(source_type="COMMISSION")

    assert commissions == 1
    payout = entries[0]
    assert payout.source_id == dist.id
    assert payout.direction == "DEBIT"
    assert payout.category == "PARTNER_DISTRIBUTION"
    assert payout.amount == Decimal("300")
    assert payout.party_name == "Karim Ahmed"
    assert payout.entry_date == datetime.now(timezone.utc).date()

    assert (await ledger.record_payout(dist)).id == payout.id


async def test_period_balance(db, reported_march):
    await reported_march()
    service = LedgerService(db)

    march = await service.calculate_period_balance(*MARCH)
    assert march.total_credits == Decimal("12750")
    assert march.total_debits == Decimal("12000")
    assert march.net_balance == Decimal("750")

    april = await service.calculate_period_balance(date(2026, 4, 1), date(2026, 4, 30))
    assert april.entry_count == 0

    with pytest.raises(LedgerError):
        await service.calculate_period_balance(date(2026, 3, 31), date(2026, 3, 1))


async def test_compare_with_orders(db, make_product, make_order):
    product = await make_product()
    order = await make_order(product, 150, created_at=utc(2026, 3, 10))
    service = LedgerService(db)

    unbooked = await service.compare_with_orders(*MARCH)
    assert unbooked.revenue_matches is False
    assert unbooked.revenue_difference == Decimal("12750")

    await ProfitReportService(db).generate_for_order(order.id)
    booked = await service.compare_with_orders(*MARCH)

    assert booked.revenue_matches is True
    assert booked.cogs_matches is True
    assert booked.order_count == 1
    assert booked.notices == ["Ledger entries match order totals"]


async def test_reconcile_entries(db, reported_march):
    order = await reported_march()
    service = LedgerService(db)
    entries, _ = await service.list_entries(order_id=order.id)
    ids = [e.id for e in entries]

    assert len(await service.get_unreconciled()) == 2
    assert await service.reconcile_entries(ids, user_id=uuid.uuid4()) == 2
    assert await service.reconcile_entries(ids) == 0
    assert await service.reconcile_entries([]) == 0

    _, reconciled = await service.list_entries(reconciled=True)
    assert reconciled == 2
