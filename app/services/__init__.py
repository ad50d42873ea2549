# Services module
from app.services.period_profit import PeriodProfitService
from app.services.ledger_service import LedgerService
from app.services.distribution_service import DistributionService
from app.services.profit_report_service import ProfitReportService
from app.services.stock_service import StockService

__all__ = [
    "PeriodProfitService",
    "LedgerService",
    "DistributionService",
    "ProfitReportService",
    "StockService",
]
