"""Domain models package."""

from carledger.models.daily_sales_report import DailySalesReport
from carledger.models.enums import ChangeAction, FinanceRecordType
from carledger.models.finance_record import FinanceRecord
from carledger.models.monthly_sales_report import MonthlySalesReport
from carledger.models.report_generation_tracker import ReportGenerationTracker
from carledger.models.sale import Sale
from carledger.models.yearly_sales_report import YearlySalesReport

__all__ = [
    "ChangeAction",
    "DailySalesReport",
    "FinanceRecord",
    "FinanceRecordType",
    "MonthlySalesReport",
    "ReportGenerationTracker",
    "Sale",
    "YearlySalesReport",
]
