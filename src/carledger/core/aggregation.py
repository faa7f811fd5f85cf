"""Pure aggregation functions for the daily, monthly and yearly tiers.

Nothing in here touches the database. Callers hand in slices of facts
(anything with the ``Sale`` / ``FinanceRecord`` attributes) and get back
frozen figure objects whose ``as_values()`` maps onto report columns.

All figures are quantized to cents with ROUND_HALF_UP, and net figures are
derived from the already-rounded parts so that
``net_profit + total_finance_cost == total_profit`` holds exactly.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Sequence
from uuid import UUID

from carledger.core.errors import AggregationError
from carledger.core.periods import MonthKey, YearKey
from carledger.models.enums import FinanceRecordType

ZERO = Decimal("0.00")
CENT = Decimal("0.01")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = 12


def quantize_money(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _amount(fact: Any, field: str) -> Decimal:
    """Read a money field off a fact, rejecting missing or non-numeric values."""
    value = getattr(fact, field, None)
    if value is None:
        raise AggregationError(
            f"{type(fact).__name__} is missing {field}",
            details={"fact_id": str(getattr(fact, "id", None)), "field": field},
        )
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise AggregationError(
            f"{type(fact).__name__}.{field} is not a number: {value!r}",
            details={"fact_id": str(getattr(fact, "id", None)), "field": field},
        ) from e
    if not amount.is_finite():
        raise AggregationError(
            f"{type(fact).__name__}.{field} is not finite: {value!r}",
            details={"fact_id": str(getattr(fact, "id", None)), "field": field},
        )
    return amount


def _ratio_percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return ZERO
    return quantize_money(part / whole * HUNDRED)


@dataclass(frozen=True)
class SalesTotals:
    count: int
    revenue: Decimal
    profit: Decimal


@dataclass(frozen=True)
class FinanceTotals:
    """Expense and income sums for a period."""

    expense_total: Decimal
    income_total: Decimal

    @property
    def net(self) -> Decimal:
        """Net finance cost: expenses minus income. Negative when income wins."""
        return self.expense_total - self.income_total


@dataclass(frozen=True)
class DailyFigures:
    report_date: date
    total_sales: int
    total_revenue: Decimal
    total_profit: Decimal
    avg_profit_per_sale: Decimal
    most_profitable_car_id: UUID | None
    highest_single_profit: Decimal

    def as_values(self) -> dict[str, Any]:
        return {
            "total_sales": self.total_sales,
            "total_revenue": self.total_revenue,
            "total_profit": self.total_profit,
            "avg_profit_per_sale": self.avg_profit_per_sale,
            "most_profitable_car_id": self.most_profitable_car_id,
            "highest_single_profit": self.highest_single_profit,
        }


@dataclass(frozen=True)
class MonthlyFigures:
    period: MonthKey
    total_sales: int
    total_revenue: Decimal
    total_profit: Decimal
    avg_daily_profit: Decimal
    best_day: date | None
    best_day_profit: Decimal
    profit_margin: Decimal
    finance_cost: Decimal
    total_finance_cost: Decimal
    net_profit: Decimal

    def as_values(self) -> dict[str, Any]:
        return {
            "start_date": self.period.start,
            "end_date": self.period.end,
            "total_sales": self.total_sales,
            "total_revenue": self.total_revenue,
            "total_profit": self.total_profit,
            "avg_daily_profit": self.avg_daily_profit,
            "best_day": self.best_day,
            "best_day_profit": self.best_day_profit,
            "profit_margin": self.profit_margin,
            "finance_cost": self.finance_cost,
            "total_finance_cost": self.total_finance_cost,
            "net_profit": self.net_profit,
        }


@dataclass(frozen=True)
class YearlyFigures:
    period: YearKey
    total_sales: int
    total_revenue: Decimal
    total_profit: Decimal
    avg_monthly_profit: Decimal
    best_month: int | None
    best_month_profit: Decimal
    profit_margin: Decimal
    yoy_growth: Decimal
    total_finance_cost: Decimal
    total_net_profit: Decimal

    def as_values(self) -> dict[str, Any]:
        return {
            "total_sales": self.total_sales,
            "total_revenue": self.total_revenue,
            "total_profit": self.total_profit,
            "avg_monthly_profit": self.avg_monthly_profit,
            "best_month": self.best_month,
            "best_month_profit": self.best_month_profit,
            "profit_margin": self.profit_margin,
            "yoy_growth": self.yoy_growth,
            "total_finance_cost": self.total_finance_cost,
            "total_net_profit": self.total_net_profit,
        }


def aggregate_sales_totals(sales: Iterable[Any]) -> SalesTotals:
    """Count, revenue and profit over a slice of sales."""
    count = 0
    revenue = ZERO
    profit = ZERO
    for sale in sales:
        count += 1
        revenue += _amount(sale, "sale_price")
        profit += _amount(sale, "profit_loss")
    return SalesTotals(count=count, revenue=revenue, profit=profit)


def aggregate_daily(report_date: date, sales: Sequence[Any]) -> DailyFigures:
    """
    Summarize the sales of one date.

    The most profitable car is the first sale, in the order given, whose
    profit_loss is strictly greater than every sale before it. Callers pass
    sales in a stable order so ties always resolve to the same car.

    Args:
        report_date: Date being summarized
        sales: Sales dated ``report_date``

    Returns:
        DailyFigures, all zero with no most profitable car when ``sales`` is empty
    """
    totals = aggregate_sales_totals(sales)

    best_sale = None
    best_profit = ZERO
    for sale in sales:
        profit = _amount(sale, "profit_loss")
        if best_sale is None or profit > best_profit:
            best_sale = sale
            best_profit = profit

    avg_profit = totals.profit / totals.count if totals.count else ZERO

    return DailyFigures(
        report_date=report_date,
        total_sales=totals.count,
        total_revenue=quantize_money(totals.revenue),
        total_profit=quantize_money(totals.profit),
        avg_profit_per_sale=quantize_money(avg_profit),
        most_profitable_car_id=best_sale.car_id if best_sale is not None else None,
        highest_single_profit=quantize_money(best_profit),
    )


def aggregate_finance_for_period(entries: Iterable[Any]) -> FinanceTotals:
    """
    Partition finance entries by type and sum each side.

    Raises:
        AggregationError: If an entry has an unknown type or a bad cost
    """
    expense_total = ZERO
    income_total = ZERO
    for entry in entries:
        try:
            entry_type = FinanceRecordType(entry.type)
        except ValueError as e:
            raise AggregationError(
                f"Unknown finance record type: {entry.type!r}",
                details={"fact_id": str(getattr(entry, "id", None))},
            ) from e

        cost = _amount(entry, "cost")
        if entry_type is FinanceRecordType.EXPENSE:
            expense_total += cost
        else:
            income_total += cost
    return FinanceTotals(expense_total=expense_total, income_total=income_total)


def _best_period(profits: dict[Any, Decimal]) -> tuple[Any | None, Decimal]:
    """Period with the highest profit; the earliest period wins a tie."""
    best_key = None
    best_profit = ZERO
    for key in sorted(profits):
        if best_key is None or profits[key] > best_profit:
            best_key = key
            best_profit = profits[key]
    return best_key, best_profit


def aggregate_monthly(
    period: MonthKey, sales: Sequence[Any], entries: Sequence[Any]
) -> MonthlyFigures:
    """
    Summarize one month from raw sales and finance entries.

    avg_daily_profit divides by every calendar day of the month, not only the
    days that had sales.
    """
    totals = aggregate_sales_totals(sales)

    profit_by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for sale in sales:
        profit_by_day[sale.sale_date] += _amount(sale, "profit_loss")
    best_day, best_day_profit = _best_period(profit_by_day)

    finance = aggregate_finance_for_period(entries)

    total_profit = quantize_money(totals.profit)
    total_finance_cost = quantize_money(finance.net)

    return MonthlyFigures(
        period=period,
        total_sales=totals.count,
        total_revenue=quantize_money(totals.revenue),
        total_profit=total_profit,
        avg_daily_profit=quantize_money(totals.profit / period.days),
        best_day=best_day,
        best_day_profit=quantize_money(best_day_profit),
        profit_margin=_ratio_percent(totals.profit, totals.revenue),
        finance_cost=quantize_money(finance.expense_total),
        total_finance_cost=total_finance_cost,
        net_profit=total_profit - total_finance_cost,
    )


def calculate_growth_percent(current: Decimal, previous: Decimal | None) -> Decimal:
    """
    Calculate year-over-year profit growth.

    Formula: ((current - previous) / |previous|) * 100

    Returns:
        Growth percentage; 100 when previous is 0 and current is positive;
        0 when there is no previous year or nothing to compare against
    """
    if previous is None:
        return ZERO
    if previous == 0:
        return quantize_money(HUNDRED) if current > 0 else ZERO
    return quantize_money((current - previous) / abs(previous) * HUNDRED)


def aggregate_yearly(
    period: YearKey,
    sales: Sequence[Any],
    entries: Sequence[Any],
    prior_year_profit: Decimal | None = None,
) -> YearlyFigures:
    """Summarize one year from raw sales and finance entries."""
    totals = aggregate_sales_totals(sales)

    profit_by_month: dict[int, Decimal] = defaultdict(lambda: ZERO)
    for sale in sales:
        profit_by_month[sale.sale_date.month] += _amount(sale, "profit_loss")
    best_month, best_month_profit = _best_period(profit_by_month)

    finance = aggregate_finance_for_period(entries)

    total_profit = quantize_money(totals.profit)
    total_finance_cost = quantize_money(finance.net)

    return YearlyFigures(
        period=period,
        total_sales=totals.count,
        total_revenue=quantize_money(totals.revenue),
        total_profit=total_profit,
        avg_monthly_profit=quantize_money(totals.profit / MONTHS_PER_YEAR),
        best_month=best_month,
        best_month_profit=quantize_money(best_month_profit),
        profit_margin=_ratio_percent(totals.profit, totals.revenue),
        yoy_growth=calculate_growth_percent(total_profit, prior_year_profit),
        total_finance_cost=total_finance_cost,
        total_net_profit=total_profit - total_finance_cost,
    )
