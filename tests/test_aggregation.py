"""Tests for the pure aggregation functions."""

import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from carledger.core.aggregation import (
    aggregate_daily,
    aggregate_finance_for_period,
    aggregate_monthly,
    aggregate_yearly,
    calculate_growth_percent,
    quantize_money,
)
from carledger.core.errors import AggregationError
from carledger.core.periods import MonthKey, YearKey


def sale(sale_date, profit, price="25000.00", car_id=None):
    return SimpleNamespace(
        id=uuid.uuid4(),
        car_id=car_id or uuid.uuid4(),
        sale_date=sale_date,
        sale_price=Decimal(price),
        profit_loss=Decimal(profit),
    )


def entry(record_date, cost, type="expense"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        record_date=record_date,
        cost=Decimal(cost),
        type=type,
    )


class TestAggregateDaily:
    def test_two_sales_on_same_day(self):
        """Sale A (3000) and sale B (2000) on 2025-01-08."""
        car_a = uuid.uuid4()
        sales = [
            sale(date(2025, 1, 8), "3000.00", price="25000.00", car_id=car_a),
            sale(date(2025, 1, 8), "2000.00", price="18000.00"),
        ]

        figures = aggregate_daily(date(2025, 1, 8), sales)

        assert figures.total_sales == 2
        assert figures.total_revenue == Decimal("43000.00")
        assert figures.total_profit == Decimal("5000.00")
        assert figures.avg_profit_per_sale == Decimal("2500.00")
        assert figures.most_profitable_car_id == car_a
        assert figures.highest_single_profit == Decimal("3000.00")

    def test_no_sales_gives_zeroed_figures(self):
        figures = aggregate_daily(date(2025, 1, 9), [])

        assert figures.total_sales == 0
        assert figures.total_revenue == Decimal("0.00")
        assert figures.total_profit == Decimal("0.00")
        assert figures.avg_profit_per_sale == Decimal("0.00")
        assert figures.most_profitable_car_id is None
        assert figures.highest_single_profit == Decimal("0.00")

    def test_tie_goes_to_first_sale_in_order(self):
        first = sale(date(2025, 1, 8), "1500.00")
        second = sale(date(2025, 1, 8), "1500.00")

        picks = {aggregate_daily(date(2025, 1, 8), [first, second]).most_profitable_car_id for _ in range(5)}

        assert picks == {first.car_id}
        assert (
            aggregate_daily(date(2025, 1, 8), [second, first]).most_profitable_car_id
            == second.car_id
        )

    def test_all_losses_still_pick_the_best_sale(self):
        small_loss = sale(date(2025, 1, 8), "-100.00")
        big_loss = sale(date(2025, 1, 8), "-900.00")

        figures = aggregate_daily(date(2025, 1, 8), [big_loss, small_loss])

        assert figures.most_profitable_car_id == small_loss.car_id
        assert figures.highest_single_profit == Decimal("-100.00")

    def test_average_is_rounded_half_up(self):
        sales = [sale(date(2025, 1, 8), "100.00") for _ in range(2)] + [
            sale(date(2025, 1, 8), "100.01")
        ]
        # 300.01 / 3 = 100.00333...
        assert aggregate_daily(date(2025, 1, 8), sales).avg_profit_per_sale == Decimal("100.00")

    def test_missing_profit_raises(self):
        broken = sale(date(2025, 1, 8), "0")
        broken.profit_loss = None

        with pytest.raises(AggregationError, match="missing profit_loss"):
            aggregate_daily(date(2025, 1, 8), [broken])


class TestAggregateFinance:
    def test_partitions_by_type(self):
        totals = aggregate_finance_for_period(
            [
                entry(date(2025, 1, 3), "1000.00"),
                entry(date(2025, 1, 5), "500.00", type="income"),
                entry(date(2025, 1, 9), "250.00"),
            ]
        )
        assert totals.expense_total == Decimal("1250.00")
        assert totals.income_total == Decimal("500.00")
        assert totals.net == Decimal("750.00")

    def test_net_is_negative_when_income_wins(self):
        totals = aggregate_finance_for_period(
            [entry(date(2025, 1, 3), "200.00"), entry(date(2025, 1, 4), "800.00", type="income")]
        )
        assert totals.net == Decimal("-600.00")

    def test_unknown_type_raises(self):
        with pytest.raises(AggregationError, match="Unknown finance record type"):
            aggregate_finance_for_period([entry(date(2025, 1, 3), "10.00", type="bonus")])

    def test_non_numeric_cost_raises(self):
        bad = entry(date(2025, 1, 3), "0")
        bad.cost = "abc"
        with pytest.raises(AggregationError, match="not a number"):
            aggregate_finance_for_period([bad])


class TestAggregateMonthly:
    def test_june_expenses_without_income(self):
        figures = aggregate_monthly(
            MonthKey(2025, 6),
            [],
            [entry(date(2025, 6, 3), "2500.00"), entry(date(2025, 6, 20), "5000.00")],
        )

        assert figures.finance_cost == Decimal("7500.00")
        assert figures.total_finance_cost == Decimal("7500.00")
        assert figures.net_profit == Decimal("-7500.00")

    def test_january_sale_with_expense_and_income(self):
        figures = aggregate_monthly(
            MonthKey(2025, 1),
            [sale(date(2025, 1, 15), "5000.00", price="30000.00")],
            [
                entry(date(2025, 1, 10), "1000.00"),
                entry(date(2025, 1, 12), "500.00", type="income"),
            ],
        )

        assert figures.total_profit == Decimal("5000.00")
        assert figures.finance_cost == Decimal("1000.00")
        assert figures.total_finance_cost == Decimal("500.00")
        assert figures.net_profit == Decimal("4500.00")
        assert figures.best_day == date(2025, 1, 15)
        # 5000 / 31 days
        assert figures.avg_daily_profit == Decimal("161.29")
        assert figures.profit_margin == Decimal("16.67")

    def test_best_day_sums_sales_per_day_and_ties_resolve_to_earliest(self):
        figures = aggregate_monthly(
            MonthKey(2025, 3),
            [
                sale(date(2025, 3, 2), "1000.00"),
                sale(date(2025, 3, 2), "1000.00"),
                sale(date(2025, 3, 20), "2000.00"),
                sale(date(2025, 3, 5), "1500.00"),
            ],
            [],
        )
        assert figures.best_day == date(2025, 3, 2)
        assert figures.best_day_profit == Decimal("2000.00")

    def test_empty_month_is_all_zero(self):
        figures = aggregate_monthly(MonthKey(2025, 2), [], [])

        assert figures.total_sales == 0
        assert figures.best_day is None
        assert figures.profit_margin == Decimal("0.00")
        assert figures.avg_daily_profit == Decimal("0.00")
        assert figures.net_profit == Decimal("0.00")
        assert figures.as_values()["start_date"] == date(2025, 2, 1)
        assert figures.as_values()["end_date"] == date(2025, 2, 28)

    @pytest.mark.parametrize(
        "profits, costs",
        [
            (["0.01", "0.01", "0.01"], ["0.01"]),
            (["1234.56", "-99.99"], ["333.33", "0.02"]),
            (["1000.00"], []),
        ],
    )
    def test_net_profit_identity(self, profits, costs):
        figures = aggregate_monthly(
            MonthKey(2025, 4),
            [sale(date(2025, 4, 1 + i), p) for i, p in enumerate(profits)],
            [entry(date(2025, 4, 10), c) for c in costs],
        )
        assert figures.net_profit + figures.total_finance_cost == figures.total_profit


class TestAggregateYearly:
    def test_year_figures(self):
        sales = [
            sale(date(2025, 1, 15), "5000.00", price="25000.00"),
            sale(date(2025, 3, 10), "7000.00", price="30000.00"),
        ]
        entries = [
            entry(date(2025, 1, 10), "1000.00"),
            entry(date(2025, 8, 1), "500.00", type="income"),
        ]

        figures = aggregate_yearly(YearKey(2025), sales, entries, prior_year_profit=Decimal("10000.00"))

        assert figures.total_sales == 2
        assert figures.total_profit == Decimal("12000.00")
        assert figures.avg_monthly_profit == Decimal("1000.00")
        assert figures.best_month == 3
        assert figures.best_month_profit == Decimal("7000.00")
        assert figures.profit_margin == Decimal("21.82")
        assert figures.yoy_growth == Decimal("20.00")
        assert figures.total_finance_cost == Decimal("500.00")
        assert figures.total_net_profit == Decimal("11500.00")

    def test_empty_year_without_prior(self):
        figures = aggregate_yearly(YearKey(2025), [], [])

        assert figures.total_sales == 0
        assert figures.best_month is None
        assert figures.yoy_growth == Decimal("0.00")
        assert figures.total_net_profit == Decimal("0.00")


class TestGrowth:
    @pytest.mark.parametrize(
        "current, previous, expected",
        [
            ("150", "100", "50.00"),
            ("50", "100", "-50.00"),
            ("50", "-100", "150.00"),
            ("100", "0", "100.00"),
            ("0", "0", "0.00"),
            ("-5", "0", "0.00"),
        ],
    )
    def test_growth_percent(self, current, previous, expected):
        assert calculate_growth_percent(Decimal(current), Decimal(previous)) == Decimal(expected)

    def test_no_prior_year(self):
        assert calculate_growth_percent(Decimal("100"), None) == Decimal("0.00")


def test_quantize_money_rounds_half_up():
    assert quantize_money(Decimal("2.345")) == Decimal("2.35")
    assert quantize_money(Decimal("-2.345")) == Decimal("-2.35")
