"""
Report generation service: recomputes the daily, monthly and yearly tiers.

Tier entry points:
    generate_daily_report(date)         -> sales of that date
    generate_monthly_report(year, month) -> sales + finance records of the month
    generate_yearly_report(year)        -> sales + finance records of the year

Every tier is recomputed from raw facts, never from the tier below, and
written with an upsert, so calling any entry point twice leaves the same
stored state. With ``cascade=True`` the upsert announces the change and the
report cascade recomputes the next tier up. Multi-tier paths
(regenerate_reports_for_month, force_generate_reports_for_date, auto
generation) pass ``cascade=False`` for the lower tiers and run the upper
tiers themselves.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from carledger.core.aggregation import (
    aggregate_daily,
    aggregate_finance_for_period,
    aggregate_monthly,
    aggregate_yearly,
    quantize_money,
)
from carledger.core.cascade import run_guarded
from carledger.core.errors import FactLookupError, ValidationError
from carledger.core.fact_repository import FactRepository
from carledger.core.logging import get_logger
from carledger.core.periods import (
    MonthKey,
    YearKey,
    days_after,
    months_after,
    years_after,
)
from carledger.core.report_store import ReportStore
from carledger.core.tracker import GenerationTracker, Watermarks
from carledger.core.validators import validate_date_range
from carledger.models import DailySalesReport, MonthlySalesReport, YearlySalesReport
from carledger.utils.datetime import today_local

logger = get_logger(__name__)


def month_key(year: int, month: int) -> MonthKey:
    try:
        return MonthKey(year, month)
    except ValueError as e:
        raise ValidationError(str(e), details={"year": year, "month": month}) from e


def year_key(year: int) -> YearKey:
    try:
        return YearKey(year)
    except ValueError as e:
        raise ValidationError(str(e), details={"year": year}) from e


@dataclass(frozen=True)
class ReportPresence:
    """Which tiers already have a row covering ``report_date``."""

    report_date: date
    daily: bool
    monthly: bool
    yearly: bool

    @property
    def complete(self) -> bool:
        return self.daily and self.monthly and self.yearly

    @property
    def missing(self) -> list[str]:
        return [
            tier
            for tier, present in (
                ("daily", self.daily),
                ("monthly", self.monthly),
                ("yearly", self.yearly),
            )
            if not present
        ]


@dataclass(frozen=True)
class PeriodOutcome:
    tier: str
    period: str
    ok: bool
    error: str | None = None


@dataclass
class BackfillSummary:
    """Result of a check-missing run.

    A dry run fills ``planned`` with one entry per sale date, each of which a
    real run regenerates; ``missing`` narrows that to the dates with an
    absent row.
    """

    from_date: date
    to_date: date
    dry_run: bool
    sale_dates: list[date] = field(default_factory=list)
    planned: list[ReportPresence] = field(default_factory=list)
    outcomes: list[PeriodOutcome] = field(default_factory=list)

    @property
    def missing(self) -> list[ReportPresence]:
        return [presence for presence in self.planned if not presence.complete]

    @property
    def generated(self) -> list[PeriodOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> list[PeriodOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


@dataclass(frozen=True)
class FinanceCostUpdate:
    """Per-row result of re-syncing a monthly report's finance figures."""

    period: MonthKey
    previous_total: Decimal
    new_total: Decimal
    status: str  # "updated", "unchanged" or "failed"
    error: str | None = None


@dataclass
class AutoGenerationSummary:
    today: date
    outcomes: list[PeriodOutcome] = field(default_factory=list)
    watermarks: Watermarks | None = None

    @property
    def generated(self) -> list[PeriodOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]

    @property
    def failed(self) -> list[PeriodOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]


class ReportGenerationService:
    """
    Computes and stores sales reports from sales and finance records.

    Args:
        facts: Read access to sales and finance records
        store: Report rows and the tracker singleton
        tracker: Watermarks used by the bulk/scheduled path only
        clock: Returns "today" in the application timezone
    """

    def __init__(
        self,
        facts: FactRepository,
        store: ReportStore,
        tracker: GenerationTracker,
        clock: Callable[[], date] = today_local,
    ):
        self._facts = facts
        self._store = store
        self._tracker = tracker
        self._clock = clock

    @property
    def session(self) -> AsyncSession:
        return self._store.session

    async def generate_daily_report(
        self, report_date: date, cascade: bool = True
    ) -> DailySalesReport:
        """Recompute and upsert the daily report. Produces a zeroed row with no sales."""
        sales = await self._facts.list_sales_on(report_date)
        figures = aggregate_daily(report_date, sales)
        result = await self._store.upsert_daily(figures, notify=cascade)

        logger.info(
            "report.daily.generated",
            report_date=str(report_date),
            outcome=result.outcome.value,
            total_sales=figures.total_sales,
            total_profit=str(figures.total_profit),
        )
        return result.report

    async def generate_monthly_report(
        self, year: int, month: int, cascade: bool = True
    ) -> MonthlySalesReport:
        """Recompute the month from its sales and finance records, then upsert it."""
        period = month_key(year, month)
        sales = await self._facts.list_sales_between(period.start, period.end)
        entries = await self._facts.list_finance_records_between(period.start, period.end)

        figures = aggregate_monthly(period, sales, entries)
        result = await self._store.upsert_monthly(figures, notify=cascade)

        logger.info(
            "report.monthly.generated",
            period=str(period),
            outcome=result.outcome.value,
            total_sales=figures.total_sales,
            total_profit=str(figures.total_profit),
            total_finance_cost=str(figures.total_finance_cost),
            net_profit=str(figures.net_profit),
        )
        return result.report

    async def generate_yearly_report(
        self, year: int, refresh_next: bool = True
    ) -> YearlySalesReport:
        """
        Recompute the year from its sales and finance records.

        Finance figures come straight from the year's finance records, and
        yoy_growth compares against the stored report of the prior year.
        When this year's row changes and a row for the following year is
        already stored, that row is recomputed too so its yoy_growth follows.
        The refresh goes one year forward only.
        """
        period = year_key(year)
        sales = await self._facts.list_sales_between(period.start, period.end)
        entries = await self._facts.list_finance_records_between(period.start, period.end)

        prior = await self._store.find_yearly(year - 1) if year > 1 else None
        prior_profit = prior.total_profit if prior is not None else None

        figures = aggregate_yearly(period, sales, entries, prior_year_profit=prior_profit)
        result = await self._store.upsert_yearly(figures)

        logger.info(
            "report.yearly.generated",
            year=year,
            outcome=result.outcome.value,
            total_sales=figures.total_sales,
            total_profit=str(figures.total_profit),
            yoy_growth=str(figures.yoy_growth),
        )

        if refresh_next and result.changed:
            if await self._store.find_yearly(year + 1) is not None:
                await self.generate_yearly_report(year + 1, refresh_next=False)
        return result.report

    async def generate_reports_for_sale(self, sale_date: date) -> DailySalesReport:
        """Recompute the daily report of a sale; the cascade carries it upward."""
        return await self.generate_daily_report(sale_date)

    async def regenerate_reports_for_month(
        self, year: int, month: int
    ) -> tuple[MonthlySalesReport, YearlySalesReport]:
        """Re-sync one month and its year explicitly, outside the cascade."""
        monthly = await self.generate_monthly_report(year, month, cascade=False)
        yearly = await self.generate_yearly_report(year)
        logger.info("report.month.regenerated", year=year, month=month)
        return monthly, yearly

    async def force_generate_reports_for_date(
        self, report_date: date
    ) -> tuple[DailySalesReport, MonthlySalesReport, YearlySalesReport]:
        """Daily, monthly and yearly rows for a date, bottom-up, ignoring the tracker."""
        daily = await self.generate_daily_report(report_date, cascade=False)
        monthly = await self.generate_monthly_report(
            report_date.year, report_date.month, cascade=False
        )
        yearly = await self.generate_yearly_report(report_date.year)
        return daily, monthly, yearly

    async def check_reports_exist(self, report_date: date) -> ReportPresence:
        return ReportPresence(
            report_date=report_date,
            daily=await self._store.find_daily(report_date) is not None,
            monthly=await self._store.find_monthly(report_date.year, report_date.month)
            is not None,
            yearly=await self._store.find_yearly(report_date.year) is not None,
        )

    async def get_missing_reports(self, from_date: date, to_date: date) -> list[ReportPresence]:
        """Sale dates in the range whose daily, monthly or yearly row is absent."""
        missing = []
        for sale_date in await self._facts.list_sale_dates_between(from_date, to_date):
            presence = await self.check_reports_exist(sale_date)
            if not presence.complete:
                missing.append(presence)
        return missing

    async def backfill_reports(
        self, from_date: date, to_date: date, dry_run: bool = False
    ) -> BackfillSummary:
        """
        Regenerate every tier for each distinct sale date in the range.

        Does not consult or move the tracker. A failing date is logged and
        skipped; a fact lookup failure aborts the whole run.

        Args:
            from_date: First date to scan (inclusive)
            to_date: Last date to scan (inclusive)
            dry_run: List every sale date with the rows it lacks, write nothing

        Returns:
            BackfillSummary with one outcome per processed date
        """
        try:
            validate_date_range(from_date, to_date)
        except ValueError as e:
            raise ValidationError(
                str(e), details={"from_date": str(from_date), "to_date": str(to_date)}
            ) from e

        summary = BackfillSummary(from_date=from_date, to_date=to_date, dry_run=dry_run)
        summary.sale_dates = await self._facts.list_sale_dates_between(from_date, to_date)

        if dry_run:
            for sale_date in summary.sale_dates:
                summary.planned.append(await self.check_reports_exist(sale_date))
            return summary

        for sale_date in summary.sale_dates:
            result = await run_guarded(
                self.session,
                "backfill",
                {"report_date": sale_date},
                lambda sale_date=sale_date: self.force_generate_reports_for_date(sale_date),
                propagate=(FactLookupError,),
            )
            summary.outcomes.append(
                PeriodOutcome("date", str(sale_date), result.ok, result.error)
            )

        logger.info(
            "report.backfill.completed",
            from_date=str(from_date),
            to_date=str(to_date),
            sale_dates=len(summary.sale_dates),
            generated=len(summary.generated),
            failed=len(summary.failed),
        )
        return summary

    async def initialize_tracker(self) -> Watermarks:
        """Point every watermark at the latest existing row of its tier, or None."""
        latest_daily = await self._store.latest_daily()
        latest_monthly = await self._store.latest_monthly()
        latest_yearly = await self._store.latest_yearly()

        marks = await self._tracker.set_watermarks(
            Watermarks(
                daily=latest_daily.report_date if latest_daily else None,
                monthly=latest_monthly.period if latest_monthly else None,
                yearly=latest_yearly.period if latest_yearly else None,
            )
        )
        logger.info(
            "tracker.initialized",
            daily=str(marks.daily),
            monthly=str(marks.monthly),
            yearly=str(marks.yearly),
        )
        return marks

    async def update_monthly_finance_costs(self) -> list[FinanceCostUpdate]:
        """
        Re-sync finance figures of every stored monthly report.

        Only finance_cost, total_finance_cost and net_profit are rewritten;
        sales figures are left alone. Changed rows are announced so their
        yearly report follows.
        """
        updates = []
        reports = sorted(await self._store.list_monthly(), key=lambda report: report.period)

        for report in reports:
            period = report.period
            previous_total = report.total_finance_cost
            changed = []

            async def resync(report=report, period=period, changed=changed):
                entries = await self._facts.list_finance_records_between(period.start, period.end)
                finance = aggregate_finance_for_period(entries)
                total_finance_cost = quantize_money(finance.net)
                changed.append(
                    await self._store.update_monthly_values(
                        report,
                        {
                            "finance_cost": quantize_money(finance.expense_total),
                            "total_finance_cost": total_finance_cost,
                            "net_profit": report.total_profit - total_finance_cost,
                        },
                    )
                )

            result = await run_guarded(
                self.session,
                "monthly_finance_costs",
                {"year": period.year, "month": period.month},
                resync,
                propagate=(FactLookupError,),
            )
            if not result.ok:
                updates.append(
                    FinanceCostUpdate(period, previous_total, previous_total, "failed", result.error)
                )
                continue

            status = "updated" if changed[0] else "unchanged"
            updates.append(
                FinanceCostUpdate(period, previous_total, report.total_finance_cost, status)
            )
            logger.info(
                "report.monthly.finance_costs_synced",
                period=str(period),
                status=status,
                total_finance_cost=str(report.total_finance_cost),
            )
        return updates

    async def _run_periods(
        self,
        tier: str,
        periods: list,
        generate: Callable[[object], Awaitable[object]],
        summary: AutoGenerationSummary,
    ):
        """Generate periods in order; returns the last one of the leading run of successes."""
        last_good = None
        broken = False
        for period in periods:
            result = await run_guarded(
                self.session,
                f"auto_{tier}",
                {"period": period},
                lambda period=period: generate(period),
                propagate=(FactLookupError,),
            )
            summary.outcomes.append(PeriodOutcome(tier, str(period), result.ok, result.error))
            if not result.ok:
                broken = True
            elif not broken:
                last_good = period
        return last_good

    async def auto_generate_reports_for_new_period(
        self, today: date | None = None
    ) -> AutoGenerationSummary:
        """
        Generate every period the tracker has not covered yet, then advance it.

        Days after the daily watermark up to today; months after the monthly
        watermark up to the current month plus the months of those days; the
        same at year granularity. With no watermark only the current period
        of that tier is generated.
        """
        today = today or self._clock()
        marks = await self._tracker.watermarks()
        summary = AutoGenerationSummary(today=today)

        days = list(days_after(marks.daily, today))
        months = set(months_after(marks.monthly, MonthKey.of(today)))
        months.update(MonthKey.of(day) for day in days)
        years = set(years_after(marks.yearly, YearKey.of(today)))
        years.update(period.year_key for period in months)

        logger.info(
            "report.auto_generation.started",
            today=str(today),
            days=len(days),
            months=len(months),
            years=len(years),
        )

        last_day = await self._run_periods(
            "daily",
            days,
            lambda day: self.generate_daily_report(day, cascade=False),
            summary,
        )
        last_month = await self._run_periods(
            "monthly",
            sorted(months),
            lambda period: self.generate_monthly_report(period.year, period.month, cascade=False),
            summary,
        )
        last_year = await self._run_periods(
            "yearly",
            sorted(years),
            lambda period: self.generate_yearly_report(period.year),
            summary,
        )

        if last_day is not None:
            await self._tracker.advance_daily(last_day)
        if last_month is not None:
            await self._tracker.advance_monthly(last_month)
        if last_year is not None:
            await self._tracker.advance_yearly(last_year)

        summary.watermarks = await self._tracker.watermarks()
        logger.info(
            "report.auto_generation.completed",
            today=str(today),
            generated=len(summary.generated),
            failed=len(summary.failed),
        )
        return summary
