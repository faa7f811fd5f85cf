"""Keyed storage for the three report tiers and the generation tracker.

Rows are keyed by their natural period key (date, (year, month), year), so an
upsert can never produce a second row for a period. Each upsert reports
whether it created, changed or left the row alone; only created, changed and
deleted rows are announced to the cascade listeners.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Callable, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carledger.core.aggregation import DailyFigures, MonthlyFigures, YearlyFigures
from carledger.core.cascade import CascadeEntity, ChangeEvent
from carledger.core.errors import ReportStoreError
from carledger.core.logging import get_logger
from carledger.core.periods import MonthKey, YearKey
from carledger.models import (
    ChangeAction,
    DailySalesReport,
    MonthlySalesReport,
    ReportGenerationTracker,
    YearlySalesReport,
)

logger = get_logger(__name__)

ChangeListener = Callable[[ChangeEvent], Awaitable[Any]]

ReportT = TypeVar("ReportT")


class UpsertOutcome(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class UpsertResult(Generic[ReportT]):
    report: ReportT
    outcome: UpsertOutcome

    @property
    def changed(self) -> bool:
        return self.outcome is not UpsertOutcome.UNCHANGED


def apply_values(row: Any, values: dict[str, Any]) -> bool:
    """Copy values onto a row. Returns True if any column actually changed."""
    changed = False
    for column, value in values.items():
        if getattr(row, column) != value:
            setattr(row, column, value)
            changed = True
    return changed


class ReportStore:
    """Find/upsert/delete access to report rows, plus the tracker singleton."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    async def _notify(self, event: ChangeEvent) -> None:
        for listener in self._listeners:
            await listener(event)

    async def _flush(self, what: str, **context) -> None:
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("report_store.write_failed", what=what, error=str(e), **context)
            raise ReportStoreError(
                f"Could not write {what}",
                details={key: str(value) for key, value in context.items()},
            ) from e

    async def _upsert(
        self,
        model: type[ReportT],
        identity: Any,
        key_columns: dict[str, Any],
        values: dict[str, Any],
    ) -> UpsertResult[ReportT]:
        row = await self.session.get(model, identity)
        if row is None:
            row = model(**key_columns, **values)
            self.session.add(row)
            outcome = UpsertOutcome.CREATED
        elif apply_values(row, values):
            outcome = UpsertOutcome.UPDATED
        else:
            return UpsertResult(row, UpsertOutcome.UNCHANGED)

        await self._flush(model.__tablename__, **key_columns)
        return UpsertResult(row, outcome)

    # Daily tier

    async def find_daily(self, report_date: date) -> DailySalesReport | None:
        return await self.session.get(DailySalesReport, report_date)

    async def list_daily(
        self, start: date | None = None, end: date | None = None
    ) -> list[DailySalesReport]:
        stmt = select(DailySalesReport).order_by(DailySalesReport.report_date.desc())
        if start is not None:
            stmt = stmt.where(DailySalesReport.report_date >= start)
        if end is not None:
            stmt = stmt.where(DailySalesReport.report_date <= end)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def latest_daily(self) -> DailySalesReport | None:
        stmt = select(DailySalesReport).order_by(DailySalesReport.report_date.desc()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_daily(
        self, figures: DailyFigures, notify: bool = True
    ) -> UpsertResult[DailySalesReport]:
        result = await self._upsert(
            DailySalesReport,
            figures.report_date,
            {"report_date": figures.report_date},
            figures.as_values(),
        )
        if notify and result.changed:
            await self._notify(
                ChangeEvent(
                    entity=CascadeEntity.DAILY_REPORT,
                    action=_action_for(result.outcome),
                    key=figures.report_date,
                )
            )
        return result

    async def delete_daily(self, report_date: date, notify: bool = True) -> bool:
        row = await self.find_daily(report_date)
        if row is None:
            return False
        await self.session.delete(row)
        await self._flush("daily_sales_reports", report_date=report_date)
        if notify:
            await self._notify(
                ChangeEvent(
                    entity=CascadeEntity.DAILY_REPORT,
                    action=ChangeAction.DELETED,
                    key=report_date,
                )
            )
        return True

    # Monthly tier

    async def find_monthly(self, year: int, month: int) -> MonthlySalesReport | None:
        return await self.session.get(MonthlySalesReport, (year, month))

    async def list_monthly(self, year: int | None = None) -> list[MonthlySalesReport]:
        stmt = select(MonthlySalesReport).order_by(
            MonthlySalesReport.year.desc(), MonthlySalesReport.month.desc()
        )
        if year is not None:
            stmt = stmt.where(MonthlySalesReport.year == year)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def latest_monthly(self) -> MonthlySalesReport | None:
        stmt = (
            select(MonthlySalesReport)
            .order_by(MonthlySalesReport.year.desc(), MonthlySalesReport.month.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_monthly(
        self, figures: MonthlyFigures, notify: bool = True
    ) -> UpsertResult[MonthlySalesReport]:
        period = figures.period
        result = await self._upsert(
            MonthlySalesReport,
            (period.year, period.month),
            {"year": period.year, "month": period.month},
            figures.as_values(),
        )
        if notify and result.changed:
            await self._notify(
                ChangeEvent(
                    entity=CascadeEntity.MONTHLY_REPORT,
                    action=_action_for(result.outcome),
                    key=period,
                )
            )
        return result

    async def update_monthly_values(
        self, report: MonthlySalesReport, values: dict[str, Any], notify: bool = True
    ) -> bool:
        """Patch selected columns of an existing monthly row."""
        if not apply_values(report, values):
            return False
        await self._flush("monthly_sales_reports", year=report.year, month=report.month)
        if notify:
            await self._notify(
                ChangeEvent(
                    entity=CascadeEntity.MONTHLY_REPORT,
                    action=ChangeAction.UPDATED,
                    key=report.period,
                )
            )
        return True

    async def delete_monthly(self, year: int, month: int, notify: bool = True) -> bool:
        row = await self.find_monthly(year, month)
        if row is None:
            return False
        await self.session.delete(row)
        await self._flush("monthly_sales_reports", year=year, month=month)
        if notify:
            await self._notify(
                ChangeEvent(
                    entity=CascadeEntity.MONTHLY_REPORT,
                    action=ChangeAction.DELETED,
                    key=MonthKey(year, month),
                )
            )
        return True

    # Yearly tier

    async def find_yearly(self, year: int) -> YearlySalesReport | None:
        return await self.session.get(YearlySalesReport, year)

    async def list_yearly(self) -> list[YearlySalesReport]:
        stmt = select(YearlySalesReport).order_by(YearlySalesReport.year.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def latest_yearly(self) -> YearlySalesReport | None:
        stmt = select(YearlySalesReport).order_by(YearlySalesReport.year.desc()).limit(1)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_yearly(
        self, figures: YearlyFigures, notify: bool = True
    ) -> UpsertResult[YearlySalesReport]:
        period: YearKey = figures.period
        result = await self._upsert(
            YearlySalesReport,
            period.year,
            {"year": period.year},
            figures.as_values(),
        )
        if notify and result.changed:
            await self._notify(
                ChangeEvent(
                    entity=CascadeEntity.YEARLY_REPORT,
                    action=_action_for(result.outcome),
                    key=period,
                )
            )
        return result

    # Tracker singleton

    async def get_tracker(self) -> ReportGenerationTracker:
        """Load the tracker row, creating it on first use."""
        stmt = (
            select(ReportGenerationTracker)
            .order_by(ReportGenerationTracker.created_at, ReportGenerationTracker.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        tracker = result.scalar_one_or_none()
        if tracker is None:
            tracker = ReportGenerationTracker()
            self.session.add(tracker)
            await self._flush("report_generation_tracker")
            logger.info("tracker.created", tracker_id=str(tracker.id))
        return tracker

    async def save_tracker(self, tracker: ReportGenerationTracker) -> None:
        await self._flush("report_generation_tracker", tracker_id=tracker.id)


def _action_for(outcome: UpsertOutcome) -> ChangeAction:
    if outcome is UpsertOutcome.CREATED:
        return ChangeAction.CREATED
    return ChangeAction.UPDATED
