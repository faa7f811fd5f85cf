"""
Report cascade: which change recomputes which tier.

Cascade graph:
    CASCADE_GRAPH = {
        entity: CascadeEdge(handler_method_name, tiers_it_recomputes)
    }

    sale            -> daily report of the sale date (old and new date on a move)
    finance_record  -> monthly + yearly report of the record's month
    daily_report    -> monthly report of the same month
    monthly_report  -> yearly report of the same year
    yearly_report   -> nothing (terminal)

Writes to facts and report rows announce a ``ChangeEvent``; ``ReportCascade``
looks the entity up in the graph and runs the handler synchronously. Every
step runs inside a SAVEPOINT and returns a ``CascadeResult``. Failed results
are logged and discarded here, so a broken recomputation never fails or
rolls back the write that triggered it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Awaitable, Callable, NamedTuple

from sqlalchemy.ext.asyncio import AsyncSession

from carledger.core.logging import get_logger
from carledger.core.periods import MonthKey
from carledger.core.sentry import capture_report_failure
from carledger.models.enums import ChangeAction

if TYPE_CHECKING:
    from carledger.core.report_generation import ReportGenerationService

logger = get_logger(__name__)


class CascadeEntity(str, enum.Enum):
    """Tables whose changes are announced to the cascade."""

    SALE = "sale"
    FINANCE_RECORD = "finance_record"
    DAILY_REPORT = "daily_report"
    MONTHLY_REPORT = "monthly_report"
    YEARLY_REPORT = "yearly_report"


# Facts sit below every report tier
TIER_LEVEL = {
    CascadeEntity.SALE: 0,
    CascadeEntity.FINANCE_RECORD: 0,
    CascadeEntity.DAILY_REPORT: 1,
    CascadeEntity.MONTHLY_REPORT: 2,
    CascadeEntity.YEARLY_REPORT: 3,
}


class CascadeEdge(NamedTuple):
    handler: str
    recomputes: tuple[CascadeEntity, ...]


CASCADE_GRAPH: dict[CascadeEntity, CascadeEdge] = {
    CascadeEntity.SALE: CascadeEdge(
        "on_sale_changed", (CascadeEntity.DAILY_REPORT,)
    ),
    CascadeEntity.FINANCE_RECORD: CascadeEdge(
        "on_finance_record_changed",
        (CascadeEntity.MONTHLY_REPORT, CascadeEntity.YEARLY_REPORT),
    ),
    CascadeEntity.DAILY_REPORT: CascadeEdge(
        "on_daily_report_changed", (CascadeEntity.MONTHLY_REPORT,)
    ),
    CascadeEntity.MONTHLY_REPORT: CascadeEdge(
        "on_monthly_report_changed", (CascadeEntity.YEARLY_REPORT,)
    ),
}


def assert_graph_is_upward(graph: dict[CascadeEntity, CascadeEdge]) -> None:
    """Every edge must point to a strictly higher tier, which rules out cycles."""
    for source, edge in graph.items():
        for target in edge.recomputes:
            if TIER_LEVEL[target] <= TIER_LEVEL[source]:
                raise ValueError(
                    f"Cascade edge {source.value} -> {target.value} does not point upward"
                )


assert_graph_is_upward(CASCADE_GRAPH)


@dataclass(frozen=True)
class ChangeEvent:
    """
    A create/update/delete of a fact or report row.

    ``key`` is the row identity (fact id, report date, MonthKey or year).
    ``current`` describes the row after the change (for deletes: the removed
    row), ``previous`` the row before an update.
    """

    entity: CascadeEntity
    action: ChangeAction
    key: Any
    current: dict[str, Any] = field(default_factory=dict)
    previous: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CascadeResult:
    """Outcome of one guarded recomputation step."""

    step: str
    ok: bool
    context: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


async def run_guarded(
    session: AsyncSession,
    step: str,
    context: dict[str, Any],
    operation: Callable[[], Awaitable[Any]],
    propagate: tuple[type[BaseException], ...] = (),
) -> CascadeResult:
    """
    Run one recomputation inside a SAVEPOINT and turn failures into a result.

    Args:
        session: Session carrying the surrounding write
        step: Name of the step, for logs (e.g. "monthly_report")
        context: Period key and triggering fact, logged on failure
        operation: Zero-argument coroutine factory doing the work
        propagate: Exception types re-raised instead of captured

    Returns:
        CascadeResult with ok=False and the error message when the step failed
    """
    try:
        async with session.begin_nested():
            await operation()
    except propagate:
        raise
    except Exception as exc:
        logger.error(
            "cascade.step_failed",
            step=step,
            error=str(exc),
            error_type=type(exc).__name__,
            **{key: str(value) for key, value in context.items()},
        )
        capture_report_failure(step, exc, **context)
        return CascadeResult(step=step, ok=False, context=context, error=str(exc))
    return CascadeResult(step=step, ok=True, context=context)


class ReportCascade:
    """
    Dispatches change events to the recomputation they imply.

    Each handler:
    1. Works out the period(s) touched by the change
    2. Calls the matching ReportGenerationService entry point
    3. Returns one CascadeResult per step; failures are logged, never raised
    """

    def __init__(self, service: "ReportGenerationService"):
        self._service = service

    @property
    def _session(self) -> AsyncSession:
        return self._service.session

    async def dispatch(self, event: ChangeEvent) -> list[CascadeResult]:
        edge = CASCADE_GRAPH.get(event.entity)
        if edge is None:
            return []

        logger.info(
            "cascade.triggered",
            entity=event.entity.value,
            action=event.action.value,
            key=str(event.key),
            handler=edge.handler,
        )
        handler = getattr(self, edge.handler)
        results = await handler(event)

        failed = [result for result in results if not result.ok]
        if failed:
            logger.warning(
                "cascade.completed_with_failures",
                entity=event.entity.value,
                key=str(event.key),
                failed_steps=[result.step for result in failed],
            )
        return results

    async def _daily_for_sale(self, sale_date: date, event: ChangeEvent) -> CascadeResult:
        return await run_guarded(
            self._session,
            "daily_report",
            {
                "report_date": sale_date,
                "sale_id": event.key,
                "action": event.action.value,
            },
            lambda: self._service.generate_reports_for_sale(sale_date),
        )

    async def on_sale_changed(self, event: ChangeEvent) -> list[CascadeResult]:
        new_date = event.current["sale_date"]

        if event.action is not ChangeAction.UPDATED:
            return [await self._daily_for_sale(new_date, event)]

        old_date = event.previous.get("sale_date")
        if old_date is None or old_date == new_date:
            # Only a date move changes which daily rows the sale belongs to
            return []

        logger.info(
            "cascade.sale_date_moved",
            sale_id=str(event.key),
            old_date=str(old_date),
            new_date=str(new_date),
        )
        return [
            await self._daily_for_sale(old_date, event),
            await self._daily_for_sale(new_date, event),
        ]

    async def on_finance_record_changed(self, event: ChangeEvent) -> list[CascadeResult]:
        months = {MonthKey.of(event.current["record_date"])}
        if event.action is ChangeAction.UPDATED and event.previous.get("record_date"):
            months.add(MonthKey.of(event.previous["record_date"]))

        results = []
        for period in sorted(months):
            results.append(
                await run_guarded(
                    self._session,
                    "month_resync",
                    {
                        "year": period.year,
                        "month": period.month,
                        "finance_record_id": event.key,
                        "action": event.action.value,
                    },
                    lambda period=period: self._service.regenerate_reports_for_month(
                        period.year, period.month
                    ),
                )
            )
        return results

    async def on_daily_report_changed(self, event: ChangeEvent) -> list[CascadeResult]:
        period = MonthKey.of(event.key)
        result = await run_guarded(
            self._session,
            "monthly_report",
            {
                "year": period.year,
                "month": period.month,
                "report_date": event.key,
                "action": event.action.value,
            },
            lambda: self._service.generate_monthly_report(period.year, period.month),
        )
        return [result]

    async def on_monthly_report_changed(self, event: ChangeEvent) -> list[CascadeResult]:
        period: MonthKey = event.key
        result = await run_guarded(
            self._session,
            "yearly_report",
            {
                "year": period.year,
                "month": period.month,
                "action": event.action.value,
            },
            lambda: self._service.generate_yearly_report(period.year),
        )
        return [result]
