"""Sales report API endpoints (read-only, plus explicit month re-sync)."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from carledger.api.dependencies import get_report_engine
from carledger.core.cascade import run_guarded
from carledger.core.errors import FactLookupError, NotFoundError, ValidationError
from carledger.core.logging import get_logger
from carledger.core.report_engine import ReportEngine
from carledger.core.report_generation import month_key, year_key
from carledger.core.validators import validate_date_range
from carledger.models.report_schemas import (
    DailySalesReportRead,
    MonthlySalesReportRead,
    RegenerationResponse,
    YearlySalesReportRead,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/daily", response_model=list[DailySalesReportRead])
async def list_daily_reports(
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    engine: ReportEngine = Depends(get_report_engine),
):
    """Daily reports, newest first, optionally limited to a date range."""
    try:
        validate_date_range(start_date, end_date)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    return await engine.store.list_daily(start_date, end_date)


@router.get("/daily/{report_date}", response_model=DailySalesReportRead)
async def get_daily_report(report_date: date, engine: ReportEngine = Depends(get_report_engine)):
    report = await engine.store.find_daily(report_date)
    if report is None:
        raise NotFoundError("DailySalesReport", report_date.isoformat())
    return report


@router.get("/monthly", response_model=list[MonthlySalesReportRead])
async def list_monthly_reports(
    year: int | None = Query(None, ge=1, le=9999),
    engine: ReportEngine = Depends(get_report_engine),
):
    return await engine.store.list_monthly(year)


@router.get("/monthly/{year}/{month}", response_model=MonthlySalesReportRead)
async def get_monthly_report(
    year: int, month: int, engine: ReportEngine = Depends(get_report_engine)
):
    period = month_key(year, month)
    report = await engine.store.find_monthly(period.year, period.month)
    if report is None:
        raise NotFoundError("MonthlySalesReport", str(period))
    return report


@router.post("/monthly/{year}/{month}/regenerate", response_model=RegenerationResponse)
async def regenerate_month(
    year: int, month: int, engine: ReportEngine = Depends(get_report_engine)
):
    """
    Recompute a month and its year from current facts.

    A failed recomputation is reported in the body rather than as an error
    status; nothing else in the request is rolled back.
    """
    period = month_key(year, month)
    result = await run_guarded(
        engine.store.session,
        "month_resync",
        {"year": period.year, "month": period.month, "trigger": "api"},
        lambda: engine.service.regenerate_reports_for_month(period.year, period.month),
        propagate=(FactLookupError,),
    )
    logger.info("report.month.regenerate_requested", period=str(period), ok=result.ok)
    return RegenerationResponse(year=period.year, month=period.month, ok=result.ok, error=result.error)


@router.get("/yearly", response_model=list[YearlySalesReportRead])
async def list_yearly_reports(engine: ReportEngine = Depends(get_report_engine)):
    return await engine.store.list_yearly()


@router.get("/yearly/{year}", response_model=YearlySalesReportRead)
async def get_yearly_report(year: int, engine: ReportEngine = Depends(get_report_engine)):
    period = year_key(year)
    report = await engine.store.find_yearly(period.year)
    if report is None:
        raise NotFoundError("YearlySalesReport", str(period))
    return report
