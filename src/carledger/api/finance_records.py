"""Finance record API endpoints. Writes re-sync the record's month and year."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select

from carledger.api.dependencies import get_report_engine
from carledger.core.report_engine import ReportEngine
from carledger.models import FinanceRecord
from carledger.models.finance_record_schemas import (
    FinanceRecordCreate,
    FinanceRecordRead,
    FinanceRecordUpdate,
)

router = APIRouter(prefix="/finance-records", tags=["finance-records"])


@router.get("", response_model=list[FinanceRecordRead])
async def list_finance_records(
    limit: int = Query(100, ge=1, le=1000),
    engine: ReportEngine = Depends(get_report_engine),
):
    stmt = (
        select(FinanceRecord)
        .order_by(
            FinanceRecord.record_date.desc(),
            FinanceRecord.created_at.desc(),
            FinanceRecord.id.desc(),
        )
        .limit(limit)
    )
    result = await engine.writer.session.execute(stmt)
    return result.scalars().all()


@router.post("", response_model=FinanceRecordRead, status_code=status.HTTP_201_CREATED)
async def create_finance_record(
    payload: FinanceRecordCreate, engine: ReportEngine = Depends(get_report_engine)
):
    return await engine.writer.create_finance_record(**payload.model_dump())


@router.get("/{record_id}", response_model=FinanceRecordRead)
async def get_finance_record(record_id: UUID, engine: ReportEngine = Depends(get_report_engine)):
    return await engine.writer.get_finance_record(record_id)


@router.put("/{record_id}", response_model=FinanceRecordRead)
async def update_finance_record(
    record_id: UUID,
    payload: FinanceRecordUpdate,
    engine: ReportEngine = Depends(get_report_engine),
):
    record = await engine.writer.get_finance_record(record_id)
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in ("category", "description")
    }
    return await engine.writer.update_finance_record(record, **changes)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_finance_record(
    record_id: UUID, engine: ReportEngine = Depends(get_report_engine)
):
    record = await engine.writer.get_finance_record(record_id)
    await engine.writer.delete_finance_record(record)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
