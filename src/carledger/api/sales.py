"""Sale API endpoints. Writes cascade into the daily, monthly and yearly reports."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import select

from carledger.api.dependencies import get_report_engine
from carledger.core.report_engine import ReportEngine
from carledger.models import Sale
from carledger.models.sale_schemas import SaleCreate, SaleRead, SaleUpdate

router = APIRouter(prefix="/sales", tags=["sales"])


@router.get("", response_model=list[SaleRead])
async def list_sales(
    limit: int = Query(100, ge=1, le=1000),
    engine: ReportEngine = Depends(get_report_engine),
):
    """Most recent sales first."""
    stmt = (
        select(Sale)
        .order_by(Sale.sale_date.desc(), Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
    )
    result = await engine.writer.session.execute(stmt)
    return result.scalars().all()


@router.post("", response_model=SaleRead, status_code=status.HTTP_201_CREATED)
async def create_sale(payload: SaleCreate, engine: ReportEngine = Depends(get_report_engine)):
    return await engine.writer.create_sale(**payload.model_dump())


@router.get("/{sale_id}", response_model=SaleRead)
async def get_sale(sale_id: UUID, engine: ReportEngine = Depends(get_report_engine)):
    return await engine.writer.get_sale(sale_id)


@router.put("/{sale_id}", response_model=SaleRead)
async def update_sale(
    sale_id: UUID,
    payload: SaleUpdate,
    engine: ReportEngine = Depends(get_report_engine),
):
    """Partial update. Moving sale_date regenerates both the old and the new day."""
    sale = await engine.writer.get_sale(sale_id)
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field == "notes"
    }
    return await engine.writer.update_sale(sale, **changes)


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sale(sale_id: UUID, engine: ReportEngine = Depends(get_report_engine)):
    sale = await engine.writer.get_sale(sale_id)
    await engine.writer.delete_sale(sale)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
