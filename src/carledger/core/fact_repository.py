"""Access to the two fact streams: sales and finance records.

``FactRepository`` is the read side the report engine consumes. Every list
is returned in an explicit, stable order (date, insertion time, id) so that
tie-breaks in the aggregation functions never depend on the database's
incidental row order.

``FactWriter`` is the write path used by the API. Each create, update or
delete is flushed and then announced to the subscribed listeners, which is
how the report cascade runs inside the same request.
"""

from datetime import date
from typing import Any, Awaitable, Callable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from carledger.core.cascade import CascadeEntity, ChangeEvent
from carledger.core.errors import FactLookupError, NotFoundError, ValidationError
from carledger.core.logging import get_logger
from carledger.models import ChangeAction, FinanceRecord, FinanceRecordType, Sale

logger = get_logger(__name__)

ChangeListener = Callable[[ChangeEvent], Awaitable[Any]]

SALE_ORDER = (Sale.sale_date, Sale.created_at, Sale.id)
FINANCE_ORDER = (FinanceRecord.record_date, FinanceRecord.created_at, FinanceRecord.id)

# Included in reports; a sale keeps them for its whole life
SALE_MONEY_FIELDS = frozenset({"sale_price", "purchase_cost", "profit_loss"})


class FactRepository:
    """Read-only queries over sales and finance records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _scalars(self, stmt, what: str, **context) -> list:
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("facts.lookup_failed", what=what, error=str(e), **context)
            raise FactLookupError(
                f"Could not read {what}",
                details={key: str(value) for key, value in context.items()},
            ) from e
        return list(result.scalars().all())

    async def list_sales_on(self, sale_date: date) -> list[Sale]:
        """All sales dated ``sale_date``."""
        stmt = select(Sale).where(Sale.sale_date == sale_date).order_by(*SALE_ORDER)
        return await self._scalars(stmt, "sales", sale_date=sale_date)

    async def list_sales_between(self, start: date, end: date) -> list[Sale]:
        """All sales with start <= sale_date <= end."""
        stmt = (
            select(Sale)
            .where(Sale.sale_date >= start, Sale.sale_date <= end)
            .order_by(*SALE_ORDER)
        )
        return await self._scalars(stmt, "sales", start=start, end=end)

    async def list_sale_dates_between(self, start: date, end: date) -> list[date]:
        """Distinct sale dates in the range, ascending."""
        stmt = (
            select(Sale.sale_date)
            .where(Sale.sale_date >= start, Sale.sale_date <= end)
            .distinct()
            .order_by(Sale.sale_date)
        )
        return await self._scalars(stmt, "sale dates", start=start, end=end)

    async def list_finance_records_between(self, start: date, end: date) -> list[FinanceRecord]:
        """All finance records with start <= record_date <= end."""
        stmt = (
            select(FinanceRecord)
            .where(FinanceRecord.record_date >= start, FinanceRecord.record_date <= end)
            .order_by(*FINANCE_ORDER)
        )
        return await self._scalars(stmt, "finance records", start=start, end=end)


def _sale_snapshot(sale: Sale) -> dict[str, Any]:
    return {
        "sale_id": sale.id,
        "car_id": sale.car_id,
        "sale_date": sale.sale_date,
    }


def _finance_snapshot(record: FinanceRecord) -> dict[str, Any]:
    return {
        "finance_record_id": record.id,
        "type": record.type,
        "record_date": record.record_date,
    }


class FactWriter:
    """Create, update and delete facts, announcing each change to listeners."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    async def _notify(self, event: ChangeEvent) -> None:
        for listener in self._listeners:
            await listener(event)

    async def get_sale(self, sale_id: UUID) -> Sale:
        sale = await self.session.get(Sale, sale_id)
        if sale is None:
            raise NotFoundError("Sale", str(sale_id))
        return sale

    async def get_finance_record(self, record_id: UUID) -> FinanceRecord:
        record = await self.session.get(FinanceRecord, record_id)
        if record is None:
            raise NotFoundError("FinanceRecord", str(record_id))
        return record

    async def create_sale(self, **values: Any) -> Sale:
        """Insert a sale. profit_loss defaults to sale_price - purchase_cost."""
        if values.get("profit_loss") is None:
            values["profit_loss"] = values["sale_price"] - values["purchase_cost"]

        sale = Sale(**values)
        self.session.add(sale)
        await self.session.flush()

        logger.info(
            "sale.created",
            sale_id=str(sale.id),
            car_id=str(sale.car_id),
            sale_date=str(sale.sale_date),
        )
        await self._notify(
            ChangeEvent(
                entity=CascadeEntity.SALE,
                action=ChangeAction.CREATED,
                key=sale.id,
                current=_sale_snapshot(sale),
            )
        )
        return sale

    async def update_sale(self, sale: Sale, **changes: Any) -> Sale:
        """
        Apply changes to a sale.

        Money fields are fixed once the sale is recorded; only sale_date and
        notes may change. A wrong amount is corrected by deleting the sale and
        recording it again.

        Raises:
            ValidationError: If a money field is among the changes
        """
        locked = sorted(SALE_MONEY_FIELDS.intersection(changes))
        if locked:
            raise ValidationError(
                f"Sale amounts cannot be changed: {', '.join(locked)}",
                details={"sale_id": str(sale.id), "fields": locked},
            )

        previous = _sale_snapshot(sale)
        for field, value in changes.items():
            setattr(sale, field, value)
        await self.session.flush()

        logger.info("sale.updated", sale_id=str(sale.id), fields=sorted(changes))
        await self._notify(
            ChangeEvent(
                entity=CascadeEntity.SALE,
                action=ChangeAction.UPDATED,
                key=sale.id,
                current=_sale_snapshot(sale),
                previous=previous,
            )
        )
        return sale

    async def delete_sale(self, sale: Sale) -> None:
        snapshot = _sale_snapshot(sale)
        await self.session.delete(sale)
        await self.session.flush()

        logger.info("sale.deleted", sale_id=str(snapshot["sale_id"]))
        await self._notify(
            ChangeEvent(
                entity=CascadeEntity.SALE,
                action=ChangeAction.DELETED,
                key=snapshot["sale_id"],
                current=snapshot,
            )
        )

    async def create_finance_record(self, **values: Any) -> FinanceRecord:
        record = FinanceRecord(**values)
        self.session.add(record)
        await self.session.flush()

        logger.info(
            "finance_record.created",
            finance_record_id=str(record.id),
            type=FinanceRecordType(record.type).value,
            record_date=str(record.record_date),
        )
        await self._notify(
            ChangeEvent(
                entity=CascadeEntity.FINANCE_RECORD,
                action=ChangeAction.CREATED,
                key=record.id,
                current=_finance_snapshot(record),
            )
        )
        return record

    async def update_finance_record(self, record: FinanceRecord, **changes: Any) -> FinanceRecord:
        previous = _finance_snapshot(record)

        for field, value in changes.items():
            setattr(record, field, value)
        await self.session.flush()

        logger.info("finance_record.updated", finance_record_id=str(record.id), fields=sorted(changes))
        await self._notify(
            ChangeEvent(
                entity=CascadeEntity.FINANCE_RECORD,
                action=ChangeAction.UPDATED,
                key=record.id,
                current=_finance_snapshot(record),
                previous=previous,
            )
        )
        return record

    async def delete_finance_record(self, record: FinanceRecord) -> None:
        snapshot = _finance_snapshot(record)
        await self.session.delete(record)
        await self.session.flush()

        logger.info("finance_record.deleted", finance_record_id=str(snapshot["finance_record_id"]))
        await self._notify(
            ChangeEvent(
                entity=CascadeEntity.FINANCE_RECORD,
                action=ChangeAction.DELETED,
                key=snapshot["finance_record_id"],
                current=snapshot,
            )
        )
