"""Factory classes for creating test facts.

Factories insert rows directly, without going through FactWriter, so no
report is generated. Tests that need the cascade use the writer instead.
"""

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from carledger.models import FinanceRecord, FinanceRecordType, Sale


class SaleFactory:
    """Factory for creating Sale objects."""

    @staticmethod
    async def create(
        session: AsyncSession,
        sale_date: date_type = date_type(2025, 1, 8),
        sale_price: Decimal = Decimal("25000.00"),
        purchase_cost: Decimal = Decimal("20000.00"),
        profit_loss: Optional[Decimal] = None,
        car_id: Optional[uuid.UUID] = None,
        created_at: Optional[datetime] = None,
        **kwargs,
    ) -> Sale:
        """Create a test sale. profit_loss defaults to price - cost."""
        sale = Sale(
            id=kwargs.get("id", uuid.uuid4()),
            car_id=car_id or uuid.uuid4(),
            buyer_id=kwargs.get("buyer_id", uuid.uuid4()),
            sale_price=sale_price,
            purchase_cost=purchase_cost,
            profit_loss=profit_loss if profit_loss is not None else sale_price - purchase_cost,
            sale_date=sale_date,
            notes=kwargs.get("notes"),
        )
        if created_at is not None:
            sale.created_at = created_at

        session.add(sale)
        await session.commit()

        return sale

    @staticmethod
    def values(
        sale_date: date_type,
        profit_loss: Decimal,
        sale_price: Decimal = Decimal("25000.00"),
        **kwargs,
    ) -> dict:
        """Keyword arguments for FactWriter.create_sale."""
        return {
            "car_id": kwargs.get("car_id", uuid.uuid4()),
            "buyer_id": kwargs.get("buyer_id", uuid.uuid4()),
            "sale_price": sale_price,
            "purchase_cost": sale_price - profit_loss,
            "profit_loss": profit_loss,
            "sale_date": sale_date,
        }


class FinanceRecordFactory:
    """Factory for creating FinanceRecord objects."""

    @staticmethod
    async def create(
        session: AsyncSession,
        record_date: date_type = date_type(2025, 6, 10),
        cost: Decimal = Decimal("1000.00"),
        type: FinanceRecordType = FinanceRecordType.EXPENSE,
        category: Optional[str] = "Rent",
        **kwargs,
    ) -> FinanceRecord:
        """Create a test finance record."""
        record = FinanceRecord(
            id=kwargs.get("id", uuid.uuid4()),
            type=type,
            category=category,
            cost=cost,
            record_date=record_date,
            description=kwargs.get("description"),
        )

        session.add(record)
        await session.commit()

        return record
