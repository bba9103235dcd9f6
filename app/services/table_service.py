"""Table and Counter Service - seating that a bill can be opened on"""

from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import identifiers
from app.core.exceptions import CounterNotFound, TableNotFound
from app.core.logging import get_logger
from app.database import transaction
from app.models.business import Counter, Table
from app.services.business_service import BusinessService
from app.services.identifier_service import IdentifierService

logger = get_logger(__name__)


class TableService:
    @staticmethod
    async def create_table(db: AsyncSession, business_id: UUID, name: str) -> Table:
        async with transaction(db):
            await BusinessService.get_business(db, business_id)
            table = await IdentifierService.insert_with_unique_identifier(
                db,
                "table code",
                Table.table_code,
                identifiers.generate_table_code,
                lambda code: Table(business_id=business_id, name=name, table_code=code, is_active=True),
            )
        logger.info(
            "Table created",
            extra={"business_id": business_id, "table_id": str(table.id), "table_code": table.table_code},
        )
        return table

    @staticmethod
    async def get_table(db: AsyncSession, table_id: UUID, for_update: bool = False) -> Table:
        stmt = select(Table).where(Table.id == table_id, Table.is_active.is_(True))
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        table = result.scalar_one_or_none()
        if not table:
            raise TableNotFound(table_id)
        return table

    @staticmethod
    async def get_table_by_code(db: AsyncSession, table_code: str) -> Table:
        result = await db.execute(
            select(Table).where(Table.table_code == table_code.upper(), Table.is_active.is_(True))
        )
        table = result.scalar_one_or_none()
        if not table:
            raise TableNotFound(table_code)
        return table

    @staticmethod
    async def list_tables(db: AsyncSession, business_id: UUID) -> List[Table]:
        result = await db.execute(
            select(Table)
            .where(Table.business_id == business_id, Table.is_active.is_(True))
            .order_by(Table.name)
        )
        return list(result.scalars().all())


class CounterService:
    @staticmethod
    async def get_counter(db: AsyncSession, counter_id: UUID, for_update: bool = False) -> Counter:
        stmt = select(Counter).where(Counter.id == counter_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        counter = result.scalar_one_or_none()
        if not counter:
            raise CounterNotFound(counter_id)
        return counter

    @staticmethod
    async def list_counters(db: AsyncSession, business_id: UUID) -> List[Counter]:
        result = await db.execute(
            select(Counter)
            .where(Counter.business_id == business_id)
            .order_by(Counter.counter_number)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_available_counters(db: AsyncSession, business_id: UUID) -> List[Counter]:
        """Active counters with no bill currently open on them"""
        result = await db.execute(
            select(Counter)
            .where(
                Counter.business_id == business_id,
                Counter.is_active.is_(True),
                Counter.current_bill_id.is_(None),
            )
            .order_by(Counter.counter_number)
        )
        return list(result.scalars().all())

    @staticmethod
    async def configure_counters(
        db: AsyncSession,
        business_id: UUID,
        enabled: bool,
        count: int,
        prefix: str = "C",
    ) -> List[Counter]:
        """
        Enable/disable walk-up counters for a business.

        Counters 1..count are created or reactivated and renamed ``{prefix}{n}``;
        counters numbered above ``count`` (or all, when disabled) are deactivated.
        Deactivation never detaches an open bill.
        """
        async with transaction(db):
            business = await BusinessService.get_business(db, business_id)
            business.counter_enabled = enabled
            business.counter_prefix = prefix

            existing = {c.counter_number: c for c in await CounterService.list_counters(db, business_id)}
            active_count = count if enabled else 0

            for number, counter in existing.items():
                if number > active_count:
                    counter.is_active = False

            for number in range(1, active_count + 1):
                counter = existing.get(number)
                if counter is None:
                    db.add(Counter(
                        business_id=business_id,
                        counter_number=number,
                        name=f"{prefix}{number}",
                        is_active=True,
                    ))
                else:
                    counter.name = f"{prefix}{number}"
                    counter.is_active = True
            await db.flush()

        logger.info(
            "Counters configured",
            extra={"business_id": business_id, "enabled": enabled, "count": active_count},
        )
        return await CounterService.list_counters(db, business_id)
