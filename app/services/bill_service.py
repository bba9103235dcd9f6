"""Bill Ledger - the single owner of a bill's items, totals and status.

Every mutation runs inside ``transaction(db)``: the bill row is re-read with
``SELECT ... FOR UPDATE`` immediately before the change is computed, and the
``version`` column rejects any write based on a stale read. Concurrent item
edits, order merges and payment reconciliations on the same bill therefore
serialize instead of overwriting each other.
"""

from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import identifiers
from app.core.exceptions import (
    BillAlreadyClosed,
    BillClosed,
    BillItemNotFound,
    BillNotFound,
    CounterAlreadyHasOpenBill,
    CounterNotFound,
    TableAlreadyHasOpenBill,
)
from app.core.logging import get_logger
from app.database import transaction
from app.models.billing import Bill
from app.models.business import Counter
from app.models.enums import BillStatus
from app.schemas.bill import BillItem, BillItemCreate
from app.services.business_service import BusinessService
from app.services.identifier_service import IdentifierService
from app.services.money_calculator import apply_totals, compute_totals
from app.services.table_service import CounterService, TableService
from app.utils.money import ZERO
from app.utils.time import get_utc_now

logger = get_logger(__name__)


def derive_status(bill: Bill) -> BillStatus:
    """Payment-driven status; a closed bill stays closed."""
    if bill.status == BillStatus.CLOSED:
        return BillStatus.CLOSED
    paid = bill.paid_amount or ZERO
    if paid > 0 and paid >= bill.total_amount:
        return BillStatus.PAID
    if paid > 0:
        return BillStatus.PARTIAL
    return BillStatus.OPEN


def build_bill_item(data: BillItemCreate) -> BillItem:
    return BillItem(
        id=identifiers.generate_item_id(),
        menu_item_id=data.menu_item_id,
        name=data.name,
        price=data.price,
        quantity=data.quantity,
        options=tuple(data.options),
    )


def load_items(bill: Bill) -> List[BillItem]:
    return [BillItem.model_validate(item) for item in bill.items or []]


class BillService:

    # Reads

    @staticmethod
    async def get_bill(db: AsyncSession, bill_id: UUID) -> Bill:
        result = await db.execute(select(Bill).where(Bill.id == bill_id))
        bill = result.scalar_one_or_none()
        if not bill:
            raise BillNotFound(bill_id)
        return bill

    @staticmethod
    async def lock_bill(db: AsyncSession, bill_id: UUID) -> Bill:
        """Re-read the bill row for update inside the caller's transaction."""
        result = await db.execute(
            select(Bill)
            .where(Bill.id == bill_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        bill = result.scalar_one_or_none()
        if not bill:
            raise BillNotFound(bill_id)
        return bill

    @staticmethod
    async def get_bill_by_number(db: AsyncSession, bill_number: str) -> Bill:
        result = await db.execute(select(Bill).where(Bill.bill_number == bill_number))
        bill = result.scalar_one_or_none()
        if not bill:
            raise BillNotFound(bill_number)
        return bill

    @staticmethod
    async def get_open_bill_for_table(db: AsyncSession, table_id: UUID) -> Optional[Bill]:
        result = await db.execute(
            select(Bill).where(Bill.table_id == table_id, Bill.closed_at.is_(None))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def get_open_bill_for_counter(db: AsyncSession, counter_id: UUID) -> Optional[Bill]:
        result = await db.execute(
            select(Bill).where(Bill.counter_id == counter_id, Bill.closed_at.is_(None))
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def list_bills(
        db: AsyncSession,
        business_id: UUID,
        status: Optional[BillStatus] = None,
    ) -> List[Bill]:
        stmt = select(Bill).where(Bill.business_id == business_id)
        if status is not None:
            stmt = stmt.where(Bill.status == status)
        result = await db.execute(stmt.order_by(Bill.created_at.desc()))
        return list(result.scalars().all())

    # Creation

    @staticmethod
    async def _insert_bill(
        db: AsyncSession,
        business_id: UUID,
        items: Sequence[BillItem],
        table_id: Optional[UUID] = None,
        counter_id: Optional[UUID] = None,
        notes: Optional[str] = None,
    ) -> Bill:
        business = await BusinessService.get_business(db, business_id)
        totals = compute_totals(items, business.tax_rate, business.service_fee_rate)

        def build(bill_number: str) -> Bill:
            bill = Bill(
                business_id=business_id,
                table_id=table_id,
                counter_id=counter_id,
                bill_number=bill_number,
                items=[item.model_dump(mode="json") for item in items],
                paid_amount=ZERO,
                tip_amount=ZERO,
                status=BillStatus.OPEN,
                settlement_address=business.settlement_address,
                tipping_address=business.tipping_address,
                notes=notes,
            )
            apply_totals(bill, totals)
            return bill

        return await IdentifierService.insert_with_unique_identifier(
            db,
            "bill number",
            Bill.bill_number,
            lambda: identifiers.generate_bill_number(business_id),
            build,
        )

    @staticmethod
    async def create_bill(
        db: AsyncSession,
        table_id: UUID,
        items: Iterable[BillItemCreate] = (),
        notes: Optional[str] = None,
    ) -> Bill:
        """
        Open a bill on a table.

        Raises:
            TableNotFound: no active table with this id
            TableAlreadyHasOpenBill: the table's previous bill is not closed yet
        """
        bill_items = [build_bill_item(item) for item in items]
        async with transaction(db):
            table = await TableService.get_table(db, table_id, for_update=True)
            existing = await BillService.get_open_bill_for_table(db, table_id)
            if existing:
                raise TableAlreadyHasOpenBill(table_id, existing.id)
            try:
                bill = await BillService._insert_bill(
                    db, table.business_id, bill_items, table_id=table_id, notes=notes
                )
            except IntegrityError as exc:
                # Lost the race against a concurrent create for the same table
                raise TableAlreadyHasOpenBill(table_id) from exc

        logger.info(
            "Bill created",
            extra={
                "bill_id": bill.id,
                "business_id": bill.business_id,
                "bill_number": bill.bill_number,
                "table_id": str(table_id),
                "total_amount": str(bill.total_amount),
            },
        )
        return bill

    @staticmethod
    async def open_counter_bill(
        db: AsyncSession,
        counter_id: UUID,
        items: Iterable[BillItemCreate] = (),
        notes: Optional[str] = None,
    ) -> Bill:
        """Open a walk-up bill on a counter and mark the counter as occupied."""
        bill_items = [build_bill_item(item) for item in items]
        async with transaction(db):
            counter = await CounterService.get_counter(db, counter_id, for_update=True)
            if not counter.is_active:
                raise CounterNotFound(counter_id)
            if counter.current_bill_id is not None:
                raise CounterAlreadyHasOpenBill(counter_id, counter.current_bill_id)
            try:
                bill = await BillService._insert_bill(
                    db, counter.business_id, bill_items, counter_id=counter_id, notes=notes
                )
            except IntegrityError as exc:
                raise CounterAlreadyHasOpenBill(counter_id) from exc
            counter.current_bill_id = bill.id
            await db.flush()

        logger.info(
            "Counter bill created",
            extra={"bill_id": bill.id, "business_id": bill.business_id, "counter_id": str(counter_id)},
        )
        return bill

    # Item mutation

    @staticmethod
    async def write_items(db: AsyncSession, bill: Bill, items: Sequence[BillItem]) -> Bill:
        """Write a new item sequence onto a bill already locked by the caller."""
        if bill.is_closed:
            raise BillClosed(bill.id)
        tax_rate, service_fee_rate = await BusinessService.get_rates(db, bill.business_id)
        bill.items = [item.model_dump(mode="json") for item in items]
        apply_totals(bill, compute_totals(items, tax_rate, service_fee_rate))
        bill.status = derive_status(bill)
        await db.flush()
        return bill

    @staticmethod
    async def replace_items(db: AsyncSession, bill_id: UUID, items: Sequence[BillItem]) -> Bill:
        """
        Replace the bill's whole item sequence and recompute totals.

        Raises:
            BillNotFound
            BillClosed: the bill no longer accepts changes
        """
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            await BillService.write_items(db, bill, list(items))
        logger.info(
            "Bill items replaced",
            extra={"bill_id": bill_id, "item_count": len(items), "total_amount": str(bill.total_amount)},
        )
        return bill

    @staticmethod
    async def add_item(db: AsyncSession, bill_id: UUID, data: BillItemCreate) -> Bill:
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            items = load_items(bill) + [build_bill_item(data)]
            await BillService.write_items(db, bill, items)
        logger.info("Bill item added", extra={"bill_id": bill_id, "menu_item_id": data.menu_item_id})
        return bill

    @staticmethod
    async def update_item_quantity(db: AsyncSession, bill_id: UUID, item_id: str, quantity: int) -> Bill:
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            items = load_items(bill)
            for index, item in enumerate(items):
                if item.id == item_id:
                    items[index] = item.model_copy(update={"quantity": quantity})
                    break
            else:
                raise BillItemNotFound(item_id)
            await BillService.write_items(db, bill, items)
        logger.info("Bill item updated", extra={"bill_id": bill_id, "item_id": item_id, "quantity": quantity})
        return bill

    @staticmethod
    async def remove_item(db: AsyncSession, bill_id: UUID, item_id: str) -> Bill:
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            items = load_items(bill)
            remaining = [item for item in items if item.id != item_id]
            if len(remaining) == len(items):
                raise BillItemNotFound(item_id)
            await BillService.write_items(db, bill, remaining)
        logger.info("Bill item removed", extra={"bill_id": bill_id, "item_id": item_id})
        return bill

    # Closure

    @staticmethod
    async def close_bill(db: AsyncSession, bill_id: UUID) -> Bill:
        """
        Close the tab. Allowed before or after the bill is fully paid.
        A counter holding this bill is released in the same transaction.

        Raises:
            BillAlreadyClosed: surfaced rather than ignored so double-close bugs are visible
        """
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            if bill.is_closed:
                raise BillAlreadyClosed(bill_id)
            bill.status = BillStatus.CLOSED
            bill.closed_at = get_utc_now()
            if bill.counter_id is not None:
                result = await db.execute(
                    select(Counter).where(Counter.current_bill_id == bill.id).with_for_update()
                )
                for counter in result.scalars().all():
                    counter.current_bill_id = None
            await db.flush()

        logger.info(
            "Bill closed",
            extra={
                "bill_id": bill_id,
                "total_amount": str(bill.total_amount),
                "paid_amount": str(bill.paid_amount),
            },
        )
        return bill
