"""Order Merger - guest orders reviewed by staff and folded into the bill"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import identifiers
from app.core.exceptions import BillClosed, OrderNotFound, OrderNotPending
from app.core.logging import get_logger
from app.database import transaction
from app.models.enums import OrderStatus
from app.models.order import Order
from app.schemas.bill import BillItem
from app.schemas.order import OrderCreate, OrderItem
from app.services.bill_service import BillService, load_items
from app.utils.time import get_utc_now

logger = get_logger(__name__)


def order_item_to_bill_item(item: OrderItem) -> BillItem:
    """
    Convert an approved order item into a bill line item.
    Guest clients may omit the menu reference; the display name stands in for it.
    """
    return BillItem(
        id=identifiers.generate_item_id(),
        menu_item_id=item.menu_item_id or item.menu_item_name,
        name=item.menu_item_name,
        price=item.price,
        quantity=item.quantity,
    )


class OrderService:

    @staticmethod
    async def create_order(db: AsyncSession, bill_id: UUID, data: OrderCreate) -> Order:
        """
        Record a guest's proposed items against a bill. The bill is not touched.

        Raises:
            BillNotFound
            BillClosed: closed bills accept no new orders
        """
        async with transaction(db):
            bill = await BillService.get_bill(db, bill_id)
            if bill.is_closed:
                raise BillClosed(bill_id)
            order = Order(
                business_id=bill.business_id,
                bill_id=bill.id,
                order_number=identifiers.generate_order_number(bill.business_id),
                items=[item.model_dump(mode="json", exclude={"subtotal"}) for item in data.items],
                notes=data.notes,
                status=OrderStatus.PENDING,
            )
            db.add(order)
            await db.flush()

        logger.info(
            "Order created",
            extra={
                "order_id": order.id,
                "bill_id": bill_id,
                "business_id": order.business_id,
                "item_count": len(data.items),
            },
        )
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: UUID, for_update: bool = False) -> Order:
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(stmt)
        order = result.scalar_one_or_none()
        if not order:
            raise OrderNotFound(order_id)
        return order

    @staticmethod
    async def list_orders_for_bill(db: AsyncSession, bill_id: UUID) -> List[Order]:
        result = await db.execute(
            select(Order).where(Order.bill_id == bill_id).order_by(Order.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_orders(
        db: AsyncSession,
        business_id: UUID,
        status: Optional[OrderStatus] = None,
    ) -> List[Order]:
        stmt = select(Order).where(Order.business_id == business_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        result = await db.execute(stmt.order_by(Order.created_at.desc()))
        return list(result.scalars().all())

    @staticmethod
    async def approve_order(db: AsyncSession, order_id: UUID, approved_by: Optional[str] = None) -> Order:
        """
        Approve a pending order and append its items to the bill.

        The order status change and the bill update commit together: the
        bill is re-read under lock and recomputed with the business's current
        rates, so items added concurrently by another order are preserved.

        Raises:
            OrderNotFound
            OrderNotPending: already approved or rejected
            BillClosed: the bill was closed after the order was placed
        """
        async with transaction(db):
            order = await OrderService.get_order(db, order_id, for_update=True)
            if order.status != OrderStatus.PENDING:
                raise OrderNotPending(order_id, order.status)

            bill = await BillService.lock_bill(db, order.bill_id)
            if bill.is_closed:
                raise BillClosed(bill.id)

            new_items = [order_item_to_bill_item(OrderItem.model_validate(item)) for item in order.items]
            await BillService.write_items(db, bill, load_items(bill) + new_items)

            order.status = OrderStatus.APPROVED
            order.approved_by = approved_by
            order.approved_at = get_utc_now()
            await db.flush()

        logger.info(
            "Order approved",
            extra={
                "order_id": order_id,
                "bill_id": bill.id,
                "added_items": len(new_items),
                "total_amount": str(bill.total_amount),
            },
        )
        return order

    @staticmethod
    async def reject_order(db: AsyncSession, order_id: UUID, reason: Optional[str] = None) -> Order:
        """Reject a pending order. The bill is left untouched."""
        async with transaction(db):
            order = await OrderService.get_order(db, order_id, for_update=True)
            if order.status != OrderStatus.PENDING:
                raise OrderNotPending(order_id, order.status)
            order.status = OrderStatus.REJECTED
            order.rejected_reason = reason
            await db.flush()

        logger.info("Order rejected", extra={"order_id": order_id, "bill_id": order.bill_id})
        return order
