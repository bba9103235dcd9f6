"""Integration tests: guest orders merged into bills."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from app.core.exceptions import BillClosed, OrderNotFound, OrderNotPending, PersistenceError
from app.models.enums import OrderStatus
from app.schemas.business import BusinessRatesUpdate
from app.schemas.order import OrderCreate, OrderItem
from app.services.bill_service import BillService, load_items
from app.services.business_service import BusinessService
from app.services.order_service import OrderService
from tests.conftest import make_item


def _order(*items: OrderItem) -> OrderCreate:
    return OrderCreate(items=list(items))


def _order_item(name: str, price: str, quantity: int = 1, menu_item_id=None) -> OrderItem:
    return OrderItem(menu_item_id=menu_item_id, menu_item_name=name, price=Decimal(price), quantity=quantity)


@pytest.fixture
async def bill(db, table):
    return await BillService.create_bill(db, table.id, [make_item("Nachos", "10.00")])


async def test_pending_order_does_not_touch_bill(db, bill):
    order = await OrderService.create_order(db, bill.id, _order(_order_item("Beer", "6.00", 2, "beer")))

    assert order.status == OrderStatus.PENDING
    assert order.order_number.startswith("O")
    assert order.business_id == bill.business_id
    bill = await BillService.get_bill(db, bill.id)
    assert bill.subtotal == Decimal("10.00")


async def test_approve_appends_items_and_recomputes(db, bill):
    order = await OrderService.create_order(db, bill.id, _order(_order_item("Beer", "6.00", 2, "beer")))
    approved = await OrderService.approve_order(db, order.id, approved_by="staff-1")

    assert approved.status == OrderStatus.APPROVED
    assert approved.approved_by == "staff-1"
    assert approved.approved_at is not None

    bill = await BillService.get_bill(db, bill.id)
    items = load_items(bill)
    assert [item.name for item in items] == ["Nachos", "Beer"]
    assert items[1].menu_item_id == "beer"
    assert items[1].quantity == 2
    assert bill.subtotal == Decimal("22.00")
    assert bill.total_amount == Decimal("25.30")


async def test_approving_two_orders_keeps_both(db, bill):
    first = await OrderService.create_order(db, bill.id, _order(_order_item("Beer", "6.00")))
    second = await OrderService.create_order(db, bill.id, _order(_order_item("Wings", "9.00")))

    await OrderService.approve_order(db, second.id)
    await OrderService.approve_order(db, first.id)

    bill = await BillService.get_bill(db, bill.id)
    assert [item.name for item in load_items(bill)] == ["Nachos", "Wings", "Beer"]
    assert bill.subtotal == Decimal("25.00")


async def test_missing_menu_reference_falls_back_to_name(db, bill):
    order = await OrderService.create_order(db, bill.id, _order(_order_item("House Salad", "8.00")))
    await OrderService.approve_order(db, order.id)

    bill = await BillService.get_bill(db, bill.id)
    assert load_items(bill)[-1].menu_item_id == "House Salad"


async def test_approval_uses_current_rates(db, business, bill):
    order = await OrderService.create_order(db, bill.id, _order(_order_item("Beer", "10.00")))
    await BusinessService.update_rates(
        db, business.id, BusinessRatesUpdate(tax_rate=Decimal("0"), service_fee_rate=Decimal("0"))
    )
    await OrderService.approve_order(db, order.id)

    bill = await BillService.get_bill(db, bill.id)
    assert bill.total_amount == Decimal("20.00")


async def test_order_decided_only_once(db, bill):
    bill_id = bill.id
    order = await OrderService.create_order(db, bill_id, _order(_order_item("Beer", "6.00")))
    order_id = order.id
    await OrderService.approve_order(db, order_id)

    with pytest.raises(OrderNotPending):
        await OrderService.approve_order(db, order_id)
    with pytest.raises(OrderNotPending):
        await OrderService.reject_order(db, order_id)

    bill = await BillService.get_bill(db, bill_id)
    assert bill.subtotal == Decimal("16.00")


async def test_reject_leaves_bill_untouched(db, bill):
    order = await OrderService.create_order(db, bill.id, _order(_order_item("Beer", "6.00")))
    rejected = await OrderService.reject_order(db, order.id, reason="Out of stock")

    assert rejected.status == OrderStatus.REJECTED
    assert rejected.rejected_reason == "Out of stock"
    bill = await BillService.get_bill(db, bill.id)
    assert bill.subtotal == Decimal("10.00")
    assert bill.version == 1


async def test_orders_on_closed_bill(db, bill):
    bill_id = bill.id
    pending = await OrderService.create_order(db, bill_id, _order(_order_item("Beer", "6.00")))
    pending_id = pending.id
    await BillService.close_bill(db, bill_id)

    with pytest.raises(BillClosed):
        await OrderService.create_order(db, bill_id, _order(_order_item("Wings", "9.00")))
    with pytest.raises(BillClosed):
        await OrderService.approve_order(db, pending_id)

    order = await OrderService.get_order(db, pending_id)
    assert order.status == OrderStatus.PENDING


async def test_order_listing(db, business, bill):
    first = await OrderService.create_order(db, bill.id, _order(_order_item("Beer", "6.00")))
    second = await OrderService.create_order(db, bill.id, _order(_order_item("Wings", "9.00")))
    await OrderService.reject_order(db, first.id)

    assert [o.id for o in await OrderService.list_orders_for_bill(db, bill.id)] == [first.id, second.id]
    pending = await OrderService.list_orders(db, business.id, OrderStatus.PENDING)
    assert [o.id for o in pending] == [second.id]


async def test_unknown_order(db, business):
    from uuid import uuid4

    with pytest.raises(OrderNotFound):
        await OrderService.approve_order(db, uuid4())


async def test_failed_approval_leaves_bill_and_order_untouched(db, session_factory, bill):
    bill_id = bill.id
    order = await OrderService.create_order(db, bill_id, _order(_order_item("Beer", "6.00", 2)))
    order_id = order.id

    failure = OperationalError("UPDATE orders", {}, Exception("disk I/O error"))
    with patch("app.services.order_service.get_utc_now", side_effect=failure):
        with pytest.raises(PersistenceError):
            await OrderService.approve_order(db, order_id, approved_by="staff-1")

    # items were already written to the bill when the failure hit
    async with session_factory() as fresh:
        bill = await BillService.get_bill(fresh, bill_id)
        order = await OrderService.get_order(fresh, order_id)

    assert [item.name for item in load_items(bill)] == ["Nachos"]
    assert bill.subtotal == Decimal("10.00")
    assert bill.version == 1
    assert order.status == OrderStatus.PENDING
    assert order.approved_at is None
