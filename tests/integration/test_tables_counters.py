"""Integration tests: tables, walk-up counters and counter bills."""

from decimal import Decimal

import pytest

from app.core.exceptions import CounterAlreadyHasOpenBill, CounterNotFound, TableNotFound
from app.services.bill_service import BillService
from app.services.table_service import CounterService, TableService
from tests.conftest import make_item


async def test_table_codes_are_unique(db, business):
    tables = [await TableService.create_table(db, business.id, f"Table {n}") for n in range(5)]
    assert len({t.table_code for t in tables}) == 5


async def test_lookup_table_by_code(db, table):
    found = await TableService.get_table_by_code(db, table.table_code.lower())
    assert found.id == table.id

    with pytest.raises(TableNotFound):
        await TableService.get_table_by_code(db, "NOPE")


async def test_list_tables(db, business, table, other_table):
    assert [t.name for t in await TableService.list_tables(db, business.id)] == ["Table 1", "Table 2"]


async def test_configure_counters(db, business):
    counters = await CounterService.configure_counters(db, business.id, True, 3, "W")
    assert [c.name for c in counters] == ["W1", "W2", "W3"]
    assert all(c.is_active for c in counters)
    assert business.counter_enabled

    counters = await CounterService.configure_counters(db, business.id, True, 2, "W")
    assert [c.is_active for c in counters] == [True, True, False]

    counters = await CounterService.configure_counters(db, business.id, False, 2)
    assert not any(c.is_active for c in counters)


async def test_counter_bill_occupies_and_releases_counter(db, business):
    business_id = business.id
    counters = await CounterService.configure_counters(db, business_id, True, 2)
    counter_id = counters[0].id

    bill = await BillService.open_counter_bill(db, counter_id, [make_item("Coffee", "4.00")])
    bill_id = bill.id
    assert bill.counter_id == counter_id
    assert bill.table_id is None
    assert bill.total_amount == Decimal("4.60")

    available = await CounterService.list_available_counters(db, business_id)
    assert [c.id for c in available] == [counters[1].id]
    assert (await BillService.get_open_bill_for_counter(db, counter_id)).id == bill_id

    with pytest.raises(CounterAlreadyHasOpenBill):
        await BillService.open_counter_bill(db, counter_id)

    await BillService.close_bill(db, bill_id)
    counter = await CounterService.get_counter(db, counter_id)
    assert counter.current_bill_id is None
    assert len(await CounterService.list_available_counters(db, business_id)) == 2

    again = await BillService.open_counter_bill(db, counter_id)
    assert again.id != bill_id


async def test_inactive_counter_cannot_open_bill(db, business):
    counters = await CounterService.configure_counters(db, business.id, True, 1)
    counter_id = counters[0].id
    await CounterService.configure_counters(db, business.id, False, 0)

    with pytest.raises(CounterNotFound):
        await BillService.open_counter_bill(db, counter_id)
