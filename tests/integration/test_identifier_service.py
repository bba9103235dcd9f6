"""Integration tests: identifier collisions against the unique indexes."""

from unittest.mock import AsyncMock, patch

import pytest

from app.core.exceptions import IdentifierExhausted, TableAlreadyHasOpenBill
from app.services.bill_service import BillService
from app.services.identifier_service import IdentifierService
from app.services.table_service import TableService


async def test_table_code_collision_is_retried(db, business, table):
    taken = table.table_code
    with patch("app.core.identifiers.generate_table_code", side_effect=[taken, "FRESH00001"]):
        new_table = await TableService.create_table(db, business.id, "Patio")
    assert new_table.table_code == "FRESH00001"


async def test_collision_at_insert_time_is_retried(db, business, table):
    """A concurrent insert takes the code between the lookup and the insert."""
    taken = table.table_code
    exists = AsyncMock(side_effect=[False, True, False])
    with patch("app.core.identifiers.generate_table_code", side_effect=[taken, "FRESH00002"]):
        with patch.object(IdentifierService, "identifier_exists", new=exists):
            new_table = await TableService.create_table(db, business.id, "Bar")

    assert new_table.table_code == "FRESH00002"
    assert exists.await_count == 3


async def test_generation_exhausted(db, business, table):
    business_id, taken = business.id, table.table_code
    with patch("app.core.identifiers.generate_table_code", return_value=taken):
        with pytest.raises(IdentifierExhausted) as exc_info:
            await TableService.create_table(db, business_id, "Terrace")

    assert exc_info.value.attempts == 10
    assert len(await TableService.list_tables(db, business_id)) == 1


async def test_concurrent_bill_create_loses_on_unique_index(db, table):
    """Two creates both pass the open-bill check; the index rejects the second."""
    table_id = table.id
    await BillService.create_bill(db, table_id)

    with patch.object(BillService, "get_open_bill_for_table", new=AsyncMock(return_value=None)):
        with pytest.raises(TableAlreadyHasOpenBill):
            await BillService.create_bill(db, table_id)
