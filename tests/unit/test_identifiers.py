"""Unit tests for identifier generation and the retry policy."""

import re
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import identifiers
from app.core.exceptions import IdentifierExhausted
from app.services.identifier_service import IdentifierService


BUSINESS_ID = UUID("12345678-9abc-def0-1234-56789abcdef0")


def test_table_code_format():
    code = identifiers.generate_table_code()
    assert len(code) == 10
    assert re.fullmatch(r"[A-Z0-9]{10}", code)


def test_table_code_custom_length():
    assert len(identifiers.generate_table_code(16)) == 16


def test_bill_number_format():
    number = identifiers.generate_bill_number(BUSINESS_ID)
    assert re.fullmatch(r"B12345678-\d+-[0-9A-F]{6}", number)


def test_order_number_format():
    number = identifiers.generate_order_number(BUSINESS_ID)
    assert re.fullmatch(r"O12345678-\d{4}", number)


def test_item_ids_are_unique():
    assert len({identifiers.generate_item_id() for _ in range(100)}) == 100


@pytest.mark.asyncio
async def test_insert_with_unique_identifier_retries_on_collision():
    db = AsyncMock(spec=AsyncSession)
    build = MagicMock(side_effect=lambda code: f"row:{code}")
    generate = MagicMock(side_effect=["AAAA", "BBBB", "CCCC"])
    with patch.object(IdentifierService, "identifier_exists", new=AsyncMock(side_effect=[True, True, False])):
        row = await IdentifierService.insert_with_unique_identifier(db, "table code", MagicMock(), generate, build)

    assert row == "row:CCCC"
    build.assert_called_once_with("CCCC")
    db.add.assert_called_once_with("row:CCCC")


@pytest.mark.asyncio
async def test_insert_with_unique_identifier_exhausts_after_bound():
    db = AsyncMock(spec=AsyncSession)
    exists = AsyncMock(return_value=True)
    with patch.object(IdentifierService, "identifier_exists", new=exists):
        with pytest.raises(IdentifierExhausted) as exc_info:
            await IdentifierService.insert_with_unique_identifier(
                db,
                "bill number",
                MagicMock(),
                lambda: identifiers.generate_bill_number(BUSINESS_ID),
                MagicMock(),
            )

    assert exc_info.value.attempts == 10
    assert exists.await_count == 10


@pytest.mark.asyncio
async def test_insert_with_unique_identifier_respects_max_attempts():
    db = AsyncMock(spec=AsyncSession)
    build = MagicMock()
    with patch.object(IdentifierService, "identifier_exists", new=AsyncMock(return_value=True)):
        with pytest.raises(IdentifierExhausted):
            await IdentifierService.insert_with_unique_identifier(
                db, "table code", MagicMock(), lambda: "SAME", build, max_attempts=3
            )
    build.assert_not_called()
    db.add.assert_not_called()
