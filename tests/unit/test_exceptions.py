"""Unit tests for the error taxonomy."""

from decimal import Decimal
from uuid import uuid4

from app.core.exceptions import (
    BillAlreadyClosed,
    BillNotFound,
    DuplicatePayment,
    ErrorKind,
    IdentifierExhausted,
    InvalidParticipantCount,
    InvalidSplitMethod,
    PersistenceError,
    SplitDoesNotBalance,
    TableAlreadyHasOpenBill,
    UnassignedItems,
)
from app.main import ERROR_STATUS


def test_error_kinds():
    assert BillNotFound(uuid4()).kind == ErrorKind.NOT_FOUND
    assert TableAlreadyHasOpenBill(uuid4()).kind == ErrorKind.CONFLICT
    assert BillAlreadyClosed(uuid4()).kind == ErrorKind.CONFLICT
    assert IdentifierExhausted("bill number", 10).kind == ErrorKind.CONFLICT
    assert DuplicatePayment("0xabc").kind == ErrorKind.CONFLICT
    assert InvalidParticipantCount(0, 20).kind == ErrorKind.INVALID_INPUT
    assert InvalidSplitMethod("dutch").kind == ErrorKind.INVALID_INPUT
    assert UnassignedItems(["a"]).kind == ErrorKind.UNBALANCED
    assert PersistenceError().kind == ErrorKind.INTERNAL


def test_error_codes_and_messages():
    bill_id = uuid4()
    error = BillNotFound(bill_id)
    assert error.code == "BILL_NOT_FOUND"
    assert str(bill_id) in error.message

    exhausted = IdentifierExhausted("table code", 10)
    assert "10 attempts" in exhausted.message


def test_split_does_not_balance_delta():
    error = SplitDoesNotBalance(Decimal("100.00"), Decimal("95.00"))
    assert error.delta == Decimal("5.00")
    assert "shortfall of 5.00" in error.message


def test_every_kind_maps_to_http_status():
    assert ERROR_STATUS[ErrorKind.NOT_FOUND] == 404
    assert ERROR_STATUS[ErrorKind.CONFLICT] == 409
    assert ERROR_STATUS[ErrorKind.INVALID_INPUT] == 400
    assert ERROR_STATUS[ErrorKind.UNBALANCED] == 422
    assert ERROR_STATUS[ErrorKind.INTERNAL] == 500
    assert set(ERROR_STATUS) == set(ErrorKind)
