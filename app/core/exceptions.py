"""Billing engine error taxonomy.

Every error carries a stable ``code`` (rendered in ``ErrorResponse``) and a
``kind`` that maps to an HTTP status in the API layer. Expected outcomes
(not found, conflict, invalid input, unbalanced) are raised straight to the
caller and never retried by the engine.
"""

import enum
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID


class ErrorKind(str, enum.Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"
    UNBALANCED = "unbalanced"
    INTERNAL = "internal"


class BillingError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.INTERNAL
    code: str = "BILLING_ERROR"
    default_message: str = "Billing operation failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# NotFound

class NotFoundError(BillingError):
    kind = ErrorKind.NOT_FOUND
    code = "RESOURCE_NOT_FOUND"
    resource = "Resource"

    def __init__(self, resource_id=None, message: Optional[str] = None):
        self.resource_id = resource_id
        if message is None:
            message = f"{self.resource} not found" if resource_id is None else f"{self.resource} {resource_id} not found"
        super().__init__(message)


class BusinessNotFound(NotFoundError):
    code = "BUSINESS_NOT_FOUND"
    resource = "Business"


class TableNotFound(NotFoundError):
    code = "TABLE_NOT_FOUND"
    resource = "Table"


class CounterNotFound(NotFoundError):
    code = "COUNTER_NOT_FOUND"
    resource = "Counter"


class BillNotFound(NotFoundError):
    code = "BILL_NOT_FOUND"
    resource = "Bill"


class BillItemNotFound(NotFoundError):
    code = "BILL_ITEM_NOT_FOUND"
    resource = "Bill item"


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"
    resource = "Order"


class PaymentNotFound(NotFoundError):
    code = "PAYMENT_NOT_FOUND"
    resource = "Payment"


# Conflict

class ConflictError(BillingError):
    kind = ErrorKind.CONFLICT
    code = "CONFLICT"


class TableAlreadyHasOpenBill(ConflictError):
    code = "TABLE_ALREADY_HAS_OPEN_BILL"

    def __init__(self, table_id: UUID, bill_id: Optional[UUID] = None):
        self.table_id = table_id
        self.bill_id = bill_id
        super().__init__(f"Table {table_id} already has an open bill")


class CounterAlreadyHasOpenBill(ConflictError):
    code = "COUNTER_ALREADY_HAS_OPEN_BILL"

    def __init__(self, counter_id: UUID, bill_id: Optional[UUID] = None):
        self.counter_id = counter_id
        self.bill_id = bill_id
        super().__init__(f"Counter {counter_id} already has an open bill")


class BillClosed(ConflictError):
    code = "BILL_CLOSED"

    def __init__(self, bill_id: UUID):
        self.bill_id = bill_id
        super().__init__(f"Bill {bill_id} is closed and can no longer be modified")


class BillAlreadyClosed(ConflictError):
    code = "BILL_ALREADY_CLOSED"

    def __init__(self, bill_id: UUID):
        self.bill_id = bill_id
        super().__init__(f"Bill {bill_id} is already closed")


class IdentifierExhausted(ConflictError):
    code = "IDENTIFIER_EXHAUSTED"

    def __init__(self, kind: str, attempts: int):
        self.identifier_kind = kind
        self.attempts = attempts
        super().__init__(f"Failed to generate a unique {kind} after {attempts} attempts")


class DuplicatePayment(ConflictError):
    code = "DUPLICATE_PAYMENT"

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Payment with transaction hash {tx_hash} has already been applied")


class OrderNotPending(ConflictError):
    code = "ORDER_NOT_PENDING"

    def __init__(self, order_id: UUID, status):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} is {getattr(status, 'value', status)}, only pending orders can change status")


class PaymentNotPending(ConflictError):
    code = "PAYMENT_NOT_PENDING"

    def __init__(self, payment_id, status):
        self.payment_id = payment_id
        self.status = status
        super().__init__(f"Payment {payment_id} is {getattr(status, 'value', status)}, only pending payments can change status")


class ConcurrentModification(ConflictError):
    code = "CONCURRENT_MODIFICATION"
    default_message = "The bill was modified concurrently, reload and retry"


# InvalidInput

class InvalidInputError(BillingError):
    kind = ErrorKind.INVALID_INPUT
    code = "INVALID_INPUT"


class InvalidParticipantCount(InvalidInputError):
    code = "INVALID_PARTICIPANT_COUNT"

    def __init__(self, count: int, maximum: int):
        self.count = count
        self.maximum = maximum
        super().__init__(f"Number of participants must be between 1 and {maximum}, got {count}")


class InvalidSplitAmounts(InvalidInputError):
    code = "INVALID_SPLIT_AMOUNTS"


class InvalidSplitMethod(InvalidInputError):
    code = "INVALID_SPLIT_METHOD"

    def __init__(self, method):
        self.method = method
        super().__init__(f"Invalid split method {method!r}, must be 'equal', 'custom' or 'items'")


class UnknownSplitItem(InvalidInputError):
    code = "UNKNOWN_SPLIT_ITEM"

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Item with ID {item_id} not found in bill")


class InvalidItem(InvalidInputError):
    code = "INVALID_ITEM"


class InvalidPaymentAmount(InvalidInputError):
    code = "INVALID_PAYMENT_AMOUNT"


# Unbalanced

class UnbalancedError(BillingError):
    kind = ErrorKind.UNBALANCED
    code = "UNBALANCED"


class SplitDoesNotBalance(UnbalancedError):
    code = "SPLIT_DOES_NOT_BALANCE"

    def __init__(self, expected: Decimal, actual: Decimal):
        self.expected = expected
        self.actual = actual
        # positive delta = shortfall, negative = overpayment
        self.delta = expected - actual
        label = "shortfall" if self.delta > 0 else "excess"
        super().__init__(
            f"Split amounts total {actual} but bill total is {expected} ({label} of {abs(self.delta)})"
        )


class UnassignedItems(UnbalancedError):
    code = "UNASSIGNED_ITEMS"

    def __init__(self, item_ids: Iterable[str]):
        self.item_ids = list(item_ids)
        super().__init__(f"Items not assigned to anyone: {', '.join(self.item_ids)}")


# Internal

class PersistenceError(BillingError):
    kind = ErrorKind.INTERNAL
    code = "PERSISTENCE_ERROR"
    default_message = "Failed to persist changes"
