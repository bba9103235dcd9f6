"""Centralized Enum Definitions"""

import enum


class BillStatus(str, enum.Enum):
    """Bill lifecycle: open -> partial -> paid, closed on explicit staff action"""
    OPEN = "open"
    PARTIAL = "partial"
    PAID = "paid"
    CLOSED = "closed"


class OrderStatus(str, enum.Enum):
    """Guest order review state; approved and rejected are terminal"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class AlternativePaymentMethod(str, enum.Enum):
    """Non-crypto settlement channels recorded by staff"""
    CASH = "cash"
    CARD = "card"
    VENMO = "venmo"
    OTHER = "other"


class SplitMethod(str, enum.Enum):
    EQUAL = "equal"
    CUSTOM = "custom"
    ITEMS = "items"
