"""Models Package - Export all models for easy imports"""

from app.models.base import BaseModel, BusinessScopedMixin, StatusMixin
from app.models.enums import *
from app.models.business import Business, Table, Counter
from app.models.billing import Bill
from app.models.order import Order
from app.models.payment import Payment, AlternativePayment


__all__ = [
    # Base classes
    "BaseModel",
    "BusinessScopedMixin",
    "StatusMixin",

    # Enums
    "BillStatus",
    "OrderStatus",
    "PaymentStatus",
    "AlternativePaymentMethod",
    "SplitMethod",

    # Tenant & seating
    "Business",
    "Table",
    "Counter",

    # Billing
    "Bill",
    "Order",
    "Payment",
    "AlternativePayment",
]
