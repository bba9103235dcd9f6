"""Money Calculator - bill totals from line items and business rates"""

from decimal import Decimal
from typing import Iterable, NamedTuple

from app.core.exceptions import InvalidInputError
from app.schemas.bill import BillItem
from app.utils.money import ZERO, quantize


class BillTotals(NamedTuple):
    subtotal: Decimal
    tax_amount: Decimal
    service_fee_amount: Decimal
    total_amount: Decimal


def _check_rate(name: str, rate: Decimal) -> Decimal:
    rate = Decimal(rate)
    if rate < 0 or rate > 1:
        raise InvalidInputError(f"{name} must be a fraction between 0 and 1, got {rate}")
    return rate


def compute_totals(items: Iterable[BillItem], tax_rate: Decimal, service_fee_rate: Decimal) -> BillTotals:
    """
    Compute a bill's derived amounts.

    Rates are fractions (0.08 == 8%). Rounding to the minor unit happens once,
    on the total; the tax is rounded for display and the service fee absorbs
    the difference so ``total == subtotal + tax + service_fee`` holds exactly
    and recomputing the same items always yields the same cents.
    """
    tax_rate = _check_rate("tax_rate", tax_rate)
    service_fee_rate = _check_rate("service_fee_rate", service_fee_rate)

    subtotal = sum((item.price * item.quantity for item in items), ZERO)
    raw_tax = subtotal * tax_rate
    raw_fee = subtotal * service_fee_rate

    total = quantize(subtotal + raw_tax + raw_fee)
    subtotal = quantize(subtotal)
    tax = quantize(raw_tax)
    fee = total - subtotal - tax

    return BillTotals(subtotal=subtotal, tax_amount=tax, service_fee_amount=fee, total_amount=total)


def apply_totals(bill, totals: BillTotals) -> None:
    """Copy computed totals onto a Bill row."""
    bill.subtotal = totals.subtotal
    bill.tax_amount = totals.tax_amount
    bill.service_fee_amount = totals.service_fee_amount
    bill.total_amount = totals.total_amount
