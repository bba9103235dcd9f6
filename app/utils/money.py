"""Money helpers: Decimal quantization and minor-unit (cent) arithmetic.

Floats never touch money. Amounts are quantized once, converted to integer
minor units for allocation, and converted back for storage and display.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Sequence, Union

from app.config import settings

Number = Union[Decimal, int, str]

ZERO = Decimal("0.00")


def minor_unit() -> Decimal:
    return settings.CURRENCY_MINOR_UNIT


def quantize(amount: Number) -> Decimal:
    """Round to the currency's minor unit, half away from zero (10.125 -> 10.13)."""
    return Decimal(amount).quantize(minor_unit(), rounding=ROUND_HALF_UP)


def to_minor(amount: Number) -> int:
    """Quantize then convert to integer minor units (Decimal('10.13') -> 1013)."""
    return int((quantize(amount) / minor_unit()).to_integral_value())


def from_minor(minor: int) -> Decimal:
    """Integer minor units back to a quantized Decimal (1013 -> Decimal('10.13'))."""
    return quantize(Decimal(minor) * minor_unit())


def allocate_minor(weights: Sequence[int], total_minor: int) -> List[int]:
    """
    Allocate ``total_minor`` across ``weights`` proportionally.

    Each share is floored, then the leftover units go to the entries with the
    largest remainders (ties broken by position). The result always sums to
    exactly ``total_minor``; zero total weight allocates nothing.

    Examples:
        >>> allocate_minor([100, 100, 100], 100)
        [34, 33, 33]
        >>> allocate_minor([3500, 1500], 650)
        [455, 195]
    """
    total_weight = sum(weights)
    if total_weight == 0 or total_minor == 0:
        return [0] * len(weights)

    # Integer division keeps the residuals exact
    floors = []
    residuals = []
    for index, weight in enumerate(weights):
        share, residual = divmod(weight * total_minor, total_weight)
        floors.append(share)
        residuals.append((residual, index))

    remainder = total_minor - sum(floors)
    residuals.sort(key=lambda entry: (-entry[0], entry[1]))

    result = list(floors)
    for _, index in residuals[:remainder]:
        result[index] += 1
    return result


def split_evenly(total_minor: int, parts: int) -> List[int]:
    """
    Divide ``total_minor`` into ``parts`` equal shares; the indivisible
    remainder is added to the first share.

    Examples:
        >>> split_evenly(10000, 3)
        [3334, 3333, 3333]
    """
    base, remainder = divmod(total_minor, parts)
    shares = [base] * parts
    shares[0] += remainder
    return shares


def within_tolerance(expected: Decimal, actual: Decimal) -> bool:
    """True when two amounts differ by at most one minor unit."""
    return abs(expected - actual) <= minor_unit()
