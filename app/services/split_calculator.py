"""Split Calculator - advisory per-participant shares of a bill.

The strategy functions are pure: they take an immutable ``BillSnapshot`` and
return a ``SplitResult`` whose shares sum to the bill total. All arithmetic
happens in integer minor units so no cent is created or lost.
"""

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import (
    InvalidParticipantCount,
    InvalidSplitAmounts,
    InvalidSplitMethod,
    SplitDoesNotBalance,
    UnassignedItems,
    UnknownSplitItem,
)
from app.core.logging import get_logger
from app.models.enums import SplitMethod
from app.schemas.bill import BillResponse, BillSnapshot
from app.schemas.split import PersonSplit, SplitItem, SplitOption, SplitOptions, SplitResult
from app.services.bill_service import BillService, load_items
from app.utils.money import allocate_minor, from_minor, quantize, split_evenly, to_minor, within_tolerance

logger = get_logger(__name__)


def _check_participants(count: int) -> None:
    maximum = settings.MAX_SPLIT_PARTICIPANTS
    if count <= 0 or count > maximum:
        raise InvalidParticipantCount(count, maximum)


def _component_weights(snapshot: BillSnapshot) -> List[int]:
    return [
        to_minor(snapshot.subtotal),
        to_minor(snapshot.tax_amount),
        to_minor(snapshot.service_fee_amount),
    ]


def _person(
    person_id: str,
    person_name: Optional[str],
    subtotal_minor: int,
    tax_minor: int,
    fee_minor: int,
    items: Sequence[SplitItem] = (),
) -> PersonSplit:
    return PersonSplit(
        person_id=person_id,
        person_name=person_name or person_id,
        amount=from_minor(subtotal_minor + tax_minor + fee_minor),
        subtotal=from_minor(subtotal_minor),
        tax_amount=from_minor(tax_minor),
        service_fee=from_minor(fee_minor),
        items=list(items),
    )


def _proportional_person(
    snapshot: BillSnapshot,
    person_id: str,
    person_name: Optional[str],
    amount_minor: int,
) -> PersonSplit:
    """Break a share into subtotal/tax/fee in the bill's own proportions."""
    subtotal_minor, tax_minor, fee_minor = allocate_minor(_component_weights(snapshot), amount_minor)
    if subtotal_minor + tax_minor + fee_minor != amount_minor:
        # Zero-weight bill: the whole share is attributed to the subtotal
        subtotal_minor, tax_minor, fee_minor = amount_minor, 0, 0
    return _person(person_id, person_name, subtotal_minor, tax_minor, fee_minor)


def _finalize(
    snapshot: BillSnapshot,
    method: SplitMethod,
    splits: List[PersonSplit],
    breakdown: Dict,
) -> SplitResult:
    split_total = sum((split.amount for split in splits), Decimal("0.00"))
    if not within_tolerance(snapshot.total_amount, split_total):
        logger.error(
            "Split failed balance check",
            extra={"bill_id": snapshot.bill_id, "method": method.value, "split_total": str(split_total)},
        )
        raise SplitDoesNotBalance(snapshot.total_amount, split_total)
    return SplitResult(
        bill_id=snapshot.bill_id,
        method=method,
        total_amount=snapshot.total_amount,
        splits=splits,
        is_balanced=split_total == snapshot.total_amount,
        breakdown=breakdown,
    )


def equal_split(snapshot: BillSnapshot, num_people: int) -> SplitResult:
    """
    Divide the total into ``num_people`` equal shares.
    The indivisible cents go to the first participant: 100.00 / 3 -> 33.34, 33.33, 33.33.
    """
    _check_participants(num_people)

    shares = split_evenly(to_minor(snapshot.total_amount), num_people)
    splits = [
        _proportional_person(snapshot, f"person_{index}", f"Person {index}", share)
        for index, share in enumerate(shares, start=1)
    ]
    return _finalize(
        snapshot,
        SplitMethod.EQUAL,
        splits,
        {
            "num_people": num_people,
            "amount_per_person": str(from_minor(shares[-1])),
            "tax_per_person": str(quantize(snapshot.tax_amount / num_people)),
            "service_fee_per_person": str(quantize(snapshot.service_fee_amount / num_people)),
        },
    )


def custom_split(
    snapshot: BillSnapshot,
    amounts: Mapping[str, Decimal],
    people: Optional[Mapping[str, str]] = None,
) -> SplitResult:
    """
    Validate caller-chosen amounts per participant.

    The amounts must add up to the bill total within one minor unit; a short
    or over split is rejected with the delta instead of being corrected.
    """
    if not amounts:
        raise InvalidSplitAmounts("Amounts map cannot be empty")
    _check_participants(len(amounts))
    people = people or {}

    amounts_minor: Dict[str, int] = {}
    for person_id, amount in amounts.items():
        amount = Decimal(amount)
        if amount < 0:
            raise InvalidSplitAmounts(f"Amount for {person_id} cannot be negative")
        if quantize(amount) != amount:
            raise InvalidSplitAmounts(f"Amount for {person_id} has more precision than the currency allows")
        amounts_minor[person_id] = to_minor(amount)

    requested = from_minor(sum(amounts_minor.values()))
    if not within_tolerance(snapshot.total_amount, requested):
        raise SplitDoesNotBalance(snapshot.total_amount, requested)

    splits = [
        _proportional_person(snapshot, person_id, people.get(person_id), amount_minor)
        for person_id, amount_minor in amounts_minor.items()
    ]
    return _finalize(
        snapshot,
        SplitMethod.CUSTOM,
        splits,
        {
            "num_people": len(amounts_minor),
            "custom_amounts": {person_id: str(from_minor(m)) for person_id, m in amounts_minor.items()},
        },
    )


def item_split(
    snapshot: BillSnapshot,
    item_selections: Mapping[str, Sequence[str]],
    people: Optional[Mapping[str, str]] = None,
) -> SplitResult:
    """
    Attribute items to the participants who selected them.

    An item selected by several participants is divided evenly between them,
    the leftover cent going to whoever appears first in ``item_selections``.
    Tax and service fee are then allocated in proportion to each
    participant's attributed subtotal. Every bill item must be selected.
    """
    _check_participants(len(item_selections))
    people = people or {}
    items = {item.id: item for item in snapshot.items}

    # item_id -> selecting participants, in selection order
    selectors: Dict[str, List[str]] = {}
    for person_id, item_ids in item_selections.items():
        for item_id in dict.fromkeys(item_ids):
            if item_id not in items:
                raise UnknownSplitItem(item_id)
            selectors.setdefault(item_id, []).append(person_id)

    unassigned = [item.id for item in snapshot.items if item.id not in selectors]
    if unassigned:
        raise UnassignedItems(unassigned)

    subtotals = {person_id: 0 for person_id in item_selections}
    person_items: Dict[str, List[SplitItem]] = {person_id: [] for person_id in item_selections}
    for item in snapshot.items:
        owners = selectors[item.id]
        shares = split_evenly(to_minor(item.subtotal), len(owners))
        for person_id, share in zip(owners, shares):
            subtotals[person_id] += share
            person_items[person_id].append(SplitItem(
                item_id=item.id,
                name=item.name,
                price=item.price,
                quantity=item.quantity,
                shared_with=len(owners),
                subtotal=from_minor(share),
            ))

    order = list(item_selections)
    weights = [subtotals[person_id] for person_id in order]
    taxes = allocate_minor(weights, to_minor(snapshot.tax_amount))
    fees = allocate_minor(weights, to_minor(snapshot.service_fee_amount))

    splits = [
        _person(person_id, people.get(person_id), subtotals[person_id], tax, fee, person_items[person_id])
        for person_id, tax, fee in zip(order, taxes, fees)
    ]
    return _finalize(
        snapshot,
        SplitMethod.ITEMS,
        splits,
        {
            "num_people": len(order),
            "total_items_subtotal": str(from_minor(sum(weights))),
            "item_assignments": {person_id: list(dict.fromkeys(ids)) for person_id, ids in item_selections.items()},
        },
    )


class SplitService:
    """Read-only previews: load a bill snapshot and run a split strategy on it"""

    @staticmethod
    async def snapshot(db: AsyncSession, bill_id: UUID) -> BillSnapshot:
        bill = await BillService.get_bill(db, bill_id)
        return BillSnapshot.from_bill(bill)

    @staticmethod
    async def preview_equal(db: AsyncSession, bill_id: UUID, num_people: int) -> SplitResult:
        return equal_split(await SplitService.snapshot(db, bill_id), num_people)

    @staticmethod
    async def preview_custom(
        db: AsyncSession,
        bill_id: UUID,
        amounts: Mapping[str, Decimal],
        people: Optional[Mapping[str, str]] = None,
    ) -> SplitResult:
        return custom_split(await SplitService.snapshot(db, bill_id), amounts, people)

    @staticmethod
    async def preview_items(
        db: AsyncSession,
        bill_id: UUID,
        item_selections: Mapping[str, Sequence[str]],
        people: Optional[Mapping[str, str]] = None,
    ) -> SplitResult:
        return item_split(await SplitService.snapshot(db, bill_id), item_selections, people)

    @staticmethod
    async def preview(
        db: AsyncSession,
        bill_id: UUID,
        method: Union[SplitMethod, str],
        params: Mapping[str, Any],
    ) -> SplitResult:
        """
        Run the strategy ``method`` names, reading only its own parameters
        (``num_people``, ``amounts`` or ``item_selections``, plus ``people``)
        from ``params``. A missing parameter fails that strategy's own checks.

        Raises:
            InvalidSplitMethod: ``method`` is not equal, custom or items
        """
        try:
            method = SplitMethod(method)
        except ValueError:
            raise InvalidSplitMethod(method) from None

        snapshot = await SplitService.snapshot(db, bill_id)
        people = params.get("people")
        if method == SplitMethod.EQUAL:
            return equal_split(snapshot, params.get("num_people") or 0)
        if method == SplitMethod.CUSTOM:
            return custom_split(snapshot, params.get("amounts") or {}, people)
        return item_split(snapshot, params.get("item_selections") or {}, people)

    @staticmethod
    async def options(db: AsyncSession, bill_id: UUID) -> SplitOptions:
        """The bill, what is still owed on it and the participant bounds of each strategy"""
        bill = await BillService.get_bill(db, bill_id)
        items = load_items(bill)
        maximum = settings.MAX_SPLIT_PARTICIPANTS
        return SplitOptions(
            bill=BillResponse.model_validate(bill),
            remaining_amount=bill.remaining_amount,
            items=items,
            split_options={
                SplitMethod.EQUAL: SplitOption(
                    available=True,
                    description="Split the bill equally among all people",
                    min_people=1,
                    max_people=maximum,
                ),
                SplitMethod.CUSTOM: SplitOption(
                    available=True,
                    description="Specify custom amounts for each person",
                    min_people=1,
                    max_people=maximum,
                ),
                SplitMethod.ITEMS: SplitOption(
                    available=bool(items),
                    description="Split based on which items each person ordered",
                    min_people=1,
                    max_people=maximum,
                    total_items=len(items),
                ),
            },
        )
