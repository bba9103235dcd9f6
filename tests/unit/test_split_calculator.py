"""Unit tests for the split strategies."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from app.core.exceptions import (
    InvalidParticipantCount,
    InvalidSplitAmounts,
    InvalidSplitMethod,
    SplitDoesNotBalance,
    UnassignedItems,
    UnknownSplitItem,
)
from app.models.enums import SplitMethod
from app.schemas.bill import BillItem, BillSnapshot
from app.services.money_calculator import compute_totals
from app.services.split_calculator import SplitService, custom_split, equal_split, item_split


def _item(item_id: str, price: str, quantity: int = 1) -> BillItem:
    return BillItem(id=item_id, menu_item_id=f"menu-{item_id}", name=item_id.upper(), price=Decimal(price), quantity=quantity)


def _snapshot(items, tax_rate="0", fee_rate="0") -> BillSnapshot:
    totals = compute_totals(items, Decimal(tax_rate), Decimal(fee_rate))
    return BillSnapshot(bill_id=uuid4(), items=tuple(items), **totals._asdict())


def _amounts(result):
    return [split.amount for split in result.splits]


# ---------------------------------------------------------------------------
# Equal split
# ---------------------------------------------------------------------------

def test_equal_split_remainder_to_first():
    snapshot = _snapshot([_item("a", "100.00")])
    result = equal_split(snapshot, 3)

    assert result.method == SplitMethod.EQUAL
    assert _amounts(result) == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
    assert sum(_amounts(result)) == Decimal("100.00")
    assert result.is_balanced
    assert [s.person_id for s in result.splits] == ["person_1", "person_2", "person_3"]
    assert result.splits[0].person_name == "Person 1"


def test_equal_split_breakdown_consistent_per_person():
    snapshot = _snapshot([_item("a", "80.00")], tax_rate="0.10", fee_rate="0.05")
    result = equal_split(snapshot, 3)

    assert sum(_amounts(result)) == snapshot.total_amount == Decimal("92.00")
    for split in result.splits:
        assert split.subtotal + split.tax_amount + split.service_fee == split.amount
    assert result.breakdown["num_people"] == 3


def test_equal_split_single_person_pays_all():
    snapshot = _snapshot([_item("a", "19.99")], tax_rate="0.08")
    result = equal_split(snapshot, 1)
    assert _amounts(result) == [snapshot.total_amount]


@pytest.mark.parametrize("num_people", [0, -1, 21])
def test_equal_split_participant_bounds(num_people):
    snapshot = _snapshot([_item("a", "10.00")])
    with pytest.raises(InvalidParticipantCount):
        equal_split(snapshot, num_people)


def test_equal_split_allows_twenty():
    snapshot = _snapshot([_item("a", "10.00")])
    result = equal_split(snapshot, 20)
    assert len(result.splits) == 20
    assert sum(_amounts(result)) == Decimal("10.00")


# ---------------------------------------------------------------------------
# Custom split
# ---------------------------------------------------------------------------

def test_custom_split_shortfall_reports_delta():
    snapshot = _snapshot([_item("a", "100.00")])
    with pytest.raises(SplitDoesNotBalance) as exc_info:
        custom_split(snapshot, {"alice": Decimal("60.00"), "bob": Decimal("35.00")})

    assert exc_info.value.delta == Decimal("5.00")
    assert "shortfall of 5.00" in exc_info.value.message


def test_custom_split_excess_reports_negative_delta():
    snapshot = _snapshot([_item("a", "100.00")])
    with pytest.raises(SplitDoesNotBalance) as exc_info:
        custom_split(snapshot, {"alice": Decimal("60.00"), "bob": Decimal("45.00")})
    assert exc_info.value.delta == Decimal("-5.00")
    assert "excess" in exc_info.value.message


def test_custom_split_exact():
    snapshot = _snapshot([_item("a", "50.00")], tax_rate="0.10", fee_rate="0.05")
    result = custom_split(
        snapshot,
        {"alice": Decimal("40.25"), "bob": Decimal("17.25")},
        {"alice": "Alice"},
    )

    assert result.method == SplitMethod.CUSTOM
    assert result.is_balanced
    assert _amounts(result) == [Decimal("40.25"), Decimal("17.25")]
    assert result.splits[0].person_name == "Alice"
    assert result.splits[1].person_name == "bob"
    for split in result.splits:
        assert split.subtotal + split.tax_amount + split.service_fee == split.amount


def test_custom_split_within_one_cent_is_accepted_but_flagged():
    snapshot = _snapshot([_item("a", "100.00")])
    result = custom_split(snapshot, {"alice": Decimal("60.00"), "bob": Decimal("39.99")})
    assert sum(_amounts(result)) == Decimal("99.99")
    assert not result.is_balanced


@pytest.mark.parametrize(
    "amounts",
    [
        {},
        {"alice": Decimal("-1.00"), "bob": Decimal("101.00")},
        {"alice": Decimal("33.333"), "bob": Decimal("66.667")},
    ],
)
def test_custom_split_malformed_amounts(amounts):
    snapshot = _snapshot([_item("a", "100.00")])
    with pytest.raises(InvalidSplitAmounts):
        custom_split(snapshot, amounts)


def test_custom_split_too_many_participants():
    snapshot = _snapshot([_item("a", "21.00")])
    amounts = {f"p{i}": Decimal("1.00") for i in range(21)}
    with pytest.raises(InvalidParticipantCount):
        custom_split(snapshot, amounts)


# ---------------------------------------------------------------------------
# Item split
# ---------------------------------------------------------------------------

def test_item_split_shared_item_divided_evenly():
    snapshot = _snapshot([_item("a", "30.00"), _item("b", "20.00")], tax_rate="0.10", fee_rate="0.05")
    result = item_split(snapshot, {"p1": ["a", "b"], "p2": ["a"]})

    p1, p2 = result.splits
    assert p1.subtotal == Decimal("35.00")
    assert p2.subtotal == Decimal("15.00")
    assert (p1.tax_amount, p2.tax_amount) == (Decimal("3.50"), Decimal("1.50"))
    assert (p1.service_fee, p2.service_fee) == (Decimal("1.75"), Decimal("0.75"))
    assert (p1.amount, p2.amount) == (Decimal("40.25"), Decimal("17.25"))
    assert sum(_amounts(result)) == snapshot.total_amount == Decimal("57.50")

    shared = p1.items[0]
    assert shared.item_id == "a"
    assert shared.shared_with == 2
    assert shared.subtotal == Decimal("15.00")


def test_item_split_odd_cent_goes_to_first_selector():
    snapshot = _snapshot([_item("a", "10.01")])
    result = item_split(snapshot, {"p1": ["a"], "p2": ["a"]})
    assert _amounts(result) == [Decimal("5.01"), Decimal("5.00")]


def test_item_split_three_way_with_fees_balances():
    snapshot = _snapshot(
        [_item("a", "17.99", 2), _item("b", "4.25"), _item("c", "9.10")],
        tax_rate="0.0875",
        fee_rate="0.18",
    )
    result = item_split(snapshot, {"x": ["a", "b"], "y": ["a", "c"], "z": ["a"]})
    assert sum(_amounts(result)) == snapshot.total_amount
    assert result.is_balanced


def test_item_split_unknown_item():
    snapshot = _snapshot([_item("a", "10.00")])
    with pytest.raises(UnknownSplitItem) as exc_info:
        item_split(snapshot, {"p1": ["a", "zzz"]})
    assert exc_info.value.item_id == "zzz"


def test_item_split_unassigned_items_rejected():
    snapshot = _snapshot([_item("a", "10.00"), _item("b", "5.00")])
    with pytest.raises(UnassignedItems) as exc_info:
        item_split(snapshot, {"p1": ["a"]})
    assert exc_info.value.item_ids == ["b"]


def test_item_split_duplicate_selection_counts_once():
    snapshot = _snapshot([_item("a", "10.00")])
    result = item_split(snapshot, {"p1": ["a", "a"], "p2": ["a"]})
    assert _amounts(result) == [Decimal("5.00"), Decimal("5.00")]


def test_item_split_participant_without_items_owes_nothing():
    snapshot = _snapshot([_item("a", "10.00")], tax_rate="0.10")
    result = item_split(snapshot, {"p1": ["a"], "p2": []})
    assert _amounts(result) == [Decimal("11.00"), Decimal("0.00")]


def test_item_split_requires_participants():
    snapshot = _snapshot([_item("a", "10.00")])
    with pytest.raises(InvalidParticipantCount):
        item_split(snapshot, {})


# ---------------------------------------------------------------------------
# Balance invariant across strategies
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "items,tax_rate,fee_rate",
    [
        ([("a", "0.01", 1)], "0", "0"),
        ([("a", "12.34", 3), ("b", "0.99", 7)], "0.0825", "0.15"),
        ([("a", "99.99", 1), ("b", "0.01", 1), ("c", "45.45", 2)], "0.2", "0.125"),
    ],
)
def test_every_strategy_balances(items, tax_rate, fee_rate):
    bill_items = [_item(item_id, price, quantity) for item_id, price, quantity in items]
    snapshot = _snapshot(bill_items, tax_rate, fee_rate)

    for n in (1, 2, 3, 7):
        assert sum(_amounts(equal_split(snapshot, n))) == snapshot.total_amount

    half = (snapshot.total_amount / 2).quantize(Decimal("0.01"))
    custom = custom_split(snapshot, {"a": half, "b": snapshot.total_amount - half})
    assert sum(_amounts(custom)) == snapshot.total_amount

    everyone = [item.id for item in bill_items]
    by_items = item_split(snapshot, {"p1": everyone, "p2": everyone[:1], "p3": everyone[-1:]})
    assert sum(_amounts(by_items)) == snapshot.total_amount


# ---------------------------------------------------------------------------
# Single preview entry point
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot():
    snapshot = _snapshot([_item("a", "30.00"), _item("b", "20.00")], tax_rate="0.10", fee_rate="0.05")
    with patch.object(SplitService, "snapshot", new=AsyncMock(return_value=snapshot)):
        yield snapshot


@pytest.mark.parametrize(
    "method,params,expected",
    [
        ("equal", {"num_people": 2}, [Decimal("28.75"), Decimal("28.75")]),
        (SplitMethod.CUSTOM, {"amounts": {"x": Decimal("50.00"), "y": Decimal("7.50")}}, [Decimal("50.00"), Decimal("7.50")]),
        ("items", {"item_selections": {"x": ["a"], "y": ["b"]}}, [Decimal("34.50"), Decimal("23.00")]),
    ],
)
async def test_preview_dispatches_on_method(snapshot, method, params, expected):
    result = await SplitService.preview(None, snapshot.bill_id, method, params)
    assert result.method == SplitMethod(method)
    assert _amounts(result) == expected


async def test_preview_reads_only_its_own_parameters(snapshot):
    params = {"num_people": 3, "amounts": {"x": Decimal("57.50")}, "people": {"x": "Ana"}}
    result = await SplitService.preview(None, snapshot.bill_id, "custom", params)
    # num_people belongs to the equal strategy and is ignored here
    assert len(result.splits) == 1
    assert result.splits[0].person_name == "Ana"


async def test_preview_unknown_method(snapshot):
    with pytest.raises(InvalidSplitMethod) as exc_info:
        await SplitService.preview(None, snapshot.bill_id, "roulette", {"num_people": 2})
    assert exc_info.value.method == "roulette"
    assert exc_info.value.code == "INVALID_SPLIT_METHOD"
    SplitService.snapshot.assert_not_awaited()


@pytest.mark.parametrize(
    "method,error",
    [
        ("equal", InvalidParticipantCount),
        ("custom", InvalidSplitAmounts),
        ("items", InvalidParticipantCount),
    ],
)
async def test_preview_missing_parameters(snapshot, method, error):
    with pytest.raises(error):
        await SplitService.preview(None, snapshot.bill_id, method, {})
