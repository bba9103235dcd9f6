"""Bill endpoints - the running check for a table or counter"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.bill import (
    BillCreate,
    BillItemCreate,
    BillItemQuantityUpdate,
    BillItemsReplace,
    BillResponse,
)
from app.schemas.responses import SuccessResponse
from app.services.bill_service import BillService, build_bill_item

router = APIRouter()


@router.post("", response_model=SuccessResponse[BillResponse])
async def create_bill(
    bill_in: BillCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Open a bill on a table. Fails with 409 while the table's previous bill is still open.
    """
    bill = await BillService.create_bill(db, bill_in.table_id, bill_in.items, bill_in.notes)
    return SuccessResponse(data=BillResponse.model_validate(bill), message="Bill created successfully")


@router.get("/number/{bill_number}", response_model=SuccessResponse[BillResponse])
async def get_bill_by_number(
    bill_number: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill = await BillService.get_bill_by_number(db, bill_number)
    return SuccessResponse(data=BillResponse.model_validate(bill))


@router.get("/{bill_id}", response_model=SuccessResponse[BillResponse])
async def get_bill(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill = await BillService.get_bill(db, bill_id)
    return SuccessResponse(data=BillResponse.model_validate(bill))


@router.put("/{bill_id}/items", response_model=SuccessResponse[BillResponse])
async def replace_items(
    bill_id: UUID,
    items_in: BillItemsReplace,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Replace every line item on the bill and recompute totals."""
    items = [build_bill_item(item) for item in items_in.items]
    bill = await BillService.replace_items(db, bill_id, items)
    return SuccessResponse(data=BillResponse.model_validate(bill), message="Bill items updated")


@router.post("/{bill_id}/items", response_model=SuccessResponse[BillResponse])
async def add_item(
    bill_id: UUID,
    item_in: BillItemCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill = await BillService.add_item(db, bill_id, item_in)
    return SuccessResponse(data=BillResponse.model_validate(bill), message="Item added")


@router.patch("/{bill_id}/items/{item_id}", response_model=SuccessResponse[BillResponse])
async def update_item_quantity(
    bill_id: UUID,
    item_id: str,
    update_in: BillItemQuantityUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill = await BillService.update_item_quantity(db, bill_id, item_id, update_in.quantity)
    return SuccessResponse(data=BillResponse.model_validate(bill), message="Item updated")


@router.delete("/{bill_id}/items/{item_id}", response_model=SuccessResponse[BillResponse])
async def remove_item(
    bill_id: UUID,
    item_id: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bill = await BillService.remove_item(db, bill_id, item_id)
    return SuccessResponse(data=BillResponse.model_validate(bill), message="Item removed")


@router.post("/{bill_id}/close", response_model=SuccessResponse[BillResponse])
async def close_bill(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Close the tab. Closing twice returns 409 BILL_ALREADY_CLOSED."""
    bill = await BillService.close_bill(db, bill_id)
    return SuccessResponse(data=BillResponse.model_validate(bill), message="Bill closed successfully")
