"""Walk-up counter endpoints"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.bill import BillResponse, CounterBillCreate
from app.schemas.responses import SuccessResponse
from app.services.bill_service import BillService

router = APIRouter()


@router.post("/{counter_id}/bill", response_model=SuccessResponse[BillResponse])
async def open_counter_bill(
    counter_id: UUID,
    bill_in: CounterBillCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Open a bill on a free counter. The counter is released when the bill is closed."""
    bill = await BillService.open_counter_bill(db, counter_id, bill_in.items, bill_in.notes)
    return SuccessResponse(data=BillResponse.model_validate(bill), message="Bill created successfully")
