"""Guest-facing table lookup by public code"""

from typing import Any, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.schemas.bill import BillResponse
from app.schemas.business import TableResponse
from app.schemas.responses import SuccessResponse
from app.services.bill_service import BillService
from app.services.table_service import TableService

router = APIRouter()


@router.get("/{table_code}", response_model=SuccessResponse[TableResponse])
async def get_table(
    table_code: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    table = await TableService.get_table_by_code(db, table_code)
    return SuccessResponse(data=TableResponse.model_validate(table))


@router.get("/{table_code}/bill", response_model=SuccessResponse[Optional[BillResponse]])
async def get_open_bill(
    table_code: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """The table's current open bill, or null when the table is free."""
    table = await TableService.get_table_by_code(db, table_code)
    bill = await BillService.get_open_bill_for_table(db, table.id)
    return SuccessResponse(data=BillResponse.model_validate(bill) if bill else None)
