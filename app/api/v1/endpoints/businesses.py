"""Business endpoints - tenant settings, tables and counters"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.models.enums import BillStatus, OrderStatus
from app.schemas.bill import BillResponse
from app.schemas.business import (
    BusinessCreate,
    BusinessRatesUpdate,
    BusinessResponse,
    CounterConfig,
    CounterResponse,
    TableCreate,
    TableResponse,
)
from app.schemas.order import OrderResponse
from app.schemas.responses import SuccessResponse
from app.services.bill_service import BillService
from app.services.business_service import BusinessService
from app.services.order_service import OrderService
from app.services.table_service import CounterService, TableService

router = APIRouter()


@router.post("", response_model=SuccessResponse[BusinessResponse])
async def create_business(
    business_in: BusinessCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Register a business. Rates are fractions (0.08 == 8%)."""
    business = await BusinessService.create_business(db, business_in)
    return SuccessResponse(data=BusinessResponse.model_validate(business), message="Business created successfully")


@router.get("/{business_id}", response_model=SuccessResponse[BusinessResponse])
async def get_business(
    business_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    business = await BusinessService.get_business(db, business_id)
    return SuccessResponse(data=BusinessResponse.model_validate(business))


@router.patch("/{business_id}/rates", response_model=SuccessResponse[BusinessResponse])
async def update_rates(
    business_id: UUID,
    rates_in: BusinessRatesUpdate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Update tax/service fee rates. Open bills use them on their next recomputation."""
    business = await BusinessService.update_rates(db, business_id, rates_in)
    return SuccessResponse(data=BusinessResponse.model_validate(business), message="Rates updated successfully")


@router.post("/{business_id}/tables", response_model=SuccessResponse[TableResponse])
async def create_table(
    business_id: UUID,
    table_in: TableCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    table = await TableService.create_table(db, business_id, table_in.name)
    return SuccessResponse(data=TableResponse.model_validate(table), message="Table created successfully")


@router.get("/{business_id}/tables", response_model=SuccessResponse[List[TableResponse]])
async def list_tables(
    business_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await BusinessService.get_business(db, business_id)
    tables = await TableService.list_tables(db, business_id)
    return SuccessResponse(data=[TableResponse.model_validate(t) for t in tables])


@router.put("/{business_id}/counters", response_model=SuccessResponse[List[CounterResponse]])
async def configure_counters(
    business_id: UUID,
    config_in: CounterConfig,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Enable or disable walk-up counters and set how many there are."""
    counters = await CounterService.configure_counters(
        db, business_id, config_in.enabled, config_in.count, config_in.prefix
    )
    return SuccessResponse(data=[CounterResponse.model_validate(c) for c in counters], message="Counters configured")


@router.get("/{business_id}/counters/available", response_model=SuccessResponse[List[CounterResponse]])
async def list_available_counters(
    business_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    counters = await CounterService.list_available_counters(db, business_id)
    return SuccessResponse(data=[CounterResponse.model_validate(c) for c in counters])


@router.get("/{business_id}/bills", response_model=SuccessResponse[List[BillResponse]])
async def list_bills(
    business_id: UUID,
    status: Optional[BillStatus] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    bills = await BillService.list_bills(db, business_id, status)
    return SuccessResponse(data=[BillResponse.model_validate(b) for b in bills])


@router.get("/{business_id}/orders", response_model=SuccessResponse[List[OrderResponse]])
async def list_orders(
    business_id: UUID,
    status: Optional[OrderStatus] = None,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Orders across all bills of the business, newest first. Filter by status for the review queue."""
    orders = await OrderService.list_orders(db, business_id, status)
    return SuccessResponse(data=[OrderResponse.model_validate(o) for o in orders])
