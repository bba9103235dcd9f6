"""Order endpoints - guest proposals and staff review"""

from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.order import OrderApprove, OrderCreate, OrderReject, OrderResponse
from app.schemas.responses import SuccessResponse
from app.services.bill_service import BillService
from app.services.order_service import OrderService

router = APIRouter()


@router.post("/bills/{bill_id}/orders", response_model=SuccessResponse[OrderResponse])
async def create_order(
    bill_id: UUID,
    order_in: OrderCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Guest places an order. Its items reach the bill only once staff approve it."""
    order = await OrderService.create_order(db, bill_id, order_in)
    return SuccessResponse(data=OrderResponse.model_validate(order), message="Order placed")


@router.get("/bills/{bill_id}/orders", response_model=SuccessResponse[List[OrderResponse]])
async def list_bill_orders(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    await BillService.get_bill(db, bill_id)
    orders = await OrderService.list_orders_for_bill(db, bill_id)
    return SuccessResponse(data=[OrderResponse.model_validate(o) for o in orders])


@router.post("/orders/{order_id}/approve", response_model=SuccessResponse[OrderResponse])
async def approve_order(
    order_id: UUID,
    body: OrderApprove,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    order = await OrderService.approve_order(db, order_id, body.approved_by)
    return SuccessResponse(data=OrderResponse.model_validate(order), message="Order approved")


@router.post("/orders/{order_id}/reject", response_model=SuccessResponse[OrderResponse])
async def reject_order(
    order_id: UUID,
    body: OrderReject,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    order = await OrderService.reject_order(db, order_id, body.reason)
    return SuccessResponse(data=OrderResponse.model_validate(order), message="Order rejected")
