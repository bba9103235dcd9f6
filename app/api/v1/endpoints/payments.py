"""Payment endpoints - confirmation feed, alternative payments and reporting"""

from typing import Any, List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.payment import (
    AlternativePaymentConfirm,
    AlternativePaymentCreate,
    AlternativePaymentRequest,
    AlternativePaymentResponse,
    PaymentBreakdown,
    PaymentEvent,
    PaymentResponse,
)
from app.schemas.responses import SuccessResponse
from app.services.payment_service import PaymentService

router = APIRouter()


@router.post("/payments/webhook", response_model=SuccessResponse[PaymentResponse])
async def payment_webhook(
    event: PaymentEvent,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    Payment confirmation feed. Only ``confirmed`` events change the bill;
    redelivering an applied transaction returns 409 DUPLICATE_PAYMENT.
    """
    payment = await PaymentService.record_payment_event(db, event)
    return SuccessResponse(data=PaymentResponse.model_validate(payment), message="Payment event processed")


@router.get("/payments/{tx_hash}", response_model=SuccessResponse[PaymentResponse])
async def get_payment(
    tx_hash: str,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    payment = await PaymentService.get_payment_by_tx_hash(db, tx_hash)
    return SuccessResponse(data=PaymentResponse.model_validate(payment))


@router.get("/bills/{bill_id}/payments", response_model=SuccessResponse[List[PaymentResponse]])
async def list_bill_payments(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    payments = await PaymentService.list_payments(db, bill_id)
    return SuccessResponse(data=[PaymentResponse.model_validate(p) for p in payments])


@router.get("/bills/{bill_id}/payment-breakdown", response_model=SuccessResponse[PaymentBreakdown])
async def get_payment_breakdown(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    breakdown = await PaymentService.get_payment_breakdown(db, bill_id)
    return SuccessResponse(data=breakdown)


@router.post("/bills/{bill_id}/alternative-payments", response_model=SuccessResponse[AlternativePaymentResponse])
async def mark_alternative_payment(
    bill_id: UUID,
    payment_in: AlternativePaymentCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Staff records a cash/card/other payment already received."""
    payment = await PaymentService.mark_alternative_payment(db, bill_id, payment_in)
    return SuccessResponse(data=AlternativePaymentResponse.model_validate(payment), message="Alternative payment recorded")


@router.get("/bills/{bill_id}/alternative-payments", response_model=SuccessResponse[List[AlternativePaymentResponse]])
async def list_alternative_payments(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    payments = await PaymentService.list_alternative_payments(db, bill_id)
    return SuccessResponse(data=[AlternativePaymentResponse.model_validate(p) for p in payments])


@router.post(
    "/bills/{bill_id}/alternative-payments/request",
    response_model=SuccessResponse[AlternativePaymentResponse],
)
async def request_alternative_payment(
    bill_id: UUID,
    request_in: AlternativePaymentRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Guest asks staff to collect payment off-chain. Pending until confirmed."""
    payment = await PaymentService.request_alternative_payment(db, bill_id, request_in)
    return SuccessResponse(data=AlternativePaymentResponse.model_validate(payment), message="Payment request sent")


@router.get(
    "/bills/{bill_id}/alternative-payments/pending",
    response_model=SuccessResponse[List[AlternativePaymentResponse]],
)
async def list_pending_alternative_payments(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    payments = await PaymentService.list_pending_alternative_payments(db, bill_id)
    return SuccessResponse(data=[AlternativePaymentResponse.model_validate(p) for p in payments])


@router.post(
    "/alternative-payments/{payment_id}/confirm",
    response_model=SuccessResponse[AlternativePaymentResponse],
)
async def confirm_alternative_payment(
    payment_id: UUID,
    body: AlternativePaymentConfirm,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    payment = await PaymentService.confirm_alternative_payment(db, payment_id, body.confirmed_by)
    return SuccessResponse(data=AlternativePaymentResponse.model_validate(payment), message="Alternative payment confirmed")
