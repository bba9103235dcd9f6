"""Payment Reconciler - applies confirmed payments to a bill's running totals"""

from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    BillClosed,
    DuplicatePayment,
    InvalidPaymentAmount,
    PaymentNotFound,
    PaymentNotPending,
)
from app.core.logging import get_logger
from app.database import transaction
from app.models.billing import Bill
from app.models.enums import PaymentStatus
from app.models.payment import AlternativePayment, Payment
from app.schemas.payment import (
    AlternativePaymentCreate,
    AlternativePaymentRequest,
    PaymentBreakdown,
    PaymentEvent,
)
from app.services.bill_service import BillService, derive_status
from app.utils.money import ZERO, quantize
from app.utils.time import get_utc_now

logger = get_logger(__name__)


def apply_to_bill(bill: Bill, amount: Decimal, tip_amount: Decimal = ZERO) -> Bill:
    """
    Add a confirmed amount and tip to a bill the caller holds locked.
    Both running sums only ever grow; status follows the paid amount.
    """
    amount = Decimal(amount)
    tip_amount = Decimal(tip_amount)
    if amount < 0 or tip_amount < 0:
        raise InvalidPaymentAmount("Payment and tip amounts cannot be negative")
    bill.paid_amount = quantize((bill.paid_amount or ZERO) + amount)
    bill.tip_amount = quantize((bill.tip_amount or ZERO) + tip_amount)
    bill.status = derive_status(bill)
    return bill


class PaymentService:

    @staticmethod
    async def apply_confirmed_payment(
        db: AsyncSession,
        bill_id: UUID,
        amount: Decimal,
        tip_amount: Decimal = ZERO,
    ) -> Bill:
        """
        Apply an already-deduplicated confirmed payment to a bill.
        Callers holding a transaction hash go through ``record_payment_event``.
        """
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            apply_to_bill(bill, amount, tip_amount)
            await db.flush()
        logger.info(
            "Payment applied",
            extra={"bill_id": bill_id, "amount": str(amount), "paid_amount": str(bill.paid_amount)},
        )
        return bill

    @staticmethod
    async def get_payment_by_tx_hash(db: AsyncSession, tx_hash: str, for_update: bool = False) -> Payment:
        stmt = select(Payment).where(Payment.tx_hash == tx_hash)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(stmt)
        payment = result.scalar_one_or_none()
        if not payment:
            raise PaymentNotFound(tx_hash)
        return payment

    @staticmethod
    async def record_payment_event(db: AsyncSession, event: PaymentEvent) -> Payment:
        """
        Entry point for the payment confirmation feed.

        A transaction hash is applied to a bill at most once: a confirmed
        event for a new hash records and applies the payment; a confirmed
        event for a pending hash promotes it and applies it; any event for an
        already-confirmed hash is rejected. Pending and failed events are
        recorded without touching the bill.

        Raises:
            BillNotFound
            DuplicatePayment: the transaction was already applied
        """
        confirmed = event.status == PaymentStatus.CONFIRMED
        async with transaction(db):
            bill = await BillService.lock_bill(db, event.bill_id)

            result = await db.execute(
                select(Payment)
                .where(Payment.tx_hash == event.transaction_hash)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            payment = result.scalar_one_or_none()

            if payment is not None:
                if payment.status == PaymentStatus.CONFIRMED or payment.bill_id != bill.id:
                    raise DuplicatePayment(event.transaction_hash)
                payment.status = event.status
                payment.amount = event.amount
                payment.tip_amount = event.tip_amount
                if event.payer_address:
                    payment.payer_address = event.payer_address
            else:
                payment = Payment(
                    bill_id=bill.id,
                    payer_address=event.payer_address,
                    amount=event.amount,
                    tip_amount=event.tip_amount,
                    tx_hash=event.transaction_hash,
                    status=event.status,
                )
                try:
                    async with db.begin_nested():
                        db.add(payment)
                        await db.flush()
                except IntegrityError as exc:
                    # A concurrent delivery of the same transaction won the insert
                    raise DuplicatePayment(event.transaction_hash) from exc

            if confirmed:
                payment.confirmed_at = get_utc_now()
                apply_to_bill(bill, event.amount, event.tip_amount)
            await db.flush()

        logger.info(
            "Payment event recorded",
            extra={
                "bill_id": bill.id,
                "tx_hash": event.transaction_hash,
                "status": event.status.value,
                "amount": str(event.amount),
                "paid_amount": str(bill.paid_amount),
                "bill_status": bill.status.value,
            },
        )
        return payment

    @staticmethod
    async def list_payments(db: AsyncSession, bill_id: UUID) -> List[Payment]:
        await BillService.get_bill(db, bill_id)
        result = await db.execute(
            select(Payment).where(Payment.bill_id == bill_id).order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())

    # Alternative payments

    @staticmethod
    async def mark_alternative_payment(
        db: AsyncSession,
        bill_id: UUID,
        data: AlternativePaymentCreate,
    ) -> AlternativePayment:
        """Staff records cash/card/other money already received; applied immediately."""
        async with transaction(db):
            bill = await BillService.lock_bill(db, bill_id)
            payment = AlternativePayment(
                bill_id=bill.id,
                participant_address=data.participant_address,
                participant_name=data.participant_name,
                amount=data.amount,
                tip_amount=data.tip_amount,
                payment_method=data.payment_method,
                status=PaymentStatus.CONFIRMED,
                confirmed_by=data.confirmed_by,
                confirmed_at=get_utc_now(),
            )
            db.add(payment)
            apply_to_bill(bill, data.amount, data.tip_amount)
            await db.flush()

        logger.info(
            "Alternative payment recorded",
            extra={
                "bill_id": bill_id,
                "payment_method": data.payment_method.value,
                "amount": str(data.amount),
                "bill_status": bill.status.value,
            },
        )
        return payment

    @staticmethod
    async def request_alternative_payment(
        db: AsyncSession,
        bill_id: UUID,
        data: AlternativePaymentRequest,
        participant_address: str = "guest",
    ) -> AlternativePayment:
        """Guest asks staff to collect an off-chain payment. The bill is untouched until confirmed."""
        async with transaction(db):
            bill = await BillService.get_bill(db, bill_id)
            if bill.is_closed:
                raise BillClosed(bill_id)
            payment = AlternativePayment(
                bill_id=bill.id,
                participant_address=participant_address,
                participant_name=data.participant_name,
                amount=data.amount,
                tip_amount=data.tip_amount,
                payment_method=data.payment_method,
                status=PaymentStatus.PENDING,
            )
            db.add(payment)
            await db.flush()

        logger.info(
            "Alternative payment requested",
            extra={"bill_id": bill_id, "payment_method": data.payment_method.value, "amount": str(data.amount)},
        )
        return payment

    @staticmethod
    async def confirm_alternative_payment(
        db: AsyncSession,
        payment_id: UUID,
        confirmed_by: Optional[str] = None,
    ) -> AlternativePayment:
        """
        Staff confirms a requested payment and it is reconciled into the bill.

        Raises:
            PaymentNotFound
            PaymentNotPending: already confirmed or failed
        """
        async with transaction(db):
            result = await db.execute(
                select(AlternativePayment)
                .where(AlternativePayment.id == payment_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            payment = result.scalar_one_or_none()
            if not payment:
                raise PaymentNotFound(payment_id)
            if payment.status != PaymentStatus.PENDING:
                raise PaymentNotPending(payment_id, payment.status)

            bill = await BillService.lock_bill(db, payment.bill_id)
            apply_to_bill(bill, payment.amount, payment.tip_amount)
            payment.status = PaymentStatus.CONFIRMED
            payment.confirmed_by = confirmed_by
            payment.confirmed_at = get_utc_now()
            await db.flush()

        logger.info(
            "Alternative payment confirmed",
            extra={"bill_id": payment.bill_id, "payment_id": str(payment_id), "paid_amount": str(bill.paid_amount)},
        )
        return payment

    @staticmethod
    async def list_alternative_payments(db: AsyncSession, bill_id: UUID) -> List[AlternativePayment]:
        result = await db.execute(
            select(AlternativePayment)
            .where(AlternativePayment.bill_id == bill_id)
            .order_by(AlternativePayment.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_pending_alternative_payments(db: AsyncSession, bill_id: UUID) -> List[AlternativePayment]:
        result = await db.execute(
            select(AlternativePayment)
            .where(
                AlternativePayment.bill_id == bill_id,
                AlternativePayment.status == PaymentStatus.PENDING,
            )
            .order_by(AlternativePayment.created_at)
        )
        return list(result.scalars().all())

    # Reporting

    @staticmethod
    async def get_payment_breakdown(db: AsyncSession, bill_id: UUID) -> PaymentBreakdown:
        """Crypto vs. alternative money received against a bill"""
        bill = await BillService.get_bill(db, bill_id)

        crypto_paid = await db.scalar(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.bill_id == bill_id,
                Payment.status == PaymentStatus.CONFIRMED,
            )
        )
        alternative_paid = await db.scalar(
            select(func.coalesce(func.sum(AlternativePayment.amount), 0)).where(
                AlternativePayment.bill_id == bill_id,
                AlternativePayment.status == PaymentStatus.CONFIRMED,
            )
        )
        # Completion follows the bill's own running total, which every applied payment updates
        return PaymentBreakdown(
            total_amount=bill.total_amount,
            crypto_paid=quantize(Decimal(str(crypto_paid or 0))),
            alternative_paid=quantize(Decimal(str(alternative_paid or 0))),
            tip_amount=bill.tip_amount,
            remaining=bill.remaining_amount,
            is_complete=bill.paid_amount >= bill.total_amount,
        )
