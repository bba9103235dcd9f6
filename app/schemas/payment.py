from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.models.enums import AlternativePaymentMethod, PaymentStatus


class PaymentEvent(BaseModel):
    """Fact delivered by the payment confirmation feed"""
    bill_id: UUID
    transaction_hash: str = Field(..., min_length=1, max_length=128)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    tip_amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    status: PaymentStatus
    payer_address: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    bill_id: UUID
    payer_address: Optional[str] = None
    amount: Decimal
    tip_amount: Decimal
    tx_hash: str
    status: PaymentStatus
    created_at: datetime
    confirmed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AlternativePaymentCreate(BaseModel):
    """Staff records a payment already received off-chain"""
    participant_address: str = Field("guest", max_length=255)
    participant_name: Optional[str] = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    tip_amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    payment_method: AlternativePaymentMethod
    confirmed_by: Optional[str] = None


class AlternativePaymentRequest(BaseModel):
    """Guest asks staff to collect an off-chain payment"""
    participant_name: Optional[str] = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    tip_amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)
    payment_method: AlternativePaymentMethod


class AlternativePaymentConfirm(BaseModel):
    confirmed_by: Optional[str] = None


class AlternativePaymentResponse(BaseModel):
    id: UUID
    bill_id: UUID
    participant_address: str
    participant_name: Optional[str] = None
    amount: Decimal
    tip_amount: Decimal
    payment_method: AlternativePaymentMethod
    status: PaymentStatus
    confirmed_by: Optional[str] = None
    confirmed_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentBreakdown(BaseModel):
    total_amount: Decimal
    crypto_paid: Decimal
    alternative_paid: Decimal
    tip_amount: Decimal
    remaining: Decimal
    is_complete: bool
