"""Settlement records against a bill"""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Numeric, String, Uuid

from app.models.base import BaseModel
from app.models.enums import AlternativePaymentMethod, PaymentStatus


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Payment(BaseModel):
    """
    On-chain payment reported by the confirmation feed.
    ``tx_hash`` is unique: a transaction can be applied to a bill only once.
    """
    __tablename__ = "payments"

    bill_id = Column(Uuid(as_uuid=True), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    payer_address = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    tip_amount = Column(Numeric(12, 2), nullable=False, default=0)
    tx_hash = Column(String(128), nullable=False, unique=True, index=True)
    status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=_enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    confirmed_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Payment {self.tx_hash} {self.amount} - {self.status}>"


class AlternativePayment(BaseModel):
    """Cash, card or other off-chain payment confirmed by staff"""
    __tablename__ = "alternative_payments"

    bill_id = Column(Uuid(as_uuid=True), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    participant_address = Column(String(255), nullable=False, default="guest")
    participant_name = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    tip_amount = Column(Numeric(12, 2), nullable=False, default=0)
    payment_method = Column(
        Enum(AlternativePaymentMethod, name="alternative_payment_method", values_callable=_enum_values),
        nullable=False,
    )
    status = Column(
        Enum(PaymentStatus, name="alternative_payment_status", values_callable=_enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
        index=True,
    )
    confirmed_by = Column(String(255), nullable=True)
    confirmed_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<AlternativePayment {self.payment_method} {self.amount} - {self.status}>"
