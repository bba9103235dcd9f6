"""Bill aggregate root"""

from decimal import Decimal

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, JSON, Numeric, String, Text, Uuid, text

from app.models.base import BaseModel, BusinessScopedMixin
from app.models.enums import BillStatus


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Bill(BaseModel, BusinessScopedMixin):
    """
    Running check for one table or counter session.

    ``items`` is an embedded, ordered list of BillItem documents and is
    always replaced as a whole. The money columns are derived from it by the
    money calculator and are never set independently. ``version`` is the
    optimistic-lock counter checked on every UPDATE.
    """
    __tablename__ = "bills"
    __table_args__ = (
        # At most one non-closed bill per table / per counter
        Index(
            "uq_bills_open_table",
            "table_id",
            unique=True,
            postgresql_where=text("closed_at IS NULL"),
            sqlite_where=text("closed_at IS NULL"),
        ),
        Index(
            "uq_bills_open_counter",
            "counter_id",
            unique=True,
            postgresql_where=text("closed_at IS NULL"),
            sqlite_where=text("closed_at IS NULL"),
        ),
    )

    table_id = Column(Uuid(as_uuid=True), ForeignKey("tables.id", ondelete="SET NULL"), nullable=True, index=True)
    counter_id = Column(Uuid(as_uuid=True), ForeignKey("counters.id", ondelete="SET NULL"), nullable=True, index=True)
    bill_number = Column(String(64), nullable=False, unique=True, index=True)

    items = Column(JSON, nullable=False, default=list)

    subtotal = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tax_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    service_fee_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    paid_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    tip_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    status = Column(
        Enum(BillStatus, name="bill_status", values_callable=_enum_values),
        default=BillStatus.OPEN,
        nullable=False,
        index=True,
    )
    settlement_address = Column(String(255), nullable=False)
    tipping_address = Column(String(255), nullable=False)
    notes = Column(Text, nullable=True)
    closed_at = Column(DateTime, nullable=True)

    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_closed(self) -> bool:
        return self.status == BillStatus.CLOSED

    @property
    def remaining_amount(self) -> Decimal:
        remaining = (self.total_amount or Decimal("0")) - (self.paid_amount or Decimal("0"))
        return max(remaining, Decimal("0.00"))

    def __repr__(self) -> str:
        return f"<Bill {self.bill_number} {self.total_amount} - {self.status}>"
