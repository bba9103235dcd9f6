"""Guest orders awaiting staff review"""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, JSON, String, Text, Uuid

from app.models.base import BaseModel, BusinessScopedMixin
from app.models.enums import OrderStatus


class Order(BaseModel, BusinessScopedMixin):
    """
    A guest's proposal of items for a bill.
    Items live here until approval so they never affect the bill's totals.
    """
    __tablename__ = "orders"

    bill_id = Column(Uuid(as_uuid=True), ForeignKey("bills.id", ondelete="CASCADE"), nullable=False, index=True)
    order_number = Column(String(32), nullable=False)
    items = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    status = Column(
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.PENDING,
        nullable=False,
        index=True,
    )
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejected_reason = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Order {self.order_number} - {self.status}>"
