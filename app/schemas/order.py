from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.models.enums import OrderStatus


class OrderItem(BaseModel):
    """
    Item proposed by a guest. ``menu_item_id`` is optional: guest clients
    that only send a display name fall back to the name as the reference.
    """
    menu_item_id: Optional[str] = Field(None, max_length=255)
    menu_item_name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    quantity: int = Field(..., ge=1, le=999)
    special_requests: Optional[str] = None

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class OrderCreate(BaseModel):
    items: List[OrderItem] = Field(..., min_length=1)
    notes: Optional[str] = None


class OrderApprove(BaseModel):
    approved_by: Optional[str] = None


class OrderReject(BaseModel):
    reason: Optional[str] = None


class OrderResponse(BaseModel):
    id: UUID
    business_id: UUID
    bill_id: UUID
    order_number: str
    items: List[OrderItem]
    notes: Optional[str] = None
    status: OrderStatus
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejected_reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
