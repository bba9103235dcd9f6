from typing import List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, computed_field
from uuid import UUID
from datetime import datetime
from decimal import Decimal

from app.models.enums import BillStatus


class BillItemOption(BaseModel):
    """Selected menu option carried on a line item (display only)"""
    id: str
    name: str
    price_change: Decimal = Decimal("0.00")

    model_config = ConfigDict(frozen=True)


class BillItem(BaseModel):
    """
    Line item embedded in a bill. Value type: edits produce a new item and
    the bill's whole item sequence is replaced.
    """
    id: str
    menu_item_id: str
    name: str
    price: Decimal = Field(..., ge=0, decimal_places=2)
    quantity: int = Field(..., ge=1)
    options: Tuple[BillItemOption, ...] = ()

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


class BillItemCreate(BaseModel):
    menu_item_id: str = Field(..., min_length=1, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    quantity: int = Field(1, ge=1, le=999)
    options: List[BillItemOption] = Field(default_factory=list)


class BillItemQuantityUpdate(BaseModel):
    quantity: int = Field(..., ge=1, le=999)


class BillItemsReplace(BaseModel):
    items: List[BillItemCreate]


class BillCreate(BaseModel):
    """Open a bill on a table; a counter bill is opened via the counter endpoint"""
    table_id: UUID
    items: List[BillItemCreate] = Field(default_factory=list)
    notes: Optional[str] = None


class CounterBillCreate(BaseModel):
    items: List[BillItemCreate] = Field(default_factory=list)
    notes: Optional[str] = None


class BillResponse(BaseModel):
    id: UUID
    business_id: UUID
    table_id: Optional[UUID] = None
    counter_id: Optional[UUID] = None
    bill_number: str
    items: List[BillItem]
    subtotal: Decimal
    tax_amount: Decimal
    service_fee_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    tip_amount: Decimal
    status: BillStatus
    notes: Optional[str] = None
    created_at: datetime
    closed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BillSnapshot(BaseModel):
    """Immutable view of a bill's items and totals used for split previews"""
    bill_id: UUID
    items: Tuple[BillItem, ...]
    subtotal: Decimal
    tax_amount: Decimal
    service_fee_amount: Decimal
    total_amount: Decimal

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_bill(cls, bill) -> "BillSnapshot":
        return cls(
            bill_id=bill.id,
            items=tuple(BillItem.model_validate(item) for item in bill.items or []),
            subtotal=bill.subtotal,
            tax_amount=bill.tax_amount,
            service_fee_amount=bill.service_fee_amount,
            total_amount=bill.total_amount,
        )
