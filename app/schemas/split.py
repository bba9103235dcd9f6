from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from uuid import UUID
from decimal import Decimal

from app.models.enums import SplitMethod
from app.schemas.bill import BillItem, BillResponse


class EqualSplitRequest(BaseModel):
    num_people: int


class CustomSplitRequest(BaseModel):
    amounts: Dict[str, Decimal]
    people: Dict[str, str] = Field(default_factory=dict)


class ItemSplitRequest(BaseModel):
    item_selections: Dict[str, List[str]]
    people: Dict[str, str] = Field(default_factory=dict)


class SplitPreviewRequest(BaseModel):
    """
    Any strategy behind one body; ``method`` picks which parameters are read.
    The method stays a plain string so an unknown one reaches the engine.
    """
    method: str
    num_people: Optional[int] = None
    amounts: Dict[str, Decimal] = Field(default_factory=dict)
    item_selections: Dict[str, List[str]] = Field(default_factory=dict)
    people: Dict[str, str] = Field(default_factory=dict)


class SplitItem(BaseModel):
    """Portion of one bill item attributed to a participant"""
    item_id: str
    name: str
    price: Decimal
    quantity: int
    shared_with: int = 1
    subtotal: Decimal


class PersonSplit(BaseModel):
    person_id: str
    person_name: Optional[str] = None
    amount: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    service_fee: Decimal
    items: List[SplitItem] = Field(default_factory=list)


class SplitResult(BaseModel):
    bill_id: UUID
    method: SplitMethod
    total_amount: Decimal
    splits: List[PersonSplit]
    is_balanced: bool
    breakdown: Dict[str, Any] = Field(default_factory=dict)


class SplitOption(BaseModel):
    available: bool
    description: str
    min_people: int
    max_people: int
    total_items: Optional[int] = None


class SplitOptions(BaseModel):
    """What a guest can choose from before asking for a preview"""
    bill: BillResponse
    remaining_amount: Decimal
    items: List[BillItem]
    split_options: Dict[SplitMethod, SplitOption]
