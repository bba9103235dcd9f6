from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime
from decimal import Decimal


class BusinessCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    owner_address: str = Field(..., min_length=1, max_length=255)
    settlement_address: str = Field(..., min_length=1, max_length=255)
    tipping_address: str = Field(..., min_length=1, max_length=255)
    # Fractions: 0.08 == 8%
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=1, max_digits=6, decimal_places=4)
    service_fee_rate: Decimal = Field(Decimal("0"), ge=0, le=1, max_digits=6, decimal_places=4)


class BusinessRatesUpdate(BaseModel):
    tax_rate: Optional[Decimal] = Field(None, ge=0, le=1, max_digits=6, decimal_places=4)
    service_fee_rate: Optional[Decimal] = Field(None, ge=0, le=1, max_digits=6, decimal_places=4)


class BusinessResponse(BaseModel):
    id: UUID
    name: str
    owner_address: str
    settlement_address: str
    tipping_address: str
    tax_rate: Decimal
    service_fee_rate: Decimal
    counter_enabled: bool
    counter_prefix: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TableCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class TableResponse(BaseModel):
    id: UUID
    business_id: UUID
    table_code: str
    name: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class CounterConfig(BaseModel):
    enabled: bool
    count: int = Field(0, ge=0, le=100)
    prefix: str = Field("C", min_length=1, max_length=20)


class CounterResponse(BaseModel):
    id: UUID
    business_id: UUID
    counter_number: int
    name: str
    is_active: bool
    current_bill_id: Optional[UUID] = None

    model_config = ConfigDict(from_attributes=True)
