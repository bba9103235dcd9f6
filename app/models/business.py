"""Tenant configuration and seating: businesses, tables, counters"""

from decimal import Decimal

from sqlalchemy import Boolean, Column, String, Numeric, Integer, ForeignKey, UniqueConstraint, Uuid

from app.models.base import BaseModel, BusinessScopedMixin, StatusMixin


class Business(BaseModel, StatusMixin):
    """
    Tenant/Business model - the multi-tenant anchor.

    Rates are stored as fractions (0.08 == 8%) and read by the money
    calculator at the moment a bill's totals are recomputed.
    """
    __tablename__ = "businesses"

    name = Column(String(255), nullable=False)
    owner_address = Column(String(255), nullable=False, index=True)

    # Payout destinations
    settlement_address = Column(String(255), nullable=False)
    tipping_address = Column(String(255), nullable=False)

    # Rates
    tax_rate = Column(Numeric(6, 4), default=Decimal("0"), nullable=False)
    service_fee_rate = Column(Numeric(6, 4), default=Decimal("0"), nullable=False)

    # Counter settings
    counter_enabled = Column(Boolean, default=False, nullable=False)
    counter_prefix = Column(String(20), default="C", nullable=False)

    def __repr__(self) -> str:
        return f"<Business {self.name}>"


class Table(BaseModel, BusinessScopedMixin, StatusMixin):
    """Physical table; guests reach it through the public table_code"""
    __tablename__ = "tables"

    table_code = Column(String(32), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)

    def __repr__(self) -> str:
        return f"<Table {self.name} ({self.table_code})>"


class Counter(BaseModel, BusinessScopedMixin, StatusMixin):
    """Walk-up point-of-sale station holding at most one current bill"""
    __tablename__ = "counters"
    __table_args__ = (
        UniqueConstraint("business_id", "counter_number", name="uq_counters_business_number"),
    )

    counter_number = Column(Integer, nullable=False)
    name = Column(String(100), nullable=False)
    current_bill_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("bills.id", ondelete="SET NULL", use_alter=True, name="fk_counters_current_bill"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Counter {self.name}>"
