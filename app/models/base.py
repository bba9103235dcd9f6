"""Base Models and Mixins"""

import uuid
from sqlalchemy import Column, DateTime, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import declared_attr

from app.database import Base
from app.utils.time import get_utc_now


class BaseModel(Base):
    """
    Base model class with common fields for all models.

    Provides:
    - UUID primary key
    - created_at timestamp
    - updated_at timestamp
    """
    __abstract__ = True

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    created_at = Column(DateTime, default=get_utc_now, nullable=False)
    updated_at = Column(DateTime, default=get_utc_now, onupdate=get_utc_now, nullable=False)


class BusinessScopedMixin:
    """
    Mixin for multi-tenant models scoped to a business.

    Provides:
    - business_id foreign key
    """

    @declared_attr
    def business_id(cls):
        return Column(
            Uuid(as_uuid=True),
            ForeignKey("businesses.id", ondelete="CASCADE"),
            nullable=False,
            index=True
        )


class StatusMixin:
    """
    Mixin for models with active/inactive status.

    Provides:
    - is_active boolean flag
    """
    is_active = Column(Boolean, default=True, nullable=False, index=True)
