from decimal import Decimal
from typing import Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BusinessNotFound
from app.core.logging import get_logger
from app.database import transaction
from app.models.business import Business
from app.schemas.business import BusinessCreate, BusinessRatesUpdate

logger = get_logger(__name__)


class BusinessService:
    """Service layer for Business operations and the rate configuration provider"""

    @staticmethod
    async def get_business(db: AsyncSession, business_id: UUID) -> Business:
        result = await db.execute(
            select(Business).where(Business.id == business_id)
        )
        business = result.scalar_one_or_none()
        if not business:
            raise BusinessNotFound(business_id)
        return business

    @staticmethod
    async def get_rates(db: AsyncSession, business_id: UUID) -> Tuple[Decimal, Decimal]:
        """
        Current (tax_rate, service_fee_rate) as fractions.
        Always read fresh: totals use the rates in force when they are recomputed.
        """
        result = await db.execute(
            select(Business.tax_rate, Business.service_fee_rate).where(Business.id == business_id)
        )
        row = result.first()
        if row is None:
            raise BusinessNotFound(business_id)
        return Decimal(row.tax_rate), Decimal(row.service_fee_rate)

    @staticmethod
    async def create_business(db: AsyncSession, data: BusinessCreate) -> Business:
        async with transaction(db):
            business = Business(
                name=data.name,
                owner_address=data.owner_address,
                settlement_address=data.settlement_address,
                tipping_address=data.tipping_address,
                tax_rate=data.tax_rate,
                service_fee_rate=data.service_fee_rate,
                is_active=True,
            )
            db.add(business)
            await db.flush()
        logger.info("Business created", extra={"business_id": business.id})
        return business

    @staticmethod
    async def update_rates(db: AsyncSession, business_id: UUID, data: BusinessRatesUpdate) -> Business:
        """Change rates. Open bills pick them up on their next recomputation."""
        async with transaction(db):
            business = await BusinessService.get_business(db, business_id)
            if data.tax_rate is not None:
                business.tax_rate = data.tax_rate
            if data.service_fee_rate is not None:
                business.service_fee_rate = data.service_fee_rate
        logger.info(
            "Business rates updated",
            extra={
                "business_id": business_id,
                "tax_rate": str(business.tax_rate),
                "service_fee_rate": str(business.service_fee_rate),
            },
        )
        return business
