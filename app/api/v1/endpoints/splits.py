"""Split previews - advisory, never change the bill"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api import deps
from app.schemas.responses import SuccessResponse
from app.schemas.split import (
    CustomSplitRequest,
    EqualSplitRequest,
    ItemSplitRequest,
    SplitOptions,
    SplitPreviewRequest,
    SplitResult,
)
from app.services.split_calculator import SplitService

router = APIRouter()


@router.post("/{bill_id}/splits/equal", response_model=SuccessResponse[SplitResult])
async def split_equal(
    bill_id: UUID,
    split_in: EqualSplitRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    result = await SplitService.preview_equal(db, bill_id, split_in.num_people)
    return SuccessResponse(data=result)


@router.post("/{bill_id}/splits/custom", response_model=SuccessResponse[SplitResult])
async def split_custom(
    bill_id: UUID,
    split_in: CustomSplitRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    result = await SplitService.preview_custom(db, bill_id, split_in.amounts, split_in.people)
    return SuccessResponse(data=result)


@router.post("/{bill_id}/splits/items", response_model=SuccessResponse[SplitResult])
async def split_items(
    bill_id: UUID,
    split_in: ItemSplitRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    result = await SplitService.preview_items(db, bill_id, split_in.item_selections, split_in.people)
    return SuccessResponse(data=result)


@router.get("/{bill_id}/split/options", response_model=SuccessResponse[SplitOptions])
async def get_split_options(
    bill_id: UUID,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    options = await SplitService.options(db, bill_id)
    return SuccessResponse(data=options)


@router.post("/{bill_id}/split/validate", response_model=SuccessResponse[SplitResult])
async def validate_split(
    bill_id: UUID,
    split_in: SplitPreviewRequest,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """Check a split of any method against the bill without saving anything"""
    result = await SplitService.preview(
        db, bill_id, split_in.method, split_in.model_dump(exclude={"method"})
    )
    return SuccessResponse(data=result, message="Split is valid")
