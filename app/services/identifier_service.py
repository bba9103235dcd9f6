"""Identifier Service - collision-free table codes and bill numbers"""

from typing import Callable, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from app.config import settings
from app.core.exceptions import IdentifierExhausted
from app.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class IdentifierService:
    """
    Uniqueness is enforced by the database's unique indexes. Looking a value up before
    insert only avoids most collisions; a duplicate rejected at insert time
    is treated as one more collision and retried, up to
    ``settings.IDENTIFIER_MAX_ATTEMPTS`` attempts.
    """

    @staticmethod
    async def identifier_exists(db: AsyncSession, column: InstrumentedAttribute, value: str) -> bool:
        result = await db.execute(select(column).where(column == value).limit(1))
        return result.first() is not None

    @staticmethod
    async def insert_with_unique_identifier(
        db: AsyncSession,
        kind: str,
        column: InstrumentedAttribute,
        generate: Callable[[], str],
        build: Callable[[str], T],
        max_attempts: Optional[int] = None,
    ) -> T:
        """
        Insert ``build(candidate)`` with a fresh identifier, retrying on collision.

        Each attempt runs in a SAVEPOINT so a rejected insert leaves the
        caller's transaction usable. An IntegrityError that is not caused by
        the identifier (the candidate still does not exist afterwards) is
        re-raised for the caller to translate.

        Raises:
            IdentifierExhausted: every attempt collided
        """
        attempts = max_attempts or settings.IDENTIFIER_MAX_ATTEMPTS
        for attempt in range(1, attempts + 1):
            candidate = generate()
            if await IdentifierService.identifier_exists(db, column, candidate):
                logger.info(
                    "%s collision, retrying",
                    kind,
                    extra={"identifier_kind": kind, "attempt": attempt},
                )
                continue

            instance = build(candidate)
            try:
                async with db.begin_nested():
                    db.add(instance)
                    await db.flush()
            except IntegrityError:
                if not await IdentifierService.identifier_exists(db, column, candidate):
                    raise
                logger.warning(
                    "%s taken by a concurrent insert, retrying",
                    kind,
                    extra={"identifier_kind": kind, "attempt": attempt},
                )
                continue
            return instance

        logger.error("%s generation exhausted", kind, extra={"identifier_kind": kind, "attempts": attempts})
        raise IdentifierExhausted(kind, attempts)
