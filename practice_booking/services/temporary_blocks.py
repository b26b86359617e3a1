# practice_booking/services/temporary_blocks.py
"""
Temporary Block Manager: short-lived soft locks that keep a start slot for
the session that picked it while its client fills in the booking form.
"""
from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.business import reject_past
from practice_booking.core.clock import Clock, system_clock
from practice_booking.core.config import settings
from practice_booking.core.errors import SlotUnavailableError, TemporaryBlockNotFoundError
from practice_booking.core.logging import get_logger
from practice_booking.crud import temporary_block as block_crud
from practice_booking.db.models.temporary_block import TemporaryBlock
from practice_booking.services.availability import AvailabilityEngine

logger = get_logger(__name__)


class TemporaryBlockManager:
    def __init__(
        self,
        db: AsyncSession,
        engine: AvailabilityEngine,
        clock: Clock = system_clock,
        ttl: timedelta = timedelta(minutes=settings.TEMPORARY_BLOCK_TTL_MINUTES),
    ):
        self.db = db
        self.engine = engine
        self.clock = clock
        self.ttl = ttl

    async def create_temporary_block(self, day: date, time: str, session_id: str) -> TemporaryBlock:
        """
        Hold ``time`` on ``day`` for ``session_id``, replacing any previous hold
        of that session. Raises SlotUnavailableError when the slot can't fit
        even the shortest service or another session got there first, and
        BookingValidationError when the slot has already started.
        """
        previous = await self._release(session_id)
        if previous:
            logger.info("temporary_block_replaced", session_id=session_id)

        reject_past(day, time, self.clock.now())
        minimum = await self.engine.minimum_service_duration()
        fits = await self.engine.is_slot_available_for_duration(
            day, time, minimum, exclude_session_id=session_id
        )
        if not fits:
            logger.info("temporary_block_rejected", date=day.isoformat(), time=time, session_id=session_id)
            raise SlotUnavailableError(date=day.isoformat(), time=time)

        now = self.clock.now()
        block = TemporaryBlock(
            date=day,
            time=time,
            session_id=session_id,
            created_at=now,
            expires_at=now + self.ttl,
        )
        self.db.add(block)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info("temporary_block_conflict", date=day.isoformat(), time=time, session_id=session_id)
            raise SlotUnavailableError(date=day.isoformat(), time=time)

        await self.engine.invalidate(day)
        logger.info(
            "temporary_block_created",
            date=day.isoformat(),
            time=time,
            session_id=session_id,
            expires_at=block.expires_at.isoformat(),
        )
        return block

    async def extend_temporary_block(self, session_id: str) -> TemporaryBlock:
        now = self.clock.now()
        live = await block_crud.get_live_for_session(self.db, session_id, now)
        if live is None:
            raise TemporaryBlockNotFoundError(session_id=session_id)

        live.expires_at = now + self.ttl
        await self.db.commit()
        logger.info("temporary_block_extended", session_id=session_id, expires_at=live.expires_at.isoformat())
        return live

    async def remove_temporary_block(self, session_id: str) -> int:
        """Idempotent; returns the number of holds removed."""
        removed = await self._release(session_id)
        if removed:
            logger.info("temporary_block_removed", session_id=session_id)
        return removed

    async def cleanup_expired_blocks(self) -> int:
        removed = await block_crud.delete_expired(self.db, self.clock.now())
        await self.db.commit()
        if removed:
            logger.info("temporary_blocks_expired_cleanup", removed=removed)
        return removed

    async def _release(self, session_id: str) -> int:
        """Purge expired holds and the session's own hold in one commit."""
        await block_crud.delete_expired(self.db, self.clock.now())
        existing = await block_crud.get_for_session(self.db, session_id)
        removed = await block_crud.delete_for_session(self.db, session_id)
        await self.db.commit()
        if existing is not None:
            await self.engine.invalidate(existing.date)
        return removed
