# practice_booking/api/deps.py
"""Per-request wiring of the booking services."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.clock import Clock, system_clock
from practice_booking.db.session import get_session
from practice_booking.services.availability import AvailabilityEngine
from practice_booking.services.availability_cache import AvailabilityCache
from practice_booking.services.booking import BookingService
from practice_booking.services.temporary_blocks import TemporaryBlockManager

# Process-wide; shared through Redis when REDIS_URL is set
availability_cache = AvailabilityCache()


def get_clock() -> Clock:
    return system_clock


def get_cache() -> AvailabilityCache:
    return availability_cache


def get_engine(
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    cache: AvailabilityCache = Depends(get_cache),
) -> AvailabilityEngine:
    return AvailabilityEngine(db, clock=clock, cache=cache)


def get_block_manager(
    db: AsyncSession = Depends(get_session),
    engine: AvailabilityEngine = Depends(get_engine),
    clock: Clock = Depends(get_clock),
) -> TemporaryBlockManager:
    return TemporaryBlockManager(db, engine, clock=clock)


def get_booking_service(
    db: AsyncSession = Depends(get_session),
    engine: AvailabilityEngine = Depends(get_engine),
    clock: Clock = Depends(get_clock),
) -> BookingService:
    return BookingService(db, engine, clock=clock)
