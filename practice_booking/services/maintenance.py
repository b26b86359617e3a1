# practice_booking/services/maintenance.py
from __future__ import annotations

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.clock import Clock, system_clock
from practice_booking.core.config import settings
from practice_booking.core.logging import get_logger
from practice_booking.crud import appointment as appointment_crud
from practice_booking.crud import temporary_block as block_crud
from practice_booking.services.availability_cache import AvailabilityCache

logger = get_logger(__name__)


class MaintenanceReport(BaseModel):
    appointments_deleted: int
    temporary_blocks_deleted: int


async def run_daily_maintenance(
    db: AsyncSession,
    clock: Clock = system_clock,
    *,
    retention_days: int = settings.APPOINTMENT_RETENTION_DAYS,
    cache: Optional[AvailabilityCache] = None,
) -> MaintenanceReport:
    """Purge appointments past retention and temporary blocks past expiry."""
    now = clock.now()
    blocks = await block_crud.delete_expired(db, now)
    await db.commit()
    appointments = await appointment_crud.delete_created_before(db, now - timedelta(days=retention_days))

    if cache is not None and (blocks or appointments):
        await cache.clear()

    report = MaintenanceReport(appointments_deleted=appointments, temporary_blocks_deleted=blocks)
    logger.info("daily_maintenance_completed", **report.model_dump())
    return report
