# practice_booking/services/public_availability.py
"""
Coarse, CDN-cacheable availability snapshot.

Only the admin-open grid is computed server side; buffers and service fit are
left to the client, which receives the raw appointment and hold listings.
Session identities never leave the server.
"""
from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.clock import Clock, system_clock
from practice_booking.crud import appointment as appointment_crud
from practice_booking.crud import temporary_block as block_crud
from practice_booking.schemas.availability import PublicAppointment, PublicAvailabilityOut, PublicDay, PublicHold
from practice_booking.services.day_schedule import SlotState, load_day_schedules


async def build_public_availability(
    db: AsyncSession, start: date, days: int = 1, clock: Clock = system_clock
) -> PublicAvailabilityOut:
    end = start + timedelta(days=max(days, 1) - 1)
    now = clock.now()

    schedules = await load_day_schedules(db, start, end)
    appointments = await appointment_crud.list_active_between(db, start, end)
    holds = await block_crud.list_live_between(db, start, end, now)

    return PublicAvailabilityOut(
        start_date=start,
        end_date=end,
        days=[
            PublicDay(date=d, open_slots=[t for t, s in grid.items() if s.state is SlotState.OPEN])
            for d, grid in sorted(schedules.items())
        ],
        appointments=[
            PublicAppointment(
                date=a.effective_date,
                time=a.effective_time,
                service_id=a.service_id,
                status=a.status,
            )
            for a in appointments
        ],
        temporary_blocks=[PublicHold(date=b.date, time=b.time, expires_at=b.expires_at) for b in holds],
        generated_at=now,
    )
