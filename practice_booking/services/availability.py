# practice_booking/services/availability.py
"""
Availability Query API.

Combines the base day grid, the projection of active appointments and the
live temporary blocks of other sessions into per-slot availability.
Store failures never surface as "available": listings come back empty and
point checks come back False.
"""
from __future__ import annotations

from datetime import date
from typing import Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.business import ALL_SLOTS, SLOT_MINUTES, add_minutes, slot_run
from practice_booking.core.clock import Clock, ensure_utc, system_clock
from practice_booking.core.config import settings
from practice_booking.core.errors import ErrorSeverity, log_error
from practice_booking.core.logging import get_logger
from practice_booking.crud import appointment as appointment_crud
from practice_booking.crud import service as service_crud
from practice_booking.crud import temporary_block as block_crud
from practice_booking.db.models.temporary_block import TemporaryBlock
from practice_booking.schemas.availability import SlotAvailability
from practice_booking.schemas.service import ServiceId
from practice_booking.services.availability_cache import AvailabilityCache
from practice_booking.services.day_schedule import DaySchedule, SlotState, load_day_schedule
from practice_booking.services.projector import BookedRange, project_appointments

logger = get_logger(__name__)


class AvailabilityEngine:
    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = system_clock,
        cache: Optional[AvailabilityCache] = None,
        default_duration: int = settings.DEFAULT_SERVICE_DURATION_MINUTES,
    ):
        self.db = db
        self.clock = clock
        self.cache = cache
        self.default_duration = default_duration

    # ---------- building blocks ----------

    async def project_day(
        self,
        day: date,
        durations: Mapping[ServiceId, int],
        *,
        exclude_appointment_id: Optional[str] = None,
    ) -> DaySchedule:
        """Base grid for the date with its active appointments overlaid."""
        base = await load_day_schedule(self.db, day)
        appointments = await appointment_crud.list_active_for_date(
            self.db, day, exclude_appointment_id=exclude_appointment_id
        )

        bookings = []
        for appt in appointments:
            duration = durations.get(ServiceId(appt.service_id))
            if duration is None:
                logger.warning(
                    "appointment_service_unknown",
                    appointment_id=appt.id,
                    service_id=appt.service_id,
                    fallback_minutes=self.default_duration,
                )
                duration = self.default_duration
            bookings.append(BookedRange(appt.id, appt.effective_time, duration))

        return project_appointments(base, bookings, durations.values())

    async def live_holds(self, day: date, exclude_session_id: Optional[str]) -> Sequence[TemporaryBlock]:
        return await block_crud.list_live_for_date(
            self.db, day, self.clock.now(), exclude_session_id=exclude_session_id
        )

    async def held_slots(self, day: date, exclude_session_id: Optional[str]) -> set[str]:
        """Start slots held by live blocks of sessions other than the caller."""
        return {b.time for b in await self.live_holds(day, exclude_session_id)}

    @staticmethod
    def run_fits(schedule: DaySchedule, held: set[str], start: str, duration_minutes: int) -> bool:
        run = slot_run(start, duration_minutes)
        if run is None:
            return False
        return all(schedule[t].state is SlotState.OPEN and t not in held for t in run)

    # ---------- queries ----------

    async def list_available_slots(
        self, day: date, exclude_session_id: Optional[str] = None, *, use_cache: bool = True
    ) -> list[SlotAvailability]:
        if use_cache and self.cache is not None:
            cached = await self.cache.get(day, exclude_session_id)
            if cached is not None:
                return cached

        try:
            durations = await service_crud.get_service_durations(self.db)
            schedule = await self.project_day(day, durations)
            holds = await self.live_holds(day, exclude_session_id)
        except SQLAlchemyError as e:
            log_error(e, {"operation": "list_available_slots", "date": day.isoformat()}, ErrorSeverity.MEDIUM)
            return []

        held = {b.time for b in holds}
        slots = []
        for t in ALL_SLOTS:
            status = schedule[t]
            is_held = t in held
            is_available = status.state is SlotState.OPEN and not is_held
            if is_available:
                service_availability = {
                    sid: self.run_fits(schedule, held, t, minutes) for sid, minutes in durations.items()
                }
            else:
                service_availability = {sid: False for sid in durations}
            slots.append(
                SlotAvailability(
                    date=day,
                    time=t,
                    is_available=is_available,
                    is_booked=status.state is SlotState.BOOKED,
                    is_buffer=status.is_buffer,
                    is_temporarily_blocked=is_held,
                    service_availability=service_availability,
                )
            )

        if use_cache and self.cache is not None:
            # The listing goes stale the moment the first hold in it expires
            valid_until = min((ensure_utc(b.expires_at) for b in holds), default=None)
            await self.cache.set(day, exclude_session_id, slots, valid_until=valid_until)
        return slots

    async def slots_to_claim(
        self,
        day: date,
        time: str,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> Optional[list[str]]:
        """
        Slots a booking of ``duration_minutes`` at ``time`` would take: its run
        plus the forward buffer when that slot is open. None when it doesn't fit.
        """
        run = slot_run(time, duration_minutes)
        if run is None:
            return None
        try:
            durations = await service_crud.get_service_durations(self.db)
            schedule = await self.project_day(day, durations, exclude_appointment_id=exclude_appointment_id)
            held = await self.held_slots(day, exclude_session_id)
        except SQLAlchemyError as e:
            log_error(
                e,
                {"operation": "is_slot_available", "date": day.isoformat(), "time": time},
                ErrorSeverity.MEDIUM,
            )
            return None
        if not self.run_fits(schedule, held, time, duration_minutes):
            return None

        buffer = add_minutes(time, len(run) * SLOT_MINUTES)
        if buffer in schedule and schedule[buffer].state is SlotState.OPEN:
            return run + [buffer]
        return run

    async def is_slot_available_for_duration(
        self,
        day: date,
        time: str,
        duration_minutes: int,
        exclude_session_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        claim = await self.slots_to_claim(
            day,
            time,
            duration_minutes,
            exclude_session_id=exclude_session_id,
            exclude_appointment_id=exclude_appointment_id,
        )
        return claim is not None

    async def is_slot_available_for_service(
        self,
        day: date,
        time: str,
        service_id: str,
        exclude_session_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        try:
            service = await service_crud.get_service(self.db, service_id)
        except SQLAlchemyError as e:
            log_error(e, {"operation": "is_slot_available", "service_id": service_id}, ErrorSeverity.MEDIUM)
            return False
        if service is None:
            return False
        return await self.is_slot_available_for_duration(
            day,
            time,
            service.duration_minutes,
            exclude_session_id=exclude_session_id,
            exclude_appointment_id=exclude_appointment_id,
        )

    async def minimum_service_duration(self) -> int:
        durations = await service_crud.get_service_durations(self.db)
        return min(durations.values(), default=SLOT_MINUTES)

    async def invalidate(self, *days: date) -> None:
        if self.cache is not None:
            await self.cache.invalidate(*days)
