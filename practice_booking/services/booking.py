# practice_booking/services/booking.py
from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.business import reject_past
from practice_booking.core.clock import Clock, ensure_utc, system_clock
from practice_booking.core.config import settings
from practice_booking.core.errors import (
    AppointmentNotFoundError,
    InvalidTransitionError,
    RescheduleLimitError,
    ServiceNotFoundError,
    SlotUnavailableError,
)
from practice_booking.core.logging import get_logger
from practice_booking.crud import appointment as appointment_crud
from practice_booking.crud import service as service_crud
from practice_booking.db.models.appointment import CANCELLED, CONFIRMED, PENDING, Appointment
from practice_booking.schemas.appointment import AppointmentCreate, Initiator
from practice_booking.services import state_machine
from practice_booking.services.availability import AvailabilityEngine

logger = get_logger(__name__)


class BookingService:
    """Appointment lifecycle on top of the availability engine and slot claims."""

    def __init__(
        self,
        db: AsyncSession,
        engine: AvailabilityEngine,
        clock: Clock = system_clock,
        max_client_reschedules: int = settings.MAX_CLIENT_RESCHEDULES,
        token_ttl: timedelta = timedelta(days=settings.RESERVATION_TOKEN_TTL_DAYS),
    ):
        self.db = db
        self.engine = engine
        self.clock = clock
        self.max_client_reschedules = max_client_reschedules
        self.token_ttl = token_ttl

    # ---------- helpers ----------

    async def _get(self, appointment_id: str) -> Appointment:
        appt = await appointment_crud.get_appointment(self.db, appointment_id)
        if appt is None:
            raise AppointmentNotFoundError(appointment_id=appointment_id)
        return appt

    async def _duration_for(self, service_id: str) -> int:
        service = await service_crud.get_service(self.db, service_id)
        if service is None:
            logger.warning("service_missing_using_default_duration", service_id=service_id)
            return self.engine.default_duration
        return service.duration_minutes

    # ---------- booking ----------

    async def submit_appointment(self, data: AppointmentCreate) -> Appointment:
        """
        Re-validate the chosen slot and persist a pending appointment with its
        slot claims. The session's hold is released in the same transaction.
        """
        service = await service_crud.get_service(self.db, data.service_id)
        if service is None:
            raise ServiceNotFoundError(service_id=data.service_id)

        day, time = data.preferred_date, data.preferred_time
        reject_past(day, time, self.clock.now())

        claim = await self.engine.slots_to_claim(
            day, time, service.duration_minutes, exclude_session_id=data.session_id
        )
        if claim is None:
            logger.info("booking_rejected", date=day.isoformat(), time=time, service_id=service.id)
            raise SlotUnavailableError(date=day.isoformat(), time=time)

        now = self.clock.now()
        appt = Appointment(
            service_id=service.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            message=data.message,
            preferred_date=day,
            preferred_time=time,
            status=PENDING,
            reschedule_count=0,
            is_archived=False,
            reservation_token=str(uuid.uuid4()),
            token_expires_at=now + self.token_ttl,
            created_at=now,
            updated_at=now,
        )
        await appointment_crud.create_appointment_unique(
            self.db,
            appt,
            claim_times=claim,
            release_session_id=data.session_id,
        )
        await self.engine.invalidate(day)

        logger.info(
            "appointment_booked",
            appointment_id=appt.id,
            date=day.isoformat(),
            time=time,
            service_id=service.id,
        )
        return appt

    async def reschedule(
        self,
        appointment_id: str,
        new_date: date,
        new_time: str,
        initiated_by: Initiator = "client",
    ) -> Appointment:
        appt = await self._get(appointment_id)
        if not appt.is_active:
            raise InvalidTransitionError(
                "Only pending or confirmed appointments can be rescheduled.", appointment_id=appt.id
            )
        if initiated_by == "client" and appt.reschedule_count >= self.max_client_reschedules:
            raise RescheduleLimitError(appointment_id=appt.id, limit=self.max_client_reschedules)

        reject_past(new_date, new_time, self.clock.now())
        duration = await self._duration_for(appt.service_id)
        claim = await self.engine.slots_to_claim(new_date, new_time, duration, exclude_appointment_id=appt.id)
        if claim is None:
            raise SlotUnavailableError(date=new_date.isoformat(), time=new_time)

        old_date, old_time = appt.effective_date, appt.effective_time
        appt.original_date, appt.original_time = old_date, old_time
        appt.reschedule_count += 1
        if initiated_by == "admin":
            appt.confirmed_date, appt.confirmed_time = new_date, new_time
            appt.status = CONFIRMED
        else:
            appt.preferred_date, appt.preferred_time = new_date, new_time
            appt.confirmed_date = appt.confirmed_time = None
            if appt.status == CONFIRMED:
                appt.status = PENDING
        appt.updated_at = self.clock.now()

        await appointment_crud.save_with_claims(self.db, appt, claim)
        await self.engine.invalidate(old_date, new_date)

        logger.info(
            "appointment_rescheduled",
            appointment_id=appt.id,
            initiated_by=initiated_by,
            from_date=old_date.isoformat(),
            from_time=old_time,
            to_date=new_date.isoformat(),
            to_time=new_time,
            reschedule_count=appt.reschedule_count,
        )
        return appt

    # ---------- status changes ----------

    async def change_status(
        self,
        appointment_id: str,
        target: str,
        *,
        actor: str = "admin",
        reason: Optional[str] = None,
    ) -> Appointment:
        appt = await self._get(appointment_id)
        previous = appt.status
        state_machine.apply_transition(appt, target, self.clock.now(), actor=actor, reason=reason)
        if not appt.is_active:
            await appointment_crud.release_claims(self.db, appt.id)
        await self.db.commit()
        await self.engine.invalidate(appt.effective_date)

        logger.info("appointment_status_changed", appointment_id=appt.id, previous=previous, status=target, actor=actor)
        return appt

    async def cancel(self, appointment_id: str, *, cancelled_by: str = "client", reason: Optional[str] = None) -> Appointment:
        return await self.change_status(appointment_id, CANCELLED, actor=cancelled_by, reason=reason)

    async def archive(self, appointment_id: str) -> Appointment:
        appt = await self._get(appointment_id)
        state_machine.archive(appt, self.clock.now())
        await appointment_crud.release_claims(self.db, appt.id)
        await self.db.commit()
        await self.engine.invalidate(appt.effective_date)
        logger.info("appointment_archived", appointment_id=appt.id, status=appt.status)
        return appt

    # ---------- reservation link ----------

    async def get_reservation(self, token: str) -> Appointment:
        appt = await appointment_crud.get_by_token(self.db, token)
        if appt is None or appt.is_archived:
            raise AppointmentNotFoundError()
        if ensure_utc(appt.token_expires_at) <= self.clock.now():
            logger.info("reservation_token_expired", appointment_id=appt.id)
            raise AppointmentNotFoundError()
        return appt

    async def cancel_by_token(self, token: str, reason: Optional[str] = None) -> Appointment:
        appt = await self.get_reservation(token)
        return await self.cancel(appt.id, cancelled_by="client", reason=reason)

    async def reschedule_by_token(self, token: str, new_date: date, new_time: str) -> Appointment:
        appt = await self.get_reservation(token)
        return await self.reschedule(appt.id, new_date, new_time, initiated_by="client")

    def reschedules_remaining(self, appt: Appointment) -> int:
        return max(0, self.max_client_reschedules - appt.reschedule_count)
