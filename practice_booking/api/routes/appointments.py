# practice_booking/api/routes/appointments.py

from __future__ import annotations
from typing import Optional
from fastapi import APIRouter, Depends

from practice_booking.api.deps import get_booking_service
from practice_booking.core.logging import bind_booking_session
from practice_booking.db.models.appointment import Appointment
from practice_booking.schemas.appointment import (
    AppointmentCreate,
    BookingOut,
    CancelIn,
    ReservationOut,
    RescheduleIn,
)
from practice_booking.services.booking import BookingService

router = APIRouter(tags=["appointments"])


def _booking_out(appt: Appointment) -> BookingOut:
    return BookingOut(
        id=appt.id,
        status=appt.status,
        date=appt.effective_date,
        time=appt.effective_time,
        reservation_token=appt.reservation_token,
        token_expires_at=appt.token_expires_at,
    )


def _reservation_out(appt: Appointment, booking: BookingService) -> ReservationOut:
    return ReservationOut(
        id=appt.id,
        service_id=appt.service_id,
        name=appt.name,
        date=appt.effective_date,
        time=appt.effective_time,
        status=appt.status,
        reschedule_count=appt.reschedule_count,
        reschedules_remaining=booking.reschedules_remaining(appt),
    )


@router.post("/appointments", response_model=BookingOut, status_code=201)
async def book_appointment(payload: AppointmentCreate, booking: BookingService = Depends(get_booking_service)):
    bind_booking_session(payload.session_id)
    appt = await booking.submit_appointment(payload)
    return _booking_out(appt)


# ---------- Reservation link (token-based self service) ----------

@router.get("/reservations/{token}", response_model=ReservationOut)
async def get_reservation(token: str, booking: BookingService = Depends(get_booking_service)):
    appt = await booking.get_reservation(token)
    return _reservation_out(appt, booking)


@router.post("/reservations/{token}/cancel", response_model=ReservationOut)
async def cancel_reservation(
    token: str,
    payload: Optional[CancelIn] = None,
    booking: BookingService = Depends(get_booking_service),
):
    appt = await booking.cancel_by_token(token, reason=payload.reason if payload else None)
    return _reservation_out(appt, booking)


@router.post("/reservations/{token}/reschedule", response_model=ReservationOut)
async def reschedule_reservation(
    token: str,
    payload: RescheduleIn,
    booking: BookingService = Depends(get_booking_service),
):
    appt = await booking.reschedule_by_token(token, payload.date, payload.time)
    return _reservation_out(appt, booking)
