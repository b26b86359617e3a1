# practice_booking/api/routes/availability.py

from __future__ import annotations
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.api.deps import get_engine
from practice_booking.core.logging import bind_booking_session
from practice_booking.crud.service import list_services
from practice_booking.db.session import get_session
from practice_booking.schemas.availability import SlotAvailability, SlotCheckOut
from practice_booking.schemas.service import ServiceOut
from practice_booking.services.availability import AvailabilityEngine

router = APIRouter(tags=["availability"])


@router.get("/services", response_model=List[ServiceOut])
async def get_services(db: AsyncSession = Depends(get_session)):
    return await list_services(db)


@router.get("/availability/{day}", response_model=List[SlotAvailability])
async def get_day_availability(
    day: date,
    session_id: Optional[str] = Query(None, max_length=128, description="Caller's booking session"),
    engine: AvailabilityEngine = Depends(get_engine),
):
    bind_booking_session(session_id)
    return await engine.list_available_slots(day, exclude_session_id=session_id)


@router.get("/availability/{day}/check", response_model=SlotCheckOut)
async def check_slot(
    day: date,
    time: str = Query(..., pattern=r"^\d{2}:\d{2}$"),
    service_id: str = Query(..., max_length=64),
    session_id: Optional[str] = Query(None, max_length=128),
    exclude_appointment_id: Optional[str] = Query(None, max_length=32),
    engine: AvailabilityEngine = Depends(get_engine),
):
    bind_booking_session(session_id)
    available = await engine.is_slot_available_for_service(
        day,
        time,
        service_id,
        exclude_session_id=session_id,
        exclude_appointment_id=exclude_appointment_id,
    )
    return SlotCheckOut(date=day, time=time, service_id=service_id, available=available)
