# practice_booking/schemas/appointment.py

from __future__ import annotations
import datetime as dt
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from practice_booking.schemas.schedule import SlotTime

Initiator = Literal["client", "admin"]


class AppointmentCreate(BaseModel):
    service_id: str = Field(..., min_length=1, max_length=64)
    preferred_date: dt.date
    preferred_time: SlotTime
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=32)
    message: Optional[str] = Field(None, max_length=2000)
    session_id: Optional[str] = Field(None, max_length=128, description="Anonymous booking session holding the slot")


class RescheduleIn(BaseModel):
    date: dt.date
    time: SlotTime


class CancelIn(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    service_id: str
    name: str
    email: str
    phone: Optional[str] = None
    message: Optional[str] = None
    preferred_date: dt.date
    preferred_time: str
    confirmed_date: Optional[dt.date] = None
    confirmed_time: Optional[str] = None
    status: str
    is_archived: bool
    reschedule_count: int
    original_date: Optional[dt.date] = None
    original_time: Optional[str] = None
    cancelled_at: Optional[dt.datetime] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    created_at: dt.datetime


class ReservationOut(BaseModel):
    """What a client sees through their reservation link."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    service_id: str
    name: str
    date: dt.date
    time: str
    status: str
    reschedule_count: int
    reschedules_remaining: int


class BookingOut(BaseModel):
    id: str
    status: str
    date: dt.date
    time: str
    reservation_token: str
    token_expires_at: dt.datetime
