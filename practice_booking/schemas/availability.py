# practice_booking/schemas/availability.py

from __future__ import annotations
import datetime as dt
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class SlotAvailability(BaseModel):
    date: dt.date
    time: str
    is_available: bool
    is_booked: bool
    is_buffer: bool
    is_temporarily_blocked: bool
    # service id -> fits starting at this slot; empty when the slot itself is unavailable
    service_availability: Dict[str, bool] = Field(default_factory=dict)


class SlotCheckOut(BaseModel):
    date: dt.date
    time: str
    service_id: str
    available: bool


class PublicAppointment(BaseModel):
    date: dt.date
    time: str
    service_id: str
    status: str


class PublicHold(BaseModel):
    date: dt.date
    time: str
    expires_at: dt.datetime


class PublicDay(BaseModel):
    date: dt.date
    open_slots: List[str]


class PublicAvailabilityOut(BaseModel):
    start_date: dt.date
    end_date: dt.date
    days: List[PublicDay]
    appointments: List[PublicAppointment]
    temporary_blocks: List[PublicHold]
    generated_at: Optional[dt.datetime] = None
