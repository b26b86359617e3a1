# practice_booking/schemas/temporary_block.py

from __future__ import annotations
import datetime as dt
from pydantic import BaseModel, ConfigDict, Field

from practice_booking.schemas.schedule import SlotTime


class TemporaryBlockCreate(BaseModel):
    date: dt.date
    time: SlotTime
    session_id: str = Field(..., min_length=1, max_length=128)


class TemporaryBlockOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    date: dt.date
    time: str
    session_id: str
    expires_at: dt.datetime
