# practice_booking/schemas/schedule.py

from __future__ import annotations
import datetime as dt
from typing import Annotated, Dict, List, Optional
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

from practice_booking.core.business import WEEKDAYS, is_grid_slot, normalize_times, to_minutes


def _check_slot(value: Optional[str]) -> Optional[str]:
    if value is not None and not is_grid_slot(value):
        raise ValueError(f"{value!r} is not a bookable slot (07:00-20:30, 30-minute steps)")
    return value


def _check_clock_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    try:
        minutes = to_minutes(value)
    except ValueError:
        raise ValueError(f"{value!r} is not a HH:MM time")
    if len(value) != 5 or not 0 <= minutes < 24 * 60:
        raise ValueError(f"{value!r} is not a HH:MM time")
    return value


SlotTime = Annotated[str, AfterValidator(_check_slot)]
ClockTime = Annotated[str, AfterValidator(_check_clock_time)]


# ---------- Templates ----------

class TemplateIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    schedule: Dict[str, List[str]] = Field(default_factory=dict)
    is_default: bool = False

    @field_validator("schedule")
    @classmethod
    def _validate_schedule(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        cleaned = {}
        for day, times in v.items():
            key = day.lower()
            if key not in WEEKDAYS:
                raise ValueError(f"unknown weekday {day!r}")
            for t in times:
                _check_slot(t)
            cleaned[key] = normalize_times(times)
        return cleaned


class TemplateOut(TemplateIn):
    model_config = ConfigDict(from_attributes=True)
    id: str


# ---------- Assignments ----------

class AssignmentIn(BaseModel):
    template_id: str
    year: int = Field(..., ge=2000, le=2100)
    month: Optional[int] = Field(None, ge=1, le=12)
    description: Optional[str] = None


class AssignmentOut(AssignmentIn):
    model_config = ConfigDict(from_attributes=True)
    id: str


# ---------- Global blocked ranges ----------

class BlockedSlotIn(BaseModel):
    start_date: dt.date
    end_date: Optional[dt.date] = None
    start_time: Optional[ClockTime] = None
    end_time: Optional[ClockTime] = None
    is_all_day: bool = False
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.start_time and self.end_time and to_minutes(self.end_time) < to_minutes(self.start_time):
            raise ValueError("end_time must not be before start_time")
        return self


class BlockedSlotOut(BlockedSlotIn):
    model_config = ConfigDict(from_attributes=True)
    id: str


# ---------- Monthly overrides ----------

class MonthlyBlockIn(BaseModel):
    date: dt.date
    time: Optional[SlotTime] = None
    all_day: bool = False


class MonthlyScheduleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    year: int
    month: int
    template_id: Optional[str] = None
    blocked_slots: List[dict] = Field(default_factory=list)
