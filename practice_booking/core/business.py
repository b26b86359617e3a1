# practice_booking/core/business.py
from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from practice_booking.core.config import settings
from practice_booking.core.errors import BookingValidationError

LOCAL_TZ = ZoneInfo(settings.PRACTICE_TIMEZONE)

SLOT_MINUTES = 30
FIRST_SLOT_MINUTES = 7 * 60        # 07:00
LAST_SLOT_MINUTES = 20 * 60 + 30   # 20:30

# Fixed catalogue of bookable start times, 07:00 .. 20:30
ALL_SLOTS: tuple[str, ...] = tuple(
    f"{m // 60:02d}:{m % 60:02d}"
    for m in range(FIRST_SLOT_MINUTES, LAST_SLOT_MINUTES + 1, SLOT_MINUTES)
)
_SLOT_INDEX = {t: i for i, t in enumerate(ALL_SLOTS)}

# date.weekday(): 0=Mon .. 6=Sun
WEEKDAYS: tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


def to_minutes(hhmm: str) -> int:
    """'HH:MM' -> minutes since midnight."""
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"


def add_minutes(hhmm: str, minutes: int) -> str:
    return from_minutes(to_minutes(hhmm) + minutes)


def is_grid_slot(hhmm: str) -> bool:
    return hhmm in _SLOT_INDEX


def slot_index(hhmm: str) -> int | None:
    return _SLOT_INDEX.get(hhmm)


def slots_needed(duration_minutes: int) -> int:
    return max(1, math.ceil(duration_minutes / SLOT_MINUTES))


def slot_run(start: str, duration_minutes: int) -> list[str] | None:
    """
    The contiguous grid slots a service of the given duration occupies.
    None when the start is off-grid or the run would leave the grid.
    """
    idx = slot_index(start)
    if idx is None:
        return None
    needed = slots_needed(duration_minutes)
    if idx + needed > len(ALL_SLOTS):
        return None
    return list(ALL_SLOTS[idx:idx + needed])


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def local_datetime(day: date, hhmm: str) -> datetime:
    minutes = to_minutes(hhmm)
    return datetime(day.year, day.month, day.day, tzinfo=LOCAL_TZ) + timedelta(minutes=minutes)


def is_in_past(day: date, hhmm: str, now_utc: datetime) -> bool:
    return local_datetime(day, hhmm) <= now_utc.astimezone(LOCAL_TZ)


def reject_past(day: date, hhmm: str, now_utc: datetime) -> None:
    if is_in_past(day, hhmm, now_utc):
        raise BookingValidationError("This time is in the past.", date=day.isoformat(), time=hhmm)


def normalize_times(times) -> list[str]:
    """Dedupe, keep only catalogue slots, sort chronologically."""
    return sorted({t for t in times if is_grid_slot(t)}, key=to_minutes)
