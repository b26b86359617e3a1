# practice_booking/services/day_schedule.py
"""
Day Schedule Builder.

Turns the admin-side inputs (template assignments, weekly templates, monthly
overrides and global blocked ranges) into the base open/closed grid for a date.
Building is pure; loading fetches a whole date window in a fixed number of
queries so multi-day reads don't fan out per day.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.core.business import ALL_SLOTS, to_minutes, weekday_name
from practice_booking.core.errors import ErrorSeverity, log_error
from practice_booking.core.logging import get_logger
from practice_booking.crud import schedule as schedule_crud
from practice_booking.db.models.schedule import BlockedSlot, MonthlySchedule, ScheduleTemplate, TemplateAssignment

logger = get_logger(__name__)

# Open-ended global window bounds
DAY_START = "00:00"
DAY_END = "23:59"


class SlotState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    BOOKED = "booked"
    BUFFER_FORWARD = "buffer_forward"
    BUFFER_BACKWARD = "buffer_backward"


@dataclass
class SlotStatus:
    state: SlotState
    appointment_id: Optional[str] = None

    @property
    def is_buffer(self) -> bool:
        return self.state in (SlotState.BUFFER_FORWARD, SlotState.BUFFER_BACKWARD)


# Ordered like ALL_SLOTS
DaySchedule = dict[str, SlotStatus]


def closed_day() -> DaySchedule:
    return {t: SlotStatus(SlotState.CLOSED) for t in ALL_SLOTS}


def resolve_template_id(assignments: Iterable[TemplateAssignment], year: int, month: int) -> Optional[str]:
    """Month-specific assignment first, then year-wide; latest created wins a tie."""
    month_level, year_level = [], []
    for a in assignments:
        if a.year != year:
            continue
        if a.month == month:
            month_level.append(a)
        elif a.month is None:
            year_level.append(a)
    for level in (month_level, year_level):
        if level:
            return max(level, key=lambda a: (a.created_at is not None, a.created_at)).template_id
    return None


def _monthly_entries_for(monthly: Optional[MonthlySchedule], day: date) -> list[dict]:
    if monthly is None:
        return []
    iso = day.isoformat()
    return [e for e in (monthly.blocked_slots or []) if e.get("date") == iso]


def _covers(block: BlockedSlot, day: date) -> bool:
    return block.start_date <= day <= block.last_date


def _in_window(block: BlockedSlot, hhmm: str) -> bool:
    start = block.start_time or DAY_START
    end = block.end_time or DAY_END
    return to_minutes(start) <= to_minutes(hhmm) <= to_minutes(end)


def build_day_schedule(
    day: date,
    template_schedule: Optional[Mapping[str, Sequence[str]]],
    monthly_entries: Sequence[dict] = (),
    blocked_ranges: Sequence[BlockedSlot] = (),
) -> DaySchedule:
    """
    Base grid for one date. Every catalogue slot is present; only template
    times can be open. No template means a fully closed day.
    """
    schedule = closed_day()
    if not template_schedule:
        return schedule

    times = set(template_schedule.get(weekday_name(day), ()))
    if not times:
        return schedule

    ranges = [b for b in blocked_ranges if _covers(b, day)]

    whole_day = any(not e.get("time") or e.get("all_day") for e in monthly_entries)
    whole_day = whole_day or any(b.is_whole_day for b in ranges)
    if whole_day:
        return schedule

    blocked_times = {e["time"] for e in monthly_entries if e.get("time")}
    for t in ALL_SLOTS:
        if t not in times or t in blocked_times:
            continue
        if any(_in_window(b, t) for b in ranges):
            continue
        schedule[t].state = SlotState.OPEN
    return schedule


@dataclass
class ScheduleInputs:
    """Admin-side inputs covering a window of dates."""
    assignments: Sequence[TemplateAssignment] = ()
    templates: Mapping[str, ScheduleTemplate] = field(default_factory=dict)
    monthly: Mapping[tuple[int, int], MonthlySchedule] = field(default_factory=dict)
    blocked_ranges: Sequence[BlockedSlot] = ()

    def for_day(self, day: date) -> DaySchedule:
        template_id = resolve_template_id(self.assignments, day.year, day.month)
        template = self.templates.get(template_id) if template_id else None
        return build_day_schedule(
            day,
            template.schedule if template is not None else None,
            _monthly_entries_for(self.monthly.get((day.year, day.month)), day),
            self.blocked_ranges,
        )


def _days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


async def load_schedule_inputs(db: AsyncSession, start: date, end: date) -> ScheduleInputs:
    days = _days(start, end)
    years = {d.year for d in days}
    months = {(d.year, d.month) for d in days}

    assignments = await schedule_crud.list_assignments_for_years(db, years)
    templates = await schedule_crud.get_templates(db, (a.template_id for a in assignments))
    monthly = await schedule_crud.list_monthly_schedules(db, months)
    blocked = await schedule_crud.list_blocked_slots_overlapping(db, start, end)

    return ScheduleInputs(
        assignments=assignments,
        templates=templates,
        monthly={(m.year, m.month): m for m in monthly},
        blocked_ranges=blocked,
    )


async def load_day_schedules(db: AsyncSession, start: date, end: date) -> dict[date, DaySchedule]:
    """Base grids for every date in [start, end]; a failed load closes the whole window."""
    try:
        inputs = await load_schedule_inputs(db, start, end)
    except SQLAlchemyError as e:
        log_error(e, {"operation": "load_schedule_inputs", "start": start.isoformat(), "end": end.isoformat()},
                  ErrorSeverity.MEDIUM)
        return {d: closed_day() for d in _days(start, end)}
    return {d: inputs.for_day(d) for d in _days(start, end)}


async def load_day_schedule(db: AsyncSession, day: date) -> DaySchedule:
    schedules = await load_day_schedules(db, day, day)
    return schedules[day]
