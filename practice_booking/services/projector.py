# practice_booking/services/projector.py
from __future__ import annotations

from typing import Iterable, NamedTuple, Sequence

from practice_booking.core.business import SLOT_MINUTES, from_minutes, slots_needed, to_minutes
from practice_booking.services.day_schedule import DaySchedule, SlotState, SlotStatus


class BookedRange(NamedTuple):
    appointment_id: str
    start: str             # effective start, "HH:MM"
    duration_minutes: int


def project_appointments(
    base: DaySchedule,
    bookings: Sequence[BookedRange],
    service_durations: Iterable[int],
) -> DaySchedule:
    """
    Overlay active appointments on a base day grid.

    Occupied slots become ``booked`` whatever their base state. The slot right
    after the rounded end becomes ``buffer_forward`` when it is open. An open
    slot becomes ``buffer_backward`` when some service started there would end
    exactly at the next appointment's start.
    """
    schedule: DaySchedule = {t: SlotStatus(s.state, s.appointment_id) for t, s in base.items()}

    for booking in bookings:
        start = to_minutes(booking.start)
        end = start + slots_needed(booking.duration_minutes) * SLOT_MINUTES
        for t, slot in schedule.items():
            if start <= to_minutes(t) < end:
                slot.state = SlotState.BOOKED
                slot.appointment_id = booking.appointment_id

        after = schedule.get(from_minutes(end))
        if after is not None and after.state is SlotState.OPEN:
            after.state = SlotState.BUFFER_FORWARD

    starts = sorted({to_minutes(b.start) for b in bookings})
    durations = set(service_durations)
    if not starts or not durations:
        return schedule

    for t in reversed(list(schedule)):
        slot = schedule[t]
        if slot.state is not SlotState.OPEN:
            continue
        here = to_minutes(t)
        next_start = next((s for s in starts if s > here), None)
        if next_start is None:
            continue
        if any(here + d == next_start for d in durations):
            slot.state = SlotState.BUFFER_BACKWARD

    return schedule
