#!/usr/bin/env python3
"""
Tests for overlaying appointments (occupancy and buffers) on a day grid.
"""

import pytest

from conftest import DAY, slots_between
from practice_booking.services.day_schedule import SlotState, build_day_schedule
from practice_booking.services.projector import BookedRange, project_appointments


def morning():
    return build_day_schedule(DAY, {"tuesday": slots_between("09:00", "12:00")})


def states(schedule, *times):
    return [schedule[t].state for t in times]


@pytest.mark.unit
class TestProjectAppointments:
    def test_fifty_minutes_at_ten_books_two_slots_and_buffers_the_next(self):
        schedule = project_appointments(morning(), [BookedRange("a1", "10:00", 50)], [50])

        assert states(schedule, "10:00", "10:30", "11:00") == [
            SlotState.BOOKED, SlotState.BOOKED, SlotState.BUFFER_FORWARD,
        ]
        assert schedule["10:00"].appointment_id == "a1"
        assert schedule["10:30"].appointment_id == "a1"
        assert schedule["11:30"].state is SlotState.OPEN

    def test_base_schedule_is_not_mutated(self):
        base = morning()
        project_appointments(base, [BookedRange("a1", "10:00", 50)], [50])
        assert base["10:00"].state is SlotState.OPEN

    def test_booked_even_where_closed(self):
        schedule = project_appointments(morning(), [BookedRange("a1", "15:00", 30)], [30])
        assert schedule["15:00"].state is SlotState.BOOKED
        # Forward buffer only replaces an open slot
        assert schedule["15:30"].state is SlotState.CLOSED

    def test_forward_buffer_skips_slot_outside_open_set(self):
        schedule = project_appointments(morning(), [BookedRange("a1", "11:30", 50)], [50])
        assert states(schedule, "11:30", "12:00") == [SlotState.BOOKED, SlotState.BOOKED]
        assert schedule["12:30"].state is SlotState.CLOSED

    def test_forward_buffer_does_not_override_a_booking(self):
        bookings = [BookedRange("a1", "09:00", 60), BookedRange("a2", "10:00", 30)]
        schedule = project_appointments(morning(), bookings, [30, 60])
        assert schedule["10:00"].state is SlotState.BOOKED
        assert schedule["10:00"].appointment_id == "a2"
        assert schedule["10:30"].state is SlotState.BUFFER_FORWARD

    def test_backward_buffer_on_exact_fit(self):
        schedule = project_appointments(morning(), [BookedRange("a1", "11:00", 50)], [60])
        # 10:00 + 60 minutes ends exactly at 11:00
        assert schedule["10:00"].state is SlotState.BUFFER_BACKWARD
        assert schedule["10:30"].state is SlotState.OPEN

    def test_backward_buffer_requires_exact_match(self):
        schedule = project_appointments(morning(), [BookedRange("a1", "11:00", 50)], [50])
        assert schedule["10:00"].state is SlotState.OPEN
        assert schedule["10:30"].state is SlotState.OPEN

    def test_backward_buffer_uses_nearest_following_start(self):
        bookings = [BookedRange("a1", "10:00", 30), BookedRange("a2", "12:00", 30)]
        schedule = project_appointments(morning(), bookings, [90])
        assert schedule["09:00"].state is SlotState.OPEN
        assert schedule["11:00"].state is SlotState.OPEN
        # 10:30 is the forward buffer of a1; 10:30 + 90 would be 12:00 but it is not open
        assert schedule["10:30"].state is SlotState.BUFFER_FORWARD

    def test_no_appointments_leaves_grid_untouched(self):
        schedule = project_appointments(morning(), [], [50, 90])
        assert [t for t, s in schedule.items() if s.state is SlotState.OPEN] == slots_between("09:00", "12:00")
