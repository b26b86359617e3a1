#!/usr/bin/env python3
"""
Tests for the 30-minute slot grid helpers.
"""

from datetime import date, datetime, timezone

import pytest

from practice_booking.core.business import (
    ALL_SLOTS,
    add_minutes,
    is_in_past,
    normalize_times,
    slot_run,
    slots_needed,
    weekday_name,
)


@pytest.mark.unit
class TestSlotGrid:
    def test_catalogue_spans_seven_to_half_past_eight(self):
        assert ALL_SLOTS[0] == "07:00"
        assert ALL_SLOTS[-1] == "20:30"
        assert len(ALL_SLOTS) == 28

    @pytest.mark.parametrize("minutes,expected", [(1, 1), (30, 1), (31, 2), (50, 2), (60, 2), (90, 3)])
    def test_slots_needed_rounds_up(self, minutes, expected):
        assert slots_needed(minutes) == expected

    def test_slot_run_covers_contiguous_slots(self):
        assert slot_run("10:00", 90) == ["10:00", "10:30", "11:00"]

    def test_slot_run_rejects_runs_leaving_the_grid(self):
        assert slot_run("20:30", 30) == ["20:30"]
        assert slot_run("20:30", 50) is None

    def test_slot_run_rejects_off_grid_start(self):
        assert slot_run("10:15", 30) is None
        assert slot_run("06:30", 30) is None

    def test_add_minutes(self):
        assert add_minutes("09:30", 50) == "10:20"

    def test_weekday_names_are_lowercase_english(self):
        assert weekday_name(date(2026, 3, 10)) == "tuesday"
        assert weekday_name(date(2026, 3, 15)) == "sunday"

    def test_normalize_times_dedupes_sorts_and_drops_unknown(self):
        assert normalize_times(["10:00", "09:00", "10:00", "10:15", "23:00"]) == ["09:00", "10:00"]


@pytest.mark.unit
class TestPastSlots:
    def test_slot_before_now_in_practice_zone_is_past(self):
        # 08:00 UTC is 09:00 in Warsaw in March
        now = datetime(2026, 3, 10, 8, 0, tzinfo=timezone.utc)
        assert is_in_past(date(2026, 3, 10), "09:00", now)
        assert not is_in_past(date(2026, 3, 10), "09:30", now)
