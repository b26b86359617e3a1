#!/usr/bin/env python3
"""
Tests for slot listing and service fit checks against the database.
"""

from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from conftest import DAY, booking_request, slots_between

pytestmark = pytest.mark.integration


def by_time(slots):
    return {s.time: s for s in slots}


class TestListAvailableSlots:
    @pytest.mark.asyncio
    async def test_no_template_means_nothing_available(self, engine, seed):
        await seed.service("individual", 50)
        slots = await engine.list_available_slots(DAY)
        assert len(slots) == 28
        assert not any(s.is_available for s in slots)

    @pytest.mark.asyncio
    async def test_open_slots_report_service_fit(self, engine, standard_day):
        slots = by_time(await engine.list_available_slots(DAY))

        assert [t for t, s in slots.items() if s.is_available] == slots_between("09:00", "12:00")
        assert slots["11:00"].service_availability == {"individual": True, "couples": True}
        # 90 minutes from 11:30 would need 12:30
        assert slots["11:30"].service_availability == {"individual": True, "couples": False}
        assert slots["12:00"].service_availability == {"individual": False, "couples": False}
        assert slots["08:30"].service_availability == {"individual": False, "couples": False}

    @pytest.mark.asyncio
    async def test_booking_marks_slots_booked_and_buffered(self, engine, booking, standard_day):
        await booking.submit_appointment(booking_request("10:00"))

        slots = by_time(await engine.list_available_slots(DAY))

        assert slots["10:00"].is_booked and slots["10:30"].is_booked
        assert not slots["10:00"].is_available
        assert slots["11:00"].is_buffer and not slots["11:00"].is_available
        # 09:00 + 90 would run into the booking
        assert slots["09:00"].service_availability == {"individual": True, "couples": False}
        assert slots["09:30"].service_availability["individual"] is False

    @pytest.mark.asyncio
    async def test_hold_hides_slot_from_others_only(self, engine, seed, standard_day):
        await seed.hold(DAY, "10:00", "session-a")

        mine = by_time(await engine.list_available_slots(DAY, exclude_session_id="session-a"))
        theirs = by_time(await engine.list_available_slots(DAY, exclude_session_id="session-b"))
        anonymous = by_time(await engine.list_available_slots(DAY))

        assert mine["10:00"].is_available and not mine["10:00"].is_temporarily_blocked
        assert not theirs["10:00"].is_available and theirs["10:00"].is_temporarily_blocked
        assert not anonymous["10:00"].is_available
        # A 50-minute service from 09:30 needs the held 10:00
        assert theirs["09:30"].service_availability["individual"] is False

    @pytest.mark.asyncio
    async def test_expired_hold_is_ignored_before_cleanup(self, engine, seed, clock, standard_day):
        await seed.hold(DAY, "10:00", "session-a")
        clock.advance(minutes=11)

        slots = by_time(await engine.list_available_slots(DAY, exclude_session_id="session-b", use_cache=False))

        assert slots["10:00"].is_available

    @pytest.mark.asyncio
    async def test_cached_listing_drops_a_hold_once_it_expires(self, engine, seed, clock, standard_day):
        await seed.hold(DAY, "10:00", "session-a")
        clock.advance(minutes=9)
        before = by_time(await engine.list_available_slots(DAY, exclude_session_id="session-b"))
        assert before["10:00"].is_temporarily_blocked

        clock.advance(minutes=2)
        after = by_time(await engine.list_available_slots(DAY, exclude_session_id="session-b"))

        assert after["10:00"].is_available
        assert not after["10:00"].is_temporarily_blocked

    @pytest.mark.asyncio
    async def test_results_are_cached_until_invalidated(self, engine, cache, seed, standard_day):
        first = await engine.list_available_slots(DAY)
        # Written behind the engine's back: the cached listing is still served
        await seed.hold(DAY, "10:00", "session-a")
        assert by_time(first)["10:00"].is_available
        assert by_time(await engine.list_available_slots(DAY))["10:00"].is_available

        await cache.invalidate(DAY)
        assert not by_time(await engine.list_available_slots(DAY))["10:00"].is_available

    @pytest.mark.asyncio
    async def test_cache_entries_expire(self, engine, seed, clock, standard_day):
        await engine.list_available_slots(DAY)
        await seed.hold(DAY, "10:00", "session-a", minutes=30)
        clock.advance(minutes=6)
        assert not by_time(await engine.list_available_slots(DAY))["10:00"].is_available

    @pytest.mark.asyncio
    async def test_store_failure_returns_empty_and_is_not_cached(self, engine, cache, standard_day):
        with patch(
            "practice_booking.services.availability.service_crud.get_service_durations",
            new=AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("db down"))),
        ):
            assert await engine.list_available_slots(DAY) == []
        assert await cache.get(DAY, None) is None


class TestServiceFit:
    @pytest.mark.asyncio
    async def test_fit_inside_open_run(self, engine, standard_day):
        assert await engine.is_slot_available_for_service(DAY, "09:00", "couples")
        assert await engine.is_slot_available_for_service(DAY, "11:30", "individual")

    @pytest.mark.asyncio
    async def test_run_past_open_set_is_rejected(self, engine, standard_day):
        assert not await engine.is_slot_available_for_service(DAY, "11:30", "couples")
        assert not await engine.is_slot_available_for_service(DAY, "12:00", "individual")

    @pytest.mark.asyncio
    async def test_run_past_end_of_grid_is_rejected(self, engine, seed):
        await seed.service("individual", 50)
        await seed.template(["20:00", "20:30"])
        assert await engine.is_slot_available_for_service(DAY, "20:00", "individual")
        assert not await engine.is_slot_available_for_service(DAY, "20:30", "individual")

    @pytest.mark.asyncio
    async def test_off_grid_time_and_unknown_service(self, engine, standard_day):
        assert not await engine.is_slot_available_for_service(DAY, "10:15", "individual")
        assert not await engine.is_slot_available_for_service(DAY, "10:00", "massage")

    @pytest.mark.asyncio
    async def test_longer_service_rejected_wherever_shorter_is(self, engine, seed, booking, standard_day):
        await seed.service("short", 30)
        await booking.submit_appointment(booking_request("10:30", service_id="short"))

        for t in slots_between("09:00", "12:00"):
            if not await engine.is_slot_available_for_service(DAY, t, "short"):
                assert not await engine.is_slot_available_for_service(DAY, t, "individual"), t
                assert not await engine.is_slot_available_for_service(DAY, t, "couples"), t

    @pytest.mark.asyncio
    async def test_claim_includes_open_forward_buffer(self, engine, standard_day):
        assert await engine.slots_to_claim(DAY, "10:00", 50) == ["10:00", "10:30", "11:00"]
        # Nothing open after 12:00, so no buffer to claim
        assert await engine.slots_to_claim(DAY, "11:30", 50) == ["11:30", "12:00"]
        assert await engine.slots_to_claim(DAY, "12:00", 50) is None

    @pytest.mark.asyncio
    async def test_own_appointment_can_be_excluded(self, engine, booking, standard_day):
        appt = await booking.submit_appointment(booking_request("10:00"))

        assert not await engine.is_slot_available_for_service(DAY, "10:30", "individual")
        assert await engine.is_slot_available_for_service(
            DAY, "10:30", "individual", exclude_appointment_id=appt.id
        )

    @pytest.mark.asyncio
    async def test_store_failure_rejects(self, engine, standard_day):
        with patch(
            "practice_booking.services.availability.appointment_crud.list_active_for_date",
            new=AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("db down"))),
        ):
            assert not await engine.is_slot_available_for_service(DAY, "09:00", "individual")
