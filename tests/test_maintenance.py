#!/usr/bin/env python3
"""
Tests for the daily maintenance sweep.
"""

import pytest

from conftest import DAY, booking_request, count_appointments
from practice_booking.crud.appointment import list_claims
from practice_booking.services.maintenance import run_daily_maintenance

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_deletes_appointments_past_retention(db, booking, clock, standard_day):
    await booking.submit_appointment(booking_request("10:00"))
    clock.advance(days=200)

    report = await run_daily_maintenance(db, clock)
    assert report.appointments_deleted == 0
    assert await count_appointments(db) == 1

    clock.advance(days=166)
    report = await run_daily_maintenance(db, clock)

    assert report.appointments_deleted == 1
    assert await count_appointments(db) == 0
    assert await list_claims(db, DAY) == []


@pytest.mark.asyncio
async def test_deletes_only_expired_blocks(db, seed, clock, standard_day):
    await seed.hold(DAY, "09:00", "short", minutes=1)
    await seed.hold(DAY, "10:00", "long", minutes=30)
    clock.advance(minutes=5)

    report = await run_daily_maintenance(db, clock)

    assert report.temporary_blocks_deleted == 1
    assert report.appointments_deleted == 0


@pytest.mark.asyncio
async def test_clears_cached_listings_when_something_was_purged(db, engine, cache, seed, clock, standard_day):
    await seed.hold(DAY, "09:00", "short", minutes=1)
    await engine.list_available_slots(DAY)
    assert await cache.get(DAY, None) is not None

    clock.advance(minutes=5)
    await run_daily_maintenance(db, clock, cache=cache)

    assert await cache.get(DAY, None) is None


@pytest.mark.asyncio
async def test_custom_retention(db, booking, clock, standard_day):
    await booking.submit_appointment(booking_request("10:00"))
    clock.advance(days=31)

    report = await run_daily_maintenance(db, clock, retention_days=30)

    assert report.appointments_deleted == 1
