#!/usr/bin/env python3
"""
Tests for session-scoped temporary holds on slots.
"""

from datetime import date, timedelta

import pytest
import sqlalchemy as sa

from conftest import DAY
from practice_booking.core.errors import (
    BookingValidationError,
    SlotUnavailableError,
    TemporaryBlockNotFoundError,
)
from practice_booking.core.clock import ensure_utc
from practice_booking.db.models.temporary_block import TemporaryBlock

pytestmark = pytest.mark.integration


async def all_blocks(db):
    res = await db.execute(sa.select(TemporaryBlock))
    return res.scalars().all()


class TestCreateTemporaryBlock:
    @pytest.mark.asyncio
    async def test_creates_hold_with_ttl(self, blocks, clock, standard_day):
        block = await blocks.create_temporary_block(DAY, "10:00", "session-a")

        assert block.session_id == "session-a"
        assert block.expires_at == clock.now() + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_second_hold_replaces_first(self, db, blocks, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        await blocks.create_temporary_block(DAY, "11:00", "session-a")

        held = await all_blocks(db)
        assert [(b.session_id, b.time) for b in held] == [("session-a", "11:00")]

    @pytest.mark.asyncio
    async def test_reselecting_own_slot_succeeds(self, db, blocks, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        assert len(await all_blocks(db)) == 1

    @pytest.mark.asyncio
    async def test_slot_held_by_other_session_is_rejected(self, blocks, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        with pytest.raises(SlotUnavailableError):
            await blocks.create_temporary_block(DAY, "10:00", "session-b")

    @pytest.mark.asyncio
    async def test_slot_too_short_for_shortest_service_is_rejected(self, blocks, standard_day):
        # individual (50 min) from 12:00 would need 12:30
        with pytest.raises(SlotUnavailableError):
            await blocks.create_temporary_block(DAY, "12:00", "session-a")

    @pytest.mark.asyncio
    async def test_slot_that_already_started_is_rejected(self, db, blocks, clock, standard_day):
        today = date(2026, 3, 2)
        clock.advance(minutes=90)  # 09:30 in Warsaw

        with pytest.raises(BookingValidationError):
            await blocks.create_temporary_block(today, "09:00", "session-a")
        with pytest.raises(BookingValidationError):
            await blocks.create_temporary_block(date(2026, 3, 1), "10:00", "session-a")
        assert await all_blocks(db) == []

        later = await blocks.create_temporary_block(today, "10:00", "session-a")
        assert later.time == "10:00"

    @pytest.mark.asyncio
    async def test_failed_attempt_still_releases_previous_hold(self, db, blocks, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        with pytest.raises(SlotUnavailableError):
            await blocks.create_temporary_block(DAY, "12:00", "session-a")
        assert await all_blocks(db) == []

    @pytest.mark.asyncio
    async def test_expired_hold_of_other_session_does_not_block(self, blocks, clock, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        clock.advance(minutes=10)
        block = await blocks.create_temporary_block(DAY, "10:00", "session-b")
        assert block.session_id == "session-b"

    @pytest.mark.asyncio
    async def test_unique_slot_index_settles_a_race(self, db, seed, blocks, standard_day, monkeypatch):
        # Both sessions pass validation; only one insert can win
        await seed.hold(DAY, "10:00", "session-a")
        monkeypatch.setattr(blocks.engine, "is_slot_available_for_duration", _always_available)
        with pytest.raises(SlotUnavailableError):
            await blocks.create_temporary_block(DAY, "10:00", "session-b")
        assert [b.session_id for b in await all_blocks(db)] == ["session-a"]


async def _always_available(*args, **kwargs):
    return True


class TestExtendAndRemove:
    @pytest.mark.asyncio
    async def test_extend_pushes_expiry(self, blocks, clock, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        clock.advance(minutes=8)

        block = await blocks.extend_temporary_block("session-a")

        assert ensure_utc(block.expires_at) == clock.now() + timedelta(minutes=10)

    @pytest.mark.asyncio
    async def test_extend_without_hold_raises(self, blocks, standard_day):
        with pytest.raises(TemporaryBlockNotFoundError):
            await blocks.extend_temporary_block("session-a")

    @pytest.mark.asyncio
    async def test_extend_after_expiry_raises(self, blocks, clock, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        clock.advance(minutes=11)
        with pytest.raises(TemporaryBlockNotFoundError):
            await blocks.extend_temporary_block("session-a")

    @pytest.mark.asyncio
    async def test_remove_is_idempotent(self, db, blocks, standard_day):
        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        assert await blocks.remove_temporary_block("session-a") == 1
        assert await blocks.remove_temporary_block("session-a") == 0
        assert await all_blocks(db) == []

    @pytest.mark.asyncio
    async def test_cleanup_removes_only_expired(self, db, seed, blocks, clock, standard_day):
        await seed.hold(DAY, "09:00", "old", minutes=5)
        await seed.hold(DAY, "10:00", "fresh", minutes=20)
        clock.advance(minutes=6)

        assert await blocks.cleanup_expired_blocks() == 1
        assert [b.session_id for b in await all_blocks(db)] == ["fresh"]

    @pytest.mark.asyncio
    async def test_hold_changes_invalidate_cached_listing(self, engine, blocks, standard_day):
        before = {s.time: s for s in await engine.list_available_slots(DAY, "session-b")}
        assert before["10:00"].is_available

        await blocks.create_temporary_block(DAY, "10:00", "session-a")
        during = {s.time: s for s in await engine.list_available_slots(DAY, "session-b")}
        assert not during["10:00"].is_available

        await blocks.remove_temporary_block("session-a")
        after = {s.time: s for s in await engine.list_available_slots(DAY, "session-b")}
        assert after["10:00"].is_available
