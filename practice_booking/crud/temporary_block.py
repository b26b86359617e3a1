# practice_booking/crud/temporary_block.py

from __future__ import annotations
from datetime import date, datetime
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.db.models.temporary_block import TemporaryBlock


def _live(now: datetime):
    return TemporaryBlock.expires_at > now


async def list_live_for_date(
    db: AsyncSession, day: date, now: datetime, *, exclude_session_id: Optional[str] = None
) -> Sequence[TemporaryBlock]:
    """Unexpired holds on the date, minus the caller's own session."""
    q = sa.select(TemporaryBlock).where(TemporaryBlock.date == day, _live(now))
    if exclude_session_id is not None:
        q = q.where(TemporaryBlock.session_id != exclude_session_id)
    res = await db.execute(q)
    return res.scalars().all()


async def list_live_between(db: AsyncSession, start: date, end: date, now: datetime) -> Sequence[TemporaryBlock]:
    res = await db.execute(
        sa.select(TemporaryBlock)
        .where(TemporaryBlock.date >= start, TemporaryBlock.date <= end, _live(now))
        .order_by(TemporaryBlock.date.asc(), TemporaryBlock.time.asc())
    )
    return res.scalars().all()


async def get_for_session(db: AsyncSession, session_id: str) -> Optional[TemporaryBlock]:
    res = await db.execute(sa.select(TemporaryBlock).where(TemporaryBlock.session_id == session_id))
    return res.scalar_one_or_none()


async def get_live_for_session(db: AsyncSession, session_id: str, now: datetime) -> Optional[TemporaryBlock]:
    res = await db.execute(
        sa.select(TemporaryBlock).where(TemporaryBlock.session_id == session_id, _live(now))
    )
    return res.scalar_one_or_none()


async def delete_for_session(db: AsyncSession, session_id: str) -> int:
    res = await db.execute(sa.delete(TemporaryBlock).where(TemporaryBlock.session_id == session_id))
    return res.rowcount or 0


async def delete_expired(db: AsyncSession, now: datetime) -> int:
    # Loaded instances may carry naive datetimes (SQLite); skip in-Python evaluation
    res = await db.execute(
        sa.delete(TemporaryBlock)
        .where(TemporaryBlock.expires_at <= now)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount or 0
