# practice_booking/crud/appointment.py

from __future__ import annotations
from datetime import date, datetime
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from practice_booking.core.errors import SlotUnavailableError
from practice_booking.db.models.appointment import ACTIVE_STATUSES, Appointment, SlotClaim
from practice_booking.db.models.temporary_block import TemporaryBlock

effective_date = sa.func.coalesce(Appointment.confirmed_date, Appointment.preferred_date)


def _active():
    return sa.and_(Appointment.status.in_(ACTIVE_STATUSES), Appointment.is_archived.is_(False))


async def get_appointment(db: AsyncSession, appointment_id: str) -> Optional[Appointment]:
    return await db.get(Appointment, appointment_id)


async def get_by_token(db: AsyncSession, token: str) -> Optional[Appointment]:
    res = await db.execute(sa.select(Appointment).where(Appointment.reservation_token == token))
    return res.scalar_one_or_none()


async def list_active_for_date(
    db: AsyncSession, day: date, *, exclude_appointment_id: Optional[str] = None
) -> Sequence[Appointment]:
    q = sa.select(Appointment).where(_active(), effective_date == day)
    if exclude_appointment_id is not None:
        q = q.where(Appointment.id != exclude_appointment_id)
    res = await db.execute(q)
    return res.scalars().all()


async def list_active_between(db: AsyncSession, start: date, end: date) -> Sequence[Appointment]:
    res = await db.execute(
        sa.select(Appointment)
        .where(_active(), effective_date >= start, effective_date <= end)
        .order_by(effective_date.asc())
    )
    return res.scalars().all()


async def list_appointments(
    db: AsyncSession,
    *,
    status: Optional[str] = None,
    include_archived: bool = False,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = 100,
) -> Sequence[Appointment]:
    q = sa.select(Appointment)
    if status is not None:
        q = q.where(Appointment.status == status)
    if not include_archived:
        q = q.where(Appointment.is_archived.is_(False))
    if start is not None:
        q = q.where(effective_date >= start)
    if end is not None:
        q = q.where(effective_date <= end)
    q = q.order_by(effective_date.asc(), Appointment.preferred_time.asc()).limit(limit)
    res = await db.execute(q)
    return res.scalars().all()


async def create_appointment_unique(
    db: AsyncSession,
    appointment: Appointment,
    *,
    claim_times: Sequence[str],
    release_session_id: Optional[str] = None,
) -> Appointment:
    """
    Persist the appointment together with a claim on every slot it occupies.
    The session's temporary block is released in the same transaction.
    """
    day, start = appointment.effective_date, appointment.effective_time
    try:
        db.add(appointment)
        await db.flush()
        for t in claim_times:
            db.add(SlotClaim(date=day, time=t, appointment_id=appointment.id))
        if release_session_id:
            await db.execute(sa.delete(TemporaryBlock).where(TemporaryBlock.session_id == release_session_id))
        await db.commit()
        return appointment
    except IntegrityError:
        await db.rollback()
        raise SlotUnavailableError(date=day.isoformat(), time=start)


async def save_with_claims(db: AsyncSession, appointment: Appointment, claim_times: Sequence[str]) -> Appointment:
    """Commit appointment changes and move its claims to the given slots of its effective date."""
    day, start = appointment.effective_date, appointment.effective_time
    try:
        await release_claims(db, appointment.id)
        for t in claim_times:
            db.add(SlotClaim(date=day, time=t, appointment_id=appointment.id))
        await db.commit()
        return appointment
    except IntegrityError:
        await db.rollback()
        raise SlotUnavailableError(date=day.isoformat(), time=start)


async def release_claims(db: AsyncSession, appointment_id: str) -> None:
    await db.execute(sa.delete(SlotClaim).where(SlotClaim.appointment_id == appointment_id))


async def list_claims(db: AsyncSession, day: date) -> Sequence[SlotClaim]:
    res = await db.execute(sa.select(SlotClaim).where(SlotClaim.date == day).order_by(SlotClaim.time.asc()))
    return res.scalars().all()


async def delete_created_before(db: AsyncSession, cutoff: datetime) -> int:
    old_ids = sa.select(Appointment.id).where(Appointment.created_at < cutoff).scalar_subquery()
    await db.execute(
        sa.delete(SlotClaim)
        .where(SlotClaim.appointment_id.in_(old_ids))
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(
        sa.delete(Appointment)
        .where(Appointment.created_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return res.rowcount or 0
