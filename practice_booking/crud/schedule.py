# practice_booking/crud/schedule.py
"""Accessors for the admin-side schedule inputs: templates, assignments, overrides, blocked ranges."""

from __future__ import annotations
from datetime import date
from typing import Iterable, Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from practice_booking.db.models.schedule import (
    BlockedSlot,
    MonthlySchedule,
    ScheduleTemplate,
    TemplateAssignment,
)
from practice_booking.schemas.schedule import AssignmentIn, BlockedSlotIn, MonthlyBlockIn, TemplateIn


# ---------- Templates ----------

async def list_templates(db: AsyncSession) -> Sequence[ScheduleTemplate]:
    res = await db.execute(sa.select(ScheduleTemplate).order_by(ScheduleTemplate.name.asc()))
    return res.scalars().all()


async def get_template(db: AsyncSession, template_id: str) -> Optional[ScheduleTemplate]:
    return await db.get(ScheduleTemplate, template_id)


async def get_templates(db: AsyncSession, template_ids: Iterable[str]) -> dict[str, ScheduleTemplate]:
    ids = set(template_ids)
    if not ids:
        return {}
    res = await db.execute(sa.select(ScheduleTemplate).where(ScheduleTemplate.id.in_(ids)))
    return {t.id: t for t in res.scalars().all()}


async def create_template(db: AsyncSession, data: TemplateIn) -> ScheduleTemplate:
    template = ScheduleTemplate(**data.model_dump())
    db.add(template)
    await db.commit()
    return template


async def update_template(db: AsyncSession, template: ScheduleTemplate, data: TemplateIn) -> ScheduleTemplate:
    for field, value in data.model_dump().items():
        setattr(template, field, value)
    await db.commit()
    return template


async def delete_template(db: AsyncSession, template: ScheduleTemplate) -> None:
    # Assignments go with the template
    await db.execute(sa.delete(TemplateAssignment).where(TemplateAssignment.template_id == template.id))
    await db.delete(template)
    await db.commit()


# ---------- Assignments ----------

async def list_assignments(db: AsyncSession, *, year: Optional[int] = None) -> Sequence[TemplateAssignment]:
    q = sa.select(TemplateAssignment)
    if year is not None:
        q = q.where(TemplateAssignment.year == year)
    q = q.order_by(TemplateAssignment.year.asc(), TemplateAssignment.month.asc(), TemplateAssignment.created_at.asc())
    res = await db.execute(q)
    return res.scalars().all()


async def list_assignments_for_years(db: AsyncSession, years: Iterable[int]) -> Sequence[TemplateAssignment]:
    res = await db.execute(
        sa.select(TemplateAssignment).where(TemplateAssignment.year.in_(set(years)))
    )
    return res.scalars().all()


async def create_assignment(db: AsyncSession, data: AssignmentIn) -> TemplateAssignment:
    assignment = TemplateAssignment(**data.model_dump())
    db.add(assignment)
    await db.commit()
    return assignment


async def get_assignment(db: AsyncSession, assignment_id: str) -> Optional[TemplateAssignment]:
    return await db.get(TemplateAssignment, assignment_id)


async def delete_assignment(db: AsyncSession, assignment: TemplateAssignment) -> None:
    await db.delete(assignment)
    await db.commit()


# ---------- Monthly overrides ----------

async def list_monthly_schedules(
    db: AsyncSession, months: Iterable[tuple[int, int]]
) -> Sequence[MonthlySchedule]:
    months = set(months)
    if not months:
        return []
    res = await db.execute(
        sa.select(MonthlySchedule).where(
            sa.or_(*(sa.and_(MonthlySchedule.year == y, MonthlySchedule.month == m) for y, m in months))
        )
    )
    return res.scalars().all()


async def get_monthly_schedule(db: AsyncSession, year: int, month: int) -> Optional[MonthlySchedule]:
    res = await db.execute(
        sa.select(MonthlySchedule).where(MonthlySchedule.year == year, MonthlySchedule.month == month)
    )
    return res.scalar_one_or_none()


async def get_or_create_monthly_schedule(db: AsyncSession, year: int, month: int) -> MonthlySchedule:
    """Admin-side accessor: creates the month document on first write."""
    existing = await get_monthly_schedule(db, year, month)
    if existing is not None:
        return existing
    monthly = MonthlySchedule(year=year, month=month, blocked_slots=[])
    db.add(monthly)
    try:
        await db.commit()
    except IntegrityError:
        # Created concurrently by another admin request
        await db.rollback()
        existing = await get_monthly_schedule(db, year, month)
        if existing is None:
            raise
        return existing
    return monthly


def _same_block(entry: dict, block: MonthlyBlockIn) -> bool:
    return entry.get("date") == block.date.isoformat() and entry.get("time") == block.time


async def add_monthly_block(db: AsyncSession, block: MonthlyBlockIn) -> MonthlySchedule:
    monthly = await get_or_create_monthly_schedule(db, block.date.year, block.date.month)
    entries = [e for e in (monthly.blocked_slots or []) if not _same_block(e, block)]
    entry = {"date": block.date.isoformat()}
    if block.time:
        entry["time"] = block.time
    if block.all_day:
        entry["all_day"] = True
    # Reassign so the JSON column is flagged dirty
    monthly.blocked_slots = entries + [entry]
    await db.commit()
    return monthly


async def remove_monthly_block(db: AsyncSession, block: MonthlyBlockIn) -> MonthlySchedule | None:
    monthly = await get_monthly_schedule(db, block.date.year, block.date.month)
    if monthly is None:
        return None
    monthly.blocked_slots = [e for e in (monthly.blocked_slots or []) if not _same_block(e, block)]
    await db.commit()
    return monthly


# ---------- Global blocked ranges ----------

async def list_blocked_slots(db: AsyncSession) -> Sequence[BlockedSlot]:
    res = await db.execute(sa.select(BlockedSlot).order_by(BlockedSlot.start_date.asc()))
    return res.scalars().all()


async def list_blocked_slots_overlapping(db: AsyncSession, start: date, end: date) -> Sequence[BlockedSlot]:
    """Ranges with any day in [start, end]."""
    last_day = sa.func.coalesce(BlockedSlot.end_date, BlockedSlot.start_date)
    res = await db.execute(
        sa.select(BlockedSlot).where(BlockedSlot.start_date <= end, last_day >= start)
    )
    return res.scalars().all()


async def create_blocked_slot(db: AsyncSession, data: BlockedSlotIn) -> BlockedSlot:
    blocked = BlockedSlot(**data.model_dump())
    db.add(blocked)
    await db.commit()
    return blocked


async def get_blocked_slot(db: AsyncSession, blocked_id: str) -> Optional[BlockedSlot]:
    return await db.get(BlockedSlot, blocked_id)


async def delete_blocked_slot(db: AsyncSession, blocked: BlockedSlot) -> None:
    await db.delete(blocked)
    await db.commit()
