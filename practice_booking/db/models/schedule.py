# practice_booking/db/models/schedule.py

from __future__ import annotations
import uuid
from datetime import date, datetime, timezone
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from practice_booking.db.session import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScheduleTemplate(Base):
    """Weekly pattern of open start times, keyed by lowercase weekday name."""
    __tablename__ = "schedule_templates"

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(sa.Text)
    # {"monday": ["09:00", "09:30"], ...}
    schedule: Mapped[dict] = mapped_column(sa.JSON, nullable=False, default=dict)
    is_default: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class TemplateAssignment(Base):
    """Binds a template to a whole year (month is NULL) or to one month."""
    __tablename__ = "template_assignments"
    __table_args__ = (
        sa.Index("ix_template_assignments_year_month", "year", "month"),
    )

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=_new_id)
    template_id: Mapped[str] = mapped_column(
        sa.String(32), sa.ForeignKey("schedule_templates.id", ondelete="CASCADE"), nullable=False
    )
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    month: Mapped[int | None] = mapped_column(sa.Integer)  # 1-12
    description: Mapped[str | None] = mapped_column(sa.Text)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)


class MonthlySchedule(Base):
    """Per-month overrides: day-level and slot-level blocks."""
    __tablename__ = "monthly_schedules"
    __table_args__ = (
        sa.UniqueConstraint("year", "month", name="uq_monthly_schedules_year_month"),
    )

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=_new_id)
    year: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    month: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    template_id: Mapped[str | None] = mapped_column(
        sa.String(32), sa.ForeignKey("schedule_templates.id", ondelete="SET NULL")
    )
    # [{"date": "2026-03-10", "time": "10:00"}, {"date": "2026-03-11", "all_day": true}]
    # Always reassign the list; in-place mutation is not tracked.
    blocked_slots: Mapped[list] = mapped_column(sa.JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class BlockedSlot(Base):
    """Global blocked range (holidays, leave); optionally restricted to a time window."""
    __tablename__ = "blocked_slots"
    __table_args__ = (
        sa.Index("ix_blocked_slots_dates", "start_date", "end_date"),
    )

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=_new_id)
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(sa.Date)  # NULL means start_date only
    start_time: Mapped[str | None] = mapped_column(sa.String(5))
    end_time: Mapped[str | None] = mapped_column(sa.String(5))
    is_all_day: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    reason: Mapped[str | None] = mapped_column(sa.Text)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)

    @property
    def last_date(self) -> date:
        return self.end_date or self.start_date

    @property
    def is_whole_day(self) -> bool:
        return bool(self.is_all_day) or (self.start_time is None and self.end_time is None)
