# practice_booking/db/models/appointment.py

from __future__ import annotations
import uuid
import datetime as dt
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from practice_booking.db.session import Base

# Status values; archiving is a separate flag
PENDING = "pending"
CONFIRMED = "confirmed"
CANCELLED = "cancelled"
COMPLETED = "completed"

ACTIVE_STATUSES = (PENDING, CONFIRMED)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.Index("ix_appointments_preferred_date", "preferred_date"),
        sa.Index("ix_appointments_confirmed_date", "confirmed_date"),
        sa.Index("ix_appointments_status", "status"),
        sa.UniqueConstraint("reservation_token", name="uq_appointments_reservation_token"),
    )

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    # Not a foreign key: deleting a service must not orphan-delete history
    service_id: Mapped[str] = mapped_column(sa.String(64), nullable=False)

    name: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(sa.String(32))
    message: Mapped[str | None] = mapped_column(sa.Text)

    preferred_date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    preferred_time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    confirmed_date: Mapped[dt.date | None] = mapped_column(sa.Date)
    confirmed_time: Mapped[str | None] = mapped_column(sa.String(5))

    status: Mapped[str] = mapped_column(sa.String(16), nullable=False, default=PENDING)

    reschedule_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    original_date: Mapped[dt.date | None] = mapped_column(sa.Date)
    original_time: Mapped[str | None] = mapped_column(sa.String(5))

    reservation_token: Mapped[str] = mapped_column(
        sa.String(36), nullable=False, default=lambda: str(uuid.uuid4())
    )
    token_expires_at: Mapped[dt.datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)

    is_archived: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    archived_at: Mapped[dt.datetime | None] = mapped_column(sa.DateTime(timezone=True))
    cancelled_at: Mapped[dt.datetime | None] = mapped_column(sa.DateTime(timezone=True))
    cancelled_by: Mapped[str | None] = mapped_column(sa.String(16))
    cancellation_reason: Mapped[str | None] = mapped_column(sa.Text)
    completed_at: Mapped[dt.datetime | None] = mapped_column(sa.DateTime(timezone=True))

    created_at: Mapped[dt.datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    @property
    def effective_date(self) -> dt.date:
        return self.confirmed_date or self.preferred_date

    @property
    def effective_time(self) -> str:
        return self.confirmed_time or self.preferred_time

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES and not self.is_archived


class SlotClaim(Base):
    """
    One row per grid slot occupied by an active appointment.
    The (date, time) primary key is what makes double booking impossible.
    """
    __tablename__ = "slot_claims"
    __table_args__ = (
        sa.Index("ix_slot_claims_appointment_id", "appointment_id"),
    )

    date: Mapped[dt.date] = mapped_column(sa.Date, primary_key=True)
    time: Mapped[str] = mapped_column(sa.String(5), primary_key=True)
    appointment_id: Mapped[str] = mapped_column(
        sa.String(32), sa.ForeignKey("appointments.id", ondelete="CASCADE"), nullable=False
    )
