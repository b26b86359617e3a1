# practice_booking/db/models/temporary_block.py

from __future__ import annotations
import uuid
import datetime as dt
import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from practice_booking.db.session import Base


class TemporaryBlock(Base):
    """Short-lived soft lock on a start slot, owned by an anonymous client session."""
    __tablename__ = "temporary_blocks"
    __table_args__ = (
        sa.UniqueConstraint("session_id", name="uq_temporary_blocks_session_id"),
        sa.UniqueConstraint("date", "time", name="uq_temporary_blocks_date_time"),
        sa.Index("ix_temporary_blocks_date_session_expires", "date", "session_id", "expires_at"),
    )

    id: Mapped[str] = mapped_column(sa.String(32), primary_key=True, default=lambda: uuid.uuid4().hex)
    date: Mapped[dt.date] = mapped_column(sa.Date, nullable=False)
    time: Mapped[str] = mapped_column(sa.String(5), nullable=False)
    session_id: Mapped[str] = mapped_column(sa.String(128), nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=lambda: dt.datetime.now(dt.timezone.utc)
    )
    expires_at: Mapped[dt.datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
