# practice_booking/db/base.py

"""
Imports every ORM model so Alembic and create_all can discover them.
Whenever you add a new model, import it here.
"""
from practice_booking.db.models.service import Service  # noqa: F401
from practice_booking.db.models.schedule import (  # noqa: F401
    BlockedSlot,
    MonthlySchedule,
    ScheduleTemplate,
    TemplateAssignment,
)
from practice_booking.db.models.appointment import Appointment, SlotClaim  # noqa: F401
from practice_booking.db.models.temporary_block import TemporaryBlock  # noqa: F401
from practice_booking.db.session import engine, Base


async def init_db():
    """Initialize database by creating all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_engine():
    """Get database engine for connection testing"""
    return engine
