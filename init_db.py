#!/usr/bin/env python3
"""
Database initialization script for local SQLite runs.
Creates the tables and seeds the practice's services and a default weekly template.
"""

import asyncio
import os
import sys
from datetime import date

DEFAULT_SERVICES = [
    # id, name, minutes
    ("terapia-indywidualna", "Terapia indywidualna", 50),
    ("terapia-par", "Terapia par", 90),
    ("terapia-rodzinna", "Terapia rodzinna", 90),
]

WORKDAY_SLOTS = [f"{h:02d}:{m:02d}" for h in range(9, 17) for m in (0, 30)]


async def init_database() -> None:
    from practice_booking.db.base import init_db

    print("🗄️  Creating tables...")
    await init_db()
    print("✅ Database tables created successfully!")


async def seed_defaults() -> None:
    from practice_booking.crud import schedule as schedule_crud
    from practice_booking.crud import service as service_crud
    from practice_booking.db.session import AsyncSessionLocal
    from practice_booking.schemas.schedule import AssignmentIn, TemplateIn
    from practice_booking.schemas.service import ServiceCreate

    async with AsyncSessionLocal() as session:
        existing = {s.id for s in await service_crud.list_services(session)}
        for service_id, name, minutes in DEFAULT_SERVICES:
            if service_id in existing:
                continue
            await service_crud.create_service(
                session, ServiceCreate(id=service_id, name=name, duration_minutes=minutes)
            )
            print(f"📝 Service added: {service_id} ({minutes} min)")

        if await schedule_crud.list_templates(session):
            print("📊 Templates already exist, skipping default schedule")
            return

        template = await schedule_crud.create_template(
            session,
            TemplateIn(
                name="Standard week",
                schedule={day: WORKDAY_SLOTS for day in ("monday", "tuesday", "wednesday", "thursday", "friday")},
                is_default=True,
            ),
        )
        year = date.today().year
        await schedule_crud.create_assignment(
            session, AssignmentIn(template_id=template.id, year=year, description="Seeded default")
        )
        print(f"✅ Default template assigned to {year}")


async def main() -> None:
    await init_database()
    await seed_defaults()


if __name__ == "__main__":
    print("🚀 Practice Booking Database Initialization")
    print("=" * 50)

    os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./practice_booking.db")

    try:
        asyncio.run(main())
    except Exception as e:
        print(f"❌ Database initialization failed: {e}")
        sys.exit(1)

    print("\n🎉 Database initialization complete!")
    print("Next: uvicorn practice_booking.main:app --reload")
