# practice_booking/crud/service.py

from __future__ import annotations
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from practice_booking.db.models.service import Service
from practice_booking.schemas.service import ServiceCreate, ServiceId, ServiceUpdate


async def list_services(db: AsyncSession) -> Sequence[Service]:
    res = await db.execute(sa.select(Service).order_by(Service.duration_minutes.asc(), Service.id.asc()))
    return res.scalars().all()


async def get_service(db: AsyncSession, service_id: str) -> Optional[Service]:
    return await db.get(Service, service_id)


async def get_service_durations(db: AsyncSession) -> dict[ServiceId, int]:
    res = await db.execute(sa.select(Service.id, Service.duration_minutes))
    return {ServiceId(sid): duration for sid, duration in res.all()}


async def create_service(db: AsyncSession, data: ServiceCreate) -> Service:
    service = Service(**data.model_dump())
    db.add(service)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValueError(f"Service {data.id!r} already exists.")
    return service


async def update_service(db: AsyncSession, service: Service, data: ServiceUpdate) -> Service:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)
    await db.commit()
    return service


async def delete_service(db: AsyncSession, service: Service) -> None:
    await db.delete(service)
    await db.commit()
