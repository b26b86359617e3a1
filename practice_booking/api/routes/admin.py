# practice_booking/api/routes/admin.py
"""
Admin surface over the schedule inputs and the appointment lifecycle.
Every write that can change availability clears the availability cache.
"""
from __future__ import annotations
from datetime import date
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from practice_booking.api.auth import require_api_key
from practice_booking.api.deps import get_booking_service, get_cache, get_clock
from practice_booking.core.clock import Clock
from practice_booking.core.errors import ServiceNotFoundError, TemplateNotFoundError
from practice_booking.crud import appointment as appointment_crud
from practice_booking.crud import schedule as schedule_crud
from practice_booking.crud import service as service_crud
from practice_booking.db.session import get_session
from practice_booking.schemas.appointment import AppointmentOut, RescheduleIn
from practice_booking.schemas.schedule import (
    AssignmentIn,
    AssignmentOut,
    BlockedSlotIn,
    BlockedSlotOut,
    MonthlyBlockIn,
    MonthlyScheduleOut,
    TemplateIn,
    TemplateOut,
)
from practice_booking.schemas.service import ServiceCreate, ServiceOut, ServiceUpdate
from practice_booking.services.availability_cache import AvailabilityCache
from practice_booking.services.booking import BookingService
from practice_booking.services.maintenance import MaintenanceReport, run_daily_maintenance

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_api_key)])


class StatusChangeIn(BaseModel):
    status: Literal["pending", "confirmed", "completed", "cancelled"]
    reason: Optional[str] = None


# ---------- Services ----------

@router.get("/services", response_model=List[ServiceOut])
async def admin_list_services(db: AsyncSession = Depends(get_session)):
    return await service_crud.list_services(db)


@router.post("/services", response_model=ServiceOut, status_code=201)
async def admin_create_service(
    payload: ServiceCreate,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    try:
        service = await service_crud.create_service(db, payload)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await cache.clear()
    return service


@router.put("/services/{service_id}", response_model=ServiceOut)
async def admin_update_service(
    service_id: str,
    payload: ServiceUpdate,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    service = await service_crud.get_service(db, service_id)
    if service is None:
        raise ServiceNotFoundError(service_id=service_id)
    service = await service_crud.update_service(db, service, payload)
    await cache.clear()
    return service


@router.delete("/services/{service_id}", status_code=204)
async def admin_delete_service(
    service_id: str,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    service = await service_crud.get_service(db, service_id)
    if service is None:
        raise ServiceNotFoundError(service_id=service_id)
    await service_crud.delete_service(db, service)
    await cache.clear()
    return Response(status_code=204)


# ---------- Templates ----------

@router.get("/templates", response_model=List[TemplateOut])
async def admin_list_templates(db: AsyncSession = Depends(get_session)):
    return await schedule_crud.list_templates(db)


@router.post("/templates", response_model=TemplateOut, status_code=201)
async def admin_create_template(payload: TemplateIn, db: AsyncSession = Depends(get_session)):
    # Unassigned templates don't affect availability yet
    return await schedule_crud.create_template(db, payload)


@router.put("/templates/{template_id}", response_model=TemplateOut)
async def admin_update_template(
    template_id: str,
    payload: TemplateIn,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    template = await schedule_crud.get_template(db, template_id)
    if template is None:
        raise TemplateNotFoundError(template_id=template_id)
    template = await schedule_crud.update_template(db, template, payload)
    await cache.clear()
    return template


@router.delete("/templates/{template_id}", status_code=204)
async def admin_delete_template(
    template_id: str,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    template = await schedule_crud.get_template(db, template_id)
    if template is None:
        raise TemplateNotFoundError(template_id=template_id)
    await schedule_crud.delete_template(db, template)
    await cache.clear()
    return Response(status_code=204)


# ---------- Assignments ----------

@router.get("/assignments", response_model=List[AssignmentOut])
async def admin_list_assignments(year: Optional[int] = None, db: AsyncSession = Depends(get_session)):
    return await schedule_crud.list_assignments(db, year=year)


@router.post("/assignments", response_model=AssignmentOut, status_code=201)
async def admin_create_assignment(
    payload: AssignmentIn,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    if await schedule_crud.get_template(db, payload.template_id) is None:
        raise TemplateNotFoundError(template_id=payload.template_id)
    assignment = await schedule_crud.create_assignment(db, payload)
    await cache.clear()
    return assignment


@router.delete("/assignments/{assignment_id}", status_code=204)
async def admin_delete_assignment(
    assignment_id: str,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    assignment = await schedule_crud.get_assignment(db, assignment_id)
    if assignment is None:
        raise HTTPException(status_code=404, detail="Assignment not found")
    await schedule_crud.delete_assignment(db, assignment)
    await cache.clear()
    return Response(status_code=204)


# ---------- Monthly overrides ----------

@router.get("/monthly-schedules/{year}/{month}", response_model=MonthlyScheduleOut)
async def admin_get_monthly_schedule(year: int, month: int, db: AsyncSession = Depends(get_session)):
    monthly = await schedule_crud.get_monthly_schedule(db, year, month)
    if monthly is None:
        raise HTTPException(status_code=404, detail="No overrides for this month")
    return monthly


@router.post("/monthly-blocks", response_model=MonthlyScheduleOut, status_code=201)
async def admin_add_monthly_block(
    payload: MonthlyBlockIn,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    monthly = await schedule_crud.add_monthly_block(db, payload)
    await cache.invalidate(payload.date)
    return monthly


@router.delete("/monthly-blocks", status_code=204)
async def admin_remove_monthly_block(
    day: date = Query(..., alias="date"),
    time: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    try:
        block = MonthlyBlockIn(date=day, time=time)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid block: {e.error_count()} error(s)")
    await schedule_crud.remove_monthly_block(db, block)
    await cache.invalidate(day)
    return Response(status_code=204)


# ---------- Global blocked ranges ----------

@router.get("/blocked-slots", response_model=List[BlockedSlotOut])
async def admin_list_blocked_slots(db: AsyncSession = Depends(get_session)):
    return await schedule_crud.list_blocked_slots(db)


@router.post("/blocked-slots", response_model=BlockedSlotOut, status_code=201)
async def admin_create_blocked_slot(
    payload: BlockedSlotIn,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    blocked = await schedule_crud.create_blocked_slot(db, payload)
    await cache.clear()
    return blocked


@router.delete("/blocked-slots/{blocked_id}", status_code=204)
async def admin_delete_blocked_slot(
    blocked_id: str,
    db: AsyncSession = Depends(get_session),
    cache: AvailabilityCache = Depends(get_cache),
):
    blocked = await schedule_crud.get_blocked_slot(db, blocked_id)
    if blocked is None:
        raise HTTPException(status_code=404, detail="Blocked slot not found")
    await schedule_crud.delete_blocked_slot(db, blocked)
    await cache.clear()
    return Response(status_code=204)


# ---------- Appointments ----------

@router.get("/appointments", response_model=List[AppointmentOut])
async def admin_list_appointments(
    status: Optional[str] = None,
    include_archived: bool = False,
    start: Optional[date] = None,
    end: Optional[date] = None,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
):
    return await appointment_crud.list_appointments(
        db, status=status, include_archived=include_archived, start=start, end=end, limit=limit
    )


@router.post("/appointments/{appointment_id}/status", response_model=AppointmentOut)
async def admin_change_status(
    appointment_id: str,
    payload: StatusChangeIn,
    booking: BookingService = Depends(get_booking_service),
):
    return await booking.change_status(appointment_id, payload.status, actor="admin", reason=payload.reason)


@router.post("/appointments/{appointment_id}/reschedule", response_model=AppointmentOut)
async def admin_reschedule(
    appointment_id: str,
    payload: RescheduleIn,
    booking: BookingService = Depends(get_booking_service),
):
    return await booking.reschedule(appointment_id, payload.date, payload.time, initiated_by="admin")


@router.post("/appointments/{appointment_id}/archive", response_model=AppointmentOut)
async def admin_archive(appointment_id: str, booking: BookingService = Depends(get_booking_service)):
    return await booking.archive(appointment_id)


# ---------- Maintenance ----------

@router.post("/maintenance", response_model=MaintenanceReport)
async def admin_run_maintenance(
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
    cache: AvailabilityCache = Depends(get_cache),
):
    return await run_daily_maintenance(db, clock, cache=cache)
